"""Integration fixtures. These tests run against a real cluster with
app-operator installed and are skipped unless KUBECONFIG_PATH is set."""

import pytest
import pytest_asyncio

from apptest import AppSetup, Config
from tests.integration.env import kube_config_path


def pytest_collection_modifyitems(config, items):
    if kube_config_path():
        return
    skip = pytest.mark.skip(reason="KUBECONFIG_PATH is not set")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip)


@pytest_asyncio.fixture
async def app_setup():
    setup = await AppSetup.from_config(Config(kube_config_path=kube_config_path()))
    async with setup:
        yield setup
