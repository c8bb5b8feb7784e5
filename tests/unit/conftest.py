"""Fixtures wiring AppSetup to in-memory fakes."""

import pytest

from apptest.appsetup import AppSetup
from apptest.catalog import CatalogRegistry, VersionResolver
from apptest.types.settings import Settings
from tests.unit.fakes import (
    TEST_CATALOG_URL,
    FakeApiextensionsV1Api,
    FakeClock,
    FakeCoreV1Api,
    FakeCustomObjectsApi,
    FakeWebClient,
    index_of,
)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def custom_objects_api():
    return FakeCustomObjectsApi()


@pytest.fixture
def core_v1_api():
    return FakeCoreV1Api()


@pytest.fixture
def apiextensions_v1_api():
    return FakeApiextensionsV1Api()


@pytest.fixture
def web_client():
    return FakeWebClient(
        {
            TEST_CATALOG_URL: index_of(
                ("hello-world-app", "0.1.0", "2021-01-01T00:00:00Z"),
                ("hello-world-app", "0.2.0", "2021-02-01T00:00:00Z"),
                ("hello-world-app", "0.2.1-abc123", "2021-03-01T00:00:00Z"),
                ("hello-world-app", "0.2.1-def456", "2021-03-02T00:00:00Z"),
            ),
        }
    )


@pytest.fixture
def conf():
    return Settings(
        app_cr_namespace="giantswarm",
        unique_app_operator_version="0.0.0",
        deploy_retry_interval_seconds=10,
        deploy_timeout_seconds=60,
        crd_initial_interval_seconds=0.5,
        crd_max_interval_seconds=10,
        crd_timeout_seconds=60,
    )


@pytest.fixture
def app_setup(conf, clock, web_client, custom_objects_api, core_v1_api, apiextensions_v1_api):
    setup = AppSetup(
        catalogs=CatalogRegistry().with_catalogs({"test-catalog": TEST_CATALOG_URL}),
        resolver=VersionResolver(web_client=web_client),
        conf=conf,
        clock=clock,
    )
    setup.custom_objects_api = custom_objects_api
    setup.core_v1_api = core_v1_api
    setup.apiextensions_v1_api = apiextensions_v1_api
    return setup
