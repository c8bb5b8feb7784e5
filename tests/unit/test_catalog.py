"""Unit tests for catalog lookup and version resolution."""

from datetime import datetime, timezone

import pytest
import yaml
from aiohttp import web
from aiohttp.test_utils import TestServer

from apptest.catalog import DEFAULT_CATALOGS, CatalogRegistry, VersionResolver, latest_entry
from apptest.common.models.version import Version
from apptest.types.models import App, CatalogEntry
from apptest.types.schemas import CatalogIndexSchema
from apptest.utils.errors import InvalidConfigError, NotFoundError
from apptest.utils.helpers import iso_datestr_to_datetime
from apptest.web.client import CatalogWebClient
from apptest.web.error import NotFoundError as IndexNotFoundError
from apptest.web.error import InvalidResponseError
from apptest.web.session import SessionManager
from tests.unit.fakes import FakeWebClient, index_of

CATALOG_URL = "https://example.com/catalog/"

INDEX_YAML = """
apiVersion: v1
entries:
  hello-world-app:
  - name: hello-world-app
    version: 0.1.0
    appVersion: 1.0
    created: 2021-01-01T10:00:00.123456789Z
    urls:
    - https://example.com/catalog/hello-world-app-0.1.0.tgz
  - name: hello-world-app
    version: 0.2.0-5a1b2c3
    created: "2021-02-01T10:00:00Z"
generated: "2021-02-01T10:00:00Z"
"""


class TestCatalogRegistry:
    def test_known_catalogs(self):
        registry = CatalogRegistry()
        assert registry["default"] == "https://giantswarm.github.io/default-catalog/"
        assert "control-plane-test-catalog" in registry
        assert len(registry) == len(DEFAULT_CATALOGS)

    def test_explicit_url_wins(self):
        app = App(name="a", catalog_name="default", catalog_url="https://mirror.example.com/")
        assert CatalogRegistry().url_for(app) == "https://mirror.example.com/"

    def test_unknown_catalog_without_url(self):
        with pytest.raises(InvalidConfigError, match="not-a-catalog"):
            CatalogRegistry().url_for(App(name="a", catalog_name="not-a-catalog"))

    def test_empty_catalog_name(self):
        with pytest.raises(InvalidConfigError):
            CatalogRegistry().url_for(App(name="a", catalog_name="", catalog_url=CATALOG_URL))

    def test_with_catalogs_does_not_modify_original(self):
        registry = CatalogRegistry()
        extended = registry.with_catalogs({"mine": CATALOG_URL})
        assert extended.url_for(App(name="a", catalog_name="mine")) == CATALOG_URL
        assert "mine" not in registry

    def test_custom_registry(self):
        registry = CatalogRegistry({"only": CATALOG_URL})
        assert list(registry) == ["only"]


class TestVersion:
    def test_parse(self):
        version = Version.parse("v1.2.3-rc.1+build")
        assert version.info.major == 1
        assert version.info.prerelease == "rc.1"
        assert Version.parse("latest") is None

    def test_release_sorts_after_prerelease(self):
        assert Version.parse("1.0.0-rc1") < Version.parse("1.0.0")
        assert Version.parse("1.0.0") < Version.parse("1.0.1-rc1")
        assert Version.parse("1.10.0") > Version.parse("1.9.0")


class TestLatestEntry:
    def entries(self, *specs):
        return [CatalogEntry(name="app", version=v, created=c) for v, c in specs]

    def test_most_recent_wins(self):
        entries = self.entries(
            ("1.0.0", "2021-01-01T00:00:00Z"),
            ("0.9.1", "2021-03-01T00:00:00Z"),
            ("0.9.0", "2021-02-01T00:00:00Z"),
        )
        assert latest_entry(entries).version == "0.9.1"

    def test_ref_filters_by_substring(self):
        entries = self.entries(
            ("0.2.1-abc123", "2021-01-01T00:00:00Z"),
            ("0.2.1-def456", "2021-02-01T00:00:00Z"),
        )
        assert latest_entry(entries, "abc123").version == "0.2.1-abc123"
        assert latest_entry(entries, "fff") is None

    def test_same_timestamp_uses_semver(self):
        created = datetime(2021, 1, 1, tzinfo=timezone.utc)
        entries = self.entries(("1.0.0", created), ("1.0.0-rc1", created), ("0.9.0", created))
        assert latest_entry(entries).version == "1.0.0"

    def test_missing_timestamps_sort_first(self):
        entries = self.entries(("2.0.0", None), ("1.0.0", "2021-01-01T00:00:00Z"))
        assert latest_entry(entries).version == "1.0.0"

    def test_empty(self):
        assert latest_entry([]) is None


class TestVersionResolver:
    @pytest.mark.asyncio
    async def test_resolve_latest(self):
        web_client = FakeWebClient(
            {
                CATALOG_URL: index_of(
                    ("hello", "0.1.0", "2021-01-01T00:00:00Z"),
                    ("hello", "0.2.0-abc", "2021-02-01T00:00:00Z"),
                    ("other", "9.9.9", "2021-03-01T00:00:00Z"),
                )
            }
        )
        resolver = VersionResolver(web_client=web_client)
        assert await resolver.resolve_latest(CATALOG_URL, "hello") == "0.2.0-abc"
        assert await resolver.resolve_latest(CATALOG_URL, "hello", "0.1") == "0.1.0"
        assert web_client.requested == [CATALOG_URL, CATALOG_URL]

    @pytest.mark.asyncio
    async def test_unknown_app(self):
        resolver = VersionResolver(web_client=FakeWebClient({CATALOG_URL: index_of()}))
        with pytest.raises(NotFoundError, match="missing"):
            await resolver.resolve_latest(CATALOG_URL, "missing")

    @pytest.mark.asyncio
    async def test_close(self):
        web_client = FakeWebClient()
        await VersionResolver(web_client=web_client).close()
        assert web_client.closed


class TestCatalogIndexSchema:
    def test_load_helm_index(self):
        index = CatalogIndexSchema().load(yaml.safe_load(INDEX_YAML))
        entries = index.entries_for("hello-world-app")
        assert [e.version for e in entries] == ["0.1.0", "0.2.0-5a1b2c3"]
        assert entries[0].app_version == "1.0"
        assert entries[0].urls == ["https://example.com/catalog/hello-world-app-0.1.0.tgz"]
        assert index.entries_for("nope") is None
        assert latest_entry(entries).version == "0.2.0-5a1b2c3"


class StaticWebClient(CatalogWebClient):
    def __init__(self, body):
        super().__init__()
        self.body = body
        self.urls = []

    async def get(self, url, **kwargs):
        self.urls.append(str(url))
        return self.body


class TestCatalogWebClient:
    @pytest.mark.parametrize(
        "catalog_url",
        ["https://example.com/catalog/", "https://example.com/catalog"],
    )
    def test_index_url(self, catalog_url):
        url = CatalogWebClient().index_url(catalog_url)
        assert str(url) == "https://example.com/catalog/index.yaml"

    @pytest.mark.asyncio
    async def test_get_index(self):
        client = StaticWebClient(INDEX_YAML)
        index = await client.get_index(CATALOG_URL)
        assert client.urls == ["https://example.com/catalog/index.yaml"]
        assert len(index.entries_for("hello-world-app")) == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", ["entries: [unclosed", "just a string"])
    async def test_invalid_index(self, body):
        with pytest.raises(InvalidResponseError):
            await StaticWebClient(body).get_index(CATALOG_URL)


class TestTimestamps:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("2021-01-01T10:00:00Z", datetime(2021, 1, 1, 10, tzinfo=timezone.utc)),
            (
                "2021-01-01T10:00:00.123456789Z",
                datetime(2021, 1, 1, 10, 0, 0, 123456, tzinfo=timezone.utc),
            ),
            ("2021-01-01T10:00:00.5Z", datetime(2021, 1, 1, 10, 0, 0, 500000, tzinfo=timezone.utc)),
            ("", None),
            (None, None),
        ],
    )
    def test_iso_datestr_to_datetime(self, value, expected):
        assert iso_datestr_to_datetime(value) == expected


async def serve_index(request):
    if request.path != "/catalog/index.yaml":
        raise web.HTTPNotFound()
    return web.Response(text=INDEX_YAML)


class TestSessionManager:
    @pytest.mark.asyncio
    async def test_get_returns_body_text(self):
        app = web.Application()
        app.router.add_get("/{path:.*}", serve_index)
        async with TestServer(app) as server:
            async with SessionManager() as session:
                body = await session.get(server.make_url("/catalog/index.yaml"))
        assert body == INDEX_YAML

    @pytest.mark.asyncio
    async def test_missing_index_is_not_found(self):
        app = web.Application()
        app.router.add_get("/{path:.*}", serve_index)
        async with TestServer(app) as server:
            async with CatalogWebClient() as client:
                with pytest.raises(IndexNotFoundError):
                    await client.get_index(str(server.make_url("/elsewhere/")))
