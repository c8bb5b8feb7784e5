"""Catalog storage client."""
import yaml
from marshmallow import ValidationError
from yarl import URL
from apptest.types.models import CatalogIndex
from apptest.types.schemas import CatalogIndexSchema
from .error import InvalidResponseError
from .session import SessionManager

INDEX_FILE = "index.yaml"


class CatalogWebClient(SessionManager):
    """Client for Helm chart repositories backing app catalogs."""

    def index_url(self, catalog_url: str) -> URL:
        url = URL(catalog_url)
        path = url.path if url.path.endswith("/") else url.path + "/"
        return url.with_path(path + INDEX_FILE)

    async def get_index(self, catalog_url: str) -> CatalogIndex:
        """Download and parse the catalog's index.yaml."""
        url = self.index_url(catalog_url)
        body = await self.get(url)
        try:
            data = yaml.safe_load(body)
        except yaml.YAMLError as ex:
            raise InvalidResponseError(f"invalid index at {url}: {ex}") from ex
        if not isinstance(data, dict):
            raise InvalidResponseError(f"invalid index at {url}: not a mapping")
        try:
            return CatalogIndexSchema().load(data)
        except ValidationError as ex:
            raise InvalidResponseError(f"invalid index at {url}: {ex.messages}") from ex
