from .registry import DEFAULT_CATALOGS, CatalogRegistry
from .resolver import VersionResolver, latest_entry

__all__ = ["DEFAULT_CATALOGS", "CatalogRegistry", "VersionResolver", "latest_entry"]
