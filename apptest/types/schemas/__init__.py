from .app import AppSchema
from .app_cr import AppReleaseSchema, AppStatusSchema
from .catalog_index import CatalogEntrySchema, CatalogIndexSchema

__all__ = [
    "AppSchema",
    "AppReleaseSchema",
    "AppStatusSchema",
    "CatalogEntrySchema",
    "CatalogIndexSchema",
]
