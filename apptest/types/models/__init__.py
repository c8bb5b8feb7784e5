from .app import App
from .app_cr import AppRelease, AppStatus
from .catalog_index import CatalogEntry, CatalogIndex
from .config import Config

__all__ = [
    "App",
    "AppRelease",
    "AppStatus",
    "CatalogEntry",
    "CatalogIndex",
    "Config",
]
