from typing import Dict, List, Optional
from apptest.types.base import BaseModel


class CatalogEntry(BaseModel):
    name: str = None
    version: str = None
    app_version: Optional[str] = None
    created: Optional[str] = None
    urls: Optional[List[str]] = None


class CatalogIndex(BaseModel):
    """Parsed Helm repository index.yaml."""

    api_version: Optional[str] = None
    entries: Dict[str, List[CatalogEntry]] = None

    def entries_for(self, app_name: str) -> Optional[List[CatalogEntry]]:
        return (self.entries or {}).get(app_name)
