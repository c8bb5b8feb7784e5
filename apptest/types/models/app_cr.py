from typing import Optional
from apptest.types.base import BaseModel


class AppRelease(BaseModel):
    status: Optional[str] = None
    reason: Optional[str] = None
    last_deployed: Optional[str] = None


class AppStatus(BaseModel):
    """Observed state of an App CR as written by app-operator."""

    app_version: Optional[str] = None
    version: Optional[str] = None
    release: Optional[AppRelease] = None

    @property
    def release_status(self) -> Optional[str]:
        return self.release.status if self.release else None

    @property
    def release_reason(self) -> Optional[str]:
        return self.release.reason if self.release else None
