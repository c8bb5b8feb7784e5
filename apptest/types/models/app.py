from typing import Optional
from apptest.types.base import BaseModel


class App(BaseModel):
    """Desired state of one app to be installed by the app platform."""

    name: str = None
    namespace: str = None
    app_cr_namespace: Optional[str] = None
    catalog_name: str = None
    catalog_url: Optional[str] = None
    sha: Optional[str] = None
    version: Optional[str] = None
    values_yaml: Optional[str] = None
    kube_config: Optional[str] = None
    app_operator_version: Optional[str] = None
    wait_for_deploy: bool = False

    @property
    def has_version_constraint(self) -> bool:
        return bool(self.sha or self.version)

    @property
    def version_ref(self) -> Optional[str]:
        """Reference used to look the app up in its catalog, SHA first."""
        return self.sha or self.version or None
