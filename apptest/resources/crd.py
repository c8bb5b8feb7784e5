import yaml
from logging import Logger
from typing import Any, Dict, Mapping
from kubernetes_asyncio.client import ApiException, ApiextensionsV1Api
from apptest.resources.base import BaseResource
from apptest.utils.errors import InvalidConfigError, already_exists_error

ESTABLISHED_CONDITION = "Established"


def _field(obj: Any, name: str) -> Any:
    if obj is None:
        return None
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def load_crd(path: str) -> Dict:
    """Load a CRD manifest from a YAML file."""
    with open(path, "r") as f:
        manifest = yaml.safe_load(f)
    if not isinstance(manifest, dict):
        raise InvalidConfigError(f"{path} does not contain a CRD manifest")
    return manifest


class CustomResourceDefinition(BaseResource):
    """A CRD to register before its custom resources are used."""

    KIND = "CustomResourceDefinition"
    GROUP_NAME = "apiextensions.k8s.io"
    GROUP_VERSION = "v1"
    PLURAL_NAME = "customresourcedefinitions"

    manifest: Dict

    @classmethod
    def from_manifest(
        cls, manifest: Mapping[str, Any], logger: Logger = None
    ) -> "CustomResourceDefinition":
        if manifest.get("kind") != cls.KIND:
            raise InvalidConfigError(
                f"unsupported schema record kind {manifest.get('kind')!r}, "
                f"expected {cls.KIND!r}"
            )
        api_version = manifest.get("apiVersion")
        if api_version != f"{cls.GROUP_NAME}/{cls.GROUP_VERSION}":
            raise InvalidConfigError(f"unsupported CRD apiVersion {api_version!r}")
        name = (manifest.get("metadata") or {}).get("name")
        if not name:
            raise InvalidConfigError("CRD manifest has no metadata.name")
        crd = CustomResourceDefinition(name, None, logger=logger)
        crd.manifest = dict(manifest)
        return crd

    @classmethod
    def from_file(cls, path: str, logger: Logger = None) -> "CustomResourceDefinition":
        return cls.from_manifest(load_crd(path), logger=logger)

    async def create(self, apiextensions_v1_api: ApiextensionsV1Api) -> bool:
        """Register the CRD. Returns False if it already existed."""
        try:
            await apiextensions_v1_api.create_custom_resource_definition(
                body=self.manifest
            )
        except ApiException as ex:
            if already_exists_error(ex):
                self.logger.debug(f"CRD {self.name!r} already exists")
                return False
            raise
        self.logger.debug(f"created CRD {self.name!r}")
        return True

    async def is_established(self, apiextensions_v1_api: ApiextensionsV1Api) -> bool:
        crd = await apiextensions_v1_api.read_custom_resource_definition(name=self.name)
        conditions = _field(_field(crd, "status"), "conditions") or []
        return any(
            _field(c, "type") == ESTABLISHED_CONDITION and _field(c, "status") == "True"
            for c in conditions
        )
