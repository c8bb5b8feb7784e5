from logging import Logger
from typing import Dict
from kubernetes_asyncio.client import CustomObjectsApi
from apptest.common.models.labels import Labels
from apptest.resources.base import BaseResource
from apptest.types.settings import Settings


class AppCatalogCR(BaseResource):
    """Cluster scoped AppCatalog CR pointing app-operator at a Helm repository."""

    KIND = "AppCatalog"
    GROUP_NAME = "application.giantswarm.io"
    GROUP_VERSION = "v1alpha1"
    PLURAL_NAME = "appcatalogs"
    STORAGE_TYPE = "helm"

    url: str

    @classmethod
    def from_catalog(
        cls, name: str, url: str, conf: Settings = None, logger: Logger = None
    ) -> "AppCatalogCR":
        conf = conf or Settings()
        # Processed by the unique app-operator instance.
        labels = Labels.managed().include_app_operator_version(
            conf.unique_app_operator_version
        )
        catalog = AppCatalogCR(name, None, labels=labels, logger=logger)
        catalog.url = url
        return catalog

    def prepare_app_catalog_cr(self) -> Dict:
        return {
            "apiVersion": self.api_version,
            "kind": self.KIND,
            "metadata": {
                "name": self.name,
                "labels": self.labels.as_dict(),
            },
            "spec": {
                "description": self.name,
                "title": self.name,
                "storage": {
                    "type": self.STORAGE_TYPE,
                    "URL": self.url,
                },
            },
        }

    async def create(self, custom_objects_api: CustomObjectsApi) -> bool:
        """Create the AppCatalog CR. Returns False if it already existed."""
        self.logger.debug(f"creating {self.name!r} appcatalog cr")
        created = await self.create_cluster_custom_object(
            custom_objects_api, self.prepare_app_catalog_cr()
        )
        if created:
            self.logger.debug(f"created {self.name!r} appcatalog cr")
        else:
            self.logger.debug(f"{self.name!r} appcatalog CR already exists")
        return created
