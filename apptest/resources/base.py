import logging
from logging import Logger
from typing import Dict, Optional
from apptest.common.models.labels import Labels
from apptest.utils.errors import already_exists_error, not_found_error
from kubernetes_asyncio.client import (
    ApiException,
    CoreV1Api,
    CustomObjectsApi,
    V1ConfigMap,
    V1Secret,
)


class BaseResource:
    """Base resource model.

    Subclasses build the bodies of the records they own; this class holds
    the request primitives and the already-exists / not-found handling
    shared by all of them.
    """

    KIND: str = None
    GROUP_NAME: str = None
    GROUP_VERSION: str = None
    PLURAL_NAME: str = None

    logger: Logger

    _name: str
    _namespace: Optional[str]
    _labels: Labels

    def __init__(
        self,
        name: str,
        namespace: Optional[str],
        labels: Labels = None,
        logger: Logger = None,
    ):
        self._name = name
        self._namespace = namespace
        self._labels = labels if labels is not None else Labels.managed()
        self.logger = logger or logging.getLogger(__name__)

    @property
    def name(self) -> str:
        return self._name

    @property
    def namespace(self) -> Optional[str]:
        return self._namespace

    @property
    def labels(self) -> Labels:
        return self._labels

    @property
    def api_version(self) -> str:
        return f"{self.GROUP_NAME}/{self.GROUP_VERSION}"

    async def create_secret(
        self, core_v1_api: CoreV1Api, namespace: str, secret: V1Secret
    ) -> None:
        await core_v1_api.create_namespaced_secret(namespace=namespace, body=secret)

    async def replace_secret(
        self, core_v1_api: CoreV1Api, name: str, namespace: str, secret: V1Secret
    ) -> None:
        await core_v1_api.replace_namespaced_secret(
            name=name,
            namespace=namespace,
            body=secret,
        )

    async def create_or_replace_secret(
        self, core_v1_api: CoreV1Api, name: str, namespace: str, secret: V1Secret
    ) -> bool:
        """Create a secret, replacing it if it exists. Returns False if replaced."""
        try:
            await self.create_secret(core_v1_api, namespace, secret)
        except ApiException as ex:
            if already_exists_error(ex):
                await self.replace_secret(core_v1_api, name, namespace, secret)
                return False
            raise
        return True

    async def delete_secret(
        self, core_v1_api: CoreV1Api, name: str, namespace: str
    ) -> bool:
        """Delete a secret. Returns False if it did not exist."""
        try:
            await core_v1_api.delete_namespaced_secret(name=name, namespace=namespace)
        except ApiException as ex:
            if not_found_error(ex):
                return False
            raise
        return True

    async def create_config_map(
        self, core_v1_api: CoreV1Api, namespace: str, config_map: V1ConfigMap
    ) -> bool:
        """Create a config map. Returns False if it already existed."""
        try:
            await core_v1_api.create_namespaced_config_map(
                namespace=namespace, body=config_map
            )
        except ApiException as ex:
            if already_exists_error(ex):
                return False
            raise
        return True

    async def delete_config_map(
        self, core_v1_api: CoreV1Api, name: str, namespace: str
    ) -> bool:
        """Delete a config map. Returns False if it did not exist."""
        try:
            await core_v1_api.delete_namespaced_config_map(name=name, namespace=namespace)
        except ApiException as ex:
            if not_found_error(ex):
                return False
            raise
        return True

    async def create_custom_object(
        self, custom_objects_api: CustomObjectsApi, namespace: str, body: Dict
    ) -> bool:
        """Create a namespaced custom object. Returns False if it already existed."""
        try:
            await custom_objects_api.create_namespaced_custom_object(
                group=self.GROUP_NAME,
                version=self.GROUP_VERSION,
                namespace=namespace,
                plural=self.PLURAL_NAME,
                body=body,
            )
        except ApiException as ex:
            if already_exists_error(ex):
                return False
            raise
        return True

    async def create_cluster_custom_object(
        self, custom_objects_api: CustomObjectsApi, body: Dict
    ) -> bool:
        """Create a cluster scoped custom object. Returns False if it already existed."""
        try:
            await custom_objects_api.create_cluster_custom_object(
                group=self.GROUP_NAME,
                version=self.GROUP_VERSION,
                plural=self.PLURAL_NAME,
                body=body,
            )
        except ApiException as ex:
            if already_exists_error(ex):
                return False
            raise
        return True

    async def get_custom_object(
        self, custom_objects_api: CustomObjectsApi, namespace: str, name: str
    ) -> Dict:
        return await custom_objects_api.get_namespaced_custom_object(
            group=self.GROUP_NAME,
            version=self.GROUP_VERSION,
            namespace=namespace,
            plural=self.PLURAL_NAME,
            name=name,
        )

    async def patch_custom_object(
        self,
        custom_objects_api: CustomObjectsApi,
        namespace: str,
        name: str,
        patch: Dict,
    ) -> Dict:
        return await custom_objects_api.patch_namespaced_custom_object(
            group=self.GROUP_NAME,
            version=self.GROUP_VERSION,
            namespace=namespace,
            plural=self.PLURAL_NAME,
            name=name,
            body=patch,
        )

    async def delete_custom_object(
        self, custom_objects_api: CustomObjectsApi, namespace: str, name: str
    ) -> bool:
        """Delete a namespaced custom object. Returns False if it did not exist."""
        try:
            await custom_objects_api.delete_namespaced_custom_object(
                group=self.GROUP_NAME,
                version=self.GROUP_VERSION,
                namespace=namespace,
                plural=self.PLURAL_NAME,
                name=name,
            )
        except ApiException as ex:
            if not_found_error(ex):
                return False
            raise
        return True

    async def list_custom_objects(
        self,
        custom_objects_api: CustomObjectsApi,
        namespace: str,
        label_selector: str = None,
    ) -> Dict:
        return await custom_objects_api.list_namespaced_custom_object(
            group=self.GROUP_NAME,
            version=self.GROUP_VERSION,
            namespace=namespace,
            plural=self.PLURAL_NAME,
            label_selector=label_selector,
        )
