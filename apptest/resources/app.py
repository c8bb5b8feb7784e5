from logging import Logger
from typing import Dict, Optional
from kubernetes_asyncio.client import (
    ApiException,
    CoreV1Api,
    CustomObjectsApi,
    V1ConfigMap,
    V1ObjectMeta,
    V1Secret,
)
from apptest.common.models.labels import Labels
from apptest.resources.base import BaseResource
from apptest.types.models import App, AppStatus
from apptest.types.schemas import AppStatusSchema
from apptest.types.settings import Settings
from apptest.utils.errors import InvalidConfigError, NotFoundError, not_found_error
from apptest.utils.helpers import b64encode_str
from apptest.utils.objects import cached_property


class AppCR(BaseResource):
    """App CR and the secret/config map it references."""

    KIND = "App"
    GROUP_NAME = "application.giantswarm.io"
    GROUP_VERSION = "v1alpha1"
    PLURAL_NAME = "apps"

    KUBECONFIG_SECRET_SUFFIX = "-kubeconfig"
    USER_VALUES_CONFIG_MAP_SUFFIX = "-user-values"
    KUBECONFIG_KEY = "kubeConfig"
    USER_VALUES_KEY = "values"

    conf: Settings
    app: App
    version: Optional[str]
    app_operator_version: str
    kube_config_secret_name: str
    user_values_config_map_name: str

    _app_cr: Dict = None
    _kube_config_secret: V1Secret = None
    _user_values_config_map: V1ConfigMap = None

    @classmethod
    def from_app(
        cls,
        app: App,
        version: str = None,
        conf: Settings = None,
        logger: Logger = None,
    ) -> "AppCR":
        """Build the records for `app`.

        `version` is the resolved version; it is only needed to build the
        App CR body itself.
        """
        conf = conf or Settings()
        app_operator_version = (
            app.app_operator_version or conf.unique_app_operator_version
        )
        labels = Labels.managed().include_app_operator_version(app_operator_version)
        app_cr = AppCR(
            app.name,
            app.app_cr_namespace or conf.app_cr_namespace,
            labels=labels,
            logger=logger,
        )
        app_cr.conf = conf
        app_cr.app = app
        app_cr.version = version
        app_cr.app_operator_version = app_operator_version
        app_cr.kube_config_secret_name = cls.kube_config_secret_name_for(app.name)
        app_cr.user_values_config_map_name = cls.user_values_config_map_name_for(
            app.name
        )
        return app_cr

    @classmethod
    def kube_config_secret_name_for(cls, name: str) -> str:
        return f"{name}{cls.KUBECONFIG_SECRET_SUFFIX}"

    @classmethod
    def user_values_config_map_name_for(cls, name: str) -> str:
        return f"{name}{cls.USER_VALUES_CONFIG_MAP_SUFFIX}"

    def prepare_kube_config_spec(self) -> Dict:
        if not self.app.kube_config:
            return {"inCluster": True}
        return {
            "context": {"name": self.kube_config_secret_name},
            "inCluster": False,
            "secret": {
                "name": self.kube_config_secret_name,
                "namespace": self.namespace,
            },
        }

    def prepare_app_cr(self) -> Dict:
        if not self.version:
            raise InvalidConfigError(
                f"cannot build app CR {self.name!r} without a resolved version"
            )
        spec = {
            "catalog": self.app.catalog_name,
            "kubeConfig": self.prepare_kube_config_spec(),
            "name": self.app.name,
            "namespace": self.app.namespace,
            "version": self.version,
        }
        if self.app.values_yaml:
            spec["userConfig"] = {
                "configMap": {
                    "name": self.user_values_config_map_name,
                    "namespace": self.namespace,
                }
            }
        return {
            "apiVersion": self.api_version,
            "kind": self.KIND,
            "metadata": {
                "name": self.name,
                "namespace": self.namespace,
                "labels": self.labels.as_dict(),
            },
            "spec": spec,
        }

    def prepare_kube_config_secret(self) -> Optional[V1Secret]:
        if not self.app.kube_config:
            return None
        return V1Secret(
            api_version="v1",
            kind="Secret",
            metadata=V1ObjectMeta(
                name=self.kube_config_secret_name,
                namespace=self.namespace,
                labels=Labels.managed().as_dict(),
            ),
            data={self.KUBECONFIG_KEY: b64encode_str(self.app.kube_config)},
        )

    def prepare_user_values_config_map(self) -> Optional[V1ConfigMap]:
        if not self.app.values_yaml:
            return None
        return V1ConfigMap(
            api_version="v1",
            kind="ConfigMap",
            metadata=V1ObjectMeta(
                name=self.user_values_config_map_name,
                namespace=self.namespace,
                labels=Labels.managed().as_dict(),
            ),
            data={self.USER_VALUES_KEY: self.app.values_yaml},
        )

    @staticmethod
    def prepare_version_patch(version: str, catalog: str) -> Dict:
        """Merge patch for the only App CR fields an upgrade may change."""
        return {"spec": {"version": version, "catalog": catalog}}

    async def sync_kube_config_secret(self, core_v1_api: CoreV1Api) -> None:
        """Create the kubeconfig secret, or overwrite it if it exists."""
        secret = self.kube_config_secret
        if secret is None:
            return
        ref = f"'{self.namespace}/{self.kube_config_secret_name}'"
        self.logger.debug(f"creating secret {ref}")
        if await self.create_or_replace_secret(
            core_v1_api, self.kube_config_secret_name, self.namespace, secret
        ):
            self.logger.debug(f"created secret {ref}")
        else:
            self.logger.debug(f"updated existing secret {ref}")

    async def sync_user_values_config_map(self, core_v1_api: CoreV1Api) -> None:
        """Create the user values config map, leaving an existing one untouched."""
        config_map = self.user_values_config_map
        if config_map is None:
            return
        ref = f"'{self.namespace}/{self.user_values_config_map_name}'"
        self.logger.debug(f"creating configmap {ref}")
        if await self.create_config_map(core_v1_api, self.namespace, config_map):
            self.logger.debug(f"created configmap {ref}")
        else:
            self.logger.debug(f"already created configmap {ref}")

    async def materialize_dependencies(self, core_v1_api: CoreV1Api) -> None:
        """Create the records the App CR references."""
        await self.sync_kube_config_secret(core_v1_api)
        await self.sync_user_values_config_map(core_v1_api)

    async def create(self, custom_objects_api: CustomObjectsApi) -> bool:
        """Create the App CR. Returns False if it already existed."""
        self.logger.debug(
            f"creating {self.name!r} app cr from catalog {self.app.catalog_name!r} "
            f"with version {self.version!r}"
        )
        created = await self.create_custom_object(
            custom_objects_api, self.namespace, self.app_cr
        )
        if created:
            self.logger.debug(f"created {self.name!r} app cr")
        else:
            self.logger.debug(f"{self.name!r} app CR already exists")
        return created

    async def fetch(self, custom_objects_api: CustomObjectsApi) -> Dict:
        """Fetch the live App CR, raising NotFoundError if it does not exist."""
        try:
            return await self.get_custom_object(
                custom_objects_api, self.namespace, self.name
            )
        except ApiException as ex:
            if not_found_error(ex):
                raise NotFoundError(
                    f"app CR '{self.namespace}/{self.name}' not found"
                ) from ex
            raise

    async def fetch_status(self, custom_objects_api: CustomObjectsApi) -> AppStatus:
        """Fetch the observed status. API errors, not-found included, propagate."""
        body = await self.get_custom_object(custom_objects_api, self.namespace, self.name)
        return AppStatusSchema().load((body or {}).get("status") or {})

    async def patch_version(
        self, custom_objects_api: CustomObjectsApi, version: str, catalog: str
    ) -> Dict:
        """Point the live App CR at another version and catalog.

        The record is read first so a missing App CR fails with
        NotFoundError rather than being created by the patch.
        """
        self.logger.debug(
            f"finding {self.name!r} app in namespace {self.namespace!r}"
        )
        await self.fetch(custom_objects_api)
        self.logger.debug(f"found {self.name!r} app in namespace {self.namespace!r}")
        self.logger.debug(
            f"updating {self.name!r} app cr in namespace {self.namespace!r} "
            f"to version {version!r} from catalog {catalog!r}"
        )
        try:
            result = await self.patch_custom_object(
                custom_objects_api,
                self.namespace,
                self.name,
                self.prepare_version_patch(version, catalog),
            )
        except ApiException as ex:
            if not_found_error(ex):
                raise NotFoundError(
                    f"app CR '{self.namespace}/{self.name}' disappeared during update"
                ) from ex
            raise
        self.logger.debug(f"updated {self.name!r} app cr in namespace {self.namespace!r}")
        return result

    async def delete(
        self, core_v1_api: CoreV1Api, custom_objects_api: CustomObjectsApi
    ) -> None:
        """Delete the App CR, its kubeconfig secret and its user values config map."""
        if await self.delete_custom_object(custom_objects_api, self.namespace, self.name):
            self.logger.debug(f"deleted app CR '{self.namespace}/{self.name}'")
        await self.delete_secret(core_v1_api, self.kube_config_secret_name, self.namespace)
        await self.delete_config_map(
            core_v1_api, self.user_values_config_map_name, self.namespace
        )

    @cached_property
    def app_cr(self) -> Dict:
        if self._app_cr is None:
            self._app_cr = self.prepare_app_cr()
        return self._app_cr

    @cached_property
    def kube_config_secret(self) -> Optional[V1Secret]:
        if self._kube_config_secret is None:
            self._kube_config_secret = self.prepare_kube_config_secret()
        return self._kube_config_secret

    @cached_property
    def user_values_config_map(self) -> Optional[V1ConfigMap]:
        if self._user_values_config_map is None:
            self._user_values_config_map = self.prepare_user_values_config_map()
        return self._user_values_config_map
