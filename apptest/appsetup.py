import logging
import yaml
from logging import Logger
from typing import Any, Dict, Iterable, List, Union
from kubernetes_asyncio import config as kube_config
from kubernetes_asyncio.client import (
    ApiextensionsV1Api,
    Configuration,
    CoreV1Api,
    CustomObjectsApi,
)
from kubernetes_asyncio.client.api_client import ApiClient
from apptest.catalog import CatalogRegistry, VersionResolver
from apptest.resources import AppCatalogCR, AppCR, CustomResourceDefinition
from apptest.types.models import App, Config
from apptest.types.settings import Settings
from apptest.utils.errors import InvalidConfigError
from apptest.utils.helpers import unique
from apptest.utils.objects import cached_property
from apptest.web.client import CatalogWebClient
from apptest.waiters import (
    AppDeployedWaiter,
    Backoff,
    CRDEstablishedWaiter,
    Clock,
    constant_backoff,
    exponential_backoff,
)

CRDLike = Union[CustomResourceDefinition, Dict[str, Any], str]


class AppSetup:
    """Installs apps through the app platform for automated tests.

    Every operation is one-shot: records are created (or found to exist
    already), then the caller is blocked until app-operator reports them
    deployed. Cancel the calling task to abort a wait; this surfaces as
    `asyncio.CancelledError`, never as `WaitTimeoutError`.
    """

    logger: Logger
    conf: Settings
    catalogs: CatalogRegistry
    resolver: VersionResolver
    clock: Clock

    # k8s resources
    _api_client: ApiClient = None
    _core_v1_api: CoreV1Api = None
    _custom_objects_api: CustomObjectsApi = None
    _apiextensions_v1_api: ApiextensionsV1Api = None

    def __init__(
        self,
        api_client: ApiClient = None,
        catalogs: CatalogRegistry = None,
        resolver: VersionResolver = None,
        conf: Settings = None,
        clock: Clock = None,
        logger: Logger = None,
    ) -> None:
        self._api_client = api_client
        self.logger = logger or logging.getLogger(__name__)
        self.conf = conf or Settings()
        self.catalogs = catalogs if catalogs is not None else CatalogRegistry()
        self.clock = clock or Clock()
        self._resolver = resolver

    @classmethod
    async def from_config(cls, config: Config, **kwargs: Any) -> "AppSetup":
        """Create an AppSetup talking to the cluster described by `config`."""
        if not config.kube_config and not config.kube_config_path:
            raise InvalidConfigError(
                "Config.kube_config and Config.kube_config_path must not be empty at the same time"
            )
        if config.kube_config and config.kube_config_path:
            raise InvalidConfigError(
                "Config.kube_config and Config.kube_config_path must not be set at the same time"
            )

        configuration = Configuration()
        try:
            if config.kube_config:
                try:
                    config_dict = yaml.safe_load(config.kube_config)
                except yaml.YAMLError as ex:
                    raise InvalidConfigError(f"invalid kubeconfig: {ex}") from ex
                await kube_config.load_kube_config_from_dict(
                    config_dict,
                    context=config.context,
                    client_configuration=configuration,
                )
            else:
                await kube_config.load_kube_config(
                    config_file=config.kube_config_path,
                    context=config.context,
                    client_configuration=configuration,
                )
        except kube_config.ConfigException as ex:
            raise InvalidConfigError(f"failed to load kubeconfig: {ex}") from ex

        kwargs.setdefault("logger", config.logger)
        return cls(api_client=ApiClient(configuration=configuration), **kwargs)

    async def install_apps(self, apps: List[App]) -> None:
        """Create AppCatalog and App CRs and wait for the apps to be deployed."""
        for app in apps:
            self.validate_app(app)
        await self.create_app_catalogs(apps)
        await self.create_apps(apps)
        await self.wait_for_deployed_apps(apps)

    async def upgrade_app(self, current: App, desired: App) -> None:
        """Install `current`, then upgrade it in place to `desired`."""
        self.validate_app(current, require_version=False)
        self.validate_app(desired, require_version=False)

        await self.create_app_catalogs([current, desired])

        # if current has no specific version, use the latest instead.
        if not current.has_version_constraint:
            version = await self.resolver.resolve_latest(
                self.catalogs.url_for(current), current.name, ""
            )
            current = current.copy(version=version)

        await self.create_apps([current])
        await self.wait_for_deployed_app(current)

        version = await self.update_app(desired)
        await self.wait_for_app(
            desired.name,
            namespace=desired.app_cr_namespace,
            sha=desired.sha,
            version=None if desired.sha else version,
        )

    async def ensure_crds(self, crds: Iterable[CRDLike]) -> None:
        """Register CRDs and wait until the API server serves them.

        Items may be CRD manifests, paths to YAML manifests, or
        `CustomResourceDefinition` resources.
        """
        resources = [self.as_crd(crd) for crd in crds]
        for crd in resources:
            await self.ensure_crd(crd)

    async def clean_up(self, apps: List[App]) -> None:
        """Delete the App CRs and the secrets/config maps created for `apps`.

        AppCatalog CRs are shared between apps and left in place.
        """
        for app in apps:
            app_cr = AppCR.from_app(app, conf=self.conf, logger=self.logger)
            await app_cr.delete(self.core_v1_api, self.custom_objects_api)

    async def wait_for_app(
        self,
        name: str,
        namespace: str = None,
        sha: str = None,
        version: str = None,
        backoff: Backoff = None,
    ) -> None:
        """Wait for the named App CR to be deployed.

        With neither `sha` nor `version` the first `deployed` status wins.
        """
        app_cr = AppCR.from_app(
            App(name=name, app_cr_namespace=namespace), conf=self.conf, logger=self.logger
        )
        self.logger.debug(
            f"ensuring '{app_cr.namespace}/{app_cr.name}' app CR is 'deployed'"
        )
        waiter = AppDeployedWaiter(
            self.custom_objects_api,
            app_cr,
            backoff or self.deploy_backoff(),
            sha=sha,
            version=version,
            clock=self.clock,
            logger=self.logger,
        )
        await waiter.wait()
        self.logger.debug(f"ensured '{app_cr.namespace}/{app_cr.name}' app CR is deployed")

    async def list_apps(
        self, namespace: str = None, label_selector: str = None
    ) -> List[Dict]:
        """List App CRs in `namespace` (the default App CR namespace if unset)."""
        app_cr = AppCR(None, namespace or self.conf.app_cr_namespace, logger=self.logger)
        result = await app_cr.list_custom_objects(
            self.custom_objects_api, app_cr.namespace, label_selector=label_selector
        )
        return result.get("items", []) if result else []

    async def list_custom_objects(
        self,
        group: str,
        version: str,
        plural: str,
        namespace: str,
        label_selector: str = None,
    ) -> List[Dict]:
        result = await self.custom_objects_api.list_namespaced_custom_object(
            group=group,
            version=version,
            namespace=namespace,
            plural=plural,
            label_selector=label_selector,
        )
        return result.get("items", []) if result else []

    def validate_app(self, app: App, require_version: bool = True) -> None:
        """Reject malformed descriptors before anything is created."""
        if not app.name:
            raise InvalidConfigError(f"app name must not be empty for {app!r}")
        self.catalogs.url_for(app)
        if app.sha and app.version:
            raise InvalidConfigError(
                f"both SHA and Version cannot be provided for app {app.name!r}"
            )
        if require_version and not app.has_version_constraint:
            raise InvalidConfigError(
                f"either SHA or Version must be provided for app {app.name!r}"
            )

    async def resolve_version(self, app: App) -> str:
        """Return the version to install for `app`.

        A version is used as is, so dependencies can be pinned. A SHA is
        looked up in the catalog, where test builds are published as
        `<version>-<sha>`.
        """
        self.validate_app(app)
        if app.version:
            return app.version
        return await self.resolver.resolve_latest(
            self.catalogs.url_for(app), app.name, app.sha
        )

    async def create_app_catalogs(self, apps: List[App]) -> None:
        """Create one AppCatalog CR per distinct catalog referenced by `apps`."""
        catalog_urls = {}
        for app in apps:
            catalog_urls.setdefault(app.catalog_name, self.catalogs.url_for(app))
        for name in unique(app.catalog_name for app in apps):
            catalog = AppCatalogCR.from_catalog(
                name, catalog_urls[name], conf=self.conf, logger=self.logger
            )
            await catalog.create(self.custom_objects_api)

    async def create_apps(self, apps: List[App]) -> None:
        """Create App CRs, skipping (not stopping at) those that exist already."""
        for app in apps:
            version = await self.resolve_version(app)
            app_cr = AppCR.from_app(app, version=version, conf=self.conf, logger=self.logger)
            await app_cr.materialize_dependencies(self.core_v1_api)
            if not await app_cr.create(self.custom_objects_api):
                await self.check_existing_app(app_cr)

    async def check_existing_app(self, app_cr: AppCR) -> None:
        """Warn when an App CR left in place points at another version."""
        live = await app_cr.fetch(self.custom_objects_api)
        live_version = (live.get("spec") or {}).get("version")
        ref = f"'{app_cr.namespace}/{app_cr.name}'"
        if live_version != app_cr.version:
            self.logger.warning(
                f"app CR {ref} already exists at version {live_version!r}, "
                f"wait will expect version {app_cr.version!r}"
            )
        else:
            self.logger.debug(f"app CR {ref} already exists at version {live_version!r}")

    async def wait_for_deployed_apps(self, apps: List[App]) -> None:
        for app in apps:
            if app.wait_for_deploy:
                await self.wait_for_deployed_app(app)
            else:
                self.logger.debug(f"skipping wait for deploy of {app.name!r} app cr")

    async def wait_for_deployed_app(self, app: App) -> None:
        await self.wait_for_app(
            app.name, namespace=app.app_cr_namespace, sha=app.sha, version=app.version
        )

    async def update_app(self, desired: App) -> str:
        """Move the live App CR to `desired`'s catalog and latest matching version.

        Returns the version the App CR now points at.
        """
        app_cr = AppCR.from_app(desired, conf=self.conf, logger=self.logger)
        version = await self.resolver.resolve_latest(
            self.catalogs.url_for(desired), desired.name, desired.version_ref or ""
        )
        self.logger.debug(f"desired version: {version!r}")
        self.logger.debug(f"desired catalog: {desired.catalog_name!r}")
        await app_cr.patch_version(self.custom_objects_api, version, desired.catalog_name)
        return version

    async def ensure_crd(self, crd: CustomResourceDefinition) -> None:
        await crd.create(self.apiextensions_v1_api)
        waiter = CRDEstablishedWaiter(
            self.apiextensions_v1_api,
            crd,
            self.crd_backoff(),
            clock=self.clock,
            logger=self.logger,
        )
        await waiter.wait()
        self.logger.debug(f"CRD {crd.name!r} is established")

    def as_crd(self, crd: CRDLike) -> CustomResourceDefinition:
        if isinstance(crd, CustomResourceDefinition):
            return crd
        if isinstance(crd, str):
            return CustomResourceDefinition.from_file(crd, logger=self.logger)
        if isinstance(crd, dict):
            return CustomResourceDefinition.from_manifest(crd, logger=self.logger)
        raise InvalidConfigError(f"unsupported schema record {type(crd).__name__}")

    def deploy_backoff(self) -> Backoff:
        return constant_backoff(
            self.conf.deploy_retry_interval_seconds, self.conf.deploy_timeout_seconds
        )

    def crd_backoff(self) -> Backoff:
        return exponential_backoff(
            self.conf.crd_initial_interval_seconds,
            self.conf.crd_max_interval_seconds,
            self.conf.crd_timeout_seconds,
        )

    async def close(self) -> None:
        """Close the API client and the catalog HTTP session."""
        if self._resolver is not None:
            await self._resolver.close()
        if self._api_client is not None:
            await self._api_client.close()

    async def __aenter__(self) -> "AppSetup":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @cached_property
    def resolver(self) -> VersionResolver:
        if self._resolver is None:
            self._resolver = VersionResolver(
                web_client=CatalogWebClient(
                    timeout=self.conf.catalog_index_timeout_seconds
                ),
                logger=self.logger,
            )
        return self._resolver

    @cached_property
    def api_client(self) -> ApiClient:
        if self._api_client is None:
            self._api_client = ApiClient()
        return self._api_client

    @cached_property
    def core_v1_api(self) -> CoreV1Api:
        if self._core_v1_api is None:
            self._core_v1_api = CoreV1Api(self.api_client)
        return self._core_v1_api

    @cached_property
    def custom_objects_api(self) -> CustomObjectsApi:
        if self._custom_objects_api is None:
            self._custom_objects_api = CustomObjectsApi(self.api_client)
        return self._custom_objects_api

    @cached_property
    def apiextensions_v1_api(self) -> ApiextensionsV1Api:
        if self._apiextensions_v1_api is None:
            self._apiextensions_v1_api = ApiextensionsV1Api(self.api_client)
        return self._apiextensions_v1_api


__all__ = ["AppSetup", "CRDLike"]
