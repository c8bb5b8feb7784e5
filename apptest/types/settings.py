import os
from typing import Any

_TRUE, _FALSE = {"True", "true", "yes", "1"}, {"False", "false", "no", "0"}


def _getenv(name: str, *default: Any) -> Any:
    try:
        v = os.environ[name]
        if v in _TRUE:
            return True
        elif v in _FALSE:
            return False
        else:
            return v
    except KeyError:
        pass
    if default:
        return default[0]
    raise KeyError(name)


# ------------------------------------------------
# ---- Defaults and environment variables ----
# ------------------------------------------------

#: Namespace holding App CRs and their secrets/config maps when a descriptor sets none
APP_CR_NAMESPACE = str(_getenv("APP_CR_NAMESPACE", "giantswarm"))

#: app-operator version label value routing CRs to the unique app-operator instance
UNIQUE_APP_OPERATOR_VERSION = str(_getenv("UNIQUE_APP_OPERATOR_VERSION", "0.0.0"))

#: Seconds between two status checks while waiting for an app to be deployed
DEPLOY_RETRY_INTERVAL_SECONDS = float(_getenv("DEPLOY_RETRY_INTERVAL_SECONDS", 10))

#: Seconds to wait for an app to be deployed before giving up
DEPLOY_TIMEOUT_SECONDS = float(_getenv("DEPLOY_TIMEOUT_SECONDS", 20 * 60))

#: First delay between checks for an established CRD; grows exponentially
CRD_INITIAL_INTERVAL_SECONDS = float(_getenv("CRD_INITIAL_INTERVAL_SECONDS", 0.5))

#: Upper bound for a single delay between CRD checks
CRD_MAX_INTERVAL_SECONDS = float(_getenv("CRD_MAX_INTERVAL_SECONDS", 10))

#: Seconds to wait for a CRD to become established before giving up
CRD_TIMEOUT_SECONDS = float(_getenv("CRD_TIMEOUT_SECONDS", 60))

#: Timeout in seconds for downloading a catalog index
CATALOG_INDEX_TIMEOUT_SECONDS = float(_getenv("CATALOG_INDEX_TIMEOUT_SECONDS", 10))


class Settings:
    """apptest settings"""

    app_cr_namespace: str = APP_CR_NAMESPACE
    unique_app_operator_version: str = UNIQUE_APP_OPERATOR_VERSION
    deploy_retry_interval_seconds: float = DEPLOY_RETRY_INTERVAL_SECONDS
    deploy_timeout_seconds: float = DEPLOY_TIMEOUT_SECONDS
    crd_initial_interval_seconds: float = CRD_INITIAL_INTERVAL_SECONDS
    crd_max_interval_seconds: float = CRD_MAX_INTERVAL_SECONDS
    crd_timeout_seconds: float = CRD_TIMEOUT_SECONDS
    catalog_index_timeout_seconds: float = CATALOG_INDEX_TIMEOUT_SECONDS

    def __init__(
        self,
        *args,
        app_cr_namespace: str = None,
        unique_app_operator_version: str = None,
        deploy_retry_interval_seconds: float = None,
        deploy_timeout_seconds: float = None,
        crd_initial_interval_seconds: float = None,
        crd_max_interval_seconds: float = None,
        crd_timeout_seconds: float = None,
        catalog_index_timeout_seconds: float = None,
        **kwargs,
    ):
        if app_cr_namespace is not None:
            self.app_cr_namespace = app_cr_namespace

        if unique_app_operator_version is not None:
            self.unique_app_operator_version = unique_app_operator_version

        if deploy_retry_interval_seconds is not None:
            self.deploy_retry_interval_seconds = deploy_retry_interval_seconds

        if deploy_timeout_seconds is not None:
            self.deploy_timeout_seconds = deploy_timeout_seconds

        if crd_initial_interval_seconds is not None:
            self.crd_initial_interval_seconds = crd_initial_interval_seconds

        if crd_max_interval_seconds is not None:
            self.crd_max_interval_seconds = crd_max_interval_seconds

        if crd_timeout_seconds is not None:
            self.crd_timeout_seconds = crd_timeout_seconds

        if catalog_index_timeout_seconds is not None:
            self.catalog_index_timeout_seconds = catalog_index_timeout_seconds
