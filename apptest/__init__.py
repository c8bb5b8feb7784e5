try:
    import os
    from dotenv import load_dotenv, find_dotenv

    env_file = os.environ.get("ENV_FILE", ".env")
    path = find_dotenv(filename=env_file, raise_error_if_not_found=True, usecwd=True)
    load_dotenv(dotenv_path=path)

except IOError:
    # No file to set environment variables
    pass

from apptest.appsetup import AppSetup  # noqa: E402
from apptest.catalog import CatalogRegistry, VersionResolver  # noqa: E402
from apptest.types.models import App, Config  # noqa: E402
from apptest.types.settings import Settings  # noqa: E402
from apptest.utils.errors import (  # noqa: E402
    AppTestError,
    ExecutionFailedError,
    InvalidConfigError,
    NotFoundError,
    ReleaseFailedError,
    WaitTimeoutError,
)

__all__ = [
    "App",
    "AppSetup",
    "AppTestError",
    "CatalogRegistry",
    "Config",
    "ExecutionFailedError",
    "InvalidConfigError",
    "NotFoundError",
    "ReleaseFailedError",
    "Settings",
    "VersionResolver",
    "WaitTimeoutError",
]

__version__ = "0.1.0"
