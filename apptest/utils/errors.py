import json
from kubernetes_asyncio.client import ApiException

_ALREADY_EXISTS = "alreadyexists"
_NOT_FOUND = "notfound"


class AppTestError(Exception):
    """Base class for all apptest errors."""


class InvalidConfigError(AppTestError):
    """A descriptor or configuration value is malformed."""


class ExecutionFailedError(AppTestError):
    """An operation against the cluster did not succeed."""


class ReleaseFailedError(ExecutionFailedError):
    """The app platform reported a release status it will not recover from."""

    def __init__(self, message: str, status: str = None, reason: str = None):
        super().__init__(message)
        self.status = status
        self.reason = reason


class WaitTimeoutError(AppTestError):
    """A convergence wait ran out of time before reaching a terminal state."""


class NotFoundError(AppTestError):
    """A required record or catalog entry does not exist."""


def _reason(ex: ApiException) -> str:
    try:
        err = json.loads(ex.body) if ex.body else {}
    except (TypeError, ValueError):
        return ""
    return str(err.get("reason", "")).lower() if isinstance(err, dict) else ""


def already_exists_error(ex: Exception) -> bool:
    if not isinstance(ex, ApiException):
        return False
    return _reason(ex) == _ALREADY_EXISTS or (ex.status == 409 and not ex.body)


def not_found_error(ex: Exception) -> bool:
    if not isinstance(ex, ApiException):
        return False
    return ex.status == 404 or _reason(ex) == _NOT_FOUND


def describe_api_exception(ex: ApiException) -> str:
    """Render an ApiException as a one-line message."""
    error_msg = f"Kubernetes API error ({ex.status}): {ex.reason}"
    try:
        if ex.body:
            body = json.loads(ex.body)
            if "message" in body:
                error_msg = f"{error_msg} - {body['message']}"
    except (json.JSONDecodeError, TypeError, AttributeError):
        pass
    return error_msg
