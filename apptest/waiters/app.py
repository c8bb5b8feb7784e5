from logging import Logger
from typing import Optional
from kubernetes_asyncio.client import CustomObjectsApi
from apptest.resources.app import AppCR
from apptest.types.models import AppStatus
from apptest.utils.errors import ReleaseFailedError
from apptest.waiters.base import Attempt, Backoff, Clock, Waiter

DEPLOYED_STATUS = "deployed"
FAILED_STATUS = "failed"
NOT_INSTALLED_STATUS = "not-installed"

TERMINAL_FAILURE_STATUSES = (NOT_INSTALLED_STATUS, FAILED_STATUS)


def classify_app_status(
    status: Optional[AppStatus],
    sha: Optional[str] = None,
    version: Optional[str] = None,
    name: str = "app",
) -> Attempt:
    """Decide what an observed App CR status means for a deploy wait.

    A `deployed` release only counts once it runs the requested SHA (suffix
    match) or version (exact match); with neither requested the first
    `deployed` observation is enough.
    """
    release_status = status.release_status if status else None
    observed_version = (status.version if status else None) or ""

    if release_status in TERMINAL_FAILURE_STATUSES:
        reason = status.release_reason or ""
        return Attempt.terminal(
            ReleaseFailedError(
                f"app {name!r} status {release_status!r}, reason: {reason}",
                status=release_status,
                reason=reason,
            )
        )

    if release_status == DEPLOYED_STATUS:
        if sha:
            if observed_version.endswith(sha):
                return Attempt.succeed(observed_version)
        elif version:
            if observed_version == version:
                return Attempt.succeed(observed_version)
        else:
            return Attempt.succeed(observed_version)
        return Attempt.proceed(
            f"waiting for version matching {sha or version!r}, current version {observed_version!r}"
        )

    return Attempt.proceed(
        f"waiting for {DEPLOYED_STATUS!r}, current {release_status!r}"
    )


class AppDeployedWaiter(Waiter):
    """Waits until app-operator reports an App CR deployed."""

    def __init__(
        self,
        custom_objects_api: CustomObjectsApi,
        app_cr: AppCR,
        backoff: Backoff,
        sha: Optional[str] = None,
        version: Optional[str] = None,
        clock: Clock = None,
        logger: Logger = None,
    ) -> None:
        super().__init__(backoff, clock=clock, logger=logger)
        self.custom_objects_api = custom_objects_api
        self.app_cr = app_cr
        self.sha = sha
        self.version = version
        self.description = f"app CR '{app_cr.namespace}/{app_cr.name}'"

    async def observe(self) -> Attempt:
        status = await self.app_cr.fetch_status(self.custom_objects_api)
        return classify_app_status(
            status, sha=self.sha, version=self.version, name=self.app_cr.name
        )
