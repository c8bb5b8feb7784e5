from logging import Logger
from kubernetes_asyncio.client import ApiextensionsV1Api
from apptest.resources.crd import CustomResourceDefinition
from apptest.waiters.base import Attempt, Backoff, Clock, Waiter


class CRDEstablishedWaiter(Waiter):
    """Waits until the API server serves a CRD.

    A CRD has no failure state, only "not established yet".
    """

    def __init__(
        self,
        apiextensions_v1_api: ApiextensionsV1Api,
        crd: CustomResourceDefinition,
        backoff: Backoff,
        clock: Clock = None,
        logger: Logger = None,
    ) -> None:
        super().__init__(backoff, clock=clock, logger=logger)
        self.apiextensions_v1_api = apiextensions_v1_api
        self.crd = crd
        self.description = f"CRD {crd.name!r}"

    async def observe(self) -> Attempt:
        if await self.crd.is_established(self.apiextensions_v1_api):
            return Attempt.succeed()
        return Attempt.proceed(f"CRD {self.crd.name!r} is not established yet")
