"""Bounded polling of records reconciled by someone else.

A waiter repeatedly observes a record. Each observation yields an
`Attempt` whose `Outcome` decides what happens next:

- ``SUCCEED``: the record reached the desired state, stop.
- ``FAIL_TERMINAL``: the record reached a state it will not leave on its
  own, stop and raise the attempt's error.
- ``CONTINUE``: the record is not there yet, sleep and retry.
- ``FAIL_TRANSIENT``: the record could not be read, sleep and retry.

The loop is driven by tenacity. Time is taken from an injected `Clock` and
delays from a `Backoff`, so the decision logic and the schedule can be
tested without sleeping.
"""
import asyncio
import enum
import logging
import time
from logging import Logger
from concurrent.futures import Future
from typing import NamedTuple, Optional

import aiohttp
from kubernetes_asyncio.client import ApiException
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    RetryError,
    retry_if_exception_type,
    retry_if_result,
    wait_exponential,
    wait_fixed,
)
from tenacity.stop import stop_base
from tenacity.wait import wait_base

from apptest.utils.errors import WaitTimeoutError, describe_api_exception

#: Errors raised while reading a record that are worth retrying.
TRANSIENT_ERRORS = (ApiException, aiohttp.ClientError, asyncio.TimeoutError, OSError)


class Outcome(enum.Enum):
    CONTINUE = "continue"
    SUCCEED = "succeed"
    FAIL_TERMINAL = "fail-terminal"
    FAIL_TRANSIENT = "fail-transient"


class Attempt(NamedTuple):
    outcome: Outcome
    reason: str = ""
    error: Optional[Exception] = None

    @classmethod
    def succeed(cls, reason: str = "") -> "Attempt":
        return cls(Outcome.SUCCEED, reason)

    @classmethod
    def proceed(cls, reason: str) -> "Attempt":
        return cls(Outcome.CONTINUE, reason)

    @classmethod
    def terminal(cls, error: Exception) -> "Attempt":
        return cls(Outcome.FAIL_TERMINAL, str(error), error)

    @classmethod
    def transient(cls, error: Exception) -> "Attempt":
        if isinstance(error, ApiException):
            reason = describe_api_exception(error)
        else:
            reason = f"{type(error).__name__}: {error}"
        return cls(Outcome.FAIL_TRANSIENT, reason, error)


def describe_outcome(outcome: Future) -> str:
    """Reason recorded for a finished tenacity attempt."""
    if outcome.failed:
        return Attempt.transient(outcome.exception()).reason
    return outcome.result().reason


class Clock:
    """Wall clock used by waiters."""

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class Backoff(NamedTuple):
    """Delay strategy between attempts, bounded by a total elapsed time."""

    wait: wait_base
    max_elapsed: float


def constant_backoff(interval: float, max_elapsed: float) -> Backoff:
    return Backoff(wait_fixed(interval), max_elapsed)


def exponential_backoff(
    initial_interval: float,
    max_interval: float,
    max_elapsed: float,
    multiplier: float = 1.5,
) -> Backoff:
    """Delays of `initial_interval * multiplier ** n`, capped at `max_interval`."""
    return Backoff(
        wait_exponential(multiplier=initial_interval, exp_base=multiplier, max=max_interval),
        max_elapsed,
    )


class stop_when_budget_spent(stop_base):
    """Stop once the upcoming delay no longer fits in the time budget."""

    def __init__(self, clock: Clock, started: float, max_elapsed: float) -> None:
        self.clock = clock
        self.started = started
        self.max_elapsed = max_elapsed

    def __call__(self, retry_state: RetryCallState) -> bool:
        elapsed = self.clock.monotonic() - self.started
        upcoming = retry_state.retry_object.wait(retry_state)
        return elapsed + upcoming >= self.max_elapsed


def _not_converged(attempt: Attempt) -> bool:
    return attempt.outcome is Outcome.CONTINUE


class Waiter:
    """Observes a record until it reaches a terminal outcome or time runs out."""

    description: str = "record"

    clock: Clock
    backoff: Backoff
    logger: Logger

    def __init__(
        self, backoff: Backoff, clock: Clock = None, logger: Logger = None
    ) -> None:
        self.backoff = backoff
        self.clock = clock or Clock()
        self.logger = logger or logging.getLogger(__name__)

    async def observe(self) -> Attempt:
        """Read the record once and classify what was observed."""
        raise NotImplementedError()

    async def attempt(self, started: float) -> Attempt:
        """Run one observation, cut off when the time budget runs out."""
        remaining = self.backoff.max_elapsed - (self.clock.monotonic() - started)
        return await asyncio.wait_for(self.observe(), timeout=remaining)

    def log_retry(self, retry_state: RetryCallState) -> None:
        self.logger.debug(
            f"{self.description} not ready: retrying in "
            f"{retry_state.next_action.sleep}s: {describe_outcome(retry_state.outcome)}"
        )

    async def wait(self) -> Attempt:
        """Poll until done.

        Returns the successful attempt. Raises the attempt's error on a
        terminal failure and `WaitTimeoutError` once the backoff's elapsed
        time budget is spent, including while a read hangs. Cancellation of
        the calling task propagates as `asyncio.CancelledError`.
        """
        started = self.clock.monotonic()
        retrying = AsyncRetrying(
            wait=self.backoff.wait,
            stop=stop_when_budget_spent(self.clock, started, self.backoff.max_elapsed),
            retry=(
                retry_if_exception_type(TRANSIENT_ERRORS)
                | retry_if_result(_not_converged)
            ),
            sleep=self.clock.sleep,
            before_sleep=self.log_retry,
        )
        try:
            attempt = await retrying(self.attempt, started)
        except RetryError as ex:
            elapsed = self.clock.monotonic() - started
            raise WaitTimeoutError(
                f"timed out after {elapsed:.0f}s waiting for {self.description}: "
                f"{describe_outcome(ex.last_attempt)}"
            ) from None
        if attempt.outcome is Outcome.FAIL_TERMINAL:
            raise attempt.error
        return attempt
