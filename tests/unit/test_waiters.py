"""Unit tests for deploy and CRD waiters."""

import asyncio
import time

import pytest

from apptest.resources import AppCR, CustomResourceDefinition
from apptest.types.models import App, AppRelease, AppStatus
from apptest.utils.errors import ReleaseFailedError, WaitTimeoutError
from apptest.waiters import (
    AppDeployedWaiter,
    Attempt,
    CRDEstablishedWaiter,
    Outcome,
    Waiter,
    classify_app_status,
    constant_backoff,
    exponential_backoff,
)
from tests.unit.fakes import FakeApiextensionsV1Api, api_error


def status(release_status=None, version=None, reason=None):
    release = AppRelease(status=release_status, reason=reason) if release_status else None
    return AppStatus(version=version, release=release)


def app_cr_for(custom_objects_api, name="hello-world-app", version="0.2.0"):
    app_cr = AppCR.from_app(
        App(name=name, namespace="default", catalog_name="test-catalog"),
        version=version,
    )
    custom_objects_api.objects[
        (AppCR.GROUP_NAME, AppCR.PLURAL_NAME, app_cr.namespace, name)
    ] = app_cr.app_cr
    return app_cr


class TestClassifyAppStatus:
    def test_empty_status_continues(self):
        assert classify_app_status(None).outcome is Outcome.CONTINUE
        assert classify_app_status(status()).outcome is Outcome.CONTINUE

    def test_pending_install_continues(self):
        attempt = classify_app_status(status("pending-install", "0.2.0"))
        assert attempt.outcome is Outcome.CONTINUE
        assert "pending-install" in attempt.reason

    @pytest.mark.parametrize("release_status", ["failed", "not-installed"])
    def test_failure_statuses_are_terminal(self, release_status):
        attempt = classify_app_status(
            status(release_status, "0.2.0", reason="chart not found"), name="hello"
        )
        assert attempt.outcome is Outcome.FAIL_TERMINAL
        assert isinstance(attempt.error, ReleaseFailedError)
        assert attempt.error.status == release_status
        assert attempt.error.reason == "chart not found"
        assert "chart not found" in str(attempt.error)

    def test_deployed_without_constraint_succeeds(self):
        attempt = classify_app_status(status("deployed", "0.1.0"))
        assert attempt.outcome is Outcome.SUCCEED

    def test_deployed_version_must_match_exactly(self):
        assert classify_app_status(
            status("deployed", "0.2.0"), version="0.2.0"
        ).outcome is Outcome.SUCCEED
        assert classify_app_status(
            status("deployed", "0.2.0-rc1"), version="0.2.0"
        ).outcome is Outcome.CONTINUE

    def test_deployed_sha_matches_version_suffix(self):
        assert classify_app_status(
            status("deployed", "0.2.1-abc123"), sha="abc123"
        ).outcome is Outcome.SUCCEED
        assert classify_app_status(
            status("deployed", "0.2.1-def456"), sha="abc123"
        ).outcome is Outcome.CONTINUE

    def test_sha_takes_precedence_over_version(self):
        attempt = classify_app_status(
            status("deployed", "0.2.0"), sha="abc123", version="0.2.0"
        )
        assert attempt.outcome is Outcome.CONTINUE


class ScriptedWaiter(Waiter):
    def __init__(self, script, backoff, clock):
        super().__init__(backoff, clock=clock)
        self.script = list(script)
        self.observations = 0

    async def observe(self) -> Attempt:
        self.observations += 1
        step = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(step, Exception):
            raise step
        return step


class TestWaiter:
    @pytest.mark.asyncio
    async def test_terminal_failure_raises_without_sleeping(self, clock):
        error = ReleaseFailedError("boom", status="failed")
        waiter = ScriptedWaiter([Attempt.terminal(error)], constant_backoff(10, 60), clock)
        with pytest.raises(ReleaseFailedError):
            await waiter.wait()
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_transient_errors_are_retried(self, clock):
        waiter = ScriptedWaiter(
            [api_error(500, "InternalError"), OSError("reset"), Attempt.succeed("ok")],
            constant_backoff(10, 60),
            clock,
        )
        attempt = await waiter.wait()
        assert attempt.outcome is Outcome.SUCCEED
        assert waiter.observations == 3
        assert clock.sleeps == [10, 10]

    @pytest.mark.asyncio
    async def test_timeout_carries_last_reason(self, clock):
        waiter = ScriptedWaiter(
            [Attempt.proceed("still pending")], constant_backoff(10, 30), clock
        )
        with pytest.raises(WaitTimeoutError, match="still pending"):
            await waiter.wait()
        assert clock.sleeps == [10, 10]

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(self, clock):
        waiter = ScriptedWaiter([KeyError("bug")], constant_backoff(10, 30), clock)
        with pytest.raises(KeyError):
            await waiter.wait()

    @pytest.mark.asyncio
    async def test_cancellation_is_not_a_timeout(self):
        waiter = ScriptedWaiter([Attempt.proceed("pending")], constant_backoff(10, 3600), None)
        task = asyncio.ensure_future(waiter.wait())
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


    @pytest.mark.asyncio
    async def test_exponential_delays_are_capped(self, clock):
        waiter = ScriptedWaiter(
            [Attempt.proceed("pending")] * 4 + [Attempt.succeed()],
            exponential_backoff(0.5, 1.2, 60, multiplier=2),
            clock,
        )
        await waiter.wait()
        assert clock.sleeps == [0.5, 1.0, 1.2, 1.2]

    @pytest.mark.asyncio
    async def test_hanging_read_is_cut_off_at_the_deadline(self):
        class HangingWaiter(Waiter):
            async def observe(self) -> Attempt:
                await asyncio.sleep(0.5)
                return Attempt.succeed()

        waiter = HangingWaiter(constant_backoff(0.01, 0.1))
        started = time.monotonic()
        with pytest.raises(WaitTimeoutError, match="TimeoutError"):
            await waiter.wait()
        assert time.monotonic() - started < 0.4


class TestAppDeployedWaiter:
    @pytest.mark.asyncio
    async def test_succeeds_on_second_poll(self, custom_objects_api, clock):
        app_cr = app_cr_for(custom_objects_api)
        custom_objects_api.statuses["hello-world-app"] = [
            {"release": {"status": "pending-install"}},
            {"version": "0.2.0", "release": {"status": "deployed"}},
        ]
        waiter = AppDeployedWaiter(
            custom_objects_api, app_cr, constant_backoff(10, 60), version="0.2.0", clock=clock
        )
        await waiter.wait()
        assert clock.sleeps == [10]

    @pytest.mark.asyncio
    async def test_sha_mismatch_times_out(self, custom_objects_api, clock):
        app_cr = app_cr_for(custom_objects_api)
        custom_objects_api.statuses["hello-world-app"] = [
            {"version": "0.2.1-def456", "release": {"status": "deployed"}},
        ]
        waiter = AppDeployedWaiter(
            custom_objects_api, app_cr, constant_backoff(10, 60), sha="abc123", clock=clock
        )
        with pytest.raises(WaitTimeoutError, match="0.2.1-def456"):
            await waiter.wait()

    @pytest.mark.asyncio
    async def test_failed_release_is_terminal(self, custom_objects_api, clock):
        app_cr = app_cr_for(custom_objects_api)
        custom_objects_api.statuses["hello-world-app"] = [
            {"release": {"status": "failed", "reason": "bad values"}},
        ]
        waiter = AppDeployedWaiter(
            custom_objects_api, app_cr, constant_backoff(10, 60), clock=clock
        )
        with pytest.raises(ReleaseFailedError, match="bad values"):
            await waiter.wait()
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_missing_app_cr_is_retried(self, custom_objects_api, clock):
        app_cr = app_cr_for(custom_objects_api)
        custom_objects_api.get_errors = [api_error(404, "NotFound")]
        waiter = AppDeployedWaiter(
            custom_objects_api, app_cr, constant_backoff(10, 60), clock=clock
        )
        await waiter.wait()
        assert clock.sleeps == [10]


class TestCRDEstablishedWaiter:
    @pytest.mark.asyncio
    async def test_waits_with_growing_delays(self, clock):
        api = FakeApiextensionsV1Api(established_after=3)
        crd = CustomResourceDefinition("things.example.com", None)
        api.crds[crd.name] = {"metadata": {"name": crd.name}}
        waiter = CRDEstablishedWaiter(
            api, crd, exponential_backoff(0.5, 10, 60), clock=clock
        )
        await waiter.wait()
        assert clock.sleeps == [0.5, 0.75, 1.125]
