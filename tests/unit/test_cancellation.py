"""
Unit tests for caller-driven cancellation.

WHAT: CancellationSignal state and run_cancellable racing
WHY: A fired signal must abort the request and never yield a partial result
HOW: Drive run_cancellable with coroutines that sleep or finish immediately
"""

import asyncio

import pytest

from infill.llm.cancellation import CancellationSignal, run_cancellable
from infill.utils.exceptions import BackendError, CancellationError


@pytest.mark.unit
class TestCancellationSignal:
    """Signal state."""

    def test_new_signal_is_not_cancelled(self):
        signal = CancellationSignal()
        assert signal.cancelled is False

    def test_cancel_keeps_first_reason(self):
        signal = CancellationSignal()
        signal.cancel("user typed")
        signal.cancel("second")
        assert signal.cancelled is True
        assert signal.reason == "user typed"


@pytest.mark.unit
class TestRunCancellable:
    """Racing a request against the signal."""

    @pytest.mark.asyncio
    async def test_no_signal_returns_result(self):
        async def work():
            return "done"

        assert await run_cancellable(work(), None) == "done"

    @pytest.mark.asyncio
    async def test_unfired_signal_returns_result(self):
        async def work():
            await asyncio.sleep(0)
            return 42

        assert await run_cancellable(work(), CancellationSignal()) == 42

    @pytest.mark.asyncio
    async def test_already_cancelled_never_starts_request(self):
        started = False

        async def work():
            nonlocal started
            started = True
            return "late"

        signal = CancellationSignal()
        signal.cancel("stale")
        with pytest.raises(CancellationError, match="stale"):
            await run_cancellable(work(), signal)
        assert started is False

    @pytest.mark.asyncio
    async def test_signal_fired_mid_request_cancels_request(self):
        request_cancelled = asyncio.Event()

        async def work():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                request_cancelled.set()
                raise
            return "never"

        signal = CancellationSignal()
        asyncio.get_running_loop().call_later(0.01, signal.cancel, "moved on")

        with pytest.raises(CancellationError):
            await run_cancellable(work(), signal)
        assert request_cancelled.is_set()

    @pytest.mark.asyncio
    async def test_request_error_propagates(self):
        async def work():
            raise BackendError("boom", status_code=500)

        with pytest.raises(BackendError) as exc_info:
            await run_cancellable(work(), CancellationSignal())
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_outer_task_cancel_cancels_request(self):
        request_cancelled = asyncio.Event()

        async def work():
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                request_cancelled.set()
                raise

        outer = asyncio.ensure_future(run_cancellable(work(), CancellationSignal()))
        await asyncio.sleep(0.01)
        outer.cancel()
        with pytest.raises(asyncio.CancelledError):
            await outer
        await asyncio.sleep(0.01)
        assert request_cancelled.is_set()
