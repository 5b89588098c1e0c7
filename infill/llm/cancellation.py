"""
Caller-driven cancellation for provider requests.

WHAT: An explicit cancellation value passed into invoke()
WHY: The editor abandons a suggestion when the user keeps typing; the
     in-flight request must stop and must not produce a partial result
HOW: asyncio.Event wrapped in a small signal object; run_cancellable races
     the request task against the signal and cancels the loser
"""

import asyncio
from typing import Awaitable, TypeVar

from ..utils.exceptions import CancellationError

T = TypeVar("T")


class CancellationSignal:
    """One-shot cancellation flag shared between the caller and a request."""

    def __init__(self):
        self._event = asyncio.Event()
        self.reason: str | None = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self, reason: str | None = None) -> None:
        """Fire the signal. Later calls keep the first reason."""
        if not self._event.is_set():
            self.reason = reason
            self._event.set()

    async def wait(self) -> None:
        await self._event.wait()


async def run_cancellable(awaitable: Awaitable[T], signal: CancellationSignal | None) -> T:
    """
    Await `awaitable` unless `signal` fires first.

    Args:
        awaitable: Coroutine performing the request
        signal: Caller's signal, or None for an uncancellable call

    Returns:
        The awaitable's result

    Raises:
        CancellationError: signal was already fired or fired mid-request;
            the request task is cancelled and awaited before raising
        asyncio.CancelledError: the calling task itself was cancelled
    """
    if signal is None:
        return await awaitable

    if signal.cancelled:
        # Never started, so close the coroutine to avoid a "never awaited" warning
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise CancellationError(signal.reason)

    request = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(signal.wait())
    try:
        await asyncio.wait({request, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        request.cancel()
        waiter.cancel()
        raise

    if request.done():
        waiter.cancel()
        return request.result()

    request.cancel()
    try:
        await request
    except asyncio.CancelledError:
        pass
    raise CancellationError(signal.reason)
