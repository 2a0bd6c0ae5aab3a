"""Cooperative cancellation shared by a pump cycle and its handlers."""

from __future__ import annotations

import asyncio
import contextlib
from typing import TYPE_CHECKING, Any, TypeVar

from .exceptions import OperationCancelledError

if TYPE_CHECKING:
    from collections.abc import Awaitable

_T = TypeVar("_T")


class CancellationToken:
    """Cooperative cancellation signal.

    Firing the token never interrupts running handlers; it only stops new work
    from being started and abandons waits guarded with :meth:`guard`.
    Handlers receive the token and may poll :attr:`cancelled` or await
    :meth:`wait`.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._event.set()

    async def wait(self) -> None:
        """Block until cancellation is requested."""
        await self._event.wait()

    async def sleep(self, seconds: float) -> bool:
        """Sleep up to *seconds*; return True if woken by cancellation."""
        if self.cancelled:
            return True
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._event.wait(), timeout=max(0.0, seconds))
        return self.cancelled

    async def guard(self, awaitable: Awaitable[_T]) -> _T:
        """Await *awaitable* unless the token fires first.

        If the awaited work completes, its result is returned even when the
        token fired concurrently, so nothing it acquired is lost.

        Raises:
            OperationCancelledError: the token fired before the work completed.
        """
        if self.cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise OperationCancelledError("Cancelled before the operation started")

        task: asyncio.Future[_T] = asyncio.ensure_future(awaitable)
        waiter: asyncio.Future[Any] = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except BaseException:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if task.cancelled():
            raise OperationCancelledError("Cancelled while waiting")
        return task.result()
