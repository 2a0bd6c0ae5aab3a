"""AdmissionGate — bounds the number of concurrently running handlers."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from .exceptions import OperationCancelledError

if TYPE_CHECKING:
    from .cancellation import CancellationToken


class AdmissionGate:
    """Counting gate: at most ``max_in_flight`` holders at any time.

    Waiters queue in FIFO order on an ``asyncio.Semaphore``; a waiter whose
    cancellation token fires gives up its place instead of being admitted.
    """

    def __init__(self, max_in_flight: int) -> None:
        if max_in_flight < 1:
            raise ValueError("max_in_flight must be >= 1")
        self._max_in_flight = max_in_flight
        self._semaphore = asyncio.Semaphore(max_in_flight)
        self._in_flight = 0

    @property
    def max_in_flight(self) -> int:
        return self._max_in_flight

    @property
    def in_flight(self) -> int:
        return self._in_flight

    async def acquire(self, cancellation: CancellationToken) -> bool:
        """Wait for a free slot; return False if cancelled before admission."""
        try:
            await cancellation.guard(self._semaphore.acquire())
        except OperationCancelledError:
            return False
        if cancellation.cancelled:
            self._semaphore.release()
            return False
        self._in_flight += 1
        return True

    def release(self) -> None:
        """Free a slot taken by a successful :meth:`acquire`."""
        if self._in_flight <= 0:
            raise RuntimeError("AdmissionGate released more times than acquired")
        self._in_flight -= 1
        self._semaphore.release()
