"""MessagePumpWorker — background loop that keeps a message pump running."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING, Generic, TypeVar

from .cancellation import CancellationToken
from .ports import IBackgroundWorker

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from .configuration import MessagePumpConfiguration
    from .factory import MessagePumpFactory
    from .ports import MessageHandler
    from .pump import MessagePump, PumpResult

logger = logging.getLogger("sqs_extensions.hosting")

_T = TypeVar("_T")


async def always_enabled(_cancellation: CancellationToken) -> bool:
    """Default enable gate: the worker always pumps."""
    return True


class MessagePumpWorker(IBackgroundWorker, Generic[_T]):
    """Runs pump cycles until stopped, sleeping ``batch_delay`` between them.

    Each cycle first consults the ``is_enabled`` predicate. Errors raised by a
    cycle (including a failed receive) are logged and the loop continues.
    Only pump creation in :meth:`start` can fail the worker, so a missing
    queue surfaces at startup.

    Implements ``IBackgroundWorker`` (``start`` / ``stop``).
    """

    def __init__(
        self,
        factory: MessagePumpFactory,
        message_type: type[_T],
        configuration: MessagePumpConfiguration,
        handler: MessageHandler[_T],
        *,
        is_enabled: Callable[[CancellationToken], Awaitable[bool]] | None = None,
        shutdown_timeout: float = 30.0,
    ) -> None:
        self._factory = factory
        self._message_type = message_type
        self._configuration = configuration
        self._handler = handler
        self._is_enabled = is_enabled or always_enabled
        self._shutdown_timeout = shutdown_timeout
        self._pump: MessagePump[_T] | None = None
        self._cancellation = CancellationToken()
        self._running = False
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._running

    async def _get_pump(self) -> MessagePump[_T]:
        if self._pump is None:
            self._pump = await self._factory.create(
                self._message_type, self._configuration
            )
        return self._pump

    async def start(self) -> None:
        if self._running:
            return
        await self._get_pump()
        self._cancellation = CancellationToken()
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(
            "MessagePumpWorker for %s started (batch_delay=%.1fs)",
            self._configuration.queue_name,
            self._configuration.batch_delay,
        )

    async def stop(self) -> None:
        """Signal cancellation and let in-flight handlers finish.

        The loop task is force-cancelled only after ``shutdown_timeout``.
        """
        if not self._running:
            return
        self._running = False
        self._cancellation.cancel()
        if self._task is not None:
            try:
                await asyncio.wait_for(
                    asyncio.shield(self._task), timeout=self._shutdown_timeout
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "MessagePumpWorker for %s did not drain within %.1fs",
                    self._configuration.queue_name,
                    self._shutdown_timeout,
                )
                self._task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._task
            self._task = None
        logger.info("MessagePumpWorker for %s stopped", self._configuration.queue_name)

    async def run_once(self) -> PumpResult | None:
        """Execute a single cycle (useful in tests).

        Returns None when the enable gate is closed. Errors propagate.
        """
        pump = await self._get_pump()
        if not await self._is_enabled(self._cancellation):
            logger.debug(
                "MessagePumpWorker for %s is disabled", self._configuration.queue_name
            )
            return None
        return await pump.pump(self._handler, self._cancellation)

    async def _run_loop(self) -> None:
        while not self._cancellation.cancelled:
            try:
                await self.run_once()
            except Exception:
                logger.exception(
                    "[MessagePump] error while processing messages from %s",
                    self._configuration.queue_name,
                )
            if await self._cancellation.sleep(self._configuration.batch_delay):
                break
