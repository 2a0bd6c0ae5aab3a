"""InMemoryQueueClient — QueueClient with visibility timeouts, for tests."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..envelope import BatchEntryResult, Envelope, SendMessageRequest
from ..exceptions import ConfigurationError, TransportError

if TYPE_CHECKING:
    from collections.abc import Callable

_URL_PREFIX = "memory://"


@dataclass
class StoredMessage:
    """A message held by the in-memory queue."""

    message_id: str
    body: str
    attributes: dict[str, str] = field(default_factory=dict)
    visible_at: float = 0.0
    receive_count: int = 0
    receipt_handle: str | None = None


class InMemoryQueueClient:
    """In-process queue service honouring visibility timeouts and receive counts.

    Receipt handles are per delivery: only the handle from the most recent
    receive of a message can delete it or change its visibility, as with SQS.
    ``wait_seconds`` is ignored (no long polling). Use :meth:`fail_next` to
    make the next call of an operation raise ``TransportError``.
    """

    def __init__(self, clock: Callable[[], float] | None = None) -> None:
        self._clock = clock or time.monotonic
        self._queues: dict[str, list[StoredMessage]] = {}
        self._failures: dict[str, list[TransportError]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []

    # ── Test helpers ─────────────────────────────────────────────────

    def create_queue(self, queue_name: str) -> str:
        """Create *queue_name* if missing and return its URL."""
        self._queues.setdefault(queue_name, [])
        return f"{_URL_PREFIX}{queue_name}"

    def messages(self, queue_name: str) -> list[StoredMessage]:
        """All messages still in the queue, visible or not."""
        return list(self._queues.get(queue_name, []))

    def fail_next(self, operation: str, error: TransportError | None = None) -> None:
        """Make the next call to *operation* (e.g. ``"delete"``) fail."""
        self._failures.setdefault(operation, []).append(
            error or TransportError(f"{operation} failed", operation=operation)
        )

    def calls_to(self, operation: str) -> list[dict[str, Any]]:
        """Arguments of every call made to *operation*, in order."""
        return [kwargs for name, kwargs in self.calls if name == operation]

    # ── Internals ────────────────────────────────────────────────────

    def _record(self, operation: str, **kwargs: Any) -> None:
        self.calls.append((operation, kwargs))
        pending = self._failures.get(operation)
        if pending:
            raise pending.pop(0)

    def _queue(self, queue_url: str) -> list[StoredMessage]:
        name = queue_url.removeprefix(_URL_PREFIX)
        queue = self._queues.get(name)
        if queue is None:
            raise TransportError(
                f"Queue {queue_url!r} does not exist", operation="lookup"
            )
        return queue

    def _find_by_receipt(self, queue_url: str, receipt_handle: str) -> StoredMessage:
        for message in self._queue(queue_url):
            if message.receipt_handle == receipt_handle:
                return message
        raise TransportError(
            f"Receipt handle {receipt_handle!r} is invalid",
            operation="ReceiptHandleIsInvalid",
        )

    def _store(self, request: SendMessageRequest) -> str:
        queue = self._queue(request.queue_url)
        message_id = str(uuid.uuid4())
        queue.append(
            StoredMessage(
                message_id=message_id,
                body=request.body,
                attributes=dict(request.attributes),
                visible_at=self._clock() + request.delay_seconds,
            )
        )
        return message_id

    # ── QueueClient ──────────────────────────────────────────────────

    async def get_queue_url(self, queue_name: str) -> str:
        self._record("get_queue_url", queue_name=queue_name)
        if queue_name not in self._queues:
            raise ConfigurationError(f"Queue {queue_name!r} does not exist")
        return f"{_URL_PREFIX}{queue_name}"

    async def receive_batch(
        self,
        queue_url: str,
        max_messages: int,
        wait_seconds: int,
        visibility_timeout: int,
    ) -> list[Envelope]:
        self._record(
            "receive_batch",
            queue_url=queue_url,
            max_messages=max_messages,
            wait_seconds=wait_seconds,
            visibility_timeout=visibility_timeout,
        )
        now = self._clock()
        received: list[Envelope] = []
        for message in self._queue(queue_url):
            if len(received) >= max_messages:
                break
            if message.visible_at > now:
                continue
            message.receive_count += 1
            message.receipt_handle = str(uuid.uuid4())
            message.visible_at = now + visibility_timeout
            received.append(
                Envelope(
                    message_id=message.message_id,
                    receipt_handle=message.receipt_handle,
                    body=message.body,
                    attributes=dict(message.attributes),
                    receive_count=message.receive_count,
                )
            )
        return received

    async def delete(self, queue_url: str, receipt_handle: str) -> None:
        self._record("delete", queue_url=queue_url, receipt_handle=receipt_handle)
        message = self._find_by_receipt(queue_url, receipt_handle)
        self._queue(queue_url).remove(message)

    async def change_visibility(
        self, queue_url: str, receipt_handle: str, timeout_seconds: int
    ) -> None:
        self._record(
            "change_visibility",
            queue_url=queue_url,
            receipt_handle=receipt_handle,
            timeout_seconds=timeout_seconds,
        )
        message = self._find_by_receipt(queue_url, receipt_handle)
        message.visible_at = self._clock() + timeout_seconds

    async def send(self, request: SendMessageRequest) -> str:
        self._record("send", request=request)
        return self._store(request)

    async def send_batch(
        self, queue_url: str, requests: list[SendMessageRequest]
    ) -> list[BatchEntryResult]:
        self._record("send_batch", queue_url=queue_url, requests=list(requests))
        return [
            BatchEntryResult(index=i, succeeded=True, message_id=self._store(r))
            for i, r in enumerate(requests)
        ]
