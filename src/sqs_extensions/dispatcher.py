"""SqsDispatcher — send single messages or chunked batches, with optional delay."""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .envelope import BatchEntryResult, SendMessageRequest
from .exceptions import BatchSendError, TransportError
from .serialization import JsonMessageSerializer

if TYPE_CHECKING:
    from collections.abc import Sequence

    from .ports import MessageSerializer, QueueClient

logger = logging.getLogger("sqs_extensions.dispatcher")

DEFAULT_MAX_BATCH_SIZE = 10
DEFAULT_MESSAGE_GROUP_ID = "default"

_Chunk = tuple[str, list[tuple[int, SendMessageRequest]]]


@dataclass(frozen=True)
class ChunkFailure:
    """A whole batch call that failed at the transport level."""

    chunk: int
    queue_url: str
    size: int
    error: TransportError


@dataclass
class BatchSendResult:
    """Per-entry outcome of a chunked batch send, in the caller's order."""

    entries: list[BatchEntryResult] = field(default_factory=list)
    chunk_failures: list[ChunkFailure] = field(default_factory=list)
    chunk_count: int = 0

    @property
    def succeeded(self) -> list[BatchEntryResult]:
        return [e for e in self.entries if e.succeeded]

    @property
    def failed(self) -> list[BatchEntryResult]:
        return [e for e in self.entries if not e.succeeded]

    @property
    def all_succeeded(self) -> bool:
        return not self.chunk_failures and all(e.succeeded for e in self.entries)

    def raise_for_failures(self) -> None:
        """Raise BatchSendError if any entry or chunk failed."""
        if not self.all_succeeded:
            raise BatchSendError(self)


def _with_fifo_defaults(request: SendMessageRequest) -> SendMessageRequest:
    if not request.is_fifo:
        return request
    update: dict[str, Any] = {}
    if request.message_group_id is None:
        update["message_group_id"] = DEFAULT_MESSAGE_GROUP_ID
    if request.deduplication_id is None:
        update["deduplication_id"] = str(uuid.uuid4())
    return request.model_copy(update=update) if update else request


def _validate_batch_size(max_batch_size: int) -> None:
    if not 1 <= max_batch_size <= DEFAULT_MAX_BATCH_SIZE:
        raise ValueError(
            f"max_batch_size must be between 1 and {DEFAULT_MAX_BATCH_SIZE}"
        )


class SqsDispatcher:
    """Producer side: encodes payloads and sends them to queues by name.

    Batch sends are split into consecutive chunks of at most
    ``max_batch_size`` entries; chunks are sent independently and
    concurrently. Nothing is retried here.
    """

    def __init__(
        self,
        client: QueueClient,
        *,
        serializer: MessageSerializer | None = None,
    ) -> None:
        self._client = client
        self._serializer = serializer or JsonMessageSerializer()

    @property
    def client(self) -> QueueClient:
        return self._client

    def _build_request(
        self,
        item: Any,
        queue_url: str,
        delay_seconds: int,
        attributes: dict[str, str] | None,
    ) -> SendMessageRequest:
        return _with_fifo_defaults(
            SendMessageRequest(
                queue_url=queue_url,
                body=self._serializer.serialize(item),
                attributes=dict(attributes or {}),
                delay_seconds=delay_seconds,
            )
        )

    async def queue(
        self,
        item: Any,
        queue_name: str,
        delay_seconds: int = 0,
        *,
        attributes: dict[str, str] | None = None,
    ) -> str:
        """Encode *item* and send it; return the queue-assigned message id.

        ``delay_seconds`` keeps the message hidden in the queue for that long
        after it was sent; it is not held back on the client.

        Raises:
            TransportError: the send call failed.
        """
        queue_url = await self._client.get_queue_url(queue_name)
        request = self._build_request(item, queue_url, delay_seconds, attributes)
        return await self.queue_request(request)

    async def queue_request(self, request: SendMessageRequest) -> str:
        """Send a pre-built request, bypassing the serializer."""
        message_id = await self._client.send(_with_fifo_defaults(request))
        logger.debug("Sent message %s to %s", message_id, request.queue_url)
        return message_id

    async def queue_batch(
        self,
        items: Sequence[Any],
        queue_name: str,
        delay_seconds: int = 0,
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
        *,
        attributes: dict[str, str] | None = None,
    ) -> BatchSendResult:
        """Encode and send *items* in chunks of at most *max_batch_size*.

        Raises:
            BatchSendError: some entries or chunks failed; ``.result`` holds
                the per-entry outcome including the ones that were sent.
        """
        _validate_batch_size(max_batch_size)
        if not items:
            return BatchSendResult()
        queue_url = await self._client.get_queue_url(queue_name)
        requests = [
            self._build_request(item, queue_url, delay_seconds, attributes)
            for item in items
        ]
        return await self.queue_request_batch(requests, max_batch_size)

    async def queue_request_batch(
        self,
        requests: Sequence[SendMessageRequest],
        max_batch_size: int = DEFAULT_MAX_BATCH_SIZE,
    ) -> BatchSendResult:
        """Send pre-built requests in chunks, grouped by destination queue.

        Raises:
            BatchSendError: as :meth:`queue_batch`.
        """
        _validate_batch_size(max_batch_size)
        if not requests:
            return BatchSendResult()

        by_queue: dict[str, list[tuple[int, SendMessageRequest]]] = {}
        for index, request in enumerate(requests):
            by_queue.setdefault(request.queue_url, []).append(
                (index, _with_fifo_defaults(request))
            )
        chunks: list[_Chunk] = [
            (queue_url, indexed[start : start + max_batch_size])
            for queue_url, indexed in by_queue.items()
            for start in range(0, len(indexed), max_batch_size)
        ]

        result = await self._send_chunks(chunks)
        if not result.all_succeeded:
            logger.warning(
                "Batch send: %d of %d entries failed across %d chunk(s)",
                len(result.failed),
                len(result.entries),
                result.chunk_count,
            )
        result.raise_for_failures()
        return result

    async def _send_chunks(self, chunks: list[_Chunk]) -> BatchSendResult:
        outcomes = await asyncio.gather(
            *(
                self._client.send_batch(queue_url, [r for _, r in indexed])
                for queue_url, indexed in chunks
            ),
            return_exceptions=True,
        )

        result = BatchSendResult(chunk_count=len(chunks))
        for chunk_no, ((queue_url, indexed), outcome) in enumerate(
            zip(chunks, outcomes)
        ):
            if isinstance(outcome, TransportError):
                result.chunk_failures.append(
                    ChunkFailure(chunk_no, queue_url, len(indexed), outcome)
                )
                result.entries.extend(
                    BatchEntryResult(
                        index=index,
                        chunk=chunk_no,
                        succeeded=False,
                        code="TransportError",
                        error_message=str(outcome),
                    )
                    for index, _ in indexed
                )
                continue
            if isinstance(outcome, BaseException):
                raise outcome
            result.entries.extend(
                entry.model_copy(
                    update={"index": indexed[entry.index][0], "chunk": chunk_no}
                )
                for entry in outcome
            )
            logger.debug(
                "Sent chunk %d (%d entries) to %s", chunk_no, len(indexed), queue_url
            )

        result.entries.sort(key=lambda e: e.index)
        return result
