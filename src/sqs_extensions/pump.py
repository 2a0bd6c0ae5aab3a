"""MessagePump — receive one batch, dispatch with bounded concurrency, settle."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Generic, TypeVar

from .cancellation import CancellationToken
from .context import MessageContext
from .correlation import CORRELATION_ID_ATTRIBUTE, message_scope
from .exceptions import (
    DecodeError,
    HandlerError,
    OperationCancelledError,
    TransportError,
)
from .outcome import (
    ActionKind,
    HandlerOutcome,
    MessageAction,
    MessageState,
    resolve_action,
    resolve_decode_failure,
)

if TYPE_CHECKING:
    from .configuration import MessagePumpConfiguration
    from .envelope import Envelope
    from .gate import AdmissionGate
    from .ports import MessageHandler, MessageSerializer, QueueClient

logger = logging.getLogger("sqs_extensions.pump")

_T = TypeVar("_T")


@dataclass(frozen=True)
class MessageDisposition:
    """Terminal state reached by one message in a cycle."""

    message_id: str
    state: MessageState
    reason: str


@dataclass
class PumpResult:
    """Summary of one :meth:`MessagePump.pump` cycle."""

    received: int = 0
    decode_failures: int = 0
    handler_failures: int = 0
    skipped: int = 0
    dispositions: list[MessageDisposition] = field(default_factory=list)

    @property
    def deleted(self) -> int:
        return sum(1 for d in self.dispositions if d.state is MessageState.DELETED)

    @property
    def left_for_retry(self) -> int:
        return sum(
            1 for d in self.dispositions if d.state is MessageState.LEFT_FOR_RETRY
        )


class MessagePump(Generic[_T]):
    """Drains one batch of a queue per :meth:`pump` call.

    Lifecycle per message:
    1. Decode the body as ``message_type``; on failure apply the configured
       ``DecodeFailurePolicy``.
    2. Wait for an :class:`AdmissionGate` slot (skipped once cancelled).
    3. Run the handler with a fresh :class:`MessageContext`.
    4. Delete on success; otherwise leave for redelivery, extending the
       visibility timeout when a ``RetryPolicy`` is configured.

    Failures of one message never affect the others. Only a failing receive
    call aborts the cycle.
    """

    def __init__(
        self,
        message_type: type[_T],
        queue_url: str,
        configuration: MessagePumpConfiguration,
        client: QueueClient,
        serializer: MessageSerializer,
        gate: AdmissionGate,
    ) -> None:
        self._message_type = message_type
        self._queue_url = queue_url
        self._configuration = configuration
        self._client = client
        self._serializer = serializer
        self._gate = gate

    @property
    def queue_url(self) -> str:
        return self._queue_url

    @property
    def configuration(self) -> MessagePumpConfiguration:
        return self._configuration

    @property
    def gate(self) -> AdmissionGate:
        return self._gate

    async def pump(
        self,
        handler: MessageHandler[_T],
        cancellation: CancellationToken | None = None,
    ) -> PumpResult:
        """Receive one batch and settle every message in it.

        Raises:
            TransportError: the receive call failed.
        """
        token = cancellation or CancellationToken()
        result = PumpResult()
        if token.cancelled:
            return result

        config = self._configuration
        try:
            envelopes = await token.guard(
                self._client.receive_batch(
                    self._queue_url,
                    config.max_messages,
                    config.wait_time_seconds,
                    config.visibility_timeout,
                )
            )
        except OperationCancelledError:
            logger.debug("Receive from %s abandoned: cancelled", config.queue_name)
            return result

        result.received = len(envelopes)
        if not envelopes:
            return result
        logger.debug(
            "Received %d message(s) from %s", len(envelopes), config.queue_name
        )

        seen: set[str] = set()
        tasks: list[asyncio.Task[MessageDisposition]] = []
        for envelope in envelopes:
            if envelope.message_id in seen:
                result.dispositions.append(
                    MessageDisposition(
                        envelope.message_id, MessageState.LEFT_FOR_RETRY, "duplicate"
                    )
                )
                continue
            seen.add(envelope.message_id)
            tasks.append(
                asyncio.create_task(self._process(envelope, handler, token, result))
            )
        result.dispositions.extend(await asyncio.gather(*tasks))
        return result

    async def _process(
        self,
        envelope: Envelope,
        handler: MessageHandler[_T],
        token: CancellationToken,
        result: PumpResult,
    ) -> MessageDisposition:
        config = self._configuration
        try:
            payload = self._serializer.deserialize(envelope.body, self._message_type)
        except DecodeError as e:
            result.decode_failures += 1
            logger.error(
                "Message %s from %s could not be decoded "
                "(policy=%s, body length=%d): %s",
                envelope.message_id,
                config.queue_name,
                config.decode_failure_policy.value,
                len(envelope.body),
                e,
            )
            action = resolve_decode_failure(
                config.decode_failure_policy,
                envelope.receive_count,
                config.retry_policy,
            )
            return await self._settle(envelope, action, "decode_failed")

        if not await self._gate.acquire(token):
            result.skipped += 1
            return MessageDisposition(
                envelope.message_id, MessageState.LEFT_FOR_RETRY, "cancelled"
            )
        try:
            outcome = await self._invoke(handler, payload, envelope, token)
        finally:
            self._gate.release()

        if not outcome.succeeded:
            result.handler_failures += 1
            logger.error(
                "Handler failed for message %s (retry_count=%d)",
                envelope.message_id,
                envelope.receive_count - 1,
                exc_info=outcome.error,
            )
        action = resolve_action(outcome, envelope.receive_count, config.retry_policy)
        return await self._settle(
            envelope, action, "succeeded" if outcome.succeeded else "handler_failed"
        )

    async def _invoke(
        self,
        handler: MessageHandler[_T],
        payload: _T | None,
        envelope: Envelope,
        token: CancellationToken,
    ) -> HandlerOutcome:
        context = MessageContext.from_envelope(envelope)
        correlation_id = envelope.attributes.get(CORRELATION_ID_ATTRIBUTE)
        with message_scope(envelope.message_id, correlation_id):
            try:
                await handler(payload, context, token)
            except Exception as e:  # noqa: BLE001
                error = HandlerError(str(e) or type(e).__name__, envelope.message_id)
                error.__cause__ = e
                return HandlerOutcome.failure(error)
        return HandlerOutcome.success()

    async def _settle(
        self, envelope: Envelope, action: MessageAction, reason: str
    ) -> MessageDisposition:
        try:
            if action.kind is ActionKind.DELETE:
                await self._client.delete(self._queue_url, envelope.receipt_handle)
                return MessageDisposition(
                    envelope.message_id, MessageState.DELETED, reason
                )
            if action.kind is ActionKind.EXTEND_VISIBILITY:
                await self._client.change_visibility(
                    self._queue_url,
                    envelope.receipt_handle,
                    action.visibility_timeout or 0,
                )
        except TransportError as e:
            logger.warning(
                "Could not %s message %s: %s",
                action.kind.value.replace("_", " "),
                envelope.message_id,
                e,
            )
            return MessageDisposition(
                envelope.message_id,
                MessageState.LEFT_FOR_RETRY,
                f"{action.kind.value}_failed",
            )
        return MessageDisposition(
            envelope.message_id, MessageState.LEFT_FOR_RETRY, reason
        )
