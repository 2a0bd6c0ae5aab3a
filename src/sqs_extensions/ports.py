"""Contracts the pump and dispatcher depend on."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from .cancellation import CancellationToken
    from .context import MessageContext
    from .envelope import BatchEntryResult, Envelope, SendMessageRequest

_T = TypeVar("_T")
_T_contra = TypeVar("_T_contra", contravariant=True)


@runtime_checkable
class QueueClient(Protocol):
    """
    Transport to the remote queue service.

    All methods are async and raise ``TransportError`` when the call fails.
    """

    async def get_queue_url(self, queue_name: str) -> str:
        """Resolve *queue_name*; raises ``ConfigurationError`` if it does not exist."""
        ...

    async def receive_batch(
        self,
        queue_url: str,
        max_messages: int,
        wait_seconds: int,
        visibility_timeout: int,
    ) -> list[Envelope]:
        """Long-poll for up to *max_messages* envelopes."""
        ...

    async def delete(self, queue_url: str, receipt_handle: str) -> None:
        """Acknowledge one delivery."""
        ...

    async def change_visibility(
        self, queue_url: str, receipt_handle: str, timeout_seconds: int
    ) -> None:
        """Hide one delivery for *timeout_seconds* from now."""
        ...

    async def send(self, request: SendMessageRequest) -> str:
        """Send one message; return the queue-assigned message id."""
        ...

    async def send_batch(
        self, queue_url: str, requests: list[SendMessageRequest]
    ) -> list[BatchEntryResult]:
        """Send up to ten messages in one call; one result per request, in order."""
        ...


@runtime_checkable
class MessageSerializer(Protocol):
    """Codec between typed payloads and message bodies."""

    def prepare(self, message_type: Any) -> None: ...

    def serialize(self, payload: Any) -> str: ...

    def deserialize(self, body: str | bytes, message_type: type[_T]) -> _T | None: ...


class MessageHandler(Protocol[_T_contra]):
    """User callback invoked once per decoded message.

    Returning normally marks the message as processed; raising marks it failed.
    """

    def __call__(
        self,
        payload: _T_contra | None,
        context: MessageContext,
        cancellation: CancellationToken,
    ) -> Awaitable[None]: ...


@runtime_checkable
class IBackgroundWorker(Protocol):
    """Lifecycle protocol for long-running background loops."""

    async def start(self) -> None:
        """Start the background process."""
        ...

    async def stop(self) -> None:
        """Stop the background process gracefully."""
        ...
