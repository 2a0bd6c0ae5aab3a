"""Exceptions for sqs-extensions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .dispatcher import BatchSendResult


class SqsExtensionsError(Exception):
    """Root exception for the entire sqs-extensions package."""


class ConfigurationError(SqsExtensionsError):
    """Raised when a queue cannot be resolved or configuration is malformed."""


class HandlerError(SqsExtensionsError):
    """Raised (or recorded) when a user handler fails for a single message.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, message: str, message_id: str | None = None) -> None:
        self.message_id = message_id
        super().__init__(message)


class OperationCancelledError(SqsExtensionsError):
    """Raised when a wait is abandoned because a CancellationToken fired."""


class AttributeParseError(SqsExtensionsError, ValueError):
    """Raised when a message attribute cannot be parsed to the requested type."""

    def __init__(self, key: str, value: str, target: str = "int") -> None:
        self.key = key
        self.value = value
        super().__init__(f"Attribute {key!r}={value!r} is not a valid {target}")


class MessagingError(SqsExtensionsError):
    """Base class for all queue-service related errors."""


class TransportError(MessagingError):
    """Raised when a call to the queue service fails (network, auth, throttling)."""

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        self.operation = operation
        super().__init__(message)


class SerializationError(MessagingError):
    """Raised when a payload cannot be encoded to a message body."""


class DecodeError(SerializationError):
    """Raised when a message body does not deserialize to the expected type."""

    def __init__(self, message: str, message_id: str | None = None) -> None:
        self.message_id = message_id
        super().__init__(message)


class BatchSendError(MessagingError):
    """Raised when at least one entry or chunk of a batch send failed.

    ``result`` keeps the per-entry outcome so partial success stays observable.
    """

    def __init__(self, result: BatchSendResult) -> None:
        self.result = result
        super().__init__(
            f"Batch send failed for {len(result.failed)} of {len(result.entries)} "
            f"entries ({len(result.chunk_failures)} chunk(s) rejected)"
        )
