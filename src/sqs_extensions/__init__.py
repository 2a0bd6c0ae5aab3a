"""Message pump and batched dispatcher for Amazon SQS."""

from __future__ import annotations

from .cancellation import CancellationToken
from .configuration import DecodeFailurePolicy, MessagePumpConfiguration
from .context import MessageContext
from .correlation import get_correlation_id, get_current_message_id
from .dispatcher import BatchSendResult, ChunkFailure, SqsDispatcher
from .envelope import BatchEntryResult, Envelope, SendMessageRequest
from .exceptions import (
    AttributeParseError,
    BatchSendError,
    ConfigurationError,
    DecodeError,
    HandlerError,
    MessagingError,
    OperationCancelledError,
    SerializationError,
    SqsExtensionsError,
    TransportError,
)
from .factory import MessagePumpFactory
from .gate import AdmissionGate
from .hosting import MessagePumpWorker
from .outcome import HandlerOutcome, MessageAction, MessageState, resolve_action
from .ports import IBackgroundWorker, MessageHandler, MessageSerializer, QueueClient
from .pump import MessageDisposition, MessagePump, PumpResult
from .retry import RetryPolicy
from .serialization import JsonMessageSerializer

__all__ = [
    "AdmissionGate",
    "AttributeParseError",
    "BatchEntryResult",
    "BatchSendError",
    "BatchSendResult",
    "CancellationToken",
    "ChunkFailure",
    "ConfigurationError",
    "DecodeError",
    "DecodeFailurePolicy",
    "Envelope",
    "HandlerError",
    "HandlerOutcome",
    "IBackgroundWorker",
    "JsonMessageSerializer",
    "MessageAction",
    "MessageContext",
    "MessageDisposition",
    "MessageHandler",
    "MessagePump",
    "MessagePumpConfiguration",
    "MessagePumpFactory",
    "MessagePumpWorker",
    "MessageSerializer",
    "MessageState",
    "MessagingError",
    "OperationCancelledError",
    "PumpResult",
    "QueueClient",
    "RetryPolicy",
    "SendMessageRequest",
    "SerializationError",
    "SqsDispatcher",
    "SqsExtensionsError",
    "TransportError",
    "get_correlation_id",
    "get_current_message_id",
    "resolve_action",
]
