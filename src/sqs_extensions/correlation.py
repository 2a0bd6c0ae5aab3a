"""Per-message context variables, set by the pump while a handler runs."""

from __future__ import annotations

import contextlib
from contextvars import ContextVar
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

CORRELATION_ID_ATTRIBUTE = "correlation_id"

_current_message_id: ContextVar[str | None] = ContextVar(
    "sqs_message_id", default=None
)
_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_current_message_id() -> str | None:
    """Id of the message whose handler is running in this context."""
    return _current_message_id.get()


def get_correlation_id() -> str | None:
    """Correlation id carried by the current message, if any."""
    return _correlation_id.get()


@contextlib.contextmanager
def message_scope(message_id: str, correlation_id: str | None) -> Iterator[None]:
    """Bind message/correlation ids for the duration of one handler call."""
    message_token = _current_message_id.set(message_id)
    correlation_token = _correlation_id.set(correlation_id)
    try:
        yield
    finally:
        _correlation_id.reset(correlation_token)
        _current_message_id.reset(message_token)
