"""Handler outcomes and the pure mapping from outcome to queue action."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .configuration import DecodeFailurePolicy

if TYPE_CHECKING:
    from .retry import RetryPolicy


@dataclass(frozen=True)
class HandlerOutcome:
    """Result of running a handler for one message.

    Usage::

        outcome = HandlerOutcome.success()
        outcome = HandlerOutcome.failure(HandlerError("boom"))
    """

    error: BaseException | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls) -> HandlerOutcome:
        return cls()

    @classmethod
    def failure(cls, error: BaseException) -> HandlerOutcome:
        return cls(error=error)


class ActionKind(str, enum.Enum):
    DELETE = "delete"
    LEAVE = "leave"
    EXTEND_VISIBILITY = "extend_visibility"


@dataclass(frozen=True)
class MessageAction:
    """What to do with a received message once its outcome is known."""

    kind: ActionKind
    visibility_timeout: int | None = None

    @classmethod
    def delete(cls) -> MessageAction:
        return cls(ActionKind.DELETE)

    @classmethod
    def leave(cls) -> MessageAction:
        return cls(ActionKind.LEAVE)

    @classmethod
    def extend_visibility(cls, seconds: int) -> MessageAction:
        return cls(ActionKind.EXTEND_VISIBILITY, visibility_timeout=seconds)


class MessageState(str, enum.Enum):
    """Terminal per-message states of a pump cycle."""

    DELETED = "deleted"
    LEFT_FOR_RETRY = "left_for_retry"


def _retry_action(
    receive_count: int, retry_policy: RetryPolicy | None
) -> MessageAction:
    if retry_policy is None:
        return MessageAction.leave()
    return MessageAction.extend_visibility(
        retry_policy.visibility_timeout_for(receive_count)
    )


def resolve_action(
    outcome: HandlerOutcome,
    receive_count: int,
    retry_policy: RetryPolicy | None = None,
) -> MessageAction:
    """Delete on success; otherwise leave for redelivery, with backoff if configured."""
    if outcome.succeeded:
        return MessageAction.delete()
    return _retry_action(receive_count, retry_policy)


def resolve_decode_failure(
    policy: DecodeFailurePolicy,
    receive_count: int,
    retry_policy: RetryPolicy | None = None,
) -> MessageAction:
    """Action for a message whose body could not be decoded."""
    if policy is DecodeFailurePolicy.DELETE:
        return MessageAction.delete()
    return _retry_action(receive_count, retry_policy)
