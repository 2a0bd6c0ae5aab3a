"""MessagePumpConfiguration — immutable settings for one message pump."""

from __future__ import annotations

import enum
import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import ConfigurationError
from .retry import RetryPolicy

_QUEUE_NAME = re.compile(r"^[A-Za-z0-9_-]{1,80}(\.fifo)?$")


class DecodeFailurePolicy(str, enum.Enum):
    """What the pump does with a message whose body cannot be decoded.

    DELETE: drop the message (logged at error level). A poison message can
        never loop forever.
    LEAVE_FOR_RETRY: do not delete; it reappears after its visibility timeout
        until a dead-letter redrive policy on the queue removes it.
    """

    DELETE = "delete"
    LEAVE_FOR_RETRY = "leave_for_retry"


class MessagePumpConfiguration(BaseModel):
    """Settings for receiving from and dispatching one queue."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    queue_name: str = Field(..., description="SQS queue name, not URL")
    max_messages: int = Field(default=10, ge=1, le=10)
    visibility_timeout: int = Field(default=30, ge=0, le=43_200)
    wait_time_seconds: int = Field(default=20, ge=0, le=20)
    batch_delay: float = Field(
        default=1.0, ge=0, description="Seconds between pump cycles"
    )
    max_concurrent_operations: int = Field(default=10, ge=1)
    decode_failure_policy: DecodeFailurePolicy = DecodeFailurePolicy.DELETE
    retry_policy: RetryPolicy | None = Field(
        default=None,
        description="Visibility backoff for failed messages; None leaves them as is",
    )

    @field_validator("queue_name")
    @classmethod
    def _validate_queue_name(cls, value: str) -> str:
        if not _QUEUE_NAME.match(value):
            raise ValueError(
                "queue_name must be 1-80 characters of [A-Za-z0-9_-], "
                "optionally suffixed with '.fifo'"
            )
        return value

    @field_validator("retry_policy", mode="before")
    @classmethod
    def _build_retry_policy(cls, value: Any) -> Any:
        # Loaded settings carry the policy as a mapping of its keyword arguments.
        if isinstance(value, dict):
            try:
                return RetryPolicy(**value)
            except TypeError as e:
                raise ValueError(f"Invalid retry_policy: {e}") from e
        return value

    @property
    def is_fifo(self) -> bool:
        return self.queue_name.endswith(".fifo")

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> MessagePumpConfiguration:
        """Validate loaded settings, raising ConfigurationError on bad input."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid message pump configuration: {e}") from e
