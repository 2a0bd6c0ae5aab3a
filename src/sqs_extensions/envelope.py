"""Wire-level message models: received envelopes and outgoing send requests."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

SQS_MAX_DELAY_SECONDS = 900


def _attributes_from_sqs(raw: dict[str, Any]) -> dict[str, str]:
    """Flatten SQS ``MessageAttributes`` to ``{name: string value}``.

    Binary attributes have no string representation and are skipped.
    """
    attributes: dict[str, str] = {}
    for name, value in raw.items():
        if not isinstance(value, dict):
            continue
        string_value = value.get("StringValue")
        if string_value is not None:
            attributes[name] = str(string_value)
    return attributes


def _attributes_to_sqs(attributes: dict[str, str]) -> dict[str, dict[str, str]]:
    return {
        name: {"DataType": "String", "StringValue": value}
        for name, value in attributes.items()
    }


class Envelope(BaseModel):
    """One received message plus the queue metadata needed to settle it."""

    model_config = ConfigDict(frozen=True)

    message_id: str
    receipt_handle: str
    body: str = ""
    attributes: dict[str, str] = Field(default_factory=dict)
    receive_count: int = Field(default=1, ge=1)

    @classmethod
    def from_sqs(cls, raw: dict[str, Any]) -> Envelope:
        """Build an envelope from one entry of a ``ReceiveMessage`` response."""
        system_attributes = raw.get("Attributes") or {}
        return cls(
            message_id=str(raw["MessageId"]),
            receipt_handle=str(raw["ReceiptHandle"]),
            body=raw.get("Body") or "",
            attributes=_attributes_from_sqs(raw.get("MessageAttributes") or {}),
            receive_count=int(system_attributes.get("ApproximateReceiveCount", 1)),
        )


class SendMessageRequest(BaseModel):
    """A fully built outgoing message, ready for ``SendMessage``.

    Also used as one entry of a ``SendMessageBatch`` call.
    """

    model_config = ConfigDict(frozen=True)

    queue_url: str = Field(..., min_length=1)
    body: str = Field(..., min_length=1)
    attributes: dict[str, str] = Field(default_factory=dict)
    delay_seconds: int = Field(default=0, ge=0, le=SQS_MAX_DELAY_SECONDS)
    message_group_id: str | None = None
    deduplication_id: str | None = None

    @property
    def is_fifo(self) -> bool:
        return self.queue_url.endswith(".fifo")

    def _common_kwargs(self) -> dict[str, Any]:
        kwargs: dict[str, Any] = {"MessageBody": self.body}
        if self.delay_seconds:
            kwargs["DelaySeconds"] = self.delay_seconds
        if self.attributes:
            kwargs["MessageAttributes"] = _attributes_to_sqs(self.attributes)
        if self.message_group_id is not None:
            kwargs["MessageGroupId"] = self.message_group_id
        if self.deduplication_id is not None:
            kwargs["MessageDeduplicationId"] = self.deduplication_id
        return kwargs

    def to_sqs(self) -> dict[str, Any]:
        """Keyword arguments for ``client.send_message``."""
        return {"QueueUrl": self.queue_url, **self._common_kwargs()}

    def to_batch_entry(self, entry_id: str) -> dict[str, Any]:
        """One ``Entries`` item for ``client.send_message_batch``."""
        return {"Id": entry_id, **self._common_kwargs()}


class BatchEntryResult(BaseModel):
    """Outcome of a single entry within a batch send."""

    model_config = ConfigDict(frozen=True)

    index: int = Field(..., ge=0, description="Position within the caller's list")
    succeeded: bool
    chunk: int = 0
    message_id: str | None = None
    code: str | None = None
    error_message: str | None = None
    sender_fault: bool = False
