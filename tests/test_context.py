"""Tests for MessageContext and the correlation context variables."""

from __future__ import annotations

import asyncio

import pytest

from sqs_extensions.context import MessageContext
from sqs_extensions.correlation import (
    get_correlation_id,
    get_current_message_id,
    message_scope,
)
from sqs_extensions.envelope import Envelope
from sqs_extensions.exceptions import AttributeParseError


def test_get_attribute() -> None:
    ctx = MessageContext("m1", {"tenant": "acme"})
    assert ctx.get_attribute("tenant") == "acme"
    assert ctx.get_attribute("missing") is None


def test_get_attribute_as_int() -> None:
    ctx = MessageContext("m1", {"n": "42", "padded": " 7 ", "bad": "abc"})
    assert ctx.get_attribute_as_int("n") == 42
    assert ctx.get_attribute_as_int("padded") == 7
    assert ctx.get_attribute_as_int("missing") is None


def test_get_attribute_as_int_rejects_non_integer() -> None:
    ctx = MessageContext("m1", {"bad": "abc", "float": "1.5"})
    with pytest.raises(AttributeParseError) as exc_info:
        ctx.get_attribute_as_int("bad")
    assert isinstance(exc_info.value.__cause__, ValueError)
    with pytest.raises(AttributeParseError):
        ctx.get_attribute_as_int("float")


def test_from_envelope_copies_attributes() -> None:
    envelope = Envelope(
        message_id="m1",
        receipt_handle="r1",
        body="{}",
        attributes={"a": "1"},
        receive_count=3,
    )
    ctx = MessageContext.from_envelope(envelope)

    ctx.attributes["a"] = "changed"

    assert ctx.message_id == "m1"
    assert ctx.retry_count == 2
    assert envelope.attributes == {"a": "1"}


def test_defaults() -> None:
    ctx = MessageContext("m1")
    assert ctx.attributes == {}
    assert ctx.retry_count is None
    assert "m1" in repr(ctx)


def test_message_scope_sets_and_resets() -> None:
    assert get_current_message_id() is None
    with message_scope("m1", "corr-1"):
        assert get_current_message_id() == "m1"
        assert get_correlation_id() == "corr-1"
    assert get_current_message_id() is None
    assert get_correlation_id() is None


@pytest.mark.asyncio
async def test_message_scope_is_task_local() -> None:
    seen: dict[str, str | None] = {}

    async def handle(message_id: str) -> None:
        with message_scope(message_id, None):
            await asyncio.sleep(0.001)
            seen[message_id] = get_current_message_id()

    await asyncio.gather(handle("a"), handle("b"))
    assert seen == {"a": "a", "b": "b"}
