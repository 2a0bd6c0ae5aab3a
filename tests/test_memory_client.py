"""Tests for the in-memory QueueClient."""

from __future__ import annotations

import pytest
from conftest import QUEUE_NAME, FakeClock, seed

from sqs_extensions.envelope import SendMessageRequest
from sqs_extensions.exceptions import ConfigurationError, TransportError
from sqs_extensions.memory import InMemoryQueueClient
from sqs_extensions.ports import QueueClient

URL = "memory://orders"


def test_satisfies_queue_client_protocol(memory_client: InMemoryQueueClient) -> None:
    assert isinstance(memory_client, QueueClient)


@pytest.mark.asyncio
async def test_unknown_queue_is_configuration_error(
    memory_client: InMemoryQueueClient,
) -> None:
    with pytest.raises(ConfigurationError):
        await memory_client.get_queue_url("nope")
    assert await memory_client.get_queue_url(QUEUE_NAME) == URL


@pytest.mark.asyncio
async def test_receive_respects_max_and_visibility(
    memory_client: InMemoryQueueClient, clock: FakeClock
) -> None:
    await seed(memory_client, ["1", "2", "3"])

    first = await memory_client.receive_batch(URL, 2, 0, 30)
    second = await memory_client.receive_batch(URL, 10, 0, 30)
    assert [e.body for e in first] == ["1", "2"]
    assert [e.body for e in second] == ["3"]
    assert await memory_client.receive_batch(URL, 10, 0, 30) == []

    clock.advance(30)
    again = await memory_client.receive_batch(URL, 10, 0, 30)
    assert [e.receive_count for e in again] == [2, 2, 2]


@pytest.mark.asyncio
async def test_stale_receipt_handle_is_rejected(
    memory_client: InMemoryQueueClient, clock: FakeClock
) -> None:
    await seed(memory_client, ["1"])
    (old,) = await memory_client.receive_batch(URL, 1, 0, 5)
    clock.advance(5)
    (new,) = await memory_client.receive_batch(URL, 1, 0, 5)

    assert old.receipt_handle != new.receipt_handle
    with pytest.raises(TransportError):
        await memory_client.delete(URL, old.receipt_handle)
    await memory_client.delete(URL, new.receipt_handle)
    assert memory_client.messages(QUEUE_NAME) == []


@pytest.mark.asyncio
async def test_change_visibility(
    memory_client: InMemoryQueueClient, clock: FakeClock
) -> None:
    await seed(memory_client, ["1"])
    (envelope,) = await memory_client.receive_batch(URL, 1, 0, 30)

    await memory_client.change_visibility(URL, envelope.receipt_handle, 0)

    assert len(await memory_client.receive_batch(URL, 1, 0, 30)) == 1


@pytest.mark.asyncio
async def test_fail_next_fails_once(memory_client: InMemoryQueueClient) -> None:
    memory_client.fail_next("send")
    request = SendMessageRequest(queue_url=URL, body="x")
    with pytest.raises(TransportError) as exc_info:
        await memory_client.send(request)
    assert exc_info.value.operation == "send"
    await memory_client.send(request)
    assert len(memory_client.calls_to("send")) == 2
    assert len(memory_client.messages(QUEUE_NAME)) == 1


@pytest.mark.asyncio
async def test_send_batch_stores_in_order(memory_client: InMemoryQueueClient) -> None:
    requests = [SendMessageRequest(queue_url=URL, body=str(i)) for i in range(3)]
    results = await memory_client.send_batch(URL, requests)
    assert [r.index for r in results] == [0, 1, 2]
    stored = memory_client.messages(QUEUE_NAME)
    assert [m.body for m in stored] == ["0", "1", "2"]
    assert [m.message_id for m in stored] == [r.message_id for r in results]
