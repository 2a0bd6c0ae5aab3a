"""Unit tests for SqsQueueClient with a mocked aiobotocore client."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from botocore.exceptions import ClientError, NoRegionError

from sqs_extensions.envelope import SendMessageRequest
from sqs_extensions.exceptions import TransportError
from sqs_extensions.sqs import SqsQueueClient

QUEUE_URL = "https://sqs.us-east-1.amazonaws.com/123/orders"


@pytest.fixture
def sqs() -> MagicMock:
    client = MagicMock()
    client.receive_message = AsyncMock(return_value={})
    client.delete_message = AsyncMock(return_value={})
    client.change_message_visibility = AsyncMock(return_value={})
    client.send_message = AsyncMock(return_value={"MessageId": "mid-1"})
    client.send_message_batch = AsyncMock(return_value={"Successful": [], "Failed": []})
    return client


@pytest.fixture
def queue_client(sqs: MagicMock) -> SqsQueueClient:
    connection = MagicMock()
    connection.get_client = AsyncMock(return_value=sqs)
    connection.get_queue_url = AsyncMock(return_value=QUEUE_URL)
    return SqsQueueClient(connection)


@pytest.mark.asyncio
async def test_receive_batch_maps_messages(
    queue_client: SqsQueueClient, sqs: MagicMock
) -> None:
    sqs.receive_message.return_value = {
        "Messages": [
            {
                "MessageId": "m1",
                "ReceiptHandle": "r1",
                "Body": '{"order_id": "1"}',
                "Attributes": {"ApproximateReceiveCount": "2"},
                "MessageAttributes": {
                    "correlation_id": {"DataType": "String", "StringValue": "c1"}
                },
            }
        ]
    }

    (envelope,) = await queue_client.receive_batch(QUEUE_URL, 10, 20, 30)

    sqs.receive_message.assert_called_once_with(
        QueueUrl=QUEUE_URL,
        MaxNumberOfMessages=10,
        WaitTimeSeconds=20,
        VisibilityTimeout=30,
        MessageAttributeNames=["All"],
        AttributeNames=["ApproximateReceiveCount"],
    )
    assert envelope.message_id == "m1"
    assert envelope.receipt_handle == "r1"
    assert envelope.receive_count == 2
    assert envelope.attributes == {"correlation_id": "c1"}


@pytest.mark.asyncio
async def test_receive_batch_empty(queue_client: SqsQueueClient) -> None:
    assert await queue_client.receive_batch(QUEUE_URL, 10, 0, 30) == []


@pytest.mark.asyncio
async def test_delete_and_change_visibility(
    queue_client: SqsQueueClient, sqs: MagicMock
) -> None:
    await queue_client.delete(QUEUE_URL, "r1")
    await queue_client.change_visibility(QUEUE_URL, "r1", 60)
    sqs.delete_message.assert_called_once_with(QueueUrl=QUEUE_URL, ReceiptHandle="r1")
    sqs.change_message_visibility.assert_called_once_with(
        QueueUrl=QUEUE_URL, ReceiptHandle="r1", VisibilityTimeout=60
    )


@pytest.mark.asyncio
async def test_client_errors_become_transport_errors(
    queue_client: SqsQueueClient, sqs: MagicMock
) -> None:
    sqs.delete_message.side_effect = ClientError(
        {"Error": {"Code": "ReceiptHandleIsInvalid", "Message": "stale"}},
        "DeleteMessage",
    )
    with pytest.raises(TransportError) as exc_info:
        await queue_client.delete(QUEUE_URL, "r1")
    assert exc_info.value.operation == "DeleteMessage"
    assert isinstance(exc_info.value.__cause__, ClientError)


@pytest.mark.asyncio
async def test_send(queue_client: SqsQueueClient, sqs: MagicMock) -> None:
    request = SendMessageRequest(queue_url=QUEUE_URL, body="{}", delay_seconds=10)
    assert await queue_client.send(request) == "mid-1"
    sqs.send_message.assert_called_once_with(
        QueueUrl=QUEUE_URL, MessageBody="{}", DelaySeconds=10
    )


@pytest.mark.asyncio
async def test_send_batch_maps_results_in_order(
    queue_client: SqsQueueClient, sqs: MagicMock
) -> None:
    sqs.send_message_batch.return_value = {
        "Successful": [
            {"Id": "2", "MessageId": "mid-2"},
            {"Id": "0", "MessageId": "mid-0"},
        ],
        "Failed": [
            {
                "Id": "1",
                "Code": "InvalidParameterValue",
                "Message": "too big",
                "SenderFault": True,
            }
        ],
    }
    requests = [SendMessageRequest(queue_url=QUEUE_URL, body=str(i)) for i in range(4)]

    results = await queue_client.send_batch(QUEUE_URL, requests)

    entries = sqs.send_message_batch.call_args.kwargs["Entries"]
    assert [e["Id"] for e in entries] == ["0", "1", "2", "3"]
    assert [e["MessageBody"] for e in entries] == ["0", "1", "2", "3"]
    assert [r.index for r in results] == [0, 1, 2, 3]
    assert [r.succeeded for r in results] == [True, False, True, False]
    assert results[0].message_id == "mid-0"
    assert results[1].code == "InvalidParameterValue"
    assert results[1].sender_fault is True
    assert results[3].code == "MissingResult"


@pytest.mark.asyncio
async def test_send_batch_rejects_oversized_batch(queue_client: SqsQueueClient) -> None:
    requests = [SendMessageRequest(queue_url=QUEUE_URL, body="x") for _ in range(11)]
    with pytest.raises(ValueError, match="at most 10"):
        await queue_client.send_batch(QUEUE_URL, requests)


@pytest.mark.asyncio
async def test_send_batch_empty_makes_no_call(
    queue_client: SqsQueueClient, sqs: MagicMock
) -> None:
    assert await queue_client.send_batch(QUEUE_URL, []) == []
    sqs.send_message_batch.assert_not_called()


@pytest.mark.asyncio
async def test_get_queue_url_delegates_to_connection(
    queue_client: SqsQueueClient,
) -> None:
    assert await queue_client.get_queue_url("orders") == QUEUE_URL
    connection: MagicMock = queue_client.connection  # type: ignore[assignment]
    connection.get_queue_url.assert_called_once_with("orders")


@pytest.mark.asyncio
async def test_client_creation_failure_is_transport_error(
    queue_client: SqsQueueClient,
) -> None:
    connection: MagicMock = queue_client.connection  # type: ignore[assignment]
    connection.get_client.side_effect = NoRegionError()
    with pytest.raises(TransportError) as exc_info:
        await queue_client.delete(QUEUE_URL, "r1")
    assert exc_info.value.operation == "DeleteMessage"
    assert isinstance(exc_info.value.__cause__, NoRegionError)
