"""SqsQueueClient — QueueClient over aiobotocore."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError

from ..envelope import BatchEntryResult, Envelope, SendMessageRequest
from ..exceptions import TransportError

if TYPE_CHECKING:
    from .connection import SQSConnectionManager

SQS_MAX_BATCH_SIZE = 10


class SqsQueueClient:
    """SQS adapter implementing ``QueueClient``.

    Every botocore failure is re-raised as ``TransportError`` with the SQS
    operation name attached.
    """

    def __init__(self, connection: SQSConnectionManager) -> None:
        self._connection = connection

    @property
    def connection(self) -> SQSConnectionManager:
        return self._connection

    async def _call(self, operation: str, method: str, **kwargs: Any) -> Any:
        try:
            client = await self._connection.get_client()
            return await getattr(client, method)(**kwargs)
        except (BotoCoreError, ClientError) as e:
            raise TransportError(f"{operation} failed: {e}", operation=operation) from e

    async def get_queue_url(self, queue_name: str) -> str:
        return await self._connection.get_queue_url(queue_name)

    async def receive_batch(
        self,
        queue_url: str,
        max_messages: int,
        wait_seconds: int,
        visibility_timeout: int,
    ) -> list[Envelope]:
        out = await self._call(
            "ReceiveMessage",
            "receive_message",
            QueueUrl=queue_url,
            MaxNumberOfMessages=max_messages,
            WaitTimeSeconds=wait_seconds,
            VisibilityTimeout=visibility_timeout,
            MessageAttributeNames=["All"],
            AttributeNames=["ApproximateReceiveCount"],
        )
        return [Envelope.from_sqs(raw) for raw in (out or {}).get("Messages", [])]

    async def delete(self, queue_url: str, receipt_handle: str) -> None:
        await self._call(
            "DeleteMessage",
            "delete_message",
            QueueUrl=queue_url,
            ReceiptHandle=receipt_handle,
        )

    async def change_visibility(
        self, queue_url: str, receipt_handle: str, timeout_seconds: int
    ) -> None:
        await self._call(
            "ChangeMessageVisibility",
            "change_message_visibility",
            QueueUrl=queue_url,
            ReceiptHandle=receipt_handle,
            VisibilityTimeout=timeout_seconds,
        )

    async def send(self, request: SendMessageRequest) -> str:
        out = await self._call("SendMessage", "send_message", **request.to_sqs())
        return str(out["MessageId"])

    async def send_batch(
        self, queue_url: str, requests: list[SendMessageRequest]
    ) -> list[BatchEntryResult]:
        if not requests:
            return []
        if len(requests) > SQS_MAX_BATCH_SIZE:
            raise ValueError(
                f"SendMessageBatch accepts at most {SQS_MAX_BATCH_SIZE} entries"
            )
        out = await self._call(
            "SendMessageBatch",
            "send_message_batch",
            QueueUrl=queue_url,
            Entries=[r.to_batch_entry(str(i)) for i, r in enumerate(requests)],
        )
        out = out or {}
        successful = {e["Id"]: e for e in out.get("Successful", [])}
        failed = {e["Id"]: e for e in out.get("Failed", [])}

        results: list[BatchEntryResult] = []
        for index in range(len(requests)):
            entry_id = str(index)
            if entry_id in successful:
                results.append(
                    BatchEntryResult(
                        index=index,
                        succeeded=True,
                        message_id=successful[entry_id].get("MessageId"),
                    )
                )
            else:
                failure = failed.get(entry_id, {})
                results.append(
                    BatchEntryResult(
                        index=index,
                        succeeded=False,
                        code=failure.get("Code", "MissingResult"),
                        error_message=failure.get(
                            "Message", "No result returned for entry"
                        ),
                        sender_fault=bool(failure.get("SenderFault", False)),
                    )
                )
        return results
