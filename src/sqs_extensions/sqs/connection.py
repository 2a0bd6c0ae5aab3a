"""SQS client lifecycle and cached queue-name resolution."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from aiobotocore.session import AioSession
from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import ConfigurationError, TransportError

logger = logging.getLogger("sqs_extensions.sqs.connection")

NON_EXISTENT_QUEUE_CODES = frozenset(
    {"AWS.SimpleQueueService.NonExistentQueue", "QueueDoesNotExist"}
)


def error_code(exc: BaseException) -> str | None:
    """Return the service error code carried by a botocore ClientError."""
    response = getattr(exc, "response", None) or {}
    code = response.get("Error", {}).get("Code")
    return str(code) if code is not None else None


class SQSConnectionManager:
    """Owns one aiobotocore SQS client shared by pumps and dispatchers.

    Credentials, endpoint and retry configuration pass straight through to
    ``AioSession.create_client`` via ``client_kwargs``.
    """

    def __init__(
        self,
        region_name: str = "us-east-1",
        *,
        session: AioSession | None = None,
        create_missing_queues: bool = False,
        **client_kwargs: Any,
    ) -> None:
        """Configure region and optional session/client kwargs.

        Args:
            region_name: AWS region of the queues.
            session: Pre-built session; a default ``AioSession`` otherwise.
            create_missing_queues: Create a queue on first lookup instead of
                failing with ``ConfigurationError``.
            **client_kwargs: Passed to ``create_client`` (``endpoint_url``,
                ``aws_access_key_id``, ``config``, ...).
        """
        self._region = region_name
        self._session = session or AioSession()
        self._create_missing_queues = create_missing_queues
        self._client_kwargs = client_kwargs
        self._client: Any = None
        self._client_cm: Any = None
        self._client_lock = asyncio.Lock()
        self._queue_urls: dict[str, str] = {}

    async def get_client(self) -> Any:
        """Return the shared SQS client; create it if needed.

        Concurrent first calls share one client.
        """
        if self._client is not None:
            return self._client
        async with self._client_lock:
            if self._client is None:
                client_cm = self._session.create_client(
                    "sqs",
                    region_name=self._region,
                    **self._client_kwargs,
                )
                self._client = await client_cm.__aenter__()
                self._client_cm = client_cm
        return self._client

    async def get_queue_url(self, queue_name: str) -> str:
        """Resolve *queue_name* to its URL, caching the answer.

        Raises:
            ConfigurationError: the queue does not exist.
            TransportError: the lookup itself failed.
        """
        cached = self._queue_urls.get(queue_name)
        if cached is not None:
            return cached
        client = await self.get_client()
        try:
            out = await client.get_queue_url(QueueName=queue_name)
            url = str(out["QueueUrl"])
        except ClientError as e:
            if error_code(e) not in NON_EXISTENT_QUEUE_CODES:
                raise TransportError(str(e), operation="GetQueueUrl") from e
            if not self._create_missing_queues:
                raise ConfigurationError(f"Queue {queue_name!r} does not exist") from e
            url = await self._create_queue(client, queue_name)
        except BotoCoreError as e:
            raise TransportError(str(e), operation="GetQueueUrl") from e
        self._queue_urls[queue_name] = url
        return url

    async def _create_queue(self, client: Any, queue_name: str) -> str:
        attributes = {"FifoQueue": "true"} if queue_name.endswith(".fifo") else {}
        try:
            out = await client.create_queue(QueueName=queue_name, Attributes=attributes)
        except (BotoCoreError, ClientError) as e:
            raise TransportError(str(e), operation="CreateQueue") from e
        logger.info("Created missing queue %s", queue_name)
        return str(out["QueueUrl"])

    async def close(self) -> None:
        """Exit the client context and forget cached queue URLs."""
        if self._client_cm is not None:
            await self._client_cm.__aexit__(None, None, None)
            self._client_cm = None
            self._client = None
        self._queue_urls.clear()

    async def health_check(self) -> bool:
        """True when the SQS endpoint answers a one-result ListQueues call."""
        try:
            client = await self.get_client()
            await client.list_queues(MaxResults=1)
            return True
        except Exception:  # noqa: BLE001
            return False
