"""SQS transport adapter (aiobotocore)."""

from __future__ import annotations

from .client import SqsQueueClient
from .connection import SQSConnectionManager

__all__ = [
    "SQSConnectionManager",
    "SqsQueueClient",
]
