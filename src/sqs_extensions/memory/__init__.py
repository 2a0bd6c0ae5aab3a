"""In-memory queue adapter for testing."""

from __future__ import annotations

from .client import InMemoryQueueClient, StoredMessage

__all__ = [
    "InMemoryQueueClient",
    "StoredMessage",
]
