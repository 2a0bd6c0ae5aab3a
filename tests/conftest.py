"""Pytest fixtures for sqs-extensions tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from pydantic import BaseModel

# Ensure the package is importable when running pytest from the repo root
# without ``pip install -e .``
_src = Path(__file__).resolve().parent.parent / "src"
if _src.is_dir() and str(_src) not in sys.path:
    sys.path.insert(0, str(_src))

from sqs_extensions.configuration import MessagePumpConfiguration  # noqa: E402
from sqs_extensions.envelope import SendMessageRequest  # noqa: E402
from sqs_extensions.memory import InMemoryQueueClient  # noqa: E402

QUEUE_NAME = "orders"


class OrderCreated(BaseModel):
    """Test payload."""

    order_id: str
    amount: float = 100.0


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_client(clock: FakeClock) -> InMemoryQueueClient:
    client = InMemoryQueueClient(clock=clock)
    client.create_queue(QUEUE_NAME)
    return client


@pytest.fixture
def configuration() -> MessagePumpConfiguration:
    return MessagePumpConfiguration(
        queue_name=QUEUE_NAME,
        wait_time_seconds=0,
        batch_delay=0.0,
    )


async def seed(
    client: InMemoryQueueClient,
    bodies: list[str],
    *,
    attributes: dict[str, str] | None = None,
    queue_name: str = QUEUE_NAME,
) -> list[str]:
    """Put raw bodies on the in-memory queue and return their message ids."""
    queue_url = client.create_queue(queue_name)
    return [
        await client.send(
            SendMessageRequest(
                queue_url=queue_url, body=body, attributes=attributes or {}
            )
        )
        for body in bodies
    ]


def order_body(order_id: str, amount: float = 10.0) -> str:
    return OrderCreated(order_id=order_id, amount=amount).model_dump_json()
