"""MessagePumpFactory — builds ready-to-use pumps for a configuration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, TypeVar

from .exceptions import ConfigurationError, SerializationError
from .gate import AdmissionGate
from .pump import MessagePump
from .serialization import JsonMessageSerializer

if TYPE_CHECKING:
    from .configuration import MessagePumpConfiguration
    from .ports import MessageSerializer, QueueClient

logger = logging.getLogger("sqs_extensions.factory")

_T = TypeVar("_T")


class MessagePumpFactory:
    """Wires a shared QueueClient and serializer into new MessagePump instances.

    Holds no runtime state of its own; every pump gets its own admission gate.
    """

    def __init__(
        self,
        client: QueueClient,
        *,
        serializer: MessageSerializer | None = None,
    ) -> None:
        self._client = client
        self._serializer = serializer or JsonMessageSerializer()

    async def create(
        self,
        message_type: type[_T],
        configuration: MessagePumpConfiguration,
    ) -> MessagePump[_T]:
        """Resolve the queue and build a pump decoding bodies as *message_type*.

        Raises:
            ConfigurationError: the queue does not exist, or the serializer
                cannot decode *message_type*.
            TransportError: the queue lookup failed.
        """
        try:
            self._serializer.prepare(message_type)
        except SerializationError as e:
            raise ConfigurationError(str(e)) from e
        queue_url = await self._client.get_queue_url(configuration.queue_name)
        logger.debug(
            "Creating message pump for %s (%s)", configuration.queue_name, queue_url
        )
        return MessagePump(
            message_type,
            queue_url,
            configuration,
            self._client,
            self._serializer,
            AdmissionGate(configuration.max_concurrent_operations),
        )
