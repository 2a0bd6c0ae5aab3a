"""MessageContext — per-message metadata surfaced to handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .exceptions import AttributeParseError

if TYPE_CHECKING:
    from .envelope import Envelope


class MessageContext:
    """Metadata for one delivery of one message.

    A fresh instance is built by the pump for every dispatched message and is
    discarded once the outcome has been resolved. ``attributes`` is a private
    copy of the envelope's attributes; the pump never writes to it.
    """

    __slots__ = ("_message_id", "_retry_count", "attributes")

    def __init__(
        self,
        message_id: str,
        attributes: dict[str, str] | None = None,
        retry_count: int | None = None,
    ) -> None:
        self._message_id = message_id
        self._retry_count = retry_count
        self.attributes: dict[str, str] = attributes if attributes is not None else {}

    @classmethod
    def from_envelope(cls, envelope: Envelope) -> MessageContext:
        """Context for *envelope*; retry count is the number of earlier deliveries."""
        return cls(
            envelope.message_id,
            dict(envelope.attributes),
            retry_count=envelope.receive_count - 1,
        )

    @property
    def message_id(self) -> str:
        return self._message_id

    @property
    def retry_count(self) -> int | None:
        return self._retry_count

    def get_attribute(self, key: str) -> str | None:
        """Return the attribute value, or None if absent."""
        return self.attributes.get(key)

    def get_attribute_as_int(self, key: str) -> int | None:
        """Return the attribute parsed as int, or None if absent.

        Raises:
            AttributeParseError: the attribute is present but not an integer.
        """
        value = self.attributes.get(key)
        if value is None:
            return None
        try:
            return int(value.strip())
        except ValueError as e:
            raise AttributeParseError(key, value) from e

    def __repr__(self) -> str:
        return (
            f"MessageContext(message_id={self._message_id!r}, "
            f"retry_count={self._retry_count!r}, attributes={self.attributes!r})"
        )
