"""Typed JSON codec for message bodies."""

from __future__ import annotations

import functools
from typing import Any, Optional, TypeVar

from pydantic import TypeAdapter, ValidationError
from pydantic.errors import PydanticUserError
from pydantic_core import PydanticSerializationError

from .exceptions import DecodeError, SerializationError

_T = TypeVar("_T")


@functools.lru_cache(maxsize=256)
def _decoder(message_type: Any) -> TypeAdapter[Any]:
    # A JSON ``null`` body decodes to None for any payload type.
    return TypeAdapter(Optional[message_type])  # noqa: UP045


@functools.lru_cache(maxsize=256)
def _encoder(payload_type: type[Any]) -> TypeAdapter[Any]:
    return TypeAdapter(payload_type)


def _type_name(message_type: Any) -> str:
    return str(getattr(message_type, "__name__", message_type))


class JsonMessageSerializer:
    """Encode payloads to JSON strings and decode bodies back to a target type.

    Any type pydantic can validate works as a payload type: ``BaseModel``
    subclasses, dataclasses, ``TypedDict``, builtins and generics.
    """

    def prepare(self, message_type: Any) -> None:
        """Build the decoder for *message_type* ahead of the first message.

        Raises:
            SerializationError: pydantic cannot generate a schema for the type.
        """
        try:
            _decoder(message_type)
        except (PydanticUserError, TypeError) as e:
            raise SerializationError(
                f"Unsupported message type {_type_name(message_type)}: {e}"
            ) from e

    def serialize(self, payload: Any) -> str:
        """Encode *payload* to a JSON message body."""
        try:
            return _encoder(type(payload)).dump_json(payload).decode("utf-8")
        except (
            PydanticSerializationError,
            PydanticUserError,
            TypeError,
            ValueError,
        ) as e:
            raise SerializationError(
                f"Cannot serialize {type(payload).__name__}: {e}"
            ) from e

    def deserialize(self, body: str | bytes, message_type: type[_T]) -> _T | None:
        """Decode *body* as *message_type*.

        Raises:
            DecodeError: the body is not valid JSON or does not match the type.
        """
        try:
            decoded = _decoder(message_type).validate_json(body)
        except (ValidationError, PydanticUserError, TypeError, ValueError) as e:
            raise DecodeError(
                f"Cannot decode body as {_type_name(message_type)}: {e}"
            ) from e
        return decoded  # type: ignore[no-any-return]
