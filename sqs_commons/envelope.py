"""Typed message envelope carried in SQS message bodies.

An envelope tags an opaque, already-serialized payload with an
application-defined ``type`` so consumers can route and decode it::

    {"type": "user_created", "message": "{\"id\": 7, \"name\": \"ada\"}"}

The ``id`` field is transport metadata. Senders never set it; the poll
layer copies the SQS ``MessageId`` into it after decoding, and it is never
written back to the wire.

Examples
--------
>>> env = wrap("user_created", {"id": 7})
>>> env.payload
'{"id":7}'
>>> unmarshal(marshal(env)).type
'user_created'
>>> unwrap_into(env, dict)
{'id': 7}
"""
from __future__ import annotations

from typing import Any, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, Field, TypeAdapter, ValidationError
from pydantic.errors import PydanticSchemaGenerationError
from pydantic_core import PydanticSerializationError, to_json

from sqs_commons.errors import DeserializationError, SerializationError, TypeMismatchError


T = TypeVar("T")


class MessageEnvelope(BaseModel):
    """Envelope wrapping a typed payload."""

    id: Optional[str] = Field(default=None, exclude=True)
    type: str
    # Wire key is "message"; "payload" is accepted on input as well
    payload: str = Field(
        validation_alias=AliasChoices("message", "payload"),
        serialization_alias="message",
    )

    @classmethod
    def wrap(cls, type: str, value: Any) -> "MessageEnvelope":
        return wrap(type, value)

    @classmethod
    def unmarshal(cls, text: str | bytes) -> "MessageEnvelope":
        return unmarshal(text)

    def marshal(self) -> str:
        return marshal(self)

    def unwrap_into(self, destination_type: type[T], expected_type: Optional[str] = None) -> T:
        return unwrap_into(self, destination_type, expected_type=expected_type)


def marshal(envelope: MessageEnvelope) -> str:
    """Serialize ``{type, message}`` to JSON text; ``id`` is left out."""
    try:
        return envelope.model_dump_json(by_alias=True)
    except (PydanticSerializationError, AttributeError) as exc:
        raise SerializationError(f"envelope: unable to marshal envelope: {exc}") from exc


def unmarshal(text: str | bytes) -> MessageEnvelope:
    """Parse JSON text into a new envelope with ``id`` unset.

    Raises ``DeserializationError`` on malformed text, missing fields, or a
    ``None``/non-text input.
    """
    if not isinstance(text, (str, bytes, bytearray)):
        raise DeserializationError(
            f"envelope: cannot unmarshal {type(text).__name__}, expected str or bytes"
        )
    try:
        envelope = MessageEnvelope.model_validate_json(text)
    except ValidationError as exc:
        raise DeserializationError(f"envelope: malformed envelope: {exc}") from exc
    # An id on the wire is not trusted; the poll layer assigns it
    envelope.id = None
    return envelope


def wrap(type: str, value: Any) -> MessageEnvelope:
    """Serialize ``value`` to JSON and wrap it in an envelope tagged ``type``.

    Pydantic models, dataclasses, mappings, sequences and JSON scalars are
    supported.
    """
    try:
        payload = to_json(value).decode("utf-8")
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise SerializationError(
            f"envelope: unable to serialize {value.__class__.__name__} payload for type {type!r}: {exc}"
        ) from exc
    return MessageEnvelope(type=type, payload=payload)


def unwrap_into(
    envelope: MessageEnvelope,
    destination_type: type[T],
    expected_type: Optional[str] = None,
) -> T:
    """Decode ``envelope.payload`` as ``destination_type``.

    When ``expected_type`` is given, the envelope's tag must match it or
    ``TypeMismatchError`` is raised before the payload is read.
    """
    if envelope is None:
        raise DeserializationError("envelope: cannot unwrap a missing envelope")
    if destination_type is None:
        raise DeserializationError("envelope: no destination type to unwrap into")
    if expected_type is not None and envelope.type != expected_type:
        raise TypeMismatchError(
            f"envelope: expected message type {expected_type!r}, got {envelope.type!r}"
        )
    try:
        adapter = TypeAdapter(destination_type)
    except PydanticSchemaGenerationError as exc:
        raise DeserializationError(f"envelope: cannot unwrap into {destination_type!r}: {exc}") from exc
    try:
        return adapter.validate_json(envelope.payload)
    except ValidationError as exc:
        raise DeserializationError(
            f"envelope: payload of type {envelope.type!r} does not match {destination_type!r}: {exc}"
        ) from exc
