import json
from dataclasses import dataclass

import pytest
from pydantic import BaseModel

from sqs_commons.envelope import MessageEnvelope, marshal, unmarshal, unwrap_into, wrap
from sqs_commons.errors import DeserializationError, SerializationError, TypeMismatchError


class User(BaseModel):
    id: int
    name: str
    tags: list[str] = []


@dataclass
class Point:
    x: int
    y: int


def test_marshal_excludes_id_and_uses_message_key():
    env = MessageEnvelope(id="abc", type="user_created", payload='{"id":1}')
    data = json.loads(marshal(env))
    assert data == {"type": "user_created", "message": '{"id":1}'}


def test_unmarshal_builds_envelope_without_id():
    env = unmarshal('{"type": "t", "message": "42", "id": "spoofed"}')
    assert env.type == "t"
    assert env.payload == "42"
    assert env.id is None


def test_unmarshal_accepts_payload_key_and_bytes():
    env = unmarshal(b'{"type": "t", "payload": "[1, 2]"}')
    assert env.payload == "[1, 2]"


@pytest.mark.parametrize(
    "text",
    ["not json", "", "{}", '{"type": "t"}', '{"message": "x"}', '{"type": 5, "message": "x"}', "[]"],
)
def test_unmarshal_rejects_malformed(text):
    with pytest.raises(DeserializationError):
        unmarshal(text)


def test_unmarshal_rejects_missing_input():
    with pytest.raises(DeserializationError):
        unmarshal(None)  # type: ignore[arg-type]


def test_wrap_unwrap_model_round_trip():
    user = User(id=7, name="ada", tags=["admin"])
    env = wrap("user_created", user)
    assert env.id is None
    assert env.type == "user_created"
    assert unwrap_into(env, User) == user


def test_wrap_unwrap_plain_values():
    assert unwrap_into(wrap("d", {"a": [1, 2]}), dict) == {"a": [1, 2]}
    assert unwrap_into(wrap("l", [1, 2, 3]), list[int]) == [1, 2, 3]
    assert unwrap_into(wrap("p", Point(1, 2)), Point) == Point(1, 2)
    assert unwrap_into(wrap("s", "hello"), str) == "hello"


def test_envelope_survives_the_wire():
    env = MessageEnvelope.wrap("user_created", User(id=1, name="x"))
    received = MessageEnvelope.unmarshal(env.marshal())
    assert received.unwrap_into(User, expected_type="user_created") == User(id=1, name="x")


def test_unwrap_into_mismatched_payload():
    env = wrap("user_created", {"name": "no id"})
    with pytest.raises(DeserializationError):
        unwrap_into(env, User)


def test_unwrap_into_requires_destination():
    env = wrap("t", {"a": 1})
    with pytest.raises(DeserializationError):
        unwrap_into(env, None)  # type: ignore[arg-type]


def test_unwrap_into_checks_expected_type():
    env = wrap("user_deleted", {"id": 1, "name": "x"})
    with pytest.raises(TypeMismatchError):
        unwrap_into(env, User, expected_type="user_created")


def test_wrap_unserializable_value():
    with pytest.raises(SerializationError):
        wrap("t", object())
