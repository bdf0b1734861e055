import threading

import pytest

from sqs_commons.envelope import MessageEnvelope, marshal, wrap
from sqs_commons.errors import DeserializationError, TypeMismatchError, UnknownMessageTypeError
from sqs_commons.handlers import EnvelopeDispatchHandler, RawHandler, TypeRouter
from sqs_commons.models import RawMessage


def raw(body: str, message_id: str = "mid-1") -> RawMessage:
    return RawMessage(message_id=message_id, receipt_handle="rh-1", body=body)


@pytest.mark.asyncio
async def test_raw_handler_passes_message_through():
    seen = []

    async def func(msg):
        seen.append(msg)

    msg = raw("hello")
    await RawHandler(func).handle(msg)
    assert seen == [msg]


@pytest.mark.asyncio
async def test_raw_handler_runs_sync_callback_in_thread():
    threads = []

    def func(msg):
        threads.append(threading.current_thread())

    await RawHandler(func).handle(raw("x"))
    assert threads and threads[0] is not threading.main_thread()


@pytest.mark.asyncio
async def test_raw_handler_propagates_errors():
    async def func(msg):
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        await RawHandler(func).handle(raw("x"))


@pytest.mark.asyncio
async def test_envelope_handler_stamps_transport_id():
    seen: list[MessageEnvelope] = []

    async def func(env):
        seen.append(env)

    body = marshal(wrap("ping", {"n": 1}))
    await EnvelopeDispatchHandler(func).handle(raw(body, message_id="sqs-123"))
    assert len(seen) == 1
    assert seen[0].id == "sqs-123"
    assert seen[0].type == "ping"
    assert seen[0].unwrap_into(dict) == {"n": 1}


@pytest.mark.asyncio
async def test_envelope_handler_rejects_non_envelope_without_calling_back():
    called = []

    async def func(env):
        called.append(env)

    with pytest.raises(TypeMismatchError) as info:
        await EnvelopeDispatchHandler(func).handle(raw("definitely not json"))
    assert isinstance(info.value, DeserializationError)
    assert isinstance(info.value.__cause__, DeserializationError)
    assert called == []


@pytest.mark.asyncio
async def test_type_router_dispatches_by_type():
    seen = []
    router = TypeRouter()

    @router.register("a")
    async def on_a(env):
        seen.append(("a", env.id))

    router.add("b", lambda env: seen.append(("b", env.id)))

    handler = EnvelopeDispatchHandler(router)
    await handler.handle(raw(marshal(wrap("a", 1)), message_id="1"))
    await handler.handle(raw(marshal(wrap("b", 2)), message_id="2"))
    assert seen == [("a", "1"), ("b", "2")]
    assert "a" in router and "c" not in router


@pytest.mark.asyncio
async def test_type_router_unknown_type():
    router = TypeRouter()
    with pytest.raises(UnknownMessageTypeError) as info:
        await router(wrap("nope", {}))
    assert info.value.message_type == "nope"


@pytest.mark.asyncio
async def test_type_router_default():
    seen = []

    async def fallback(env):
        seen.append(env.type)

    router = TypeRouter(default=fallback)
    await router(wrap("other", {}))
    assert seen == ["other"]
