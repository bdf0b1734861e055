"""Handler variants invoked by the queue client for each received message.

A handler processes exactly one message and signals failure by raising.
Handlers never delete messages; the queue client deletes a message only
after ``handle`` returns without raising.

Two variants are provided:

- ``RawHandler`` passes the transport ``RawMessage`` straight to a callback.
- ``EnvelopeDispatchHandler`` decodes the body into a ``MessageEnvelope``
  first, so application code only deals with typed envelopes.

Callbacks may be ``async def`` functions or plain functions. Plain functions
run in a worker thread so a blocking callback does not hold up the other
messages of the batch.

Example:
```python
router = TypeRouter()

@router.register("user_created")
async def on_user_created(envelope: MessageEnvelope) -> None:
    user = envelope.unwrap_into(User)
    ...

await queue.poll(EnvelopeDispatchHandler(router))
```
"""
from __future__ import annotations

import asyncio
import inspect
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from sqs_commons.envelope import MessageEnvelope, unmarshal
from sqs_commons.errors import DeserializationError, TypeMismatchError, UnknownMessageTypeError
from sqs_commons.models import RawMessage


RawCallback = Callable[[RawMessage], Union[Awaitable[Any], Any]]
EnvelopeCallback = Callable[[MessageEnvelope], Union[Awaitable[Any], Any]]


def _is_async_callable(func: Callable[..., Any]) -> bool:
    if inspect.iscoroutinefunction(func):
        return True
    call = getattr(func, "__call__", None)
    return call is not None and inspect.iscoroutinefunction(call)


async def _invoke(func: Callable[[Any], Any], arg: Any) -> None:
    if _is_async_callable(func):
        await func(arg)
        return
    result = await asyncio.to_thread(func, arg)
    if inspect.isawaitable(result):
        await result


class Handler(ABC):
    """Processes one raw message; raising marks the message as failed."""

    @abstractmethod
    async def handle(self, message: RawMessage) -> None:
        raise NotImplementedError


class RawHandler(Handler):
    """Pass the transport message through unchanged."""

    def __init__(self, func: RawCallback) -> None:
        self.func = func

    async def handle(self, message: RawMessage) -> None:
        await _invoke(self.func, message)


class EnvelopeDispatchHandler(Handler):
    """Decode the body into an envelope, stamp its id, then call ``func``.

    A body that is not a valid envelope fails with ``TypeMismatchError`` and
    ``func`` is not called.
    """

    def __init__(self, func: EnvelopeCallback) -> None:
        self.func = func

    async def handle(self, message: RawMessage) -> None:
        try:
            envelope = unmarshal(message.body)
        except DeserializationError as exc:
            raise TypeMismatchError(
                f"handler: message {message.message_id} is not a message envelope"
            ) from exc
        envelope.id = message.message_id
        await _invoke(self.func, envelope)


class TypeRouter:
    """Route envelopes to callbacks by their ``type`` tag.

    Instances are callable with an envelope, so a router can be passed
    directly to ``EnvelopeDispatchHandler``. Unregistered types go to
    ``default`` when set, otherwise ``UnknownMessageTypeError`` is raised.

    Example:
        >>> router = TypeRouter()
        >>> router.add("ping", lambda env: None)
        >>> "ping" in router
        True
    """

    def __init__(self, default: Optional[EnvelopeCallback] = None) -> None:
        self.routes: Dict[str, EnvelopeCallback] = {}
        self.default = default

    def add(self, message_type: str, func: EnvelopeCallback) -> None:
        self.routes[message_type] = func

    def register(self, message_type: str) -> Callable[[EnvelopeCallback], EnvelopeCallback]:
        """Decorator form of ``add``."""
        def decorator(func: EnvelopeCallback) -> EnvelopeCallback:
            self.add(message_type, func)
            return func
        return decorator

    def __contains__(self, message_type: object) -> bool:
        return message_type in self.routes

    async def __call__(self, envelope: MessageEnvelope) -> None:
        func = self.routes.get(envelope.type, self.default)
        if func is None:
            raise UnknownMessageTypeError(envelope.type)
        await _invoke(func, envelope)
