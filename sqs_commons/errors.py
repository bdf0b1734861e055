"""Error taxonomy for the queue and envelope helpers.

Transport failures are surfaced as the underlying ``botocore`` exceptions,
except for publish where they are wrapped in ``PublishError`` so callers can
see how far the call got before it aborted.
"""
from __future__ import annotations

from typing import Sequence


class QueueError(Exception):
    """Base class for errors raised by this package."""


class SerializationError(QueueError):
    """A value or envelope could not be serialized to text."""


class DeserializationError(QueueError):
    """Text could not be parsed into an envelope or a typed payload."""


class TypeMismatchError(DeserializationError):
    """A message did not carry the envelope or payload type the caller expected."""


class UnknownMessageTypeError(QueueError):
    """No route is registered for an envelope's type tag."""

    def __init__(self, message_type: str) -> None:
        super().__init__(f"queue: no handler registered for message type {message_type!r}")
        self.message_type = message_type


class EmptyPublishError(QueueError, ValueError):
    """``publish`` was called without any messages."""

    def __init__(self) -> None:
        super().__init__("queue: nothing to publish")


class QueueNotResolvedError(QueueError):
    """The queue URL could not be resolved from the queue name."""

    def __init__(self, queue_name: str) -> None:
        super().__init__(f"queue: url for queue {queue_name!r} is not resolved")
        self.queue_name = queue_name


class PublishError(QueueError):
    """A batch publish failed; later batches were not attempted.

    Attributes
    ----------
    batch_index: int
        Zero-based index of the batch that failed.
    sent: int
        Number of messages accepted by the queue before the failure.
    failed_ids: list[str]
        Entry ids (``m_<n>``) the queue reported as failed in the batch, when
        the batch call itself succeeded but some entries were rejected.
    """

    def __init__(self, message: str, batch_index: int, sent: int, failed_ids: Sequence[str] = ()) -> None:
        super().__init__(message)
        self.batch_index = batch_index
        self.sent = sent
        self.failed_ids = list(failed_ids)
