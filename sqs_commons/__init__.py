"""Shared SQS and S3 helpers.

Modules include configuration, boto3 client factories, the message
envelope, handler variants, the polling/publishing queue client, S3
storage, metrics, and tracing utilities.
"""

from sqs_commons.envelope import MessageEnvelope, marshal, unmarshal, unwrap_into, wrap
from sqs_commons.errors import (
    DeserializationError,
    EmptyPublishError,
    PublishError,
    QueueError,
    QueueNotResolvedError,
    SerializationError,
    TypeMismatchError,
    UnknownMessageTypeError,
)
from sqs_commons.handlers import EnvelopeDispatchHandler, Handler, RawHandler, TypeRouter
from sqs_commons.models import RawMessage
from sqs_commons.sqs import QueueClient
from sqs_commons.storage import S3Storage

__all__ = [
    "DeserializationError",
    "EmptyPublishError",
    "EnvelopeDispatchHandler",
    "Handler",
    "MessageEnvelope",
    "PublishError",
    "QueueClient",
    "QueueError",
    "QueueNotResolvedError",
    "RawHandler",
    "RawMessage",
    "S3Storage",
    "SerializationError",
    "TypeMismatchError",
    "TypeRouter",
    "UnknownMessageTypeError",
    "marshal",
    "unmarshal",
    "unwrap_into",
    "wrap",
]
