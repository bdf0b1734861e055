"""Pydantic models for transport-level queue messages.

These models give the raw boto3 dicts an explicit shape so handlers and the
queue client do not pass generic dicts around.
"""
from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field


class RawMessage(BaseModel):
    """A message as received from SQS, before any envelope decoding."""
    model_config = ConfigDict(frozen=True)

    message_id: str
    receipt_handle: str
    body: str = ""
    # System attributes (ApproximateReceiveCount, SentTimestamp, ...) as SQS returns them
    attributes: dict[str, Any] = Field(default_factory=dict)

    @property
    def receive_count(self) -> int:
        """How many times SQS has delivered this message, 0 when unknown."""
        try:
            return int(self.attributes.get("ApproximateReceiveCount", 0))
        except (TypeError, ValueError):
            return 0

    @classmethod
    def from_sqs(cls, data: Mapping[str, Any]) -> "RawMessage":
        """Build from one entry of a ``receive_message`` response's ``Messages`` list."""
        return cls(
            message_id=data.get("MessageId", ""),
            receipt_handle=data.get("ReceiptHandle", ""),
            body=data.get("Body") or "",
            attributes=dict(data.get("Attributes") or {}),
        )


class BatchEntry(BaseModel):
    """One entry of a ``send_message_batch`` request."""

    id: str
    body: str

    def to_sqs(self) -> dict[str, str]:
        return {"Id": self.id, "MessageBody": self.body}
