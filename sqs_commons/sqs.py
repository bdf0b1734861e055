"""SQS queue client: long-poll loop, concurrent dispatch, batched publish.

The client wraps an injected boto3 SQS client. boto3 is blocking, so every
transport call runs in a worker thread via ``asyncio.to_thread``; the poll
loop and the per-message tasks themselves run on the event loop.

Delivery is at-least-once. A message is deleted only after its handler
returned without raising; failed messages stay on the queue and come back
once their visibility timeout expires. Repeatedly failing messages should
be moved aside by a redrive policy (dead-letter queue) configured on the
queue itself.
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from sqs_commons.aws import sqs_client
from sqs_commons.config import Settings, clamp_max_messages, clamp_wait_time
from sqs_commons.envelope import MessageEnvelope, marshal
from sqs_commons.errors import EmptyPublishError, PublishError, QueueNotResolvedError
from sqs_commons.handlers import Handler
from sqs_commons.mathutil import round_up_to_multiple
from sqs_commons.metrics import (
    PUBLISH_BATCH_TOTAL,
    PUBLISH_MESSAGE_TOTAL,
    QUEUE_HANDLE_LATENCY_SECONDS,
    QUEUE_MESSAGE_TOTAL,
    QUEUE_RECEIVE_ERRORS_TOTAL,
    QUEUE_RECEIVED_TOTAL,
)
from sqs_commons.models import BatchEntry, RawMessage
from sqs_commons.tracing import get_tracer


logger = logging.getLogger(__name__)

# SendMessageBatch accepts at most 10 entries per call
MAX_ITEMS_IN_BATCH = 10

TRANSPORT_ERRORS = (ClientError, BotoCoreError)


class QueueClient:
    """Poll a named SQS queue and publish to it.

    Purpose:
    - Long-poll the queue and hand each message to a ``Handler``
    - Delete messages whose handler succeeded
    - Publish payload strings in batches of at most 10

    Concurrency model:
    - Each received batch (at most ``max_messages``, 10 by default) is handled
      with one task per message and no ordering between them
    - The loop waits for every task of the batch before the next receive, so
      at most one batch is in flight and the next batch is never fetched early
    - A failure in one message never affects its siblings

    Example:
    ```python
    queue = QueueClient("orders", sqs_client(settings), settings=settings)
    await queue.publish(marshal(wrap("order_placed", order)))
    await queue.poll(EnvelopeDispatchHandler(router))
    ```
    Properties:
    - `queue_name`: Name the client was constructed with
    - `queue_url`: Resolved URL, or ``""`` when resolution failed
    - `max_messages` / `wait_time_seconds`: Long-poll parameters
    """

    def __init__(self, queue_name: str, client: Any, settings: Optional[Settings] = None):
        self.queue_name = queue_name
        self.settings = settings or Settings()
        self._sqs = client
        self.max_messages = clamp_max_messages(self.settings.max_messages)
        self.wait_time_seconds = clamp_wait_time(self.settings.wait_time_seconds)
        self.poll_error_backoff = max(float(self.settings.poll_error_backoff_seconds), 0.0)
        self._stopping = threading.Event()
        self._tracer = get_tracer()
        self.queue_url = ""
        # Resolution failure is not fatal; operations fail later or retry it
        self.resolve()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "QueueClient":
        """Build a client for ``settings.queue_name`` with a fresh boto3 client."""
        settings = settings or Settings()
        return cls(settings.queue_name, sqs_client(settings), settings=settings)

    def resolve(self) -> bool:
        """Look up the queue URL by name. Returns False and logs on failure."""
        try:
            resp = self._sqs.get_queue_url(QueueName=self.queue_name)
        except TRANSPORT_ERRORS as exc:
            logger.error("queue: unable to get queue url queue=%s err=%s", self.queue_name, exc)
            return False
        self.queue_url = resp.get("QueueUrl") or ""
        if self.queue_url:
            logger.info("queue: resolved queue url queue=%s url=%s", self.queue_name, self.queue_url)
        return bool(self.queue_url)

    @property
    def stopping(self) -> bool:
        return self._stopping.is_set()

    def stop(self) -> None:
        """Ask the poll loop to exit once the current batch has been handled.

        Safe to call from signal handlers and other threads.
        """
        self._stopping.set()

    async def poll(self, handler: Handler) -> None:
        """Receive and dispatch batches until ``stop()`` is called."""
        if not isinstance(handler, Handler):
            raise TypeError(f"queue: handler must be a Handler, not {type(handler).__name__}")

        while not self._stopping.is_set():
            if not self.queue_url and not await asyncio.to_thread(self.resolve):
                QUEUE_RECEIVE_ERRORS_TOTAL.labels(queue=self.queue_name).inc()
                await self._backoff()
                continue

            logger.debug("queue: polling for messages queue=%s", self.queue_url)
            try:
                resp = await asyncio.to_thread(
                    self._sqs.receive_message,
                    QueueUrl=self.queue_url,
                    MaxNumberOfMessages=self.max_messages,
                    WaitTimeSeconds=self.wait_time_seconds,
                    AttributeNames=["All"],
                )
            except TRANSPORT_ERRORS as exc:
                logger.error("queue: polling for messages failed queue=%s err=%s", self.queue_url, exc)
                QUEUE_RECEIVE_ERRORS_TOTAL.labels(queue=self.queue_name).inc()
                await self._backoff()
                continue

            messages = [RawMessage.from_sqs(m) for m in (resp or {}).get("Messages") or []]
            if messages:
                await self.run(handler, messages)

        logger.info("queue: poll loop stopped queue=%s", self.queue_name)

    async def run(self, handler: Handler, messages: list[RawMessage]) -> None:
        """Handle one batch concurrently and return when every message is done."""
        logger.info("queue: received %d messages queue=%s", len(messages), self.queue_name)
        QUEUE_RECEIVED_TOTAL.labels(queue=self.queue_name).inc(len(messages))
        await asyncio.gather(*(self._process(handler, m) for m in messages))

    async def _process(self, handler: Handler, message: RawMessage) -> None:
        """Handle then delete one message; errors are logged, never raised."""
        start_ts = time.perf_counter()
        status = "success"
        with self._tracer.start_as_current_span("queue.handle") as span:
            span.set_attribute("message_id", message.message_id)
            span.set_attribute("queue", self.queue_name)
            span.set_attribute("receive_count", message.receive_count)
            try:
                try:
                    await handler.handle(message)
                except Exception as exc:  # noqa: BLE001
                    status = "handler_error"
                    span.record_exception(exc)
                    logger.error(
                        "queue: error handling message id=%s queue=%s receive_count=%d err=%s",
                        message.message_id, self.queue_name, message.receive_count, exc,
                        exc_info=exc,
                    )
                    return

                try:
                    await self.delete(message)
                except Exception as exc:  # noqa: BLE001
                    status = "delete_error"
                    span.record_exception(exc)
                    logger.error(
                        "queue: error deleting message id=%s queue=%s err=%s",
                        message.message_id, self.queue_name, exc,
                    )
            finally:
                QUEUE_MESSAGE_TOTAL.labels(queue=self.queue_name, status=status).inc()
                QUEUE_HANDLE_LATENCY_SECONDS.labels(queue=self.queue_name).observe(
                    time.perf_counter() - start_ts
                )

    async def delete(self, message: RawMessage) -> None:
        """Acknowledge a message by deleting it with its receipt handle."""
        queue_url = self._require_url()
        await asyncio.to_thread(
            self._sqs.delete_message,
            QueueUrl=queue_url,
            ReceiptHandle=message.receipt_handle,
        )

    async def publish(self, *messages: str) -> None:
        """Send payload strings in batches of at most 10, in order.

        Entry ids are ``m_<n>`` where ``n`` is the message's position in this
        call. The first failing batch aborts the call with ``PublishError``;
        batches after it are never sent.
        """
        count = len(messages)
        if count == 0:
            raise EmptyPublishError()
        queue_url = self._require_url()

        batches = round_up_to_multiple(count, MAX_ITEMS_IN_BATCH) // MAX_ITEMS_IN_BATCH
        sent = 0
        for i in range(batches):
            entries: list[BatchEntry] = []
            for j in range(MAX_ITEMS_IN_BATCH):
                k = i * MAX_ITEMS_IN_BATCH + j
                if k >= count:
                    break
                entries.append(BatchEntry(id=f"m_{k}", body=messages[k]))

            with self._tracer.start_as_current_span("queue.publish_batch") as span:
                span.set_attribute("queue", self.queue_name)
                span.set_attribute("batch_index", i)
                span.set_attribute("size", len(entries))
                try:
                    resp = await asyncio.to_thread(
                        self._sqs.send_message_batch,
                        QueueUrl=queue_url,
                        Entries=[e.to_sqs() for e in entries],
                    )
                except TRANSPORT_ERRORS as exc:
                    PUBLISH_BATCH_TOTAL.labels(queue=self.queue_name, result="error").inc()
                    logger.error(
                        "queue: error publishing message batch=%d sent=%d queue=%s err=%s",
                        i, sent, queue_url, exc,
                    )
                    raise PublishError(
                        f"queue: error publishing batch {i}: {exc}", batch_index=i, sent=sent
                    ) from exc

                failed_ids = [f.get("Id", "") for f in (resp or {}).get("Failed") or []]
                accepted = len(entries) - len(failed_ids)
                sent += accepted
                if accepted:
                    PUBLISH_MESSAGE_TOTAL.labels(queue=self.queue_name).inc(accepted)
                if failed_ids:
                    PUBLISH_BATCH_TOTAL.labels(queue=self.queue_name, result="partial").inc()
                    span.set_attribute("failed", len(failed_ids))
                    logger.error(
                        "queue: batch entries rejected batch=%d failed=%s queue=%s",
                        i, failed_ids, queue_url,
                    )
                    raise PublishError(
                        f"queue: {len(failed_ids)} entries rejected in batch {i}",
                        batch_index=i,
                        sent=sent,
                        failed_ids=failed_ids,
                    )
                PUBLISH_BATCH_TOTAL.labels(queue=self.queue_name, result="ok").inc()

    async def publish_envelopes(self, *envelopes: MessageEnvelope) -> None:
        """Marshal envelopes and publish them with ``publish``."""
        await self.publish(*(marshal(e) for e in envelopes))

    def _require_url(self) -> str:
        if not self.queue_url:
            raise QueueNotResolvedError(self.queue_name)
        return self.queue_url

    async def _backoff(self) -> None:
        await asyncio.sleep(self.poll_error_backoff)
