"""
Queue worker.

- Long-polls the configured SQS queue and decodes message envelopes
- Routes envelopes to handlers by type; successful messages are deleted
- Exposes Prometheus metrics and stops gracefully on SIGINT/SIGTERM

Example:
  SQS_QUEUE_NAME=jobs SQS_ENDPOINT_URL=http://localhost:4566 python -m scripts.worker
"""

import asyncio
import logging
import signal

from sqs_commons.config import Settings
from sqs_commons.envelope import MessageEnvelope
from sqs_commons.handlers import EnvelopeDispatchHandler, TypeRouter
from sqs_commons.metrics import start_metrics_server
from sqs_commons.sqs import QueueClient
from sqs_commons.tracing import start_tracing


logger = logging.getLogger("worker")

router = TypeRouter()


@router.register("echo")
async def handle_echo(envelope: MessageEnvelope) -> None:
    """Example handler: log the decoded payload."""
    payload = envelope.unwrap_into(dict)
    logger.info("worker: echo id=%s payload=%s", envelope.id, payload)


async def handle_unknown(envelope: MessageEnvelope) -> None:
    """Fallback for unregistered types; raising leaves the message for redelivery."""
    raise ValueError(f"unsupported message type {envelope.type!r}")


router.default = handle_unknown


async def main() -> None:
    """Entrypoint for running a worker as a script."""
    settings = Settings()
    logging.basicConfig(level=settings.log_level)

    try:
        start_metrics_server(settings.metrics_port)
        logger.info("worker: metrics server listening on :%d /metrics", settings.metrics_port)
    except OSError:
        # Already started in this process
        pass
    start_tracing("sqs-worker")

    queue = QueueClient.from_settings(settings)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, queue.stop)

    logger.info("worker: consuming queue %s", settings.queue_name)
    await queue.poll(EnvelopeDispatchHandler(router))


if __name__ == "__main__":
    asyncio.run(main())
