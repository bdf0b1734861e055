"""
Batch producer: publishes COUNT echo envelopes to the configured queue.

Messages are sent in SQS batches of up to 10 entries.

Example:
  SQS_QUEUE_NAME=jobs COUNT=25 python -m scripts.producer_batch
"""

import asyncio
import logging
import os
import uuid

from sqs_commons.config import Settings
from sqs_commons.envelope import wrap
from sqs_commons.sqs import QueueClient
from sqs_commons.tracing import start_tracing


async def main() -> None:
    settings = Settings()
    logging.basicConfig(level=settings.log_level)
    start_tracing("sqs-producer-batch")

    count = int(os.getenv("COUNT", "25"))
    queue = QueueClient.from_settings(settings)

    envelopes = [wrap("echo", {"seq": i, "nonce": str(uuid.uuid4())}) for i in range(count)]
    await queue.publish_envelopes(*envelopes)
    logging.getLogger("producer").info("producer: published %d messages to %s", count, settings.queue_name)


if __name__ == "__main__":
    asyncio.run(main())
