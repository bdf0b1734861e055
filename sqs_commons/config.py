import os
from typing import Literal, Optional
from pydantic import BaseModel


# SQS hard limits for a single ReceiveMessage call
SQS_MAX_MESSAGES_LIMIT = 10
SQS_MAX_WAIT_TIME_SECONDS = 20

# Core AWS settings; endpoints are only set for LocalStack/dev
AWS_REGION: str = os.getenv("AWS_REGION", "us-east-1")
SQS_ENDPOINT_URL: Optional[str] = os.getenv("SQS_ENDPOINT_URL") or None
S3_ENDPOINT_URL: Optional[str] = os.getenv("S3_ENDPOINT_URL") or None


def clamp_max_messages(value: int | str) -> int:
    """Clamp a requested batch size into the SQS range 1..10.

    >>> clamp_max_messages(25)
    10
    >>> clamp_max_messages("0")
    1
    """
    return min(max(int(value), 1), SQS_MAX_MESSAGES_LIMIT)


def clamp_wait_time(value: int | str) -> int:
    """Clamp a long-poll wait into the SQS range 0..20 seconds."""
    return min(max(int(value), 0), SQS_MAX_WAIT_TIME_SECONDS)


EnvName = Literal["development", "staging", "production"]
ENVIRONMENT: EnvName = os.getenv("ENVIRONMENT", "development").lower()  # type: ignore[assignment]


def is_prod() -> bool:
    return ENVIRONMENT == "production"


class Settings(BaseModel):
    """Typed configuration with sensible defaults for queue and storage clients.

    Why this exists:
    - Centralize environment configuration across scripts and the library
    - Provide explicit, typed access to commonly used settings

    How to use:
    - Instantiate once per process and pass around, or import where needed
    - Override values via environment variables or keyword arguments

    Examples:
    - Point the clients at LocalStack:
      ```bash
      export SQS_ENDPOINT_URL=http://localhost:4566
      export S3_ENDPOINT_URL=http://localhost:4566
      ```
    - Shorter long-polls and a faster error retry for local runs:
      ```bash
      export SQS_WAIT_TIME_SECONDS=5
      export SQS_POLL_ERROR_BACKOFF=0.2
      ```
    """
    environment: EnvName = ENVIRONMENT
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    aws_region: str = AWS_REGION
    sqs_endpoint_url: Optional[str] = SQS_ENDPOINT_URL
    s3_endpoint_url: Optional[str] = S3_ENDPOINT_URL
    queue_name: str = os.getenv("SQS_QUEUE_NAME", "")
    s3_bucket: str = os.getenv("S3_BUCKET", "")
    metrics_port: int = int(os.getenv("METRICS_PORT", "9000"))

    # Long-poll receive; values are clamped to the SQS limits by the queue client
    max_messages: int = int(os.getenv("SQS_MAX_MESSAGES", str(SQS_MAX_MESSAGES_LIMIT)))
    wait_time_seconds: int = int(os.getenv("SQS_WAIT_TIME_SECONDS", str(SQS_MAX_WAIT_TIME_SECONDS)))
    # Delay before the poll loop retries after a receive or resolve failure
    poll_error_backoff_seconds: float = float(os.getenv("SQS_POLL_ERROR_BACKOFF", "1.0"))
