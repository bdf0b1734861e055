"""boto3 client factories for SQS and S3.

Clients are built once per process and injected into ``QueueClient`` and
``S3Storage``. boto3 clients are safe to share across threads, which the
queue client relies on when it handles a batch concurrently.

Credentials come from the standard boto3 chain (environment, shared config,
instance role); only region and endpoint are taken from ``Settings``.

Example:
    >>> settings = Settings(sqs_endpoint_url="http://localhost:4566")
    >>> client = sqs_client(settings)
"""

from __future__ import annotations

from typing import Any, Optional

import boto3

from sqs_commons.config import Settings


def sqs_client(settings: Optional[Settings] = None) -> Any:
    """Create an SQS client for the configured region and optional endpoint."""
    settings = settings or Settings()
    return boto3.client(
        "sqs",
        region_name=settings.aws_region,
        endpoint_url=settings.sqs_endpoint_url,
    )


def s3_client(settings: Optional[Settings] = None) -> Any:
    """Create an S3 client for the configured region and optional endpoint."""
    settings = settings or Settings()
    return boto3.client(
        "s3",
        region_name=settings.aws_region,
        endpoint_url=settings.s3_endpoint_url,
    )
