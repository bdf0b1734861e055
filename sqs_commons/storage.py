"""S3 storage helpers: existence checks, single-file transfer, directory upload.

Errors from boto3/botocore and the local filesystem are propagated to the
caller; the only error translated here is a missing object in
``file_exists``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path, PurePosixPath
from typing import Any, Optional

from botocore.exceptions import ClientError

from sqs_commons.aws import s3_client
from sqs_commons.config import Settings


logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}


class S3Storage:
    """File transfers against a single bucket.

    Example:
        >>> storage = S3Storage("artifacts", s3_client(settings))
        >>> storage.upload_directory("build/", "releases/1.2.0")
    """

    def __init__(self, bucket: str, client: Any) -> None:
        self.bucket = bucket
        self._s3 = client

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "S3Storage":
        settings = settings or Settings()
        return cls(settings.s3_bucket, s3_client(settings))

    def file_exists(self, key: str) -> bool:
        """Return True if ``key`` exists, False if S3 reports it missing.

        Any other error (permissions, throttling, network) is raised.
        """
        try:
            self._s3.head_object(Bucket=self.bucket, Key=key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _NOT_FOUND_CODES:
                return False
            raise
        return True

    def download_file(self, src: str, dest: str) -> str:
        """Download object ``src`` into directory ``dest``; return the local path.

        ``dest`` is created (mode 0700) when missing. The local file keeps the
        key's base name.
        """
        os.makedirs(dest, mode=0o700, exist_ok=True)
        dest_file = os.path.join(dest, PurePosixPath(src).name)
        logger.debug("storage: download file src_file=%s dest_file=%s", src, dest_file)
        self._s3.download_file(self.bucket, src, dest_file)
        return dest_file

    def upload_file(self, src: str, dest: str, acl: str = "private") -> None:
        """Upload local file ``src`` to key ``dest`` with a canned ACL."""
        logger.debug("storage: upload file src_file=%s dest_file=%s", src, dest)
        self._s3.upload_file(src, self.bucket, dest, ExtraArgs={"ACL": acl})

    def upload_directory(self, src: str, dest: str, acl: str = "private") -> list[str]:
        """Upload every file under ``src`` to ``dest/<relative path>``.

        Stops at the first failing upload and raises its error. Returns the
        keys uploaded, in sorted path order.
        """
        root = Path(src)
        if not root.is_dir():
            raise NotADirectoryError(src)

        uploaded: list[str] = []
        prefix = dest.rstrip("/")
        for path in sorted(p for p in root.rglob("*") if p.is_file()):
            rel = path.relative_to(root).as_posix()
            key = f"{prefix}/{rel}" if prefix else rel
            self.upload_file(str(path), key, acl)
            uploaded.append(key)
        logger.info("storage: uploaded directory src=%s dest=%s files=%d", src, dest, len(uploaded))
        return uploaded
