import logging
from dataclasses import dataclass
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError

from .errors import ObjectNotFound, ObjectTooLarge

logger = logging.getLogger(__name__)

NOT_FOUND_CODES = {"NoSuchKey", "NoSuchBucket", "404", "NotFound"}


class SizeLimitedReader:
    """Wrap a streaming body whose length was not reported and stop it at ``limit`` bytes."""

    def __init__(self, body: Any, bucket: str, key: str, limit: int) -> None:
        self.body = body
        self.bucket = bucket
        self.key = key
        self.limit = limit
        self.bytes_read = 0

    def read(self, size: int = -1) -> bytes:
        chunk = self.body.read(size)
        self.bytes_read += len(chunk)
        if self.bytes_read > self.limit:
            raise ObjectTooLarge(self.bucket, self.key, self.bytes_read, self.limit)
        return chunk

    def close(self) -> None:
        self.body.close()


@dataclass
class ObjectStream:
    bucket: str
    key: str
    body: Any
    content_length: Optional[int] = None
    content_type: Optional[str] = None

    def read(self, size: int = -1) -> bytes:
        return self.body.read(size)

    def close(self) -> None:
        try:
            self.body.close()
        except Exception:
            logger.warning("Failed to close object stream %s/%s", self.bucket, self.key, exc_info=True)


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3ObjectSource:
    """Open and delete source CSV objects in an S3-compatible bucket."""

    def __init__(self, client: Any) -> None:
        self.client = client

    def open(self, bucket: str, key: str, max_bytes: Optional[int] = None) -> ObjectStream:
        try:
            response = self.client.get_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            if _error_code(exc) in NOT_FOUND_CODES:
                raise ObjectNotFound(bucket, key) from exc
            raise

        body = response.get("Body")
        if body is None:
            raise ObjectNotFound(bucket, key)

        content_length = response.get("ContentLength")
        if max_bytes is not None:
            if content_length is not None and content_length > max_bytes:
                body.close()
                raise ObjectTooLarge(bucket, key, content_length, max_bytes)
            if content_length is None:
                body = SizeLimitedReader(body, bucket, key, max_bytes)

        logger.info(
            "Opened stream for %s/%s content_length=%s content_type=%s last_modified=%s",
            bucket,
            key,
            content_length,
            response.get("ContentType"),
            response.get("LastModified"),
        )
        return ObjectStream(
            bucket=bucket,
            key=key,
            body=body,
            content_length=content_length,
            content_type=response.get("ContentType"),
        )

    def delete(self, bucket: str, key: str) -> bool:
        """Delete an object. Cleanup is best-effort: failures are logged, never raised."""
        try:
            self.client.delete_object(Bucket=bucket, Key=key)
        except (BotoCoreError, ClientError):
            logger.exception("Failed to delete object %s/%s", bucket, key)
            return False
        logger.info("Deleted object %s/%s", bucket, key)
        return True
