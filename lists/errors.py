from typing import Optional


class ListImportError(Exception):
    """Base class for failures raised while importing a list."""


class AuthError(ListImportError):
    """Inbound request signature is missing or does not match."""


class ValidationError(ListImportError):
    """Inbound job description is malformed."""


class ObjectNotFound(ListImportError):
    def __init__(self, bucket: str, key: str) -> None:
        self.bucket = bucket
        self.key = key
        super().__init__(f"Object not found: {bucket}/{key}")


class ObjectTooLarge(ListImportError):
    def __init__(self, bucket: str, key: str, size: int, limit: int) -> None:
        self.bucket = bucket
        self.key = key
        self.size = size
        self.limit = limit
        super().__init__(
            f"File too large: {bucket}/{key} is {size} bytes, exceeds limit of {limit} bytes"
        )


class DecodeError(ListImportError):
    """A source record could not be decoded. Aborts the whole import."""

    def __init__(self, column: Optional[str], raw_value: Optional[str], reason: str) -> None:
        self.column = column
        self.raw_value = raw_value
        self.reason = reason
        if column is None:
            message = f"CSV parsing error: {reason}"
        else:
            message = f'Invalid JSON in column "{column}": {raw_value} ({reason})'
        super().__init__(message)


class StorageConflict(ListImportError):
    """A list for this job id already exists."""

    def __init__(self, job_id: str, list_id: str) -> None:
        self.job_id = job_id
        self.list_id = list_id
        super().__init__(f"Job {job_id} already imported as list {list_id}")


class StorageError(ListImportError):
    """Any database failure other than the job id conflict."""


class StatusStoreError(ListImportError):
    """Reading or writing the job status record failed."""
