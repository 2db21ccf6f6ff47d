"""Job status records polled by clients while an import is in flight.

Each job has one JSON document in Redis under ``job:<job_id>`` that expires a fixed
time after its last write. Reads through ``get`` never fail the caller; writes do.
Once a job has succeeded its state no longer changes.
"""
import json
import logging
from dataclasses import asdict, dataclass, replace
from typing import Any, Dict, Optional

import redis
from django.utils import timezone

from .errors import StatusStoreError

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 24 * 60 * 60

STATE_QUEUED = "queued"
STATE_RUNNING = "running"
STATE_SUCCEEDED = "succeeded"
STATE_FAILED = "failed"
TERMINAL_STATES = {STATE_SUCCEEDED, STATE_FAILED}

_FIELD_NAMES = {
    "job_id": "jobId",
    "state": "state",
    "list_id": "listId",
    "error": "error",
    "processed_rows": "processedRows",
    "started_at": "startedAt",
    "finished_at": "finishedAt",
}
_ATTRIBUTE_NAMES = {wire: attr for attr, wire in _FIELD_NAMES.items()}


@dataclass(frozen=True)
class JobStatus:
    job_id: str
    state: str = STATE_QUEUED
    list_id: Optional[str] = None
    error: Optional[str] = None
    processed_rows: Optional[int] = None
    started_at: Optional[str] = None
    finished_at: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def to_dict(self) -> Dict[str, Any]:
        return {
            _FIELD_NAMES[name]: value
            for name, value in asdict(self).items()
            if value is not None
        }

    @classmethod
    def from_dict(cls, job_id: str, data: Dict[str, Any]) -> "JobStatus":
        fields = {
            _ATTRIBUTE_NAMES[wire]: value
            for wire, value in data.items()
            if wire in _ATTRIBUTE_NAMES
        }
        fields["job_id"] = job_id
        return cls(**fields)


def _now_iso() -> str:
    return timezone.now().isoformat()


class JobStatusStore:
    def __init__(self, client: redis.Redis, ttl_seconds: int = DEFAULT_TTL_SECONDS, key_prefix: str = "job") -> None:
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.key_prefix = key_prefix

    def _key(self, job_id: str) -> str:
        return f"{self.key_prefix}:{job_id}"

    def read(self, job_id: str) -> Optional[JobStatus]:
        """Return the stored status, raising ``StatusStoreError`` if Redis is unreachable."""
        try:
            data = self.client.get(self._key(job_id))
        except redis.RedisError as exc:
            raise StatusStoreError(f"Failed to read job status for {job_id}: {exc}") from exc
        if not data:
            return None
        try:
            return JobStatus.from_dict(job_id, json.loads(data))
        except (AttributeError, TypeError, ValueError):
            logger.warning("Discarding malformed job status for %s: %r", job_id, data)
            return None

    def get(self, job_id: str) -> Optional[JobStatus]:
        try:
            return self.read(job_id)
        except StatusStoreError:
            logger.exception("Failed to get job status for %s", job_id)
            return None

    def update(self, job_id: str, **fields: Any) -> JobStatus:
        current = self.get(job_id)
        if current is None:
            logger.info("Job %s has no status record yet, creating one", job_id)
            current = JobStatus(job_id=job_id)
        elif current.state == STATE_SUCCEEDED and fields.get("state", STATE_SUCCEEDED) != STATE_SUCCEEDED:
            # A redelivered job must not undo a committed import.
            logger.info("Job %s already succeeded, ignoring transition to %s", job_id, fields["state"])
            return current
        status = replace(current, **fields)

        try:
            self.client.setex(self._key(job_id), self.ttl_seconds, json.dumps(status.to_dict()))
        except redis.RedisError as exc:
            logger.exception("Failed to update job status for %s", job_id)
            raise StatusStoreError(f"Failed to update job status for {job_id}: {exc}") from exc

        logger.info(
            "Updated job status for %s state=%s processed_rows=%s list_id=%s error=%s",
            job_id,
            status.state,
            status.processed_rows,
            status.list_id,
            status.error,
        )
        return status

    def mark_queued(self, job_id: str) -> JobStatus:
        """Record a freshly accepted job. Redelivered jobs keep whatever state they already reached."""
        current = self.get(job_id)
        if current is not None:
            return current
        return self.update(job_id, state=STATE_QUEUED)

    def mark_running(self, job_id: str) -> JobStatus:
        # A retry after a failure starts over: drop the previous outcome.
        return self.update(job_id, state=STATE_RUNNING, started_at=_now_iso(), error=None, finished_at=None)

    def report_progress(self, job_id: str, processed_rows: int) -> JobStatus:
        return self.update(job_id, processed_rows=processed_rows)

    def mark_succeeded(self, job_id: str, list_id: str) -> JobStatus:
        return self.update(job_id, state=STATE_SUCCEEDED, list_id=list_id, finished_at=_now_iso())

    def mark_failed(self, job_id: str, error: str) -> JobStatus:
        return self.update(job_id, state=STATE_FAILED, error=error, finished_at=_now_iso())

    def is_completed(self, job_id: str) -> bool:
        status = self.get(job_id)
        return status is not None and status.is_terminal
