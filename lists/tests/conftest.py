import io
import uuid
from typing import Dict, List, Optional, Tuple

import pytest
import redis

from lists.errors import ObjectNotFound, ObjectTooLarge
from lists.jobs import ColumnSpec, ImportJob, ObjectRef
from lists.status import JobStatusStore
from lists.storage import ObjectStream


class InMemoryRedis:
    """The slice of the redis client API the status store uses."""

    def __init__(self) -> None:
        self.data: Dict[str, str] = {}
        self.ttls: Dict[str, int] = {}
        self.writes: List[Tuple[str, str]] = []
        self.fail_reads = False
        self.fail_writes = False

    def get(self, key: str) -> Optional[str]:
        if self.fail_reads:
            raise redis.ConnectionError("redis unavailable")
        return self.data.get(key)

    def setex(self, key: str, ttl: int, value: str) -> bool:
        if self.fail_writes:
            raise redis.ConnectionError("redis unavailable")
        self.data[key] = value
        self.ttls[key] = ttl
        self.writes.append((key, value))
        return True


class InMemoryObjectSource:
    def __init__(self) -> None:
        self.objects: Dict[Tuple[str, str], bytes] = {}
        self.deleted: List[Tuple[str, str]] = []
        self.opened: List[Tuple[str, str]] = []
        self.delete_fails = False

    def put(self, bucket: str, key: str, content: bytes) -> None:
        self.objects[(bucket, key)] = content

    def open(self, bucket: str, key: str, max_bytes: Optional[int] = None) -> ObjectStream:
        self.opened.append((bucket, key))
        if (bucket, key) not in self.objects:
            raise ObjectNotFound(bucket, key)
        content = self.objects[(bucket, key)]
        if max_bytes is not None and len(content) > max_bytes:
            raise ObjectTooLarge(bucket, key, len(content), max_bytes)
        return ObjectStream(bucket=bucket, key=key, body=io.BytesIO(content), content_length=len(content))

    def delete(self, bucket: str, key: str) -> bool:
        if self.delete_fails:
            return False
        self.deleted.append((bucket, key))
        self.objects.pop((bucket, key), None)
        return True


@pytest.fixture
def redis_client():
    return InMemoryRedis()


@pytest.fixture
def status_store(redis_client):
    return JobStatusStore(redis_client)


@pytest.fixture
def object_source():
    return InMemoryObjectSource()


@pytest.fixture
def text_columns():
    return (
        ColumnSpec(name="Name", key="name", type="text", order=0),
        ColumnSpec(name="Email", key="email", type="text", order=1),
    )


@pytest.fixture
def make_job(text_columns):
    def _make_job(**overrides) -> ImportJob:
        values = {
            "job_id": str(uuid.uuid4()),
            "list_name": "Prospects",
            "first_row_is_header": True,
            "columns": text_columns,
            "object_ref": ObjectRef(bucket="uploads", key="imports/prospects.csv"),
            "user_id": "user-1",
        }
        values.update(overrides)
        return ImportJob(**values)

    return _make_job
