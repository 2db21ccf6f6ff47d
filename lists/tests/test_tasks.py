from unittest import mock

import pytest

from lists import tasks
from lists.errors import DecodeError, ValidationError
from lists.importer import ImportResult, ListImporter
from lists.status import JobStatusStore

PAYLOAD = {
    "jobId": "3f2b8c9e-1d4a-4e6b-8f0c-5a7d9e1b2c3d",
    "listName": "Prospects",
    "firstRowIsHeader": False,
    "columns": [{"name": "Name", "key": "name", "type": "text", "order": 0}],
    "objectRef": {"containerId": "uploads", "key": "imports/prospects.csv"},
    "userId": "user-1",
}


def test_task_runs_importer():
    importer = mock.Mock()
    importer.run.return_value = ImportResult(list_id="list-1", duplicate=False, processed_rows=3)

    with mock.patch.object(tasks, "build_importer", return_value=importer):
        result = tasks.import_list_task(PAYLOAD)

    job = importer.run.call_args.args[0]
    assert job.job_id == PAYLOAD["jobId"]
    assert result == {"jobId": PAYLOAD["jobId"], "listId": "list-1", "duplicate": False, "processedRows": 3}


def test_task_propagates_failures():
    importer = mock.Mock()
    importer.run.side_effect = DecodeError("Meta", "{bad", "Expecting value")

    with mock.patch.object(tasks, "build_importer", return_value=importer):
        with pytest.raises(DecodeError):
            tasks.import_list_task(PAYLOAD)


def test_task_rejects_malformed_payload():
    with pytest.raises(ValidationError):
        tasks.import_list_task({"jobId": "nope"})


def test_build_importer_uses_process_clients(settings):
    settings.LIST_IMPORT_BATCH_SIZE = 250
    settings.JOB_STATUS_TTL_SECONDS = 60

    with mock.patch.object(tasks, "get_redis_client") as get_redis, \
            mock.patch.object(tasks, "get_s3_client") as get_s3:
        importer = tasks.build_importer()

    assert isinstance(importer, ListImporter)
    assert isinstance(importer.status_store, JobStatusStore)
    assert importer.status_store.client is get_redis.return_value
    assert importer.status_store.ttl_seconds == 60
    assert importer.object_source.client is get_s3.return_value
    assert importer.batch_size == 250


def test_task_is_acked_late():
    assert tasks.import_list_task.acks_late is True
    assert tasks.import_list_task.reject_on_worker_lost is True
