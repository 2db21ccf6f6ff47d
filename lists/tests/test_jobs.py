import pytest

from lists.errors import ValidationError
from lists.jobs import ColumnSpec, ImportJob, ObjectRef


def payload(**overrides):
    data = {
        "jobId": "3f2b8c9e-1d4a-4e6b-8f0c-5a7d9e1b2c3d",
        "listName": "Prospects",
        "firstRowIsHeader": True,
        "columns": [
            {"name": "Name", "key": "name", "type": "text", "order": 0},
            {"name": "Meta", "key": "meta", "type": "structured", "order": 1},
        ],
        "objectRef": {"containerId": "uploads", "key": "imports/prospects.csv", "size": 120},
        "userId": "user-1",
    }
    data.update(overrides)
    return data


class TestImportJob:
    def test_from_payload(self):
        job = ImportJob.from_payload(payload())

        assert job.job_id == "3f2b8c9e-1d4a-4e6b-8f0c-5a7d9e1b2c3d"
        assert job.first_row_is_header is True
        assert job.columns[1] == ColumnSpec(name="Meta", key="meta", type="structured", order=1)
        assert job.columns[1].is_structured
        assert job.object_ref == ObjectRef(bucket="uploads", key="imports/prospects.csv", size=120)

    def test_payload_round_trip(self):
        data = payload(requestedAt="2024-05-01T10:00:00+00:00")
        assert ImportJob.from_payload(data).to_payload() == data

    def test_bucket_accepted_for_container_id(self):
        job = ImportJob.from_payload(payload(objectRef={"bucket": "uploads", "key": "a.csv"}))
        assert job.object_ref == ObjectRef(bucket="uploads", key="a.csv")
        assert job.to_payload()["objectRef"] == {"containerId": "uploads", "key": "a.csv"}

    def test_missing_container_id(self):
        with pytest.raises(ValidationError, match="containerId"):
            ImportJob.from_payload(payload(objectRef={"key": "a.csv"}))

    def test_missing_field(self):
        data = payload()
        del data["userId"]
        with pytest.raises(ValidationError):
            ImportJob.from_payload(data)

    def test_invalid_job_id(self):
        with pytest.raises(ValidationError):
            ImportJob.from_payload(payload(jobId="not-a-uuid"))

    def test_duplicate_column_keys(self):
        columns = [
            {"name": "Name", "key": "name", "type": "text", "order": 0},
            {"name": "Other name", "key": "name", "type": "text", "order": 1},
        ]
        with pytest.raises(ValidationError, match="Duplicate column keys: name"):
            ImportJob.from_payload(payload(columns=columns))

    def test_requires_columns(self):
        with pytest.raises(ValidationError):
            ImportJob.from_payload(payload(columns=[]))

    def test_rejects_unknown_column_type(self):
        columns = [{"name": "Age", "key": "age", "type": "integer", "order": 0}]
        with pytest.raises(ValidationError):
            ImportJob.from_payload(payload(columns=columns))

    def test_list_name_length(self):
        with pytest.raises(ValidationError):
            ImportJob.from_payload(payload(listName="x" * 101))

    def test_is_immutable(self):
        job = ImportJob.from_payload(payload())
        with pytest.raises(AttributeError):
            job.list_name = "Other"
