import io
from unittest import mock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from lists.errors import ObjectNotFound, ObjectTooLarge
from lists.storage import S3ObjectSource, SizeLimitedReader


def client_error(code: str, operation: str = "GetObject") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": code}}, operation)


@pytest.fixture
def s3_client():
    return mock.Mock()


class TestOpen:
    def test_returns_stream_with_length(self, s3_client):
        body = io.BytesIO(b"a,b\n")
        s3_client.get_object.return_value = {"Body": body, "ContentLength": 4, "ContentType": "text/csv"}

        stream = S3ObjectSource(s3_client).open("uploads", "file.csv", max_bytes=100)

        s3_client.get_object.assert_called_once_with(Bucket="uploads", Key="file.csv")
        assert stream.content_length == 4
        assert stream.content_type == "text/csv"
        assert stream.read() == b"a,b\n"

    def test_missing_object(self, s3_client):
        s3_client.get_object.side_effect = client_error("NoSuchKey")

        with pytest.raises(ObjectNotFound):
            S3ObjectSource(s3_client).open("uploads", "missing.csv")

    def test_other_client_errors_propagate(self, s3_client):
        s3_client.get_object.side_effect = client_error("AccessDenied")

        with pytest.raises(ClientError):
            S3ObjectSource(s3_client).open("uploads", "file.csv")

    def test_reported_length_over_limit_is_rejected_before_reading(self, s3_client):
        body = mock.Mock()
        s3_client.get_object.return_value = {"Body": body, "ContentLength": 201}

        with pytest.raises(ObjectTooLarge) as excinfo:
            S3ObjectSource(s3_client).open("uploads", "big.csv", max_bytes=200)

        assert excinfo.value.size == 201
        body.read.assert_not_called()
        body.close.assert_called_once()

    def test_unknown_length_is_limited_while_reading(self, s3_client):
        s3_client.get_object.return_value = {"Body": io.BytesIO(b"x" * 300)}

        stream = S3ObjectSource(s3_client).open("uploads", "file.csv", max_bytes=200)

        assert stream.content_length is None
        assert isinstance(stream.body, SizeLimitedReader)
        assert len(stream.read(150)) == 150
        with pytest.raises(ObjectTooLarge):
            stream.read(150)


class TestDelete:
    def test_delete(self, s3_client):
        assert S3ObjectSource(s3_client).delete("uploads", "file.csv") is True
        s3_client.delete_object.assert_called_once_with(Bucket="uploads", Key="file.csv")

    def test_delete_failures_are_swallowed(self, s3_client):
        s3_client.delete_object.side_effect = EndpointConnectionError(endpoint_url="https://example.com")
        assert S3ObjectSource(s3_client).delete("uploads", "file.csv") is False

