from typing import Any, Optional

import boto3
from botocore.config import Config
from django.conf import settings

_client: Optional[Any] = None


def get_s3_client() -> Any:
    """Process-wide boto3 client for the S3-compatible bucket holding uploaded CSV files."""
    global _client
    if _client is None:
        _client = boto3.client(
            "s3",
            endpoint_url=getattr(settings, "OBJECT_STORAGE_ENDPOINT_URL", None) or None,
            region_name=getattr(settings, "OBJECT_STORAGE_REGION", "auto"),
            aws_access_key_id=getattr(settings, "OBJECT_STORAGE_ACCESS_KEY_ID", None) or None,
            aws_secret_access_key=getattr(settings, "OBJECT_STORAGE_SECRET_ACCESS_KEY", None) or None,
            config=Config(retries={"max_attempts": 3, "mode": "standard"}),
        )
    return _client
