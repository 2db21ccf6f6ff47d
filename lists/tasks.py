import logging
from typing import Any, Dict

from celery import shared_task
from django.conf import settings

from .importer import ListImporter
from .jobs import ImportJob
from .status import DEFAULT_TTL_SECONDS, JobStatusStore
from .storage import S3ObjectSource
from .utils.redis_client import get_redis_client
from .utils.s3_client import get_s3_client

logger = logging.getLogger(__name__)


def build_status_store() -> JobStatusStore:
    return JobStatusStore(
        get_redis_client(),
        ttl_seconds=getattr(settings, "JOB_STATUS_TTL_SECONDS", DEFAULT_TTL_SECONDS),
    )


def build_importer() -> ListImporter:
    return ListImporter.from_settings(build_status_store(), S3ObjectSource(get_s3_client()))


@shared_task(
    bind=True,
    name="lists.import_list_task",
    acks_late=True,
    reject_on_worker_lost=True,
)
def import_list_task(self, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Import a CSV object into a new list. Safe to deliver more than once."""
    job = ImportJob.from_payload(payload)
    logger.info("Received list import job_id=%s celery_task_id=%s", job.job_id, self.request.id)

    result = build_importer().run(job)
    return {
        "jobId": job.job_id,
        "listId": result.list_id,
        "duplicate": result.duplicate,
        "processedRows": result.processed_rows,
    }
