import csv
import io
import json
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Dict, Sequence

from django.conf import settings
from django.db import DatabaseError, IntegrityError, connection, transaction
from django.utils import timezone
from psycopg2 import errorcodes

from .errors import StatusStoreError, StorageConflict, StorageError
from .jobs import ColumnSpec, ImportJob
from .models import List, ListColumn, ListRow
from .status import JobStatusStore
from .storage import ObjectStream, S3ObjectSource
from .utils.csv_row_decoder import CSVRowDecoder

logger = logging.getLogger(__name__)

INSERT_BATCH_SIZE = 500
PROGRESS_REPORT_INTERVAL = 1000
MAX_FILE_SIZE = 200 * 1024 * 1024

Row = Dict[str, Any]


@dataclass(frozen=True)
class ImportResult:
    list_id: str
    duplicate: bool
    processed_rows: int = 0


def _is_unique_violation(exc: IntegrityError) -> bool:
    pgcode = getattr(exc.__cause__, "pgcode", None)
    if pgcode is None:
        # SQLite reports no SQLSTATE; the lookup by job id decides.
        return True
    return pgcode == errorcodes.UNIQUE_VIOLATION


def _error_message(exc: BaseException) -> str:
    return str(exc) or exc.__class__.__name__


def _copy_rows_to_database(list_id: Any, rows: Sequence[Row]) -> None:
    """Load one batch with ``COPY ... FROM STDIN``. PostgreSQL only."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    now_iso = timezone.now().isoformat()
    for data in rows:
        writer.writerow([str(uuid.uuid4()), str(list_id), json.dumps(data), now_iso])
    buffer.seek(0)

    quoted_table = connection.ops.quote_name(ListRow._meta.db_table)
    with connection.cursor() as cursor:
        copy_sql = f"COPY {quoted_table} (id, list_id, data, created_at) FROM STDIN WITH CSV;"
        cursor.copy_expert(copy_sql, buffer)


class ListImporter:
    """Stream a remote CSV object into a new list, exactly once per job id.

    The list row, its column definitions and every data row are written in a single
    transaction. A second attempt for the same job id loses the race on the unique
    ``lists.job_id`` constraint and returns the existing list as a duplicate without
    writing anything else.
    """

    def __init__(
        self,
        status_store: JobStatusStore,
        object_source: S3ObjectSource,
        *,
        batch_size: int = INSERT_BATCH_SIZE,
        progress_interval: int = PROGRESS_REPORT_INTERVAL,
        max_file_size: int = MAX_FILE_SIZE,
        delete_after_import: bool = False,
        use_copy: bool = True,
    ) -> None:
        if batch_size <= 0 or progress_interval <= 0:
            raise ValueError("batch_size and progress_interval must be positive.")
        self.status_store = status_store
        self.object_source = object_source
        self.batch_size = batch_size
        self.progress_interval = progress_interval
        self.max_file_size = max_file_size
        self.delete_after_import = delete_after_import
        self.use_copy = use_copy

    @classmethod
    def from_settings(cls, status_store: JobStatusStore, object_source: S3ObjectSource) -> "ListImporter":
        return cls(
            status_store,
            object_source,
            batch_size=getattr(settings, "LIST_IMPORT_BATCH_SIZE", INSERT_BATCH_SIZE),
            progress_interval=getattr(settings, "LIST_IMPORT_PROGRESS_INTERVAL", PROGRESS_REPORT_INTERVAL),
            max_file_size=getattr(settings, "LIST_IMPORT_MAX_FILE_SIZE", MAX_FILE_SIZE),
            delete_after_import=getattr(settings, "LIST_IMPORT_DELETE_SOURCE", False),
            use_copy=getattr(settings, "LIST_IMPORT_USE_COPY", True),
        )

    def run(self, job: ImportJob) -> ImportResult:
        logger.info(
            "Starting list import job_id=%s list_name=%s first_row_is_header=%s columns=%s object=%s/%s user_id=%s",
            job.job_id,
            job.list_name,
            job.first_row_is_header,
            len(job.columns),
            job.object_ref.bucket,
            job.object_ref.key,
            job.user_id,
        )

        try:
            self.status_store.mark_running(job.job_id)

            source = self.object_source.open(job.object_ref.bucket, job.object_ref.key, self.max_file_size)
            try:
                logger.info(
                    "Processing CSV file %s size=%s max_allowed=%.0fMB",
                    job.object_ref.key,
                    f"{source.content_length / 1024 / 1024:.2f}MB" if source.content_length is not None else "unknown",
                    self.max_file_size / 1024 / 1024,
                )
                result = self._load(job, source)
            finally:
                source.close()

            if result.duplicate:
                logger.info(
                    "Job %s was a duplicate of list %s - not marking as succeeded (another worker may still be processing)",
                    job.job_id,
                    result.list_id,
                )
                return result

            self.status_store.report_progress(job.job_id, result.processed_rows)
            self.status_store.mark_succeeded(job.job_id, result.list_id)

            if self.delete_after_import:
                self.object_source.delete(job.object_ref.bucket, job.object_ref.key)

            logger.info(
                "Completed list import job_id=%s list_id=%s rows=%s",
                job.job_id,
                result.list_id,
                result.processed_rows,
            )
            return result
        except Exception as exc:
            logger.exception("Failed to process list import job %s", job.job_id)
            try:
                self.status_store.mark_failed(job.job_id, _error_message(exc))
            except StatusStoreError:
                logger.exception("Could not record failure for job %s", job.job_id)
            raise

    def _load(self, job: ImportJob, source: ObjectStream) -> ImportResult:
        with transaction.atomic():
            try:
                imported_list = self._create_list(job)
            except StorageConflict as conflict:
                logger.info(
                    "Job %s already processed by another worker, list exists: %s",
                    job.job_id,
                    conflict.list_id,
                )
                return ImportResult(list_id=conflict.list_id, duplicate=True)

            logger.info("Created list %s for job %s", imported_list.id, job.job_id)
            self._create_columns(imported_list, job.columns)
            processed_rows = self._stream_rows(imported_list, job, source)

        return ImportResult(list_id=str(imported_list.id), duplicate=False, processed_rows=processed_rows)

    def _create_list(self, job: ImportJob) -> List:
        try:
            # Savepoint, so the outer transaction survives a conflict on PostgreSQL.
            with transaction.atomic():
                return List.objects.create(user_id=job.user_id, name=job.list_name, job_id=job.job_id)
        except IntegrityError as exc:
            if not _is_unique_violation(exc):
                raise StorageError(f"Failed to create list for job {job.job_id}: {exc}") from exc
            existing_id = List.objects.filter(job_id=job.job_id).values_list("id", flat=True).first()
            if existing_id is None:
                raise StorageError(f"Failed to create list for job {job.job_id}: {exc}") from exc
            raise StorageConflict(job.job_id, str(existing_id)) from exc

    def _create_columns(self, imported_list: List, columns: Sequence[ColumnSpec]) -> None:
        ListColumn.objects.bulk_create(
            [
                ListColumn(
                    list=imported_list,
                    name=column.name,
                    key=column.key,
                    type=column.type,
                    order=column.order,
                )
                for column in columns
            ]
        )
        logger.info("Inserted %s column definitions for list %s", len(columns), imported_list.id)

    def _stream_rows(self, imported_list: List, job: ImportJob, source: ObjectStream) -> int:
        decoder = CSVRowDecoder(source, job.columns, first_row_is_header=job.first_row_is_header)
        batch = []
        processed_rows = 0

        # The decoder is a generator: it reads no further input while the loop body
        # is flushing a batch or reporting progress.
        for row in decoder:
            batch.append(row)
            processed_rows += 1

            if len(batch) >= self.batch_size:
                self._insert_batch(imported_list, batch)
                batch = []

            if processed_rows % self.progress_interval == 0:
                self.status_store.report_progress(job.job_id, processed_rows)

        if batch:
            self._insert_batch(imported_list, batch)

        logger.info(
            "Processed %s rows for list %s (%s blank records skipped)",
            processed_rows,
            imported_list.id,
            decoder.rows_skipped,
        )
        return processed_rows

    def _insert_batch(self, imported_list: List, batch: Sequence[Row]) -> None:
        if not batch:
            return
        try:
            if self.use_copy and connection.vendor == "postgresql":
                _copy_rows_to_database(imported_list.id, batch)
            else:
                ListRow.objects.bulk_create([ListRow(list=imported_list, data=data) for data in batch])
        except DatabaseError as exc:
            logger.error("Failed to insert batch of %s rows for list %s", len(batch), imported_list.id)
            raise StorageError(f"Failed to insert batch of {len(batch)} rows: {exc}") from exc
        logger.debug("Inserted batch of %s rows for list %s", len(batch), imported_list.id)
