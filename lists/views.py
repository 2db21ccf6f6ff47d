import logging

from django.conf import settings
from django.utils import timezone
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from .errors import AuthError, StatusStoreError, ValidationError
from .jobs import ImportJob
from .serializers import ImportJobSerializer
from .signing import SIGNATURE_HEADER, verify_signature
from .tasks import build_status_store, import_list_task

logger = logging.getLogger(__name__)


class ImportJobView(APIView):
    """Accept an import job description and queue it for the worker."""

    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def post(self, request, *args, **kwargs):
        secret = getattr(settings, "LIST_IMPORT_SIGNING_SECRET", "")
        if secret:
            try:
                verify_signature(secret, request.body, request.META.get(SIGNATURE_HEADER, ""))
            except AuthError as exc:
                logger.warning("Rejected import request: %s", exc)
                return Response({"error": str(exc)}, status=status.HTTP_401_UNAUTHORIZED)

        serializer = ImportJobSerializer(data=request.data)
        if not serializer.is_valid():
            logger.warning("Invalid import payload: %s", serializer.errors)
            return Response(
                {"error": "Invalid payload", "details": serializer.errors},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            job = ImportJob.from_payload(serializer.to_job_payload())
        except ValidationError as exc:
            return Response(
                {"error": "Invalid payload", "details": str(exc)},
                status=status.HTTP_400_BAD_REQUEST,
            )

        try:
            build_status_store().mark_queued(job.job_id)
        except StatusStoreError:
            return Response(
                {"error": "Unable to record job status.", "jobId": job.job_id},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        import_list_task.delay(job.to_payload())
        logger.info(
            "Received list import job %s list_name=%s user_id=%s columns=%s key=%s",
            job.job_id,
            job.list_name,
            job.user_id,
            len(job.columns),
            job.object_ref.key,
        )
        return Response(
            {"message": "Job received and queued for processing", "jobId": job.job_id},
            status=status.HTTP_202_ACCEPTED,
        )


class ImportJobStatusView(APIView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def get(self, request, job_id: str, *args, **kwargs):
        try:
            job_status = build_status_store().read(job_id)
        except StatusStoreError:
            return Response(
                {"jobId": job_id, "status": None, "detail": "Unable to read job status."},
                status=status.HTTP_503_SERVICE_UNAVAILABLE,
            )

        if job_status is None:
            return Response({"jobId": job_id, "status": None}, status=status.HTTP_404_NOT_FOUND)
        return Response(job_status.to_dict())


class HealthView(APIView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def get(self, request, *args, **kwargs):
        return Response(
            {
                "status": "ok",
                "timestamp": timezone.now().isoformat(),
                "service": "list-import-worker",
            }
        )
