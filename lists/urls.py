from django.urls import path

from .views import ImportJobStatusView, ImportJobView

urlpatterns = [
    path("imports/", ImportJobView.as_view(), name="list-import"),
    path("imports/<str:job_id>/status/", ImportJobStatusView.as_view(), name="list-import-status"),
]
