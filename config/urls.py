from django.urls import include, path

from lists.views import HealthView


urlpatterns = [
    path("health/", HealthView.as_view(), name="health"),
    path("api/", include("lists.urls")),
]
