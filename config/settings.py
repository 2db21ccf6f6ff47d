import os
from pathlib import Path

import dj_database_url
from dotenv import load_dotenv


BASE_DIR = Path(__file__).resolve().parent.parent

# Load environment variables from .env file if present
load_dotenv(BASE_DIR / ".env")


def _env_flag(name: str, default: str = "False") -> bool:
    return os.getenv(name, default).lower() in {"1", "true", "yes"}


SECRET_KEY = os.getenv("SECRET_KEY", "django-insecure-change-me")
DEBUG = _env_flag("DEBUG")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

LIST_IMPORT_BATCH_SIZE = int(os.getenv("LIST_IMPORT_BATCH_SIZE", "500"))
LIST_IMPORT_PROGRESS_INTERVAL = int(os.getenv("LIST_IMPORT_PROGRESS_INTERVAL", "1000"))
LIST_IMPORT_MAX_FILE_SIZE = int(os.getenv("LIST_IMPORT_MAX_FILE_SIZE", str(200 * 1024 * 1024)))
LIST_IMPORT_DELETE_SOURCE = _env_flag("DELETE_OBJECT_AFTER_IMPORT")
LIST_IMPORT_USE_COPY = _env_flag("LIST_IMPORT_USE_COPY", "True")
LIST_IMPORT_SIGNING_SECRET = os.getenv("LIST_IMPORT_SIGNING_SECRET", "")
JOB_STATUS_TTL_SECONDS = int(os.getenv("JOB_STATUS_TTL_SECONDS", str(24 * 60 * 60)))

OBJECT_STORAGE_ENDPOINT_URL = os.getenv("OBJECT_STORAGE_ENDPOINT_URL", "")
OBJECT_STORAGE_REGION = os.getenv("OBJECT_STORAGE_REGION", "auto")
OBJECT_STORAGE_ACCESS_KEY_ID = os.getenv("OBJECT_STORAGE_ACCESS_KEY_ID", "")
OBJECT_STORAGE_SECRET_ACCESS_KEY = os.getenv("OBJECT_STORAGE_SECRET_ACCESS_KEY", "")

allowed_hosts_env = os.getenv("ALLOWED_HOSTS", "")
ALLOWED_HOSTS = (
    [host.strip() for host in allowed_hosts_env.split(",") if host.strip()]
    if allowed_hosts_env
    else []
)

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "lists.apps.ListsConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "config.urls"

WSGI_APPLICATION = "config.wsgi.application"

default_db_url = os.getenv("DATABASE_URL")
DATABASES = {
    "default": dj_database_url.config(
        default=default_db_url or f"sqlite:///{BASE_DIR / 'db.sqlite3'}",
        conn_max_age=600,
    )
}

LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

REST_FRAMEWORK = {
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.AllowAny",
    ],
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
    "DEFAULT_PARSER_CLASSES": [
        "rest_framework.parsers.JSONParser",
    ],
}

CELERY_BROKER_URL = REDIS_URL
CELERY_RESULT_BACKEND = REDIS_URL
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_RESULT_EXTENDED = True
CELERY_TASK_TRACK_STARTED = True
CELERY_WORKER_PREFETCH_MULTIPLIER = 1

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s %(levelname)s %(name)s %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": LOG_LEVEL,
    },
    "loggers": {
        "botocore": {"level": "WARNING"},
        "urllib3": {"level": "WARNING"},
    },
}
