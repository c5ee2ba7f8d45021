"""
Django settings for the waitstaff orders service.

Orders live in memory only, so no database is configured. Service tunables
come from the environment and are handed to the order core as constructor
arguments by ``waitstaff_app.apps``.
"""

import os
from datetime import timedelta
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "insecure-dev-key-change-me")

DEBUG = os.environ.get("DJANGO_DEBUG", "false").lower() in ("1", "true", "yes")

ALLOWED_HOSTS = os.environ.get("DJANGO_ALLOWED_HOSTS", "*").split(",")

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "waitstaff_app",
]

MIDDLEWARE = [
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "config.urls"

WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {}

APPEND_SLASH = False

USE_TZ = True
TIME_ZONE = "UTC"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "UNAUTHENTICATED_USER": None,
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_PARSER_CLASSES": ["rest_framework.parsers.JSONParser"],
}

# order service
ORDERS_PORT = int(os.environ.get("ORDERS_PORT", "8000"))
ORDERS_WORKERS = int(os.environ.get("ORDERS_WORKERS", "8"))
ORDERS_DEDUP_TTL = timedelta(seconds=float(os.environ.get("ORDERS_DEDUP_TTL_SECONDS", "300")))
# 0 disables the background sweep; every create then runs the full eviction pass itself
ORDERS_SWEEP_INTERVAL = float(os.environ.get("ORDERS_SWEEP_INTERVAL_SECONDS", "30"))
# how long a duplicate create waits on the in-flight original before answering 409
ORDERS_DEDUP_WAIT_SECONDS = float(os.environ.get("ORDERS_DEDUP_WAIT_SECONDS", "5"))

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "simple"},
    },
    "root": {
        "handlers": ["console"],
        "level": os.environ.get("DJANGO_LOG_LEVEL", "INFO"),
    },
    "loggers": {
        "waitstaff_app": {"level": os.environ.get("ORDERS_LOG_LEVEL", "INFO"), "propagate": True},
    },
}
