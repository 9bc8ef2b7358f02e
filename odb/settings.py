"""
Django settings for the Optique de Bourbon CMS.

Every deployment-specific value is read from the environment through _env(),
with development defaults (sqlite database, local media storage, eager celery).
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env(name, default=None):
    """Return an environment variable, or ``default`` when it is not set."""
    return os.getenv(name, default)


def _env_bool(name, default=False):
    value = _env(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name, default=""):
    return [item.strip() for item in _env(name, default).split(",") if item.strip()]


SECRET_KEY = _env("DJANGO_SECRET_KEY", "django-insecure-odb-development-key")
DEBUG = _env_bool("DJANGO_DEBUG", True)
ALLOWED_HOSTS = _env_list("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1,testserver")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "core.apps.CoreConfig",
    "analytics.apps.AnalyticsConfig",
    "dashboard.apps.DashboardConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "odb.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [BASE_DIR / "templates"],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
                "odb.context_processors.site_context",
            ],
        },
    },
]

WSGI_APPLICATION = "odb.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": _env("DATABASE_ENGINE", "django.db.backends.sqlite3"),
        "NAME": _env("DATABASE_NAME", str(BASE_DIR / "db.sqlite3")),
        "USER": _env("DATABASE_USER", ""),
        "PASSWORD": _env("DATABASE_PASSWORD", ""),
        "HOST": _env("DATABASE_HOST", ""),
        "PORT": _env("DATABASE_PORT", ""),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "fr-fr"
TIME_ZONE = _env("DJANGO_TIME_ZONE", "Indian/Reunion")
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"
MEDIA_URL = "/media/"
MEDIA_ROOT = Path(_env("MEDIA_ROOT", str(BASE_DIR / "media")))

# Uploads larger than this are streamed to a temporary file
FILE_UPLOAD_MAX_MEMORY_SIZE = 5 * 1024 * 1024
DATA_UPLOAD_MAX_MEMORY_SIZE = 60 * 1024 * 1024

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
    ],
    "DEFAULT_PERMISSION_CLASSES": [
        "rest_framework.permissions.IsAuthenticated",
    ],
    "DEFAULT_RENDERER_CLASSES": [
        "rest_framework.renderers.JSONRenderer",
    ],
}

# Media storage: "local" writes under MEDIA_ROOT/uploads, "cloudinary" uploads remotely
MEDIA_BACKEND = _env("MEDIA_BACKEND", "local")
CLOUDINARY_CLOUD_NAME = _env("CLOUDINARY_CLOUD_NAME", "")
CLOUDINARY_API_KEY = _env("CLOUDINARY_API_KEY", "")
CLOUDINARY_API_SECRET = _env("CLOUDINARY_API_SECRET", "")
CLOUDINARY_FOLDER = _env("CLOUDINARY_FOLDER", "odb")

# Celery
CELERY_BROKER_URL = _env("CELERY_BROKER_URL", "memory://")
CELERY_RESULT_BACKEND = _env("CELERY_RESULT_BACKEND", "cache+memory://")
CELERY_TASK_ALWAYS_EAGER = _env_bool("CELERY_TASK_ALWAYS_EAGER", True)
CELERY_TIMEZONE = TIME_ZONE

# CMS behaviour
ODB_SITE_NAME = _env("ODB_SITE_NAME", "Optique de Bourbon")
ODB_BACKUP_VERSION = "2.0"
ODB_BACKUP_SCHEMA_VERSION = "django-odb-1"
ODB_MIN_BACKUP_INTERVAL_MINUTES = int(_env("ODB_MIN_BACKUP_INTERVAL_MINUTES", "5"))
ODB_MAX_AUTO_BACKUPS = int(_env("ODB_MAX_AUTO_BACKUPS", "20"))
ODB_MAX_UPLOAD_SIZE = int(_env("ODB_MAX_UPLOAD_SIZE", str(50 * 1024 * 1024)))
ODB_ACTIVE_SESSION_MINUTES = 5

# Referrer hosts that count as direct traffic in analytics
ANALYTICS_INTERNAL_HOSTS = _env_list(
    "ANALYTICS_INTERNAL_HOSTS", "localhost,127.0.0.1,optiquedebourbon.re"
)

LOGIN_URL = "/admin/login/"

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{asctime} {levelname} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "django": {
            "handlers": ["console"],
            "level": _env("DJANGO_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
        "core": {
            "handlers": ["console"],
            "level": _env("ODB_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
        "analytics": {
            "handlers": ["console"],
            "level": _env("ODB_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
        "dashboard": {
            "handlers": ["console"],
            "level": _env("ODB_LOG_LEVEL", "INFO"),
            "propagate": False,
        },
    },
}
