# adattr/settings/base.py
from __future__ import annotations

import os
from pathlib import Path

from celery.schedules import crontab
from dotenv import find_dotenv, load_dotenv

_dotenv_path = find_dotenv(filename=os.getenv("DOTENV_FILE", ".env"), usecwd=True)
if _dotenv_path:
    load_dotenv(_dotenv_path, override=False)

BASE_DIR = Path(__file__).resolve().parents[2]

_TRUE_VALUES = {"1", "true", "yes", "y", "on"}


def env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return bool(default)
    return str(value).strip().lower() in _TRUE_VALUES


def _int_env(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except (TypeError, ValueError):
        return int(default)


# --------------------------------------------------------------------------------------
# Keys & debug
# --------------------------------------------------------------------------------------
SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME_DEV_ONLY")
DEBUG = False

ALLOWED_HOSTS: list[str] = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "").split(",") if h.strip()]

# --------------------------------------------------------------------------------------
# Apps
# --------------------------------------------------------------------------------------
DJANGO_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
]

LOCAL_APPS = [
    "apps.gads.apps.GadsConfig",
]

INSTALLED_APPS = DJANGO_APPS + LOCAL_APPS

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "adattr.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "adattr.wsgi.application"

# --------------------------------------------------------------------------------------
# Database (configurable via env)
# --------------------------------------------------------------------------------------
DB_ENGINE = os.getenv("DB_ENGINE", "sqlite3")
if DB_ENGINE == "sqlite3":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": DB_ENGINE,
            "NAME": os.getenv("DB_NAME", "adattr_db"),
            "USER": os.getenv("DB_USER", "adattr"),
            "PASSWORD": os.getenv("DB_PASSWORD", ""),
            "HOST": os.getenv("DB_HOST", "127.0.0.1"),
            "PORT": os.getenv("DB_PORT", "5432"),
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# --------------------------------------------------------------------------------------
# I18N / TZ
# --------------------------------------------------------------------------------------
LANGUAGE_CODE = "en"
TIME_ZONE = os.getenv("TIME_ZONE", "Europe/Stockholm")
USE_I18N = True
USE_TZ = True

# --------------------------------------------------------------------------------------
# Static & Media
# --------------------------------------------------------------------------------------
STATIC_URL = "/static/"
STATIC_ROOT = BASE_DIR / "staticfiles"

MEDIA_URL = "/media/"
MEDIA_ROOT = Path(os.getenv("MEDIA_ROOT", str(BASE_DIR / "media")))

# --------------------------------------------------------------------------------------
# Logging
# --------------------------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "simple": {"format": "[{levelname}] {name}: {message}", "style": "{"},
        "verbose": {"format": "{asctime} [{levelname}] {name} {module}:{lineno} — {message}", "style": "{"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "verbose"},
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        "django.request": {"handlers": ["console"], "level": "WARNING", "propagate": True},
    },
}

LOGGING["loggers"].update({
    "gads.reporter": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    "gads.client": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    "gads.tasks": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    "gads.signals": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
})

# --------------------------------------------------------------------------------------
# Redis / Celery
# --------------------------------------------------------------------------------------
REDIS_URL = os.getenv("REDIS_URL", "redis://127.0.0.1:6379/3")

CACHES = {
    "default": {
        "BACKEND": "django_redis.cache.RedisCache",
        "LOCATION": REDIS_URL,
        "OPTIONS": {
            "CLIENT_CLASS": "django_redis.client.DefaultClient",
            "IGNORE_EXCEPTIONS": True,
        },
        "KEY_PREFIX": "adattr",
        "TIMEOUT": 300,
    }
}

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", REDIS_URL)
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", REDIS_URL)
CELERY_TASK_ALWAYS_EAGER = False
CELERY_TASK_TIME_LIMIT = 300
CELERY_TASK_SOFT_TIME_LIMIT = 270
CELERY_TASK_ACKS_LATE = True
CELERY_TASK_DEFAULT_QUEUE = "default"
CELERY_TASK_QUEUES = {
    "default": {},
    "ads": {},
}
CELERY_WORKER_MAX_TASKS_PER_CHILD = 1000
CELERY_WORKER_CONCURRENCY = _int_env("CELERY_WORKER_CONCURRENCY", 4)
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TASK_ROUTES = {
    "apps.gads.tasks.process_queue": {"queue": "ads"},
}
CELERY_BEAT_SCHEDULE = {
    "gads.process_queue": {
        "task": "apps.gads.tasks.process_queue",
        "schedule": crontab(minute="*/5"),
        "options": {"queue": "ads"},
    },
}

# --------------------------------------------------------------------------------------
# Google Ads reporter
# --------------------------------------------------------------------------------------
GADS_SETTINGS_OPTION_KEY = "gads_settings"
GADS_TOKEN_URL = os.getenv("GADS_TOKEN_URL", "https://oauth2.googleapis.com/token")
GADS_API_BASE_URL = os.getenv("GADS_API_BASE_URL", "https://googleads.googleapis.com/v23")
GADS_HTTP_TIMEOUT = _int_env("GADS_HTTP_TIMEOUT", 30)
GADS_LOG_ROOT = Path(os.getenv("GADS_LOG_ROOT", str(MEDIA_ROOT))).expanduser()
GADS_STORE_CACHE_ALIAS = os.getenv("GADS_STORE_CACHE_ALIAS", "default")
GADS_QUEUE_MAX_ATTEMPTS = _int_env("GADS_QUEUE_MAX_ATTEMPTS", 5)
GADS_QUEUE_BATCH_SIZE = _int_env("GADS_QUEUE_BATCH_SIZE", 50)
GADS_QUEUE_RETRY_BASE_SECONDS = _int_env("GADS_QUEUE_RETRY_BASE_SECONDS", 60)
# Claims older than the hard task limit belong to a killed worker.
GADS_QUEUE_STALE_SECONDS = _int_env("GADS_QUEUE_STALE_SECONDS", CELERY_TASK_TIME_LIMIT)
