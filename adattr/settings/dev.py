# adattr/settings/dev.py
# export DJANGO_SETTINGS_MODULE=adattr.settings.dev

from .base import *  # noqa: F401,F403

DEBUG = True

ALLOWED_HOSTS = ["127.0.0.1", "localhost", "testserver"]

# Dev: run queue processing inline when no broker is around
CELERY_TASK_ALWAYS_EAGER = env_flag("CELERY_TASK_ALWAYS_EAGER", default=True)

LOGGING["loggers"].update({
    "gads.client": {"handlers": ["console"], "level": "DEBUG", "propagate": False},
})
