import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "adattr.settings.dev")

app = Celery("adattr")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
