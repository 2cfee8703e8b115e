from __future__ import annotations

from django.apps import AppConfig


class GadsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.gads"
    verbose_name = "Google Ads conversion reporter"

    def ready(self) -> None:
        from . import signals  # noqa: F401
