"""Admin configuration for the Google Ads reporter."""

from __future__ import annotations

from django.contrib import admin, messages
from django.db.models import QuerySet
from django.http import HttpRequest
from django.utils import timezone

from . import models
from .queue import DatabaseJobQueue, stale_cutoff
from .registry import get_store
from .stores import CredentialErrorFlag


@admin.register(models.ReportJob)
class ReportJobAdmin(admin.ModelAdmin):
    list_display = ("id", "reporter", "status", "attempts", "run_after", "created_at", "updated_at")
    list_filter = ("status", "reporter", "created_at")
    search_fields = ("reporter", "error_message")
    readonly_fields = ("created_at", "updated_at", "attempts", "payload", "error_message")
    actions = ["reset_jobs"]

    def changelist_view(self, request: HttpRequest, extra_context=None):
        notice = CredentialErrorFlag(get_store()).notice()
        if notice:
            messages.error(request, notice)
        return super().changelist_view(request, extra_context=extra_context)

    @admin.action(description="Reset failed or stuck jobs to pending")
    def reset_jobs(self, request: HttpRequest, queryset: QuerySet[models.ReportJob]) -> None:
        now = timezone.now()
        count = queryset.resettable(stale_cutoff(now)).update(
            status=models.ReportJob.Status.PENDING,
            attempts=0,
            error_message=None,
            run_after=now,
            updated_at=now,
        )
        if count:
            DatabaseJobQueue().schedule_run()
        self.message_user(request, f"Reset {count} report job(s)")


@admin.register(models.GadsOption)
class GadsOptionAdmin(admin.ModelAdmin):
    """Read-only view; settings are changed with ``manage.py gads_settings``."""

    list_display = ("key", "updated_at")
    readonly_fields = ("key", "value", "updated_at")

    def has_add_permission(self, request: HttpRequest) -> bool:
        return False
