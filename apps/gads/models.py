"""Database models for the Google Ads conversion reporter."""

from __future__ import annotations

from django.db import models
from django.utils import timezone


class GadsOption(models.Model):
    """Named option row; the reporter settings live in a single row."""

    key = models.CharField(max_length=191, unique=True)
    value = models.JSONField(default=dict, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Google Ads option"
        verbose_name_plural = "Google Ads options"

    def __str__(self) -> str:
        return self.key


class ReportJobQuerySet(models.QuerySet):
    def for_reporter(self, reporter: str) -> "ReportJobQuerySet":
        return self.filter(reporter=reporter)

    def pending(self) -> "ReportJobQuerySet":
        return self.filter(status=ReportJob.Status.PENDING)

    def failed(self) -> "ReportJobQuerySet":
        return self.filter(status=ReportJob.Status.FAILED)

    def due(self, now=None) -> "ReportJobQuerySet":
        return self.pending().filter(run_after__lte=now or timezone.now())

    def stale(self, cutoff) -> "ReportJobQuerySet":
        """Claims whose worker died before recording an outcome."""
        return self.filter(status=ReportJob.Status.PROCESSING, updated_at__lt=cutoff)

    def resettable(self, cutoff) -> "ReportJobQuerySet":
        return self.filter(
            models.Q(status=ReportJob.Status.FAILED)
            | models.Q(status=ReportJob.Status.PROCESSING, updated_at__lt=cutoff)
        )


class ReportJob(models.Model):
    """Queued conversion report waiting to be delivered by a reporter."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        PROCESSING = "processing", "Processing"
        DONE = "done", "Done"
        FAILED = "failed", "Failed"

    reporter = models.CharField(max_length=64)
    payload = models.JSONField(default=dict, blank=True)
    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)
    attempts = models.PositiveIntegerField(default=0)
    error_message = models.TextField(blank=True, null=True)
    run_after = models.DateTimeField(default=timezone.now)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ReportJobQuerySet.as_manager()

    class Meta:
        ordering = ("created_at", "id")
        indexes = [
            models.Index(fields=["reporter", "status"], name="gads_job_reporter_status_idx"),
            models.Index(fields=["status", "run_after"], name="gads_job_due_idx"),
        ]
        verbose_name = "Conversion report job"
        verbose_name_plural = "Conversion report jobs"

    def __str__(self) -> str:
        return f"{self.reporter}#{self.pk} ({self.status})"

    def mark_done(self) -> None:
        self.status = self.Status.DONE
        self.error_message = None
        self.save(update_fields=["status", "error_message", "updated_at"])

    def mark_retry(self, message: str, *, run_after) -> None:
        self.status = self.Status.PENDING
        self.error_message = message
        self.run_after = run_after
        self.save(update_fields=["status", "error_message", "run_after", "updated_at"])

    def mark_failed(self, message: str) -> None:
        self.status = self.Status.FAILED
        self.error_message = message
        self.save(update_fields=["status", "error_message", "updated_at"])
