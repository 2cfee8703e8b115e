"""Diagnostic command for the Google Ads reporter."""

from __future__ import annotations

from collections import Counter

from django.core.management.base import BaseCommand
from django.db.models import Count

from apps.gads.models import ReportJob
from apps.gads.registry import get_diagnostic_log, get_settings, get_store
from apps.gads.reporter import PROVIDER
from apps.gads.stores import CredentialErrorFlag


class Command(BaseCommand):
    help = "Inspect the Google Ads reporter: configuration, credential flag and queued jobs."

    def handle(self, *args, **options):
        settings = get_settings()
        configured = settings.is_configured()
        self.stdout.write(f"Configured: {'yes' if configured else 'no'}")
        if not configured:
            missing = settings.load().missing_required()
            self.stdout.write(f"Missing settings: {', '.join(missing)}")

        log = get_diagnostic_log(settings)
        logging_state = "on" if settings.load().logging_enabled else "off"
        self.stdout.write(f"Diagnostic logging: {logging_state} ({log.relative_path()})")

        flag = CredentialErrorFlag(get_store())
        reason = flag.get()
        if reason:
            self.stdout.write(f"Credential error: {reason}")
            self.stdout.write(flag.notice())

        stats = (
            ReportJob.objects.for_reporter(PROVIDER).values("status").annotate(count=Count("id")).order_by()
        )
        status_counter = Counter({row["status"]: row["count"] for row in stats})
        self.stdout.write("Report jobs:")
        if not status_counter:
            self.stdout.write("- none")
        else:
            for status, count in sorted(status_counter.items()):
                self.stdout.write(f"- {status}: {count}")

        failed = list(
            ReportJob.objects.for_reporter(PROVIDER)
            .failed()
            .order_by("-updated_at")[:5]
            .values("id", "attempts", "error_message")
        )
        if failed:
            self.stdout.write("Recent failures:")
            for job in failed:
                self.stdout.write(f"- #{job['id']} attempts={job['attempts']} err={job['error_message']}")

        if reason or failed:
            raise SystemExit(2)
