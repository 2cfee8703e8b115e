from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

from django.contrib import admin
from django.test import RequestFactory, TestCase, override_settings
from django.utils import timezone

from apps.gads.admin import GadsOptionAdmin, ReportJobAdmin
from apps.gads.models import GadsOption, ReportJob


@override_settings(GADS_QUEUE_STALE_SECONDS=300)
class ReportJobAdminTests(TestCase):
    def setUp(self) -> None:
        self.model_admin = ReportJobAdmin(ReportJob, admin.site)
        self.request = RequestFactory().post("/admin/gads/reportjob/")

    def _job(self, status: str, **kwargs) -> ReportJob:
        return ReportJob.objects.create(reporter="google_ads", status=status, attempts=3, **kwargs)

    @patch("apps.gads.admin.DatabaseJobQueue.schedule_run")
    def test_reset_only_touches_failed_and_stuck_jobs(self, mock_schedule) -> None:
        failed = self._job(ReportJob.Status.FAILED, error_message="invalid_grant")
        done = self._job(ReportJob.Status.DONE)
        stuck = self._job(ReportJob.Status.PROCESSING)
        ReportJob.objects.filter(pk=stuck.pk).update(updated_at=timezone.now() - timedelta(minutes=10))
        running = self._job(ReportJob.Status.PROCESSING)

        with patch.object(self.model_admin, "message_user") as mock_message:
            self.model_admin.reset_jobs(self.request, ReportJob.objects.all())

        mock_message.assert_called_once_with(self.request, "Reset 2 report job(s)")
        mock_schedule.assert_called_once_with()
        failed.refresh_from_db()
        self.assertEqual(failed.status, ReportJob.Status.PENDING)
        self.assertEqual(failed.attempts, 0)
        self.assertIsNone(failed.error_message)
        stuck.refresh_from_db()
        self.assertEqual(stuck.status, ReportJob.Status.PENDING)
        done.refresh_from_db()
        self.assertEqual(done.status, ReportJob.Status.DONE)
        self.assertEqual(done.attempts, 3)
        running.refresh_from_db()
        self.assertEqual(running.status, ReportJob.Status.PROCESSING)

    @patch("apps.gads.admin.DatabaseJobQueue.schedule_run")
    def test_nothing_to_reset_does_not_schedule(self, mock_schedule) -> None:
        self._job(ReportJob.Status.DONE)

        with patch.object(self.model_admin, "message_user"):
            self.model_admin.reset_jobs(self.request, ReportJob.objects.all())

        mock_schedule.assert_not_called()


class GadsOptionAdminTests(TestCase):
    def test_settings_row_is_read_only(self) -> None:
        model_admin = GadsOptionAdmin(GadsOption, admin.site)
        request = RequestFactory().get("/admin/gads/gadsoption/")
        option = GadsOption.objects.create(key="gads_settings", value={"customer_id": "1"})

        self.assertIn("value", model_admin.get_readonly_fields(request, option))
        self.assertFalse(model_admin.has_add_permission(request))
