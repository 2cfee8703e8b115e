from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock, patch

from django.test import TestCase, override_settings
from django.utils import timezone

from apps.gads import tasks
from apps.gads.models import ReportJob


@override_settings(GADS_QUEUE_MAX_ATTEMPTS=3, GADS_QUEUE_RETRY_BASE_SECONDS=60)
class ProcessQueueTests(TestCase):
    def setUp(self) -> None:
        self.reporter = MagicMock()
        self.reporter.process.return_value = True
        patcher = patch("apps.gads.tasks.build_registry", return_value={"google_ads": self.reporter})
        patcher.start()
        self.addCleanup(patcher.stop)

    def _job(self, **kwargs) -> ReportJob:
        kwargs.setdefault("reporter", "google_ads")
        kwargs.setdefault("payload", {"gclid": "G1"})
        return ReportJob.objects.create(**kwargs)

    def test_successful_job_is_done(self) -> None:
        job = self._job()

        summary = tasks.process_queue.apply().get()

        self.assertEqual(summary, {"done": 1, "retried": 0, "failed": 0})
        self.reporter.process.assert_called_once_with({"gclid": "G1"})
        job.refresh_from_db()
        self.assertEqual(job.status, ReportJob.Status.DONE)
        self.assertEqual(job.attempts, 1)

    def test_failed_job_is_retried_with_backoff(self) -> None:
        self.reporter.process.return_value = False
        job = self._job()
        before = timezone.now()

        summary = tasks.process_queue.apply().get()

        self.assertEqual(summary["retried"], 1)
        job.refresh_from_db()
        self.assertEqual(job.status, ReportJob.Status.PENDING)
        self.assertEqual(job.attempts, 1)
        self.assertEqual(job.error_message, "Reporter returned failure")
        self.assertGreaterEqual(job.run_after, before + timedelta(seconds=60))

    def test_job_fails_after_max_attempts(self) -> None:
        self.reporter.process.return_value = False
        job = self._job(attempts=2)

        summary = tasks.process_queue.apply().get()

        self.assertEqual(summary["failed"], 1)
        job.refresh_from_db()
        self.assertEqual(job.status, ReportJob.Status.FAILED)
        self.assertEqual(job.attempts, 3)

    def test_crashing_reporter_counts_as_failure(self) -> None:
        self.reporter.process.side_effect = RuntimeError("boom")
        job = self._job()

        with self.assertLogs("gads.tasks", level="ERROR"):
            tasks.process_queue.apply().get()

        job.refresh_from_db()
        self.assertEqual(job.status, ReportJob.Status.PENDING)
        self.assertEqual(job.error_message, "boom")

    def test_unknown_reporter_fails_job(self) -> None:
        job = self._job(reporter="meta")

        tasks.process_queue.apply().get()

        job.refresh_from_db()
        self.assertEqual(job.status, ReportJob.Status.FAILED)
        self.assertEqual(job.error_message, "Unknown reporter: meta")

    def test_only_due_pending_jobs_run(self) -> None:
        self._job(run_after=timezone.now() + timedelta(hours=1))
        self._job(status=ReportJob.Status.FAILED)
        self._job(status=ReportJob.Status.DONE)

        summary = tasks.process_queue.apply().get()

        self.assertEqual(summary, {"done": 0, "retried": 0, "failed": 0})
        self.reporter.process.assert_not_called()

    @override_settings(GADS_QUEUE_STALE_SECONDS=300)
    def test_stuck_claim_is_released_and_processed(self) -> None:
        stuck = self._job(status=ReportJob.Status.PROCESSING, attempts=1)
        ReportJob.objects.filter(pk=stuck.pk).update(updated_at=timezone.now() - timedelta(minutes=10))
        running = self._job(status=ReportJob.Status.PROCESSING, attempts=1)

        with self.assertLogs("gads.tasks", level="WARNING"):
            summary = tasks.process_queue.apply().get()

        self.assertEqual(summary["done"], 1)
        stuck.refresh_from_db()
        self.assertEqual(stuck.status, ReportJob.Status.DONE)
        self.assertEqual(stuck.attempts, 2)
        running.refresh_from_db()
        self.assertEqual(running.status, ReportJob.Status.PROCESSING)

    def test_batch_size_limits_work(self) -> None:
        for _ in range(3):
            self._job()

        summary = tasks.process_queue.apply(kwargs={"batch_size": 2}).get()

        self.assertEqual(summary["done"], 2)
        self.assertEqual(ReportJob.objects.pending().count(), 1)


class RetryDelayTests(TestCase):
    @override_settings(GADS_QUEUE_RETRY_BASE_SECONDS=60)
    def test_exponential_backoff(self) -> None:
        self.assertEqual(tasks.retry_delay(1), timedelta(seconds=60))
        self.assertEqual(tasks.retry_delay(2), timedelta(seconds=120))
        self.assertEqual(tasks.retry_delay(4), timedelta(seconds=480))
