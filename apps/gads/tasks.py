"""Celery tasks for the Google Ads reporter."""

from __future__ import annotations

import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.db.models import F
from django.utils import timezone

from apps.gads.models import ReportJob
from apps.gads.queue import release_stale_claims
from apps.gads.registry import build_registry

logger = logging.getLogger("gads.tasks")


def retry_delay(attempts: int) -> timedelta:
    base = max(1, int(getattr(settings, "GADS_QUEUE_RETRY_BASE_SECONDS", 60)))
    return timedelta(seconds=base * (2 ** max(0, attempts - 1)))


def _claim(job_id: int) -> ReportJob | None:
    claimed = ReportJob.objects.filter(pk=job_id, status=ReportJob.Status.PENDING).update(
        status=ReportJob.Status.PROCESSING,
        attempts=F("attempts") + 1,
        updated_at=timezone.now(),
    )
    if not claimed:
        return None
    return ReportJob.objects.get(pk=job_id)


@shared_task(queue="ads")
def process_queue(batch_size: int | None = None) -> dict[str, int]:
    """Run every due job through its reporter's ``process`` callback."""

    limit = batch_size or int(getattr(settings, "GADS_QUEUE_BATCH_SIZE", 50))
    max_attempts = int(getattr(settings, "GADS_QUEUE_MAX_ATTEMPTS", 5))
    registry = build_registry()
    summary = {"done": 0, "retried": 0, "failed": 0}

    release_stale_claims()

    job_ids = list(ReportJob.objects.due().order_by("run_after", "id").values_list("id", flat=True)[:limit])
    for job_id in job_ids:
        job = _claim(job_id)
        if job is None:
            continue

        reporter = registry.get(job.reporter)
        if reporter is None:
            logger.error("gads_job_unknown_reporter id=%s reporter=%s", job.id, job.reporter)
            job.mark_failed(f"Unknown reporter: {job.reporter}")
            summary["failed"] += 1
            continue

        error = "Reporter returned failure"
        try:
            ok = bool(reporter.process(job.payload))
        except Exception as exc:
            logger.exception("gads_job_crashed id=%s reporter=%s", job.id, job.reporter)
            ok = False
            error = str(exc) or exc.__class__.__name__

        if ok:
            job.mark_done()
            summary["done"] += 1
        elif job.attempts >= max_attempts:
            job.mark_failed(error)
            logger.warning("gads_job_failed id=%s attempts=%s", job.id, job.attempts)
            summary["failed"] += 1
        else:
            job.mark_retry(error, run_after=timezone.now() + retry_delay(job.attempts))
            summary["retried"] += 1

    if job_ids:
        logger.info("gads_queue_processed %s", " ".join(f"{key}={value}" for key, value in summary.items()))
    return summary
