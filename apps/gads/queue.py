"""Database backed report queue used by the reporters."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Iterable, Mapping, Protocol

from django.conf import settings
from django.utils import timezone

from apps.gads.models import ReportJob

logger = logging.getLogger("gads.tasks")


def stale_cutoff(now: datetime | None = None) -> datetime:
    seconds = int(getattr(settings, "GADS_QUEUE_STALE_SECONDS", 300))
    return (now or timezone.now()) - timedelta(seconds=seconds)


def release_stale_claims(reporter: str | None = None) -> int:
    """Return jobs stuck in ``processing`` to ``pending`` so they run again."""

    now = timezone.now()
    jobs = ReportJob.objects.stale(stale_cutoff(now))
    if reporter is not None:
        jobs = jobs.for_reporter(reporter)
    released = jobs.update(status=ReportJob.Status.PENDING, run_after=now, updated_at=now)
    if released:
        logger.warning("gads_stale_claims_released count=%s reporter=%s", released, reporter or "*")
    return released


class JobQueue(Protocol):
    def push(self, reporter: str, payloads: Iterable[Mapping[str, Any]]) -> list[ReportJob]:
        ...

    def reset_failed(self, reporter: str) -> int:
        ...

    def schedule_run(self, countdown: int = 0) -> None:
        ...


class DatabaseJobQueue:
    def push(self, reporter: str, payloads: Iterable[Mapping[str, Any]]) -> list[ReportJob]:
        jobs = [ReportJob(reporter=reporter, payload=dict(payload)) for payload in payloads]
        if not jobs:
            return []
        return ReportJob.objects.bulk_create(jobs)

    def reset_failed(self, reporter: str) -> int:
        now = timezone.now()
        return (
            ReportJob.objects.for_reporter(reporter)
            .resettable(stale_cutoff(now))
            .update(
                status=ReportJob.Status.PENDING,
                attempts=0,
                error_message=None,
                run_after=now,
                updated_at=now,
            )
        )

    def schedule_run(self, countdown: int = 0) -> None:
        from apps.gads.tasks import process_queue

        process_queue.apply_async(countdown=countdown)


def record_conversion(
    attributions: Mapping[str, Any],
    click_ids: Mapping[str, Mapping[str, str]],
    campaigns: Mapping[str, Any],
    context: Mapping[str, Any],
    *,
    registry=None,
    queue: JobQueue | None = None,
) -> list[ReportJob]:
    """Queue one conversion event with every registered reporter."""

    if registry is None:
        from apps.gads.registry import build_registry

        registry = build_registry()
    queue = queue or DatabaseJobQueue()

    jobs: list[ReportJob] = []
    for name, reporter in registry.items():
        try:
            payloads = reporter.enqueue(attributions, click_ids, campaigns, context)
        except Exception:
            logger.exception("gads_enqueue_failed reporter=%s", name)
            continue
        jobs.extend(queue.push(name, payloads))

    if jobs:
        logger.info("gads_jobs_enqueued count=%s", len(jobs))
        queue.schedule_run()
    return jobs
