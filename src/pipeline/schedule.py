"""Daily job table and the polling loop that drives it.

Each job has a fixed hour of day and runs at most once per calendar day
(in the configured timezone), on the first poll at or after that hour.  A failing job is logged and does not stop
the others.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from hackfeed.pipeline.lifecycle import JobContext, LifecycleScheduler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScheduledJob:
    name: str
    hour: int
    run: Callable[[], Any]


class JobScheduler:
    """Decides which daily jobs are due and runs them."""

    def __init__(
        self,
        jobs: list[ScheduledJob],
        context: JobContext,
        *,
        timezone: str = "UTC",
    ) -> None:
        hours = [job.hour for job in jobs]
        if len(set(hours)) != len(hours):
            raise ValueError("scheduled jobs must run at distinct hours")
        self.jobs = list(jobs)
        self.context = context
        self._tz = ZoneInfo(timezone)

    def _local(self, now: datetime) -> datetime:
        return now.astimezone(self._tz)

    def due_jobs(self, now: datetime | None = None) -> list[ScheduledJob]:
        """Jobs whose hour has come today and that have not run today.

        A job whose hour passed while an earlier job was still running is
        picked up on the next poll.
        """
        local = self._local(now or self.context.now())
        return [
            job
            for job in sorted(self.jobs, key=lambda j: j.hour)
            if job.hour <= local.hour and self.context.last_runs.get(job.name) != local.date()
        ]

    def run_pending(self, now: datetime | None = None) -> dict[str, Any]:
        """Run every due job. Returns job name → result (or the raised exception)."""
        local = self._local(now or self.context.now())
        results: dict[str, Any] = {}
        for job in self.due_jobs(local):
            logger.info("Running %s job", job.name)
            # Mark first so a crashing job is not retried every poll this hour.
            self.context.last_runs[job.name] = local.date()
            try:
                results[job.name] = job.run()
            except Exception as exc:
                logger.error("Error in %s job", job.name, exc_info=True)
                results[job.name] = exc
                continue
            logger.info("%s job completed: %s", job.name, results[job.name])
        return results

    def run_forever(
        self,
        poll_seconds: int = 60,
        stop: threading.Event | None = None,
    ) -> None:
        """Poll for due jobs until ``stop`` is set."""
        stop = stop or threading.Event()
        logger.info(
            "Scheduler started: %s",
            ", ".join(f"{j.name}@{j.hour:02d}:00" for j in self.jobs),
        )
        while not stop.is_set():
            self.run_pending()
            stop.wait(poll_seconds)
        logger.info("Scheduler stopped")


def build_daily_schedule(scheduler: LifecycleScheduler) -> JobScheduler:
    """Wire the lifecycle jobs to their configured hours."""
    hours = scheduler.config.schedule.job_hours()
    runners: dict[str, Callable[[], Any]] = {
        "refresh": scheduler.run_daily_refresh,
        "reconcile": scheduler.reconcile_archive,
        "recycle": scheduler.recycle_popular_content,
        "streaks": scheduler.check_user_streaks,
        "subscriptions": scheduler.check_expired_subscriptions,
    }
    jobs = [ScheduledJob(name=name, hour=hours[name], run=run) for name, run in runners.items()]
    return JobScheduler(
        jobs,
        scheduler.context,
        timezone=scheduler.config.schedule.timezone,
    )
