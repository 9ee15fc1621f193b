"""APScheduler-based scheduler backend.

Wraps APScheduler 3.x ``BackgroundScheduler``: jobs run on the scheduler's
thread pool inside the API process (or ``perema jobs worker``).
"""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import Any

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from apscheduler.triggers.interval import IntervalTrigger

from perema.core.logging import get_logger
from perema.scheduling.protocol import JobFunc

logger = get_logger(__name__)


class APSchedulerBackend:
    """APScheduler-based scheduler backend.

    Example::

        >>> backend = APSchedulerBackend(timezone="UTC")
        >>> backend.add_cron_job(run_birthdays, "birthday_reminders", hour=8, minute=0)
        >>> backend.start()
        >>> # … later …
        >>> backend.stop()
    """

    name: str = "apscheduler"

    def __init__(self, timezone: str = "UTC", scheduler: BackgroundScheduler | None = None) -> None:
        self._timezone = timezone
        self._scheduler = scheduler or BackgroundScheduler(timezone=timezone)
        self._lock = threading.Lock()
        self._runs: dict[str, int] = {}
        self._last_run: dict[str, datetime] = {}

    @property
    def timezone(self) -> str:
        return self._timezone

    @property
    def running(self) -> bool:
        return bool(getattr(self._scheduler, "running", False))

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def _tracked(self, func: JobFunc, job_id: str) -> JobFunc:
        def _run() -> None:
            with self._lock:
                self._runs[job_id] = self._runs.get(job_id, 0) + 1
                self._last_run[job_id] = datetime.now(UTC)
            try:
                func()
            except Exception:
                logger.exception("scheduled_job_failed", job_id=job_id)

        return _run

    def add_cron_job(self, func: JobFunc, job_id: str, *, hour: int, minute: int) -> None:
        self._scheduler.add_job(
            self._tracked(func, job_id),
            CronTrigger(hour=hour, minute=minute, timezone=self._timezone),
            id=job_id,
            name=job_id,
            replace_existing=True,
            coalesce=True,
            misfire_grace_time=3600,
        )
        logger.info("job_registered", job_id=job_id, trigger="cron", at=f"{hour:02d}:{minute:02d}")

    def add_interval_job(self, func: JobFunc, job_id: str, *, minutes: int) -> None:
        self._scheduler.add_job(
            self._tracked(func, job_id),
            IntervalTrigger(minutes=minutes, timezone=self._timezone),
            id=job_id,
            name=job_id,
            replace_existing=True,
            coalesce=True,
            max_instances=1,
        )
        logger.info("job_registered", job_id=job_id, trigger="interval", minutes=minutes)

    def run_now(self, job_id: str) -> bool:
        """Schedule *job_id* for immediate execution; ``False`` if unknown."""
        job = self._scheduler.get_job(job_id)
        if job is None:
            return False
        job.modify(next_run_time=datetime.now(UTC))
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self.running:
            return
        self._scheduler.start()
        logger.info(
            "scheduler_started",
            backend=self.name,
            timezone=self._timezone,
            jobs=len(self._scheduler.get_jobs()),
        )

    def stop(self) -> None:
        """Stop the scheduler, waiting for running jobs to finish."""
        if self.running:
            self._scheduler.shutdown(wait=True)
            logger.info("scheduler_stopped", backend=self.name)

    def health(self) -> dict[str, Any]:
        jobs = []
        for job in self._scheduler.get_jobs():
            next_run = getattr(job, "next_run_time", None)
            last = self._last_run.get(job.id)
            jobs.append(
                {
                    "id": job.id,
                    "trigger": str(job.trigger),
                    "next_run_time": next_run.isoformat() if next_run else None,
                    "runs": self._runs.get(job.id, 0),
                    "last_run": last.isoformat() if last else None,
                }
            )
        return {
            "healthy": self.running,
            "backend": self.name,
            "timezone": self._timezone,
            "scheduled_jobs": len(jobs),
            "jobs": jobs,
        }
