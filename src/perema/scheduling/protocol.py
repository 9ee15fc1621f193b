"""Scheduler backend protocol.

A backend only controls *when* jobs run.  *What* runs is a plain
zero-argument callable registered by :mod:`perema.scheduling.jobs`; the
callable owns its session and error handling.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, runtime_checkable

JobFunc = Callable[[], Any]


@runtime_checkable
class SchedulerBackend(Protocol):
    """Protocol for scheduler timing backends.

    Implementations:
        - APSchedulerBackend: APScheduler 3.x ``BackgroundScheduler``
    """

    name: str

    def add_cron_job(self, func: JobFunc, job_id: str, *, hour: int, minute: int) -> None:
        """Run *func* every day at ``hour:minute`` in the backend's timezone."""
        ...

    def add_interval_job(self, func: JobFunc, job_id: str, *, minutes: int) -> None:
        """Run *func* every *minutes* minutes."""
        ...

    def start(self) -> None: ...

    def stop(self) -> None:
        """Stop gracefully, waiting for running jobs."""
        ...

    def health(self) -> dict[str, Any]:
        """Return backend health status.

        Returns:
            dict with at least:
                - healthy: bool — whether the backend is running
                - backend: str — backend name
                - jobs: list of ``{id, trigger, next_run_time, runs, last_run}``
        """
        ...
