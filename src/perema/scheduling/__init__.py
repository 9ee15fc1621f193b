"""Background scheduling: the APScheduler backend and perema's jobs."""

from perema.scheduling.apscheduler_backend import APSchedulerBackend
from perema.scheduling.jobs import (
    BIRTHDAY_JOB_ID,
    DUE_REMINDERS_JOB_ID,
    register_jobs,
    run_birthday_job,
    run_due_reminders_job,
)
from perema.scheduling.protocol import SchedulerBackend

__all__ = [
    "APSchedulerBackend",
    "SchedulerBackend",
    "BIRTHDAY_JOB_ID",
    "DUE_REMINDERS_JOB_ID",
    "register_jobs",
    "run_birthday_job",
    "run_due_reminders_job",
]
