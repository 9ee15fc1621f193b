"""
Background jobs and their registration.

Two jobs run on the scheduler:

* ``birthday_reminders``: cron, daily at ``birthday_job_time``;
* ``due_reminders``: interval, every ``reminder_poll_minutes``.

Each run opens its own session, calls the operation and logs the outcome.
Failures are logged, never raised into the scheduler thread.
"""

from __future__ import annotations

from collections.abc import Callable

from sqlalchemy.orm import Session

from perema.core.logging import LogContext, get_logger
from perema.core.settings import PeremaSettings
from perema.notifications import Mailer
from perema.ops.birthdays import send_birthday_reminders, send_due_reminders
from perema.ops.context import OperationContext
from perema.ops.requests import BirthdayRunRequest, DueRemindersRequest
from perema.scheduling.protocol import SchedulerBackend

logger = get_logger(__name__)

BIRTHDAY_JOB_ID = "birthday_reminders"
DUE_REMINDERS_JOB_ID = "due_reminders"

SessionFactory = Callable[[], Session]


def run_birthday_job(
    session_factory: SessionFactory,
    mailer: Mailer,
    settings: PeremaSettings,
    request: BirthdayRunRequest | None = None,
) -> None:
    """One scheduled birthday run."""
    with session_factory() as session:
        ctx = OperationContext(session=session, caller="scheduler")
        with LogContext(job_id=BIRTHDAY_JOB_ID, request_id=ctx.request_id):
            try:
                result = send_birthday_reminders(ctx, mailer, settings, request)
            except Exception:
                logger.exception("job_failed")
                return
            if not result.success:
                logger.error("job_failed", code=result.error.code, error=result.error.message)


def run_due_reminders_job(
    session_factory: SessionFactory,
    mailer: Mailer,
    settings: PeremaSettings,
    request: DueRemindersRequest | None = None,
) -> None:
    """One scheduled sweep over due mail reminders."""
    with session_factory() as session:
        ctx = OperationContext(session=session, caller="scheduler")
        with LogContext(job_id=DUE_REMINDERS_JOB_ID, request_id=ctx.request_id):
            try:
                result = send_due_reminders(ctx, mailer, settings, request)
            except Exception:
                logger.exception("job_failed")
                return
            if not result.success:
                logger.error("job_failed", code=result.error.code, error=result.error.message)


def register_jobs(
    backend: SchedulerBackend,
    session_factory: SessionFactory,
    mailer: Mailer,
    settings: PeremaSettings,
) -> list[str]:
    """Register the birthday and due-reminder jobs; return their ids."""
    hour, minute = settings.birthday_job_hour_minute
    backend.add_cron_job(
        lambda: run_birthday_job(session_factory, mailer, settings),
        BIRTHDAY_JOB_ID,
        hour=hour,
        minute=minute,
    )
    backend.add_interval_job(
        lambda: run_due_reminders_job(session_factory, mailer, settings),
        DUE_REMINDERS_JOB_ID,
        minutes=settings.reminder_poll_minutes,
    )
    return [BIRTHDAY_JOB_ID, DUE_REMINDERS_JOB_ID]
