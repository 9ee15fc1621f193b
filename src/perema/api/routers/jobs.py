"""
Jobs router: scheduler status and manual job runs.

GET    /jobs
GET    /jobs/birthdays
POST   /jobs/birthdays/run
POST   /jobs/reminders/run
"""

from __future__ import annotations

import datetime
from typing import Any

from fastapi import APIRouter, Query, Request

from perema.api.deps import MailerDep, OpContext, SchedulerDep, Settings
from perema.api.middleware.errors import problem_response
from perema.api.schemas.common import SuccessResponse
from perema.api.schemas.domains import BirthdayRunSchema, DueRemindersSchema, SchedulerStatusSchema
from perema.api.utils import _dc, _handle_error

router = APIRouter(prefix="/jobs")


def _mailer_unavailable(request: Request):
    reason = getattr(request.app.state, "mailer_error", None) or "Mail backend is not configured"
    return problem_response(
        status=503,
        title="Mail backend unavailable",
        detail=reason,
        instance=str(request.url.path),
    )


@router.get("", response_model=SuccessResponse[SchedulerStatusSchema])
def scheduler_status(settings: Settings, scheduler: SchedulerDep, mailer: MailerDep):
    """Scheduler state with each job's trigger and next run time."""
    if scheduler is None:
        status = SchedulerStatusSchema(enabled=False, mail_backend=mailer.name if mailer else None)
    else:
        status = SchedulerStatusSchema(
            enabled=settings.scheduler_enabled,
            mail_backend=mailer.name if mailer else None,
            **scheduler.health(),
        )
    return SuccessResponse(data=status)


@router.get("/birthdays", response_model=SuccessResponse[list[dict[str, Any]]])
def list_birthdays(
    ctx: OpContext,
    settings: Settings,
    date: datetime.date | None = Query(None, description="Day to check; defaults to today in the scheduler timezone"),
):
    """Contacts whose birthday falls on *date*, with their age."""
    from perema.ops.birthdays import list_birthdays as _list

    result = _list(ctx, date, timezone=settings.scheduler_timezone)
    if not result.success:
        return _handle_error(result)
    return SuccessResponse(data=result.data or [], elapsed_ms=result.elapsed_ms)


@router.post("/birthdays/run", response_model=SuccessResponse[BirthdayRunSchema])
def run_birthdays(
    ctx: OpContext,
    settings: Settings,
    mailer: MailerDep,
    request: Request,
    date: datetime.date | None = Query(None, description="Run as if today were this date"),
):
    """Run the birthday-reminder job now.

    Example:
        POST /api/v1/jobs/birthdays/run?date=2026-05-04

        Response:
        {"data": {"day": "2026-05-04", "matched": 2, "sent": 2, "failed": []}}
    """
    from perema.ops.birthdays import send_birthday_reminders
    from perema.ops.requests import BirthdayRunRequest

    if mailer is None:
        return _mailer_unavailable(request)
    result = send_birthday_reminders(ctx, mailer, settings, BirthdayRunRequest(day=date))
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(
        data=BirthdayRunSchema(**_dc(result.data)),
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )


@router.post("/reminders/run", response_model=SuccessResponse[DueRemindersSchema])
def run_due_reminders(ctx: OpContext, settings: Settings, mailer: MailerDep, request: Request):
    """Mail every due reminder now."""
    from perema.ops.birthdays import send_due_reminders
    from perema.ops.requests import DueRemindersRequest

    if mailer is None:
        return _mailer_unavailable(request)
    result = send_due_reminders(ctx, mailer, settings, DueRemindersRequest())
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(
        data=DueRemindersSchema(**_dc(result.data)),
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )
