"""
Reminder router.

GET    /contacts/{contact_id}/reminders
POST   /contacts/{contact_id}/reminders
GET    /reminders/due
GET    /reminders/{reminder_id}
PUT    /reminders/{reminder_id}
DELETE /reminders/{reminder_id}
POST   /reminders/{reminder_id}/complete
"""

from __future__ import annotations

import datetime

from fastapi import APIRouter, Path, Query, Request, Response
from pydantic import BaseModel, Field

from perema.api.deps import OpContext
from perema.api.schemas.common import SuccessResponse
from perema.api.schemas.domains import RecurrenceValue, ReminderSchema
from perema.api.utils import _handle_error

router = APIRouter()


class ReminderBody(BaseModel):
    by_mail: bool | None = Field(default=None, description="Also send the reminder by mail")
    recurrence: RecurrenceValue | None = None
    reoccur_from_completion: bool | None = Field(
        default=None,
        description="Next occurrence counts from completion (true) or from the previous due time",
    )


class CreateReminderBody(ReminderBody):
    message: str = Field(min_length=1)
    remind_at: datetime.datetime


class UpdateReminderBody(ReminderBody):
    message: str | None = None
    remind_at: datetime.datetime | None = None


class CompleteReminderBody(BaseModel):
    completed_at: datetime.datetime | None = Field(default=None, description="Defaults to now (UTC)")


@router.get("/contacts/{contact_id}/reminders", response_model=SuccessResponse[list[ReminderSchema]])
def list_reminders(
    ctx: OpContext,
    request: Request,
    contact_id: int = Path(..., description="Contact ID"),
    include_completed: bool = Query(True, description="Include completed one-off reminders"),
):
    from perema.ops.reminders import list_reminders as _list

    result = _list(ctx, contact_id, include_completed=include_completed)
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(
        data=[ReminderSchema(**r) for r in result.data], elapsed_ms=result.elapsed_ms
    )


@router.post(
    "/contacts/{contact_id}/reminders",
    response_model=SuccessResponse[ReminderSchema],
    status_code=201,
)
def create_reminder(
    ctx: OpContext,
    body: CreateReminderBody,
    request: Request,
    contact_id: int = Path(..., description="Contact ID"),
):
    """Create a reminder.  Timezone-aware ``remind_at`` values are stored as UTC."""
    from perema.ops.reminders import create_reminder as _create
    from perema.ops.requests import CreateRecordRequest

    values = body.model_dump(exclude_unset=True)
    result = _create(ctx, CreateRecordRequest(contact_id=contact_id, values=values))
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=ReminderSchema(**result.data), elapsed_ms=result.elapsed_ms)


@router.get("/reminders/due", response_model=SuccessResponse[list[ReminderSchema]])
def list_due_reminders(
    ctx: OpContext,
    now: datetime.datetime | None = Query(None, description="Reference time; defaults to now (UTC)"),
):
    """Open mail reminders that are due and not yet mailed for this occurrence."""
    from perema.ops.reminders import list_due_reminders as _due

    result = _due(ctx, now)
    if not result.success:
        return _handle_error(result)
    return SuccessResponse(
        data=[ReminderSchema(**r) for r in result.data], elapsed_ms=result.elapsed_ms
    )


@router.get("/reminders/{reminder_id}", response_model=SuccessResponse[ReminderSchema])
def get_reminder(ctx: OpContext, request: Request, reminder_id: int = Path(..., description="Reminder ID")):
    from perema.ops.reminders import get_reminder as _get

    result = _get(ctx, reminder_id)
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=ReminderSchema(**result.data), elapsed_ms=result.elapsed_ms)


@router.put("/reminders/{reminder_id}", response_model=SuccessResponse[ReminderSchema])
def update_reminder(
    ctx: OpContext,
    body: UpdateReminderBody,
    request: Request,
    reminder_id: int = Path(..., description="Reminder ID"),
):
    from perema.ops.reminders import update_reminder as _update
    from perema.ops.requests import UpdateRecordRequest

    values = body.model_dump(exclude_unset=True)
    result = _update(ctx, UpdateRecordRequest(record_id=reminder_id, values=values))
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=ReminderSchema(**result.data), elapsed_ms=result.elapsed_ms)


@router.delete("/reminders/{reminder_id}", status_code=204)
def delete_reminder(ctx: OpContext, request: Request, reminder_id: int = Path(..., description="Reminder ID")):
    from perema.ops.reminders import delete_reminder as _delete

    result = _delete(ctx, reminder_id)
    if not result.success:
        return _handle_error(result, request)
    return Response(status_code=204)


@router.post("/reminders/{reminder_id}/complete", response_model=SuccessResponse[ReminderSchema])
def complete_reminder(
    ctx: OpContext,
    request: Request,
    body: CompleteReminderBody | None = None,
    reminder_id: int = Path(..., description="Reminder ID"),
):
    """Mark a reminder as done.

    One-off reminders close; recurring reminders stay open with
    ``remind_at`` moved to the next occurrence.

    Example:
        POST /api/v1/reminders/7/complete
        {"completed_at": "2026-03-01T10:00:00Z"}
    """
    from perema.ops.reminders import complete_reminder as _complete
    from perema.ops.requests import CompleteReminderRequest

    completed_at = body.completed_at if body else None
    result = _complete(ctx, CompleteReminderRequest(reminder_id=reminder_id, completed_at=completed_at))
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=ReminderSchema(**result.data), elapsed_ms=result.elapsed_ms)
