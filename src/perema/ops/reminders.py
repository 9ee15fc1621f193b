"""
Reminder operations.

Reminders fire at ``remind_at`` and repeat per ``recurrence``.  Completing a
``once`` reminder closes it; completing a recurring one keeps it open and
moves ``remind_at`` to the next occurrence:

* ``reoccur_from_completion=True``  → one step after the completion time
  (“call mum two weeks after I last called”);
* ``reoccur_from_completion=False`` → one step after the previous
  ``remind_at`` (“pay rent on the 1st”).

Fixed schedules step from ``anchor_at``, the ``remind_at`` the user last
set, so monthly and yearly occurrences keep its day of month: a reminder on
the 31st lands on 29 February and 30 April and is back on 31 March, and a
yearly 29 February reminder falls on 28 February until the next leap year.
"""

from __future__ import annotations

import calendar
import datetime
from typing import Any

from perema.core.errors import ValidationError
from perema.core.logging import get_logger
from perema.core.orm.base import utcnow
from perema.core.orm.tables import Recurrence, Reminder
from perema.core.repositories import ReminderRepository
from perema.ops._helpers import failed, reject_unknown, require, require_contact, require_text
from perema.ops.context import OperationContext
from perema.ops.requests import CompleteReminderRequest, CreateRecordRequest, UpdateRecordRequest
from perema.ops.responses import reminder_dict
from perema.ops.result import OperationResult, start_timer

logger = get_logger(__name__)

REMINDER_FIELDS: tuple[str, ...] = (
    "message",
    "by_mail",
    "remind_at",
    "recurrence",
    "reoccur_from_completion",
)

_FIXED_STEPS = {
    Recurrence.DAILY: datetime.timedelta(days=1),
    Recurrence.WEEKLY: datetime.timedelta(weeks=1),
}
_MONTH_STEPS = {Recurrence.MONTHLY: 1, Recurrence.YEARLY: 12}


# ------------------------------------------------------------------ #
# Recurrence math
# ------------------------------------------------------------------ #


def add_months(value: datetime.datetime, months: int) -> datetime.datetime:
    """Shift *value* by *months*, clamping the day to the target month."""
    index = value.month - 1 + months
    year, month = value.year + index // 12, index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def next_occurrence(
    anchor: datetime.datetime,
    recurrence: str | Recurrence,
    after: datetime.datetime,
) -> datetime.datetime | None:
    """First ``anchor + k*step`` (k ≥ 1) strictly later than *after*.

    Returns ``None`` for ``once``.
    """
    rec = Recurrence(recurrence)
    if rec is Recurrence.ONCE:
        return None

    if rec in _FIXED_STEPS:
        step = _FIXED_STEPS[rec]
        k = 1
        if after > anchor:
            k = max(1, (after - anchor) // step)
        candidate = anchor + k * step
        while candidate <= after:
            k += 1
            candidate = anchor + k * step
        return candidate

    months = _MONTH_STEPS[rec]
    k = 1
    if after > anchor:
        k = max(1, ((after.year - anchor.year) * 12 + after.month - anchor.month) // months)
    candidate = add_months(anchor, k * months)
    while candidate <= after:
        k += 1
        candidate = add_months(anchor, k * months)
    return candidate


# ------------------------------------------------------------------ #
# Value handling
# ------------------------------------------------------------------ #


def to_naive_utc(value: Any, field: str) -> datetime.datetime:
    """Parse *value* into a naive UTC datetime (how the table stores them)."""
    if isinstance(value, str):
        try:
            value = datetime.datetime.fromisoformat(value)
        except ValueError:
            raise ValidationError(f"Invalid datetime for {field}: {value!r}", field=field) from None
    elif isinstance(value, datetime.date) and not isinstance(value, datetime.datetime):
        value = datetime.datetime.combine(value, datetime.time())
    if not isinstance(value, datetime.datetime):
        raise ValidationError(f"{field} must be a datetime", field=field)
    if value.tzinfo is not None:
        value = value.astimezone(datetime.UTC).replace(tzinfo=None)
    return value


def _clean(values: dict[str, Any], *, creating: bool) -> dict[str, Any]:
    reject_unknown(values, REMINDER_FIELDS, "reminder")
    cleaned = dict(values)
    require_text(cleaned, "message", creating=creating)

    if creating and cleaned.get("remind_at") is None:
        raise ValidationError("remind_at is required", field="remind_at")
    if "remind_at" in cleaned:
        if cleaned["remind_at"] is None:
            raise ValidationError("remind_at cannot be null", field="remind_at")
        cleaned["remind_at"] = to_naive_utc(cleaned["remind_at"], "remind_at")
        cleaned["anchor_at"] = cleaned["remind_at"]

    if "recurrence" in cleaned:
        try:
            cleaned["recurrence"] = Recurrence(cleaned["recurrence"] or Recurrence.ONCE).value
        except ValueError:
            allowed = ", ".join(r.value for r in Recurrence)
            raise ValidationError(
                f"Invalid recurrence {cleaned['recurrence']!r}. Allowed: {allowed}",
                field="recurrence",
            ) from None

    for flag in ("by_mail", "reoccur_from_completion"):
        if flag in cleaned and cleaned[flag] is None:
            cleaned.pop(flag)
    return cleaned


# ------------------------------------------------------------------ #
# CRUD
# ------------------------------------------------------------------ #


def list_reminders(
    ctx: OperationContext, contact_id: int, *, include_completed: bool = True
) -> OperationResult[list[dict[str, Any]]]:
    timer = start_timer()
    try:
        require_contact(ctx, contact_id)
        rows = ReminderRepository(ctx.session).for_contact(
            contact_id, include_completed=include_completed
        )
        return OperationResult.ok([reminder_dict(r) for r in rows], elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "retrieve reminders", timer.elapsed_ms)


def create_reminder(ctx: OperationContext, request: CreateRecordRequest) -> OperationResult[dict[str, Any]]:
    timer = start_timer()
    try:
        require_contact(ctx, request.contact_id)
        values = _clean(request.values, creating=True)
        reminder = ReminderRepository(ctx.session).add(
            Reminder(contact_id=request.contact_id, **values)
        )
        ctx.session.commit()
        logger.info(
            "reminder_created",
            reminder_id=reminder.id,
            contact_id=reminder.contact_id,
            remind_at=reminder.remind_at.isoformat(),
            recurrence=reminder.recurrence,
        )
        return OperationResult.ok(reminder_dict(reminder), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "save reminder", timer.elapsed_ms)


def get_reminder(ctx: OperationContext, reminder_id: int) -> OperationResult[dict[str, Any]]:
    timer = start_timer()
    try:
        reminder = require(ReminderRepository(ctx.session), reminder_id, "Reminder")
        return OperationResult.ok(reminder_dict(reminder), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "get reminder", timer.elapsed_ms)


def update_reminder(ctx: OperationContext, request: UpdateRecordRequest) -> OperationResult[dict[str, Any]]:
    timer = start_timer()
    try:
        repo = ReminderRepository(ctx.session)
        reminder = require(repo, request.record_id, "Reminder")
        repo.apply(reminder, _clean(request.values, creating=False))
        ctx.session.commit()
        return OperationResult.ok(reminder_dict(reminder), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "update reminder", timer.elapsed_ms)


def delete_reminder(ctx: OperationContext, reminder_id: int) -> OperationResult[None]:
    timer = start_timer()
    try:
        repo = ReminderRepository(ctx.session)
        repo.delete(require(repo, reminder_id, "Reminder"))
        ctx.session.commit()
        logger.info("reminder_deleted", reminder_id=reminder_id)
        return OperationResult.ok(None, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "delete reminder", timer.elapsed_ms)


# ------------------------------------------------------------------ #
# Completion / due listing
# ------------------------------------------------------------------ #


def complete_reminder(
    ctx: OperationContext, request: CompleteReminderRequest
) -> OperationResult[dict[str, Any]]:
    """Mark a reminder done; recurring reminders roll forward instead of closing."""
    timer = start_timer()
    try:
        repo = ReminderRepository(ctx.session)
        reminder: Reminder = require(repo, request.reminder_id, "Reminder")
        if reminder.completed:
            raise ValidationError(
                f"Reminder {reminder.id} is already completed", field="completed"
            ).with_context(reminder_id=reminder.id)

        at = to_naive_utc(request.completed_at, "completed_at") if request.completed_at else utcnow()
        reminder.completed_at = at

        if reminder.is_recurring and reminder.reoccur_from_completion:
            reminder.remind_at = next_occurrence(at, reminder.recurrence, at)
            reminder.anchor_at = reminder.remind_at
        elif reminder.is_recurring:
            reminder.remind_at = next_occurrence(
                reminder.schedule_anchor, reminder.recurrence, reminder.remind_at
            )
        else:
            reminder.completed = True

        ctx.session.commit()
        logger.info(
            "reminder_completed",
            reminder_id=reminder.id,
            recurring=reminder.is_recurring,
            next_remind_at=None if reminder.completed else reminder.remind_at.isoformat(),
        )
        return OperationResult.ok(reminder_dict(reminder), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "complete reminder", timer.elapsed_ms)


def list_due_reminders(
    ctx: OperationContext, now: datetime.datetime | None = None
) -> OperationResult[list[dict[str, Any]]]:
    """Open mail reminders due at *now* whose occurrence has not been mailed."""
    timer = start_timer()
    try:
        moment = to_naive_utc(now, "now") if now else utcnow()
        rows = ReminderRepository(ctx.session).due_for_mail(moment)
        return OperationResult.ok([reminder_dict(r) for r in rows], elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "retrieve due reminders", timer.elapsed_ms)
