"""
Scheduled mail jobs.

``send_birthday_reminders`` is the daily job: find every contact whose
birthday is today and mail one templated reminder per contact to the
configured recipient.  ``send_due_reminders`` is the polling job that mails
user-defined reminders flagged ``by_mail``.

Both jobs keep going when a single mail fails; failures are logged and
reported in the returned result.

Birthday template data::

    birthday_person_nick  nickname, or first name when there is none
    birthday_person       "firstname lastname"
    birthday_age          "34 years old" | "unknown age"
"""

from __future__ import annotations

import calendar
import datetime
from typing import Any
from zoneinfo import ZoneInfo

from perema.core.errors import MissingConfigError
from perema.core.logging import get_logger
from perema.core.orm.base import utcnow
from perema.core.orm.tables import Contact
from perema.core.repositories import ContactRepository, ReminderRepository
from perema.core.settings import PeremaSettings
from perema.notifications import Mailer, MailMessage
from perema.ops._helpers import failed
from perema.ops.context import OperationContext
from perema.ops.reminders import next_occurrence, to_naive_utc
from perema.ops.requests import BirthdayRunRequest, DueRemindersRequest
from perema.ops.responses import BirthdayRunResult, DueRemindersResult, contact_dict
from perema.ops.result import OperationResult, start_timer

logger = get_logger(__name__)

UNKNOWN_AGE = "unknown age"


def _require_recipient(settings: PeremaSettings) -> None:
    if not settings.mail_to:
        raise MissingConfigError(
            "SENDGRID_TO_EMAIL",
            "No notification recipient configured (SENDGRID_TO_EMAIL or PEREMA_MAIL_TO)",
        )


def local_today(timezone: str) -> datetime.date:
    """Today's date in *timezone* (the zone the daily cron trigger fires in)."""
    return utcnow().replace(tzinfo=datetime.UTC).astimezone(ZoneInfo(timezone)).date()


def birthday_days(today: datetime.date) -> list[int]:
    """Days of *today*'s month whose birthdays are celebrated today.

    On 28 February of a non-leap year this includes the 29th.
    """
    days = [today.day]
    if today.month == 2 and today.day == 28 and not calendar.isleap(today.year):
        days.append(29)
    return days


def find_birthdays(ctx: OperationContext, today: datetime.date) -> list[Contact]:
    """Contacts whose birthday (month and day) is *today*."""
    return ContactRepository(ctx.session).born_on(today.month, birthday_days(today))


def birthday_age(contact: Contact, today: datetime.date) -> str:
    if not contact.birth_year_known:
        return UNKNOWN_AGE
    return f"{today.year - contact.birthday.year} years old"


def birthday_template_data(contact: Contact, today: datetime.date) -> dict[str, str]:
    """Dynamic template data for one birthday mail."""
    return {
        "birthday_person_nick": contact.nickname or contact.firstname,
        "birthday_person": f"{contact.firstname} {contact.lastname or ''}".strip(),
        "birthday_age": birthday_age(contact, today),
    }


def list_birthdays(
    ctx: OperationContext, today: datetime.date | None = None, *, timezone: str = "UTC"
) -> OperationResult[list[dict[str, Any]]]:
    """Contacts with a birthday on *today* (defaults to the current date in *timezone*)."""
    timer = start_timer()
    try:
        day = today or local_today(timezone)
        rows = find_birthdays(ctx, day)
        fields = ("firstname", "lastname", "nickname", "birthday")
        items = [{**contact_dict(c, fields), "age": birthday_age(c, day)} for c in rows]
        return OperationResult.ok(items, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "retrieve birthdays", timer.elapsed_ms)


def send_birthday_reminders(
    ctx: OperationContext,
    mailer: Mailer,
    settings: PeremaSettings,
    request: BirthdayRunRequest | None = None,
) -> OperationResult[BirthdayRunResult]:
    """Mail one reminder per contact whose birthday is today."""
    timer = start_timer()
    try:
        day = (request.day if request else None) or local_today(settings.scheduler_timezone)
        _require_recipient(settings)
        contacts = find_birthdays(ctx, day)
        logger.info("birthday_run_started", day=day.isoformat(), matched=len(contacts))

        sent = 0
        failed_names: list[str] = []
        for contact in contacts:
            data = birthday_template_data(contact, day)
            message = MailMessage(
                recipient=settings.mail_to,
                subject=f"Birthday: {data['birthday_person']}",
                text=f"It's {data['birthday_person']}'s birthday today ({data['birthday_age']}).",
                template_id=settings.sendgrid_birthday_template_id or None,
                template_data=data,
                tags={"job": "birthday_reminders", "contact_id": contact.id},
            )
            result = mailer.send(message)
            if result.success:
                sent += 1
            else:
                failed_names.append(data["birthday_person"])

        outcome = BirthdayRunResult(day=day, matched=len(contacts), sent=sent, failed=failed_names)
        logger.info(
            "birthday_run_finished",
            day=day.isoformat(),
            matched=outcome.matched,
            sent=outcome.sent,
            failed=len(outcome.failed),
        )
        warnings = [f"Failed to send birthday mail for {name}" for name in failed_names]
        return OperationResult.ok(outcome, warnings=warnings, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "run birthday reminders", timer.elapsed_ms)


def send_due_reminders(
    ctx: OperationContext,
    mailer: Mailer,
    settings: PeremaSettings,
    request: DueRemindersRequest | None = None,
) -> OperationResult[DueRemindersResult]:
    """Mail every due ``by_mail`` reminder once per occurrence."""
    timer = start_timer()
    try:
        now = to_naive_utc(request.now, "now") if request and request.now else utcnow()
        _require_recipient(settings)
        due = ReminderRepository(ctx.session).due_for_mail(now)
        sent = 0
        failed_ids: list[int] = []
        for reminder in due:
            contact = reminder.contact
            message = MailMessage(
                recipient=settings.mail_to,
                subject=f"Reminder: {contact.full_name}",
                text=reminder.message,
                template_id=settings.sendgrid_reminder_template_id or None,
                template_data={
                    "reminder_message": reminder.message,
                    "reminder_person": contact.full_name,
                    "reminder_person_nick": contact.nickname or contact.firstname,
                    "remind_at": reminder.remind_at.isoformat(timespec="minutes"),
                },
                tags={"job": "due_reminders", "reminder_id": reminder.id},
            )
            result = mailer.send(message)
            if not result.success:
                failed_ids.append(reminder.id)
                continue

            sent += 1
            reminder.last_sent_at = now
            if reminder.is_recurring and not reminder.reoccur_from_completion:
                reminder.remind_at = next_occurrence(reminder.schedule_anchor, reminder.recurrence, now)
            # one commit per reminder: a later failure must not re-send this one
            ctx.session.commit()

        outcome = DueRemindersResult(checked_at=now, due=len(due), sent=sent, failed=failed_ids)
        if due:
            logger.info("due_reminders_sent", due=outcome.due, sent=sent, failed=len(failed_ids))
        warnings = [f"Failed to send reminder {rid}" for rid in failed_ids]
        return OperationResult.ok(outcome, warnings=warnings, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "send due reminders", timer.elapsed_ms)
