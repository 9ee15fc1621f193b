"""
Response payloads for operations.

ORM rows never leave the ops layer: every operation hands back plain dicts
built here (or the job-result dataclasses below), which the API wraps in
pydantic envelopes and the CLI prints.
"""

from __future__ import annotations

import datetime
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from perema.core.orm.tables import Activity, Contact, Note, Relationship, Reminder

# Columns a caller may request through ``fields``; ``id`` is always returned.
CONTACT_FIELDS: tuple[str, ...] = (
    "firstname",
    "lastname",
    "nickname",
    "gender",
    "email",
    "phone",
    "birthday",
    "address",
    "how_we_met",
    "food_preference",
    "work_information",
    "contact_information",
    "circles",
)


def note_dict(note: Note) -> dict[str, Any]:
    return {
        "id": note.id,
        "contact_id": note.contact_id,
        "content": note.content,
        "date": note.date,
        "created_at": note.created_at,
    }


def activity_dict(activity: Activity) -> dict[str, Any]:
    return {
        "id": activity.id,
        "contact_id": activity.contact_id,
        "name": activity.name,
        "description": activity.description,
        "location": activity.location,
        "date": activity.date,
    }


def relationship_dict(rel: Relationship) -> dict[str, Any]:
    return {
        "id": rel.id,
        "contact_id": rel.contact_id,
        "related_contact_id": rel.related_contact_id,
        "name": rel.name,
        "type": rel.type,
        "gender": rel.gender,
    }


def reminder_dict(reminder: Reminder) -> dict[str, Any]:
    return {
        "id": reminder.id,
        "contact_id": reminder.contact_id,
        "message": reminder.message,
        "by_mail": reminder.by_mail,
        "remind_at": reminder.remind_at,
        "recurrence": reminder.recurrence,
        "reoccur_from_completion": reminder.reoccur_from_completion,
        "completed": reminder.completed,
        "completed_at": reminder.completed_at,
        "last_sent_at": reminder.last_sent_at,
    }


_RELATION_SERIALIZERS = {
    "notes": note_dict,
    "activities": activity_dict,
    "relationships": relationship_dict,
    "reminders": reminder_dict,
}


def contact_dict(
    contact: Contact,
    fields: Sequence[str] | None = None,
    includes: Iterable[str] = (),
) -> dict[str, Any]:
    """Project a contact onto ``id`` + *fields* (all when ``None``) + *includes*."""
    selected = CONTACT_FIELDS if fields is None else fields
    data: dict[str, Any] = {"id": contact.id}
    for name in selected:
        value = getattr(contact, name)
        data[name] = list(value or []) if name == "circles" else value
    if fields is None:
        data["photo"] = contact.photo
        data["created_at"] = contact.created_at
        data["updated_at"] = contact.updated_at
    for rel in includes:
        serializer = _RELATION_SERIALIZERS[rel]
        data[rel] = [serializer(item) for item in getattr(contact, rel)]
    return data


# ------------------------------------------------------------------ #
# Job results
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class BirthdayRunResult:
    """Outcome of one birthday-reminder run."""

    day: datetime.date
    matched: int
    sent: int
    failed: list[str] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class DueRemindersResult:
    """Outcome of one due-reminder sweep."""

    checked_at: datetime.datetime
    due: int
    sent: int
    failed: list[int] = field(default_factory=list)
