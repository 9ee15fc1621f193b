"""
Domain-specific Pydantic schemas for the API layer.

These mirror the dicts built in ``perema.ops.responses`` as Pydantic models
so they get JSON serialisation and OpenAPI schema generation.  Request
bodies live next to their routers.
"""

from __future__ import annotations

import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

RecurrenceValue = Literal["once", "daily", "weekly", "monthly", "yearly"]
"""
Reminder recurrence values:

- ``once``: fires a single time, completing closes it
- ``daily`` / ``weekly``: fixed steps
- ``monthly`` / ``yearly``: calendar steps, clamped to the month's last day
"""


# ── Contact-owned records ────────────────────────────────────────────────


class NoteSchema(BaseModel):
    id: int
    contact_id: int
    content: str
    date: datetime.date
    created_at: datetime.datetime | None = None


class ActivitySchema(BaseModel):
    id: int
    contact_id: int
    name: str
    description: str | None = None
    location: str | None = None
    date: datetime.date | None = None


class RelationshipSchema(BaseModel):
    """Directed relationship owned by ``contact_id``.

    UI Hints:
        Link ``name`` to the related contact when ``related_contact_id`` is set.
    """

    id: int
    contact_id: int
    related_contact_id: int | None = None
    name: str
    type: str | None = None
    gender: str | None = None


class ReminderSchema(BaseModel):
    id: int
    contact_id: int
    message: str
    by_mail: bool = False
    remind_at: datetime.datetime
    recurrence: RecurrenceValue = "once"
    reoccur_from_completion: bool = True
    completed: bool = False
    completed_at: datetime.datetime | None = None
    last_sent_at: datetime.datetime | None = None


# ── Contacts ─────────────────────────────────────────────────────────────


class ContactSchema(BaseModel):
    """A contact with every column.

    ``birthday`` uses year ``0001`` when the birth year is unknown.
    """

    id: int
    firstname: str
    lastname: str | None = None
    nickname: str | None = None
    gender: str | None = None
    email: str | None = None
    phone: str | None = None
    birthday: datetime.date | None = None
    address: str | None = None
    how_we_met: str | None = None
    food_preference: str | None = None
    work_information: str | None = None
    contact_information: str | None = None
    circles: list[str] = Field(default_factory=list)
    photo: str | None = Field(default=None, description="Public path of the profile photo")
    created_at: datetime.datetime | None = None
    updated_at: datetime.datetime | None = None


class ContactDetailSchema(ContactSchema):
    """A contact with its notes, activities, relationships and reminders."""

    notes: list[NoteSchema] = Field(default_factory=list)
    activities: list[ActivitySchema] = Field(default_factory=list)
    relationships: list[RelationshipSchema] = Field(default_factory=list)
    reminders: list[ReminderSchema] = Field(default_factory=list)


# ── Jobs ─────────────────────────────────────────────────────────────────


class BirthdayRunSchema(BaseModel):
    """Outcome of one birthday-reminder run.

    UI Hints:
        Show ``failed`` names as a warning list.
    """

    day: datetime.date
    matched: int = Field(description="Contacts with a birthday on ``day``")
    sent: int = Field(description="Mails accepted by the mail backend")
    failed: list[str] = Field(default_factory=list, description="Names whose mail failed")


class DueRemindersSchema(BaseModel):
    checked_at: datetime.datetime
    due: int
    sent: int
    failed: list[int] = Field(default_factory=list, description="Reminder ids whose mail failed")


class SchedulerJobSchema(BaseModel):
    id: str
    trigger: str
    next_run_time: str | None = None
    runs: int = 0
    last_run: str | None = None


class SchedulerStatusSchema(BaseModel):
    """Scheduler health as reported by the backend."""

    enabled: bool
    healthy: bool = False
    backend: str | None = None
    timezone: str | None = None
    scheduled_jobs: int = 0
    jobs: list[SchedulerJobSchema] = Field(default_factory=list)
    mail_backend: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
