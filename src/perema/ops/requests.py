"""
Typed request objects for operations.

Each dataclass is the *input* contract for one operation function.  Requests
carry transport-agnostic data — no raw HTTP bodies, no Typer params.  Write
payloads travel as ``values`` dicts holding only the fields the caller set,
so an update touches exactly those columns.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass, field
from typing import Any

# ------------------------------------------------------------------ #
# Contacts
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class ListContactsRequest:
    """Request for :func:`perema.ops.contacts.list_contacts`.

    Attributes:
        page: 1-based page number; values below 1 become 1.
        limit: Page size; values outside ``1..100`` become 25.
        fields: Comma-separated column names; ``None`` selects every column.
        includes: Comma-separated relation names to embed.
        search: Substring matched against first, last and nick name.
        circle: Exact circle name the contact must carry.
    """

    page: int = 1
    limit: int = 25
    fields: str | None = None
    includes: str | None = None
    search: str | None = None
    circle: str | None = None


@dataclass(frozen=True, slots=True)
class CreateContactRequest:
    values: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UpdateContactRequest:
    contact_id: int
    values: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UploadPhotoRequest:
    """Request for :func:`perema.ops.contacts.set_contact_photo`."""

    contact_id: int
    filename: str
    content_type: str | None
    data: bytes


# ------------------------------------------------------------------ #
# Contact-owned records (notes, activities, relationships, reminders)
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class CreateRecordRequest:
    contact_id: int
    values: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UpdateRecordRequest:
    record_id: int
    values: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class CompleteReminderRequest:
    """Request for :func:`perema.ops.reminders.complete_reminder`.

    ``completed_at`` defaults to now (UTC) when omitted.
    """

    reminder_id: int
    completed_at: datetime.datetime | None = None


# ------------------------------------------------------------------ #
# Jobs
# ------------------------------------------------------------------ #


@dataclass(frozen=True, slots=True)
class BirthdayRunRequest:
    """Request for :func:`perema.ops.birthdays.send_birthday_reminders`."""

    day: datetime.date | None = None


@dataclass(frozen=True, slots=True)
class DueRemindersRequest:
    """Request for :func:`perema.ops.birthdays.send_due_reminders`."""

    now: datetime.datetime | None = None
