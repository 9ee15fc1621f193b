"""SQLAlchemy 2.0 ORM table definitions for perema.

Every table hangs off ``contacts``:

* ``notes``, ``activities``, ``reminders`` -- owned by one contact,
  deleted with it (ORM cascade + ``ON DELETE CASCADE``).
* ``relationships`` -- owned by ``contact_id`` and optionally pointing at
  another contact through ``related_contact_id``; that pointer is nulled
  when the related contact is deleted.

Usage::

    from perema.core.orm import PeremaBase
    from sqlalchemy import create_engine

    engine = create_engine("sqlite:///perema.db")
    PeremaBase.metadata.create_all(engine)
"""

from __future__ import annotations

import datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, Date, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from perema.core.orm.base import PeremaBase, TimestampMixin

# Birthdays whose year is unknown are stored in year 1 ("0001-MM-DD").
UNKNOWN_BIRTH_YEAR = 1


def _today() -> datetime.date:
    return datetime.date.today()


class Recurrence(str, Enum):
    """How a reminder repeats once it fires."""

    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class Contact(TimestampMixin, PeremaBase):
    __tablename__ = "contacts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    firstname: Mapped[str] = mapped_column(Text, nullable=False)
    lastname: Mapped[str | None] = mapped_column(Text)
    nickname: Mapped[str | None] = mapped_column(Text)
    gender: Mapped[str | None] = mapped_column(Text)
    email: Mapped[str | None] = mapped_column(Text)
    phone: Mapped[str | None] = mapped_column(Text)
    birthday: Mapped[datetime.date | None] = mapped_column(Date, index=True)
    address: Mapped[str | None] = mapped_column(Text)
    how_we_met: Mapped[str | None] = mapped_column(Text)
    food_preference: Mapped[str | None] = mapped_column(Text)
    work_information: Mapped[str | None] = mapped_column(Text)
    contact_information: Mapped[str | None] = mapped_column(Text)
    circles: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    photo: Mapped[str | None] = mapped_column(Text)

    # --- relationships ---
    notes: Mapped[list[Note]] = relationship(
        "Note", back_populates="contact", cascade="all, delete-orphan", order_by="Note.id"
    )
    activities: Mapped[list[Activity]] = relationship(
        "Activity", back_populates="contact", cascade="all, delete-orphan", order_by="Activity.id"
    )
    relationships: Mapped[list[Relationship]] = relationship(
        "Relationship",
        back_populates="contact",
        foreign_keys="Relationship.contact_id",
        cascade="all, delete-orphan",
        order_by="Relationship.id",
    )
    reminders: Mapped[list[Reminder]] = relationship(
        "Reminder", back_populates="contact", cascade="all, delete-orphan", order_by="Reminder.id"
    )

    @property
    def full_name(self) -> str:
        return f"{self.firstname} {self.lastname or ''}".strip()

    @property
    def birth_year_known(self) -> bool:
        return self.birthday is not None and self.birthday.year != UNKNOWN_BIRTH_YEAR

    def __repr__(self) -> str:
        return f"Contact(id={self.id!r}, name={self.full_name!r})"


class Note(TimestampMixin, PeremaBase):
    __tablename__ = "notes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    contact_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False, default=_today)

    contact: Mapped[Contact] = relationship("Contact", back_populates="notes")


class Activity(TimestampMixin, PeremaBase):
    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    contact_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    location: Mapped[str | None] = mapped_column(Text)
    date: Mapped[datetime.date | None] = mapped_column(Date)

    contact: Mapped[Contact] = relationship("Contact", back_populates="activities")


class Relationship(TimestampMixin, PeremaBase):
    __tablename__ = "relationships"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    contact_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    related_contact_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("contacts.id", ondelete="SET NULL"), index=True
    )
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    type: Mapped[str | None] = mapped_column(Text)
    gender: Mapped[str | None] = mapped_column(Text)

    contact: Mapped[Contact] = relationship(
        "Contact", back_populates="relationships", foreign_keys=[contact_id]
    )
    related_contact: Mapped[Contact | None] = relationship(
        "Contact", foreign_keys=[related_contact_id]
    )


class Reminder(TimestampMixin, PeremaBase):
    __tablename__ = "reminders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    contact_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("contacts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    message: Mapped[str] = mapped_column(Text, nullable=False)
    by_mail: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    remind_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False, index=True)
    # first occurrence of the schedule; monthly/yearly steps count from it
    anchor_at: Mapped[datetime.datetime | None] = mapped_column(DateTime)
    recurrence: Mapped[str] = mapped_column(Text, nullable=False, default=Recurrence.ONCE.value)
    reoccur_from_completion: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime.datetime | None] = mapped_column(DateTime)
    last_sent_at: Mapped[datetime.datetime | None] = mapped_column(DateTime)

    contact: Mapped[Contact] = relationship("Contact", back_populates="reminders")

    @property
    def is_recurring(self) -> bool:
        return self.recurrence != Recurrence.ONCE.value

    @property
    def schedule_anchor(self) -> datetime.datetime:
        return self.anchor_at or self.remind_at


__all__ = [
    "UNKNOWN_BIRTH_YEAR",
    "Recurrence",
    "Contact",
    "Note",
    "Activity",
    "Relationship",
    "Reminder",
]
