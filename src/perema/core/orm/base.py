"""Declarative base, mixins and type-map for all perema ORM models.

Uses SQLAlchemy 2.0 ``DeclarativeBase`` with a ``type_annotation_map``
that maps Python built-in types to portable SA column types.

Mixins
------
* **TimestampMixin** — ``created_at`` / ``updated_at`` maintained by the ORM.
"""

from __future__ import annotations

import datetime

from sqlalchemy import JSON, Boolean, Date, DateTime, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime.datetime:
    """Naive UTC now; SQLite stores datetimes without an offset."""
    return datetime.datetime.now(datetime.UTC).replace(tzinfo=None)


class PeremaBase(DeclarativeBase):
    """Shared declarative base for every perema table.

    ``type_annotation_map`` lets Mapped columns use plain Python types:

    * ``str``   → ``Text``
    * ``int``   → ``Integer``
    * ``bool``  → ``Boolean``
    * ``datetime.date`` → ``Date``
    * ``datetime.datetime`` → ``DateTime``
    * ``list``  → ``JSON``    (stored as TEXT in SQLite)
    """

    type_annotation_map = {
        str: Text,
        int: Integer,
        bool: Boolean,
        datetime.date: Date,
        datetime.datetime: DateTime,
        list: JSON,
    }


class TimestampMixin:
    """Adds ``created_at`` and ``updated_at`` set from Python on insert/update."""

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, default=utcnow, onupdate=utcnow
    )
