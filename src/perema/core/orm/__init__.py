"""SQLAlchemy 2.0 ORM layer for perema.

Modules
-------
base        PeremaBase (declarative base) + TimestampMixin
session     Engine factory, PeremaSession, session factory, init_schema
tables      Mapped classes (Contact, Note, Activity, Relationship, Reminder)

Usage::

    from perema.core.orm import create_perema_engine, init_schema

    engine = create_perema_engine("sqlite:///perema.db")
    init_schema(engine)
"""

from __future__ import annotations

from perema.core.orm.base import PeremaBase, TimestampMixin
from perema.core.orm.session import (
    PeremaSession,
    create_perema_engine,
    init_schema,
    perema_session_factory,
)
from perema.core.orm.tables import (
    Activity,
    Contact,
    Note,
    Recurrence,
    Relationship,
    Reminder,
)

__all__ = [
    "PeremaBase",
    "TimestampMixin",
    "create_perema_engine",
    "PeremaSession",
    "perema_session_factory",
    "init_schema",
    "Contact",
    "Note",
    "Activity",
    "Relationship",
    "Reminder",
    "Recurrence",
]
