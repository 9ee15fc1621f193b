"""SQLAlchemy-session repositories, one per aggregate.

Repositories only read and stage changes; the operation that owns the
session commits.
"""

from perema.core.repositories._helpers import PageSlice, split_csv
from perema.core.repositories.base import BaseRepository
from perema.core.repositories.contacts import CONTACT_RELATIONS, ContactRepository
from perema.core.repositories.records import (
    ActivityRepository,
    NoteRepository,
    RelationshipRepository,
)
from perema.core.repositories.reminders import ReminderRepository

__all__ = [
    "PageSlice",
    "split_csv",
    "BaseRepository",
    "CONTACT_RELATIONS",
    "ContactRepository",
    "NoteRepository",
    "ActivityRepository",
    "RelationshipRepository",
    "ReminderRepository",
]
