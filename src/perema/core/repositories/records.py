"""Repositories for records owned by a contact (notes, activities, relationships)."""

from __future__ import annotations

from perema.core.orm.tables import Activity, Note, Relationship
from perema.core.repositories.base import BaseRepository


class _ContactOwnedRepository[M: (Note, Activity, Relationship)](BaseRepository[M]):
    """Records with a ``contact_id`` owner column."""

    def for_contact(self, contact_id: int) -> list[M]:
        return self.list_where(self.model.contact_id == contact_id)


class NoteRepository(_ContactOwnedRepository[Note]):
    model = Note

    def for_contact(self, contact_id: int) -> list[Note]:
        # newest first, matching how a timeline is read
        return self.list_where(
            Note.contact_id == contact_id, order_by=(Note.date.desc(), Note.id.desc())
        )


class ActivityRepository(_ContactOwnedRepository[Activity]):
    model = Activity


class RelationshipRepository(_ContactOwnedRepository[Relationship]):
    model = Relationship

    def pointing_at(self, contact_id: int) -> list[Relationship]:
        """Relationships of other contacts that reference *contact_id*."""
        return self.list_where(Relationship.related_contact_id == contact_id)
