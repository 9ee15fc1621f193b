"""Base repository over a SQLAlchemy ORM session.

Architecture::

    ┌────────────────────────────────────────────────────────────┐
    │                     BaseRepository[M]                       │
    │                                                            │
    │   session: Session       ← request/job scoped              │
    │   model:   type[M]       ← mapped class                    │
    │                                                            │
    │   get(id)                → M | None                        │
    │   add(obj)               → M   (flushed, id assigned)      │
    │   delete(obj)            → None                            │
    │   list_where(*criteria)  → list[M]                         │
    │   count(*criteria)       → int                             │
    └────────────────────────────────────────────────────────────┘

Repositories never commit; the operation that owns the unit of work does.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from perema.core.orm.base import PeremaBase


class BaseRepository[M: PeremaBase]:
    """Generic data-access helpers for one mapped class."""

    model: type[M]

    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, obj_id: int, *, options: Sequence[Any] = ()) -> M | None:
        return self.session.get(self.model, obj_id, options=list(options) or None)

    def add(self, obj: M) -> M:
        self.session.add(obj)
        self.session.flush()
        return obj

    def delete(self, obj: M) -> None:
        self.session.delete(obj)
        self.session.flush()

    def list_where(self, *criteria: Any, order_by: Sequence[Any] = ()) -> list[M]:
        stmt = select(self.model).where(*criteria)
        stmt = stmt.order_by(*order_by) if order_by else stmt.order_by(self.model.id)
        return list(self.session.scalars(stmt))

    def count(self, *criteria: Any) -> int:
        stmt = select(func.count()).select_from(self.model).where(*criteria)
        return int(self.session.scalar(stmt) or 0)

    @staticmethod
    def apply(obj: M, values: dict[str, Any]) -> M:
        """Copy *values* onto *obj* (partial update)."""
        for key, value in values.items():
            setattr(obj, key, value)
        return obj
