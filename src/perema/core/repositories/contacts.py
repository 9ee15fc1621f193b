"""Contact repository — the listing query builder lives here.

``list_page`` turns an already-whitelisted listing request into one
``SELECT`` over ``contacts`` with:

* ``load_only`` for the requested columns (``id`` is always loaded),
* ``selectinload`` for each requested relation (one extra query per relation,
  not per row),
* ``LIKE`` filters for the search term and the circle,
* ``LIMIT``/``OFFSET`` for the page,

plus a ``COUNT(*)`` with the same filters for the total.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import Text, cast, extract, func, or_, select
from sqlalchemy.orm import load_only, selectinload

from perema.core.orm.tables import Contact
from perema.core.repositories._helpers import PageSlice
from perema.core.repositories.base import BaseRepository

CONTACT_RELATIONS: tuple[str, ...] = ("notes", "activities", "relationships", "reminders")


class ContactRepository(BaseRepository[Contact]):
    model = Contact

    def get_full(self, contact_id: int) -> Contact | None:
        """Load a contact with every relation eagerly."""
        return self.get(contact_id, options=self._relation_options(CONTACT_RELATIONS))

    def exists(self, contact_id: int) -> bool:
        return self.session.scalar(select(Contact.id).where(Contact.id == contact_id)) is not None

    def list_page(
        self,
        *,
        columns: Sequence[str],
        includes: Iterable[str] = (),
        search: str | None = None,
        circle: str | None = None,
        page: PageSlice = PageSlice(),
    ) -> tuple[list[Contact], int]:
        """Return one page of contacts and the filtered total."""
        criteria = self._filters(search=search, circle=circle)

        attrs = [getattr(Contact, name) for name in columns] or [Contact.id]
        stmt = (
            select(Contact)
            .where(*criteria)
            .options(load_only(*attrs), *self._relation_options(includes))
            .order_by(Contact.id)
            .limit(page.limit)
            .offset(page.offset)
        )
        rows = list(self.session.scalars(stmt))
        return rows, self.count(*criteria)

    def circles(self) -> list[str]:
        """Distinct circle names across all contacts, sorted."""
        names: set[str] = set()
        for circles in self.session.scalars(select(Contact.circles)):
            names.update(c for c in (circles or []) if isinstance(c, str) and c)
        return sorted(names)

    def born_on(self, month: int, days: Sequence[int]) -> list[Contact]:
        """Contacts whose birthday falls on *month* and one of *days*."""
        return self.list_where(
            Contact.birthday.is_not(None),
            extract("month", Contact.birthday) == month,
            extract("day", Contact.birthday).in_(list(days)),
        )

    # -- internals ---------------------------------------------------------

    @staticmethod
    def _filters(*, search: str | None, circle: str | None) -> list[Any]:
        criteria: list[Any] = []
        if search:
            term = search.lower()
            criteria.append(
                or_(
                    func.lower(Contact.firstname).contains(term, autoescape=True),
                    func.lower(Contact.lastname).contains(term, autoescape=True),
                    func.lower(Contact.nickname).contains(term, autoescape=True),
                )
            )
        if circle:
            # circles is a JSON array; match the quoted element, not a substring of one
            criteria.append(
                cast(Contact.circles, Text).contains(json.dumps(circle), autoescape=True)
            )
        return criteria

    @staticmethod
    def _relation_options(names: Iterable[str]) -> list[Any]:
        return [selectinload(getattr(Contact, name)) for name in names if name in CONTACT_RELATIONS]
