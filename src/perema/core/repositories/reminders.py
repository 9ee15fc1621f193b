"""Reminder repository."""

from __future__ import annotations

import datetime

from sqlalchemy import Select, or_, select
from sqlalchemy.orm import joinedload

from perema.core.orm.tables import Reminder
from perema.core.repositories.base import BaseRepository


class ReminderRepository(BaseRepository[Reminder]):
    model = Reminder

    def for_contact(self, contact_id: int, *, include_completed: bool = True) -> list[Reminder]:
        criteria = [Reminder.contact_id == contact_id]
        if not include_completed:
            criteria.append(Reminder.completed.is_(False))
        return self.list_where(*criteria, order_by=(Reminder.remind_at, Reminder.id))

    def due_for_mail(self, now: datetime.datetime) -> list[Reminder]:
        """Open mail reminders whose current occurrence is due and not yet sent."""
        stmt = (
            self._select_due(now)
            .options(joinedload(Reminder.contact))
            .order_by(Reminder.remind_at, Reminder.id)
        )
        return list(self.session.scalars(stmt))

    def _select_due(self, now: datetime.datetime) -> Select:
        return select(Reminder).where(
            Reminder.completed.is_(False),
            Reminder.by_mail.is_(True),
            Reminder.remind_at <= now,
            or_(Reminder.last_sent_at.is_(None), Reminder.last_sent_at < Reminder.remind_at),
        )
