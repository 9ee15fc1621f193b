"""Tests for the ORM tables and repositories."""

from __future__ import annotations

import datetime

import pytest
from sqlalchemy.exc import IntegrityError

from perema.core.orm import Contact, Note, Reminder, init_schema
from perema.core.repositories import (
    ContactRepository,
    PageSlice,
    ReminderRepository,
    split_csv,
)


def _add(session, **values) -> Contact:
    values.setdefault("firstname", "Anna")
    contact = ContactRepository(session).add(Contact(**values))
    session.commit()
    return contact


class TestSchema:
    def test_init_schema_idempotent(self, engine):
        assert init_schema(engine) == []

    def test_foreign_keys_enforced(self, session):
        session.add(Note(contact_id=999, content="orphan"))
        with pytest.raises(IntegrityError):
            session.flush()
        session.rollback()

    def test_contact_properties(self):
        known = Contact(firstname="Anna", lastname="Smith", birthday=datetime.date(1990, 5, 4))
        unknown = Contact(firstname="Bob", birthday=datetime.date(1, 5, 4))
        assert known.full_name == "Anna Smith"
        assert unknown.full_name == "Bob"
        assert known.birth_year_known
        assert not unknown.birth_year_known
        assert not Contact(firstname="Cleo").birth_year_known

    def test_unknown_year_round_trips(self, session):
        contact = _add(session, birthday=datetime.date(1, 2, 28))
        session.expire_all()
        assert ContactRepository(session).get(contact.id).birthday == datetime.date(1, 2, 28)


class TestContactRepository:
    def test_list_page(self, session):
        for name in ("A", "B", "C"):
            _add(session, firstname=name)

        rows, total = ContactRepository(session).list_page(
            columns=["firstname"], page=PageSlice(limit=2, offset=1)
        )
        assert [c.firstname for c in rows] == ["B", "C"]
        assert total == 3

    def test_born_on(self, session):
        _add(session, firstname="Anna", birthday=datetime.date(1990, 5, 4))
        _add(session, firstname="Bob", birthday=datetime.date(1, 5, 4))
        _add(session, firstname="Cleo", birthday=datetime.date(1990, 5, 5))
        _add(session, firstname="Dan")

        rows = ContactRepository(session).born_on(5, [4])
        assert [c.firstname for c in rows] == ["Anna", "Bob"]

    def test_exists(self, session):
        contact = _add(session)
        repo = ContactRepository(session)
        assert repo.exists(contact.id)
        assert not repo.exists(contact.id + 1)


class TestReminderRepository:
    def test_due_for_mail_skips_sent_occurrence(self, session):
        contact = _add(session)
        repo = ReminderRepository(session)
        reminder = repo.add(
            Reminder(
                contact_id=contact.id,
                message="Call",
                by_mail=True,
                remind_at=datetime.datetime(2024, 1, 1, 9),
            )
        )
        session.commit()
        now = datetime.datetime(2024, 1, 2)

        assert repo.due_for_mail(now) == [reminder]
        reminder.last_sent_at = now
        session.commit()
        assert repo.due_for_mail(now) == []

        # next occurrence
        reminder.remind_at = datetime.datetime(2024, 1, 8, 9)
        session.commit()
        assert repo.due_for_mail(datetime.datetime(2024, 1, 8, 9)) == [reminder]


class TestHelpers:
    def test_split_csv(self):
        assert split_csv(" a, b,,c ") == ["a", "b", "c"]
        assert split_csv(None) == []
        assert split_csv("") == []
