"""
Shared pytest fixtures for perema tests.

This module provides:
- An in-memory SQLite engine/session with the schema created
- An ``OperationContext`` bound to that session
- Factories for contacts and reminders
- Settings that never read the developer's ``.env``
- A ``ConsoleMailer`` that records what was "sent"

Usage::

    def test_something(ctx, make_contact):
        contact = make_contact(firstname="Anna", birthday="--05-04")
        ...
"""

import sys
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

# Ensure the perema package is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from perema.core.orm import create_perema_engine, init_schema, perema_session_factory
from perema.core.settings import PeremaSettings
from perema.notifications import ConsoleMailer
from perema.ops.context import OperationContext


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Auto-mark API tests that run the whole router → ops → database chain."""
    for item in items:
        test_path = Path(item.fspath).relative_to(Path(__file__).parent)
        if test_path.parts and test_path.parts[0] == "api":
            item.add_marker(pytest.mark.integration)


# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def engine() -> Generator[Engine, None, None]:
    """In-memory SQLite engine with every table created."""
    engine = create_perema_engine("sqlite://")
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine: Engine) -> Generator[Session, None, None]:
    with perema_session_factory(engine)() as s:
        yield s


@pytest.fixture
def ctx(session: Session) -> OperationContext:
    return OperationContext(session=session, caller="test")


# =============================================================================
# Settings / Mail Fixtures
# =============================================================================


@pytest.fixture
def settings(tmp_path: Path) -> PeremaSettings:
    """Settings for tests: temp dirs, console mail, no scheduler."""
    return PeremaSettings(
        _env_file=None,
        database_url="sqlite://",
        static_dir=tmp_path / "static",
        photo_dir=tmp_path / "photos",
        scheduler_enabled=False,
        mail_backend="console",
        mail_to="me@example.com",
        sendgrid_birthday_template_id="d-birthday",
        sendgrid_reminder_template_id="d-reminder",
    )


@pytest.fixture
def mailer() -> ConsoleMailer:
    return ConsoleMailer(sender="perema@example.com")


# =============================================================================
# Data Factories
# =============================================================================


@pytest.fixture
def make_contact(ctx: OperationContext) -> Callable[..., dict[str, Any]]:
    """Create a contact through the ops layer and return its dict."""
    from perema.ops.contacts import create_contact
    from perema.ops.requests import CreateContactRequest

    def _make(**values: Any) -> dict[str, Any]:
        values.setdefault("firstname", "Anna")
        result = create_contact(ctx, CreateContactRequest(values=values))
        assert result.success, result.error
        return result.data

    return _make


@pytest.fixture
def make_reminder(ctx: OperationContext) -> Callable[..., dict[str, Any]]:
    from perema.ops.reminders import create_reminder
    from perema.ops.requests import CreateRecordRequest

    def _make(contact_id: int, **values: Any) -> dict[str, Any]:
        values.setdefault("message", "Call back")
        result = create_reminder(ctx, CreateRecordRequest(contact_id=contact_id, values=values))
        assert result.success, result.error
        return result.data

    return _make
