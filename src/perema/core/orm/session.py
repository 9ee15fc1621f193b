"""SQLAlchemy engine factory and session helpers.

This module provides:

* ``create_perema_engine``   -- Create a SA engine from a URL.
* ``PeremaSession``          -- Session with ``expire_on_commit=False``.
* ``perema_session_factory`` -- ``sessionmaker`` producing ``PeremaSession``.
* ``init_schema``            -- Create all mapped tables (idempotent).
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import event, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from perema.core.orm.base import PeremaBase


def create_perema_engine(
    url: str = "sqlite:///perema.db",
    *,
    echo: bool = False,
    **kwargs: Any,
) -> Engine:
    """Create a SQLAlchemy engine with sane defaults.

    Parameters
    ----------
    url:
        Database URL (``sqlite:///…``, ``postgresql://…``, etc.)
    echo:
        If ``True``, log all SQL to stdout.
    **kwargs:
        Extra arguments forwarded to ``sqlalchemy.create_engine``.
    """
    if not url.startswith("sqlite"):
        return _sa_create_engine(url, echo=echo, **kwargs)

    kwargs.setdefault("connect_args", {"check_same_thread": False})
    in_memory = url in ("sqlite://", "sqlite:///:memory:")
    if in_memory:
        # one shared connection, otherwise every checkout sees an empty db
        kwargs.setdefault("poolclass", StaticPool)
    else:
        db_file = url.removeprefix("sqlite:///")
        if db_file:
            Path(db_file).expanduser().parent.mkdir(parents=True, exist_ok=True)

    engine = _sa_create_engine(url, echo=echo, **kwargs)

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_connection: Any, _rec: Any) -> None:
        cursor = dbapi_connection.cursor()
        if not in_memory:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return engine


class PeremaSession(Session):
    """Pre-configured session with ``expire_on_commit=False``.

    Objects returned by an operation stay readable after the commit, so
    routers can serialise them without a second round-trip.
    """

    def __init__(self, bind: Engine | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("expire_on_commit", False)
        super().__init__(bind=bind, **kwargs)


def perema_session_factory(engine: Engine) -> sessionmaker[PeremaSession]:
    """Return a ``sessionmaker`` bound to *engine* that produces ``PeremaSession`` instances."""
    return sessionmaker(bind=engine, class_=PeremaSession)


def init_schema(engine: Engine) -> list[str]:
    """Create missing tables and return the names that were created."""
    # Import registers every mapped class on the metadata
    import perema.core.orm.tables  # noqa: F401

    existing = set(inspect(engine).get_table_names())
    PeremaBase.metadata.create_all(engine)
    return [name for name in PeremaBase.metadata.tables if name not in existing]
