"""
FastAPI dependency injection: shared singletons and per-request factories.

Usage in routers::

    from perema.api.deps import OpContext, Settings

    @router.get("/things")
    def list_things(ctx: OpContext, settings: Settings):
        ...

The engine, session factory, mailer and scheduler are built once by
``create_app`` and kept on ``app.state``; each request gets its own
session, closed when the response is sent.
"""

from __future__ import annotations

import uuid
from collections.abc import Generator
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from perema.core.settings import PeremaSettings, get_settings
from perema.notifications import BaseMailer
from perema.ops.context import OperationContext
from perema.scheduling import APSchedulerBackend

__all__ = [
    "get_settings",
    "get_session",
    "get_operation_context",
    "get_mailer",
    "get_scheduler",
    "Settings",
    "DbSession",
    "OpContext",
    "MailerDep",
    "SchedulerDep",
]


# ── Database session (per-request) ───────────────────────────────────────


def get_session(request: Request) -> Generator[Session, None, None]:
    """Yield an ORM session for the request lifespan."""
    session = request.app.state.session_factory()
    try:
        yield session
    finally:
        session.close()


# ── Operation context (per-request) ──────────────────────────────────────


def get_operation_context(
    request: Request,
    session: Annotated[Session, Depends(get_session)],
) -> OperationContext:
    """Build an :class:`OperationContext` from the current request."""
    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
    return OperationContext(session=session, request_id=request_id, caller="api")


# ── App singletons ───────────────────────────────────────────────────────


def get_mailer(request: Request) -> BaseMailer | None:
    """The configured mailer, or ``None`` when mail is misconfigured."""
    return getattr(request.app.state, "mailer", None)


def get_scheduler(request: Request) -> APSchedulerBackend | None:
    return getattr(request.app.state, "scheduler", None)


# ── Convenience type aliases ─────────────────────────────────────────────

Settings = Annotated[PeremaSettings, Depends(get_settings)]
DbSession = Annotated[Session, Depends(get_session)]
OpContext = Annotated[OperationContext, Depends(get_operation_context)]
MailerDep = Annotated[BaseMailer | None, Depends(get_mailer)]
SchedulerDep = Annotated[APSchedulerBackend | None, Depends(get_scheduler)]
