"""
FastAPI application factory.

``create_app()`` wires middleware, routers, error handlers, static mounts
and lifespan events into a single ``FastAPI`` instance.

Startup (lifespan):
    1. configure structlog
    2. create missing tables
    3. register and start the background jobs (when ``scheduler_enabled``)

Shutdown stops the scheduler and disposes of the engine.
"""

from __future__ import annotations

import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from perema.api.deps import get_settings
from perema.api.middleware.errors import (
    perema_error_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from perema.api.middleware.request_id import RequestIDMiddleware
from perema.api.middleware.timing import TimingMiddleware
from perema.core.errors import ConfigError, PeremaError
from perema.core.health import create_health_router
from perema.core.logging import configure_logging, get_logger
from perema.core.orm import create_perema_engine, init_schema, perema_session_factory
from perema.core.settings import PeremaSettings
from perema.notifications import create_mailer
from perema.scheduling import APSchedulerBackend, register_jobs

log = get_logger("perema.api")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup / shutdown hooks."""
    settings: PeremaSettings = app.state.settings
    json_logs = settings.log_json if settings.log_json is not None else not sys.stderr.isatty()
    configure_logging(level=settings.log_level, json_format=json_logs, service="perema")
    log.info("perema API starting", version=app.version)

    created = init_schema(app.state.engine)
    log.info("database initialized", url=app.state.engine.url.render_as_string(), created=created)

    scheduler: APSchedulerBackend | None = app.state.scheduler
    if scheduler is not None:
        register_jobs(scheduler, app.state.session_factory, app.state.mailer, settings)
        scheduler.start()

    yield

    if scheduler is not None:
        scheduler.stop()
    app.state.engine.dispose()
    log.info("perema API shutting down")


def create_app(*, settings: PeremaSettings | None = None) -> FastAPI:
    """Build and return a fully-configured FastAPI application.

    Parameters
    ----------
    settings : PeremaSettings | None
        Override settings (useful for testing).  When ``None`` the cached
        singleton from :func:`get_settings` is used.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
        docs_url=f"{settings.api_prefix}/docs",
        redoc_url=f"{settings.api_prefix}/redoc",
        openapi_url=f"{settings.api_prefix}/openapi.json",
    )

    # Stash settings on app state for middleware access
    app.state.settings = settings
    app.dependency_overrides[get_settings] = lambda: settings

    # ── Database, mail, scheduler (shared by all requests) ───────────
    engine = create_perema_engine(settings.effective_database_url)
    app.state.engine = engine
    app.state.session_factory = perema_session_factory(engine)

    app.state.mailer = None
    app.state.mailer_error = None
    try:
        app.state.mailer = create_mailer(settings)
    except ConfigError as exc:
        # the API still serves contacts; mail jobs report 503
        app.state.mailer_error = exc.message
        log.error("mailer_unavailable", backend=settings.mail_backend, error=exc.message)

    app.state.scheduler = None
    if settings.scheduler_enabled and app.state.mailer is not None:
        app.state.scheduler = APSchedulerBackend(timezone=settings.scheduler_timezone)

    # ── Middleware (outermost → innermost) ────────────────────────────
    app.add_middleware(TimingMiddleware, log_prefix=settings.api_prefix)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Exception handlers ───────────────────────────────────────────
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(PeremaError, perema_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # ── Routers ──────────────────────────────────────────────────────
    from perema.api.routers import activities, contacts, jobs, notes, relationships, reminders

    prefix = settings.api_prefix
    health = create_health_router(version=settings.api_version)
    # Root level for container healthchecks, and under the API prefix
    app.include_router(health, include_in_schema=False)
    app.include_router(health, prefix=prefix, tags=["health"])

    app.include_router(contacts.router, prefix=prefix, tags=["contacts"])
    app.include_router(relationships.router, prefix=prefix, tags=["relationships"])
    app.include_router(notes.router, prefix=prefix, tags=["notes"])
    app.include_router(activities.router, prefix=prefix, tags=["activities"])
    app.include_router(reminders.router, prefix=prefix, tags=["reminders"])
    app.include_router(jobs.router, prefix=prefix, tags=["jobs"])

    # ── Static files (after the API so /api/* is never shadowed) ─────
    settings.photo_dir.mkdir(parents=True, exist_ok=True)
    app.mount("/photos", StaticFiles(directory=settings.photo_dir), name="photos")
    if settings.static_dir.is_dir():
        app.mount("/", StaticFiles(directory=settings.static_dir, html=True), name="frontend")
    else:
        log.warning("frontend_missing", static_dir=str(settings.static_dir))

    return app
