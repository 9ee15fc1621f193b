"""Health endpoints for the perema API.

``GET /health`` pings the database and reads the scheduler state kept on
``app.state``; ``GET /health/live`` only proves the process answers.

Status rules:

* database unreachable → ``unhealthy`` (503)
* scheduler configured but not running → ``degraded`` (200)
* otherwise → ``healthy``
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Any, Literal

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy import Engine, text

from perema.core.logging import get_logger

logger = get_logger(__name__)

_START_TIME = time.monotonic()

Status = Literal["healthy", "degraded", "unhealthy"]


class CheckResult(BaseModel):
    status: Status
    latency_ms: float | None = None
    error: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)


class HealthResponse(BaseModel):
    status: Status = "healthy"
    service: str = "perema"
    version: str = ""
    uptime_s: float = 0.0
    timestamp: str = ""
    checks: dict[str, CheckResult] = Field(default_factory=dict)


class LivenessResponse(BaseModel):
    status: str = "alive"


def check_database(engine: Engine) -> CheckResult:
    """Run ``SELECT 1`` against *engine*."""
    start = time.monotonic()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:  # noqa: BLE001
        logger.warning("health_database_down", error=str(exc))
        return CheckResult(
            status="unhealthy",
            latency_ms=round((time.monotonic() - start) * 1000, 2),
            error=str(exc)[:200],
        )
    return CheckResult(status="healthy", latency_ms=round((time.monotonic() - start) * 1000, 2))


def check_scheduler(scheduler: Any | None) -> CheckResult:
    """Scheduler state; an app without a scheduler is healthy (jobs disabled)."""
    if scheduler is None:
        return CheckResult(status="healthy", details={"enabled": False})
    info = scheduler.health()
    details = {"enabled": True, "scheduled_jobs": info.get("scheduled_jobs", 0)}
    if not info.get("healthy"):
        return CheckResult(status="degraded", error="scheduler not running", details=details)
    return CheckResult(status="healthy", details=details)


def overall_status(checks: dict[str, CheckResult]) -> Status:
    if checks["database"].status != "healthy":
        return "unhealthy"
    if any(result.status != "healthy" for result in checks.values()):
        return "degraded"
    return "healthy"


def create_health_router(version: str, prefix: str = "/health") -> APIRouter:
    """``GET {prefix}`` and ``GET {prefix}/live`` for the perema app.

    The handlers read ``engine`` and ``scheduler`` from ``request.app.state``
    so the same router can be mounted at the root and under the API prefix.
    """
    router = APIRouter(tags=["health"])

    @router.get(prefix, response_model=HealthResponse)
    def health(request: Request) -> JSONResponse:
        state = request.app.state
        checks = {
            "database": check_database(state.engine),
            "scheduler": check_scheduler(getattr(state, "scheduler", None)),
        }
        status = overall_status(checks)
        body = HealthResponse(
            status=status,
            version=version,
            uptime_s=round(time.monotonic() - _START_TIME, 1),
            timestamp=datetime.now(UTC).isoformat(),
            checks=checks,
        )
        return JSONResponse(content=body.model_dump(), status_code=503 if status == "unhealthy" else 200)

    @router.get(f"{prefix}/live", response_model=LivenessResponse)
    def liveness() -> LivenessResponse:
        return LivenessResponse()

    return router
