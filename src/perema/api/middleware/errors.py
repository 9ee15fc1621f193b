"""
Error handling: maps ops-layer errors and request validation failures to
RFC 7807 responses.
"""

from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from perema.api.schemas.common import ErrorDetail, ProblemDetail
from perema.core.errors import PeremaError, error_code_for
from perema.core.logging import get_logger

logger = get_logger(__name__)

# ── Error code → HTTP status mapping ─────────────────────────────────────

ERROR_CODE_TO_STATUS: dict[str, int] = {
    "NOT_FOUND": 404,
    "CONFLICT": 409,
    "VALIDATION_FAILED": 400,
    "INVALID_INPUT": 400,
    "TRANSIENT": 503,
    "UNAVAILABLE": 503,
    "INTERNAL": 500,
}


def status_for_error_code(code: str) -> int:
    """Resolve an ops error code to HTTP status, defaulting to 500."""
    return ERROR_CODE_TO_STATUS.get(code, 500)


def problem_response(
    *,
    status: int,
    title: str,
    detail: str = "",
    instance: str = "",
    errors: list[dict[str, Any]] | None = None,
) -> JSONResponse:
    """Build a RFC 7807 JSON error response."""
    body = ProblemDetail(
        title=title,
        status=status,
        detail=detail,
        instance=instance,
    )
    if errors:
        body.errors = [ErrorDetail(**e) for e in errors]
    return JSONResponse(
        status_code=status,
        content=body.model_dump(),
        media_type="application/problem+json",
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed bodies, params and uploads become 400 ProblemDetail with field errors."""
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.append(
            {
                "code": str(err.get("type", "invalid")).upper(),
                "message": str(err.get("msg", "Invalid value")),
                "field": ".".join(loc) or None,
            }
        )
    return problem_response(
        status=400,
        title="Request validation failed",
        detail="; ".join(f"{e['field'] or 'request'}: {e['message']}" for e in errors),
        instance=str(request.url.path),
        errors=errors,
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unhandled exceptions; returns 500 with ProblemDetail."""
    logger.exception("unhandled_exception", path=request.url.path, error=str(exc))
    return problem_response(
        status=500,
        title="Internal Server Error",
        detail=str(exc) if request.app.state.settings.debug else "An unexpected error occurred.",
        instance=str(request.url.path),
    )


async def perema_error_handler(request: Request, exc: PeremaError) -> JSONResponse:
    """Domain errors that escape a router map through their error code."""
    code = error_code_for(exc)
    status = status_for_error_code(code)
    if status >= 500:
        logger.error("perema_error", path=request.url.path, code=code, error=exc.message)
    field = getattr(exc, "field", None)
    return problem_response(
        status=status,
        title=exc.message,
        instance=str(request.url.path),
        errors=[{"code": code, "message": exc.message, "field": field}] if field else None,
    )
