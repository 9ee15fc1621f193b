"""Timing middleware: adds the ``X-Process-Time-Ms`` header and logs each API request."""

from __future__ import annotations

import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from perema.core.logging import get_logger

logger = get_logger("perema.api.access")


class TimingMiddleware(BaseHTTPMiddleware):
    """Measure and expose request processing time in milliseconds."""

    def __init__(self, app, *, log_prefix: str = "/api"):
        super().__init__(app)
        self._log_prefix = log_prefix

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = round((time.perf_counter() - start) * 1000, 2)
        response.headers["X-Process-Time-Ms"] = str(elapsed_ms)
        if request.url.path.startswith(self._log_prefix):
            logger.info(
                "request_handled",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                elapsed_ms=elapsed_ms,
            )
        return response
