"""
Shared API router utilities.

- ``_dc()``: convert a dataclass or dict to a plain dict
- ``_handle_error()``: convert a failed OperationResult to a ``problem_response``
- ``_page_meta()``: build ``PageMeta`` from a ``PagedResult``
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import Request

from perema.api.middleware.errors import problem_response, status_for_error_code
from perema.api.schemas.common import PageMeta
from perema.ops.result import OperationResult, PagedResult


def _dc(obj: Any) -> dict[str, Any]:
    """Convert a dataclass (or dict) to a plain dict.

    Returns an empty dict for objects that are neither dataclasses nor dicts.
    """
    if hasattr(obj, "__dataclass_fields__"):
        return asdict(obj)
    return obj if isinstance(obj, dict) else {}


def _handle_error(result: OperationResult[Any], request: Request | None = None):
    """Convert a failed ``OperationResult`` into a Problem Details response.

    The error code picks the HTTP status and the message becomes the title.
    A ``field`` in the error details is reported as a field-level error.
    """
    error = result.error
    code = error.code if error else "INTERNAL"
    errors = None
    if error and error.details.get("field"):
        errors = [{"code": code, "message": error.message, "field": str(error.details["field"])}]
    return problem_response(
        status=status_for_error_code(code),
        title=error.message if error else "Operation failed",
        instance=str(request.url.path) if request is not None else "",
        errors=errors,
    )


def _page_meta(result: PagedResult[Any]) -> PageMeta:
    return PageMeta.from_result(result.total, result.limit, result.offset, page=result.page)
