"""Pydantic schemas for API responses."""

from perema.api.schemas.common import (
    ErrorDetail,
    PagedResponse,
    PageMeta,
    ProblemDetail,
    SuccessResponse,
)

__all__ = ["ErrorDetail", "PagedResponse", "PageMeta", "ProblemDetail", "SuccessResponse"]
