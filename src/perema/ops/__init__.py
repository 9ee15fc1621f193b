"""
Operations layer.

Transport-agnostic functions shared by the API, the CLI and the scheduler.
Every operation takes an :class:`OperationContext` (session + request id)
and a typed request, and returns an :class:`OperationResult` or
:class:`PagedResult` instead of raising.
"""

from perema.ops.context import OperationContext
from perema.ops.result import OperationError, OperationResult, PagedResult

__all__ = ["OperationContext", "OperationError", "OperationResult", "PagedResult"]
