"""Shared plumbing for operation modules."""

from __future__ import annotations

from typing import Any

from perema.core.errors import NotFoundError, PeremaError, ValidationError
from perema.core.logging import get_logger
from perema.core.orm.tables import Contact
from perema.core.repositories import BaseRepository, ContactRepository
from perema.ops.context import OperationContext
from perema.ops.result import OperationResult

logger = get_logger(__name__)


def failed(ctx: OperationContext, exc: Exception, action: str, elapsed_ms: float) -> OperationResult[Any]:
    """Roll back the unit of work and turn *exc* into a failed result."""
    ctx.session.rollback()
    if isinstance(exc, PeremaError):
        return OperationResult.from_exception(exc, elapsed_ms=elapsed_ms)
    logger.exception("op_failed", op=action, error=str(exc), request_id=ctx.request_id)
    return OperationResult.fail("INTERNAL", f"Failed to {action}: {exc}", elapsed_ms=elapsed_ms)


def require_contact(ctx: OperationContext, contact_id: int) -> Contact:
    contact = ContactRepository(ctx.session).get(contact_id)
    if contact is None:
        raise NotFoundError(f"Contact {contact_id} not found").with_context(contact_id=contact_id)
    return contact


def require(repo: BaseRepository[Any], obj_id: int, label: str) -> Any:
    obj = repo.get(obj_id)
    if obj is None:
        raise NotFoundError(f"{label} {obj_id} not found").with_context(id=obj_id)
    return obj


def reject_unknown(values: dict[str, Any], allowed: tuple[str, ...], label: str) -> None:
    unknown = sorted(set(values) - set(allowed))
    if unknown:
        raise ValidationError(f"Unknown {label} field(s): {', '.join(unknown)}", field=unknown[0])


def require_text(values: dict[str, Any], key: str, *, creating: bool) -> None:
    """Strip ``values[key]`` in place; it must be non-blank on create or when given."""
    if not creating and key not in values:
        return
    text = (values.get(key) or "").strip()
    if not text:
        raise ValidationError(f"{key} is required", field=key)
    values[key] = text
