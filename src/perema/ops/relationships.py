"""
Relationship operations.

A relationship is directed: it belongs to ``contact_id`` and describes
another person by ``name``, optionally linked to a stored contact through
``related_contact_id``.  Rules enforced on create and update:

* a given ``related_contact_id`` must exist ("Related contact not found");
* a contact cannot be related to itself;
* an empty ``name`` falls back to the related contact's full name;
* at least one of ``name`` / ``related_contact_id`` must end up set.
"""

from __future__ import annotations

from typing import Any

from perema.core.errors import ValidationError
from perema.core.logging import get_logger
from perema.core.orm.tables import Relationship
from perema.core.repositories import ContactRepository, RelationshipRepository
from perema.ops._helpers import failed, reject_unknown, require, require_contact
from perema.ops.context import OperationContext
from perema.ops.requests import CreateRecordRequest, UpdateRecordRequest
from perema.ops.responses import relationship_dict
from perema.ops.result import OperationResult, start_timer

logger = get_logger(__name__)

RELATIONSHIP_FIELDS: tuple[str, ...] = ("related_contact_id", "name", "type", "gender")


def _resolve(
    ctx: OperationContext,
    owner_id: int,
    values: dict[str, Any],
    current: Relationship | None = None,
) -> dict[str, Any]:
    reject_unknown(values, RELATIONSHIP_FIELDS, "relationship")
    cleaned = dict(values)
    if "name" in cleaned:
        cleaned["name"] = (cleaned["name"] or "").strip()

    related_id = cleaned.get(
        "related_contact_id", current.related_contact_id if current else None
    )
    name = cleaned.get("name", current.name if current else "")

    if related_id is not None:
        if related_id == owner_id:
            raise ValidationError(
                "A contact cannot be related to itself", field="related_contact_id"
            )
        related = ContactRepository(ctx.session).get(related_id)
        if related is None:
            raise ValidationError(
                "Related contact not found", field="related_contact_id"
            ).with_context(related_contact_id=related_id)
        if not name:
            cleaned["name"] = related.full_name
    elif not name:
        raise ValidationError(
            "Either name or related_contact_id is required", field="name"
        )
    return cleaned


def list_relationships(ctx: OperationContext, contact_id: int) -> OperationResult[list[dict[str, Any]]]:
    timer = start_timer()
    try:
        require_contact(ctx, contact_id)
        rows = RelationshipRepository(ctx.session).for_contact(contact_id)
        return OperationResult.ok([relationship_dict(r) for r in rows], elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "retrieve relationships", timer.elapsed_ms)


def create_relationship(
    ctx: OperationContext, request: CreateRecordRequest
) -> OperationResult[dict[str, Any]]:
    """Attach a relationship to ``request.contact_id``."""
    timer = start_timer()
    try:
        require_contact(ctx, request.contact_id)
        values = _resolve(ctx, request.contact_id, request.values)
        rel = RelationshipRepository(ctx.session).add(
            Relationship(contact_id=request.contact_id, **values)
        )
        ctx.session.commit()
        logger.info(
            "relationship_created",
            relationship_id=rel.id,
            contact_id=rel.contact_id,
            related_contact_id=rel.related_contact_id,
        )
        return OperationResult.ok(relationship_dict(rel), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "save relationship", timer.elapsed_ms)


def get_relationship(ctx: OperationContext, relationship_id: int) -> OperationResult[dict[str, Any]]:
    timer = start_timer()
    try:
        rel = require(RelationshipRepository(ctx.session), relationship_id, "Relationship")
        return OperationResult.ok(relationship_dict(rel), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "get relationship", timer.elapsed_ms)


def update_relationship(
    ctx: OperationContext, request: UpdateRecordRequest
) -> OperationResult[dict[str, Any]]:
    timer = start_timer()
    try:
        repo = RelationshipRepository(ctx.session)
        rel = require(repo, request.record_id, "Relationship")
        repo.apply(rel, _resolve(ctx, rel.contact_id, request.values, current=rel))
        ctx.session.commit()
        return OperationResult.ok(relationship_dict(rel), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "update relationship", timer.elapsed_ms)


def delete_relationship(ctx: OperationContext, relationship_id: int) -> OperationResult[None]:
    timer = start_timer()
    try:
        repo = RelationshipRepository(ctx.session)
        repo.delete(require(repo, relationship_id, "Relationship"))
        ctx.session.commit()
        logger.info("relationship_deleted", relationship_id=relationship_id)
        return OperationResult.ok(None, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "delete relationship", timer.elapsed_ms)
