"""
Relationship router.

GET    /contacts/{contact_id}/relationships
POST   /contacts/{contact_id}/relationships
GET    /relationships/{relationship_id}
PUT    /relationships/{relationship_id}
DELETE /relationships/{relationship_id}
"""

from __future__ import annotations

from fastapi import APIRouter, Path, Request, Response
from pydantic import BaseModel, Field

from perema.api.deps import OpContext
from perema.api.schemas.common import SuccessResponse
from perema.api.schemas.domains import RelationshipSchema
from perema.api.utils import _handle_error

router = APIRouter()


class RelationshipBody(BaseModel):
    """A relationship of the path contact.

    Give ``related_contact_id`` to link a stored contact (``name`` then
    defaults to their full name) or just a ``name``.
    """

    related_contact_id: int | None = None
    name: str | None = Field(default=None, description="Display name of the other person")
    type: str | None = Field(default=None, examples=["sibling", "partner", "colleague"])
    gender: str | None = None


@router.get(
    "/contacts/{contact_id}/relationships",
    response_model=SuccessResponse[list[RelationshipSchema]],
)
def list_relationships(ctx: OpContext, request: Request, contact_id: int = Path(..., description="Contact ID")):
    from perema.ops.relationships import list_relationships as _list

    result = _list(ctx, contact_id)
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(
        data=[RelationshipSchema(**r) for r in result.data], elapsed_ms=result.elapsed_ms
    )


@router.post(
    "/contacts/{contact_id}/relationships",
    response_model=SuccessResponse[RelationshipSchema],
    status_code=201,
)
def create_relationship(
    ctx: OpContext,
    body: RelationshipBody,
    request: Request,
    contact_id: int = Path(..., description="Contact ID"),
):
    """Create a relationship.

    Raises:
        404 NOT_FOUND: The owning contact does not exist.
        400 VALIDATION_FAILED: Related contact not found, self-reference, or no name.
    """
    from perema.ops.relationships import create_relationship as _create
    from perema.ops.requests import CreateRecordRequest

    values = body.model_dump(exclude_unset=True)
    result = _create(ctx, CreateRecordRequest(contact_id=contact_id, values=values))
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=RelationshipSchema(**result.data), elapsed_ms=result.elapsed_ms)


@router.get("/relationships/{relationship_id}", response_model=SuccessResponse[RelationshipSchema])
def get_relationship(
    ctx: OpContext, request: Request, relationship_id: int = Path(..., description="Relationship ID")
):
    from perema.ops.relationships import get_relationship as _get

    result = _get(ctx, relationship_id)
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=RelationshipSchema(**result.data), elapsed_ms=result.elapsed_ms)


@router.put("/relationships/{relationship_id}", response_model=SuccessResponse[RelationshipSchema])
def update_relationship(
    ctx: OpContext,
    body: RelationshipBody,
    request: Request,
    relationship_id: int = Path(..., description="Relationship ID"),
):
    from perema.ops.relationships import update_relationship as _update
    from perema.ops.requests import UpdateRecordRequest

    values = body.model_dump(exclude_unset=True)
    result = _update(ctx, UpdateRecordRequest(record_id=relationship_id, values=values))
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=RelationshipSchema(**result.data), elapsed_ms=result.elapsed_ms)


@router.delete("/relationships/{relationship_id}", status_code=204)
def delete_relationship(
    ctx: OpContext, request: Request, relationship_id: int = Path(..., description="Relationship ID")
):
    from perema.ops.relationships import delete_relationship as _delete

    result = _delete(ctx, relationship_id)
    if not result.success:
        return _handle_error(result, request)
    return Response(status_code=204)
