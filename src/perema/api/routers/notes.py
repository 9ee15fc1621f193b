"""
Note router.

GET    /contacts/{contact_id}/notes
POST   /contacts/{contact_id}/notes
GET    /notes/{note_id}
PUT    /notes/{note_id}
DELETE /notes/{note_id}
"""

from __future__ import annotations

import datetime

from fastapi import APIRouter, Path, Request, Response
from pydantic import BaseModel, Field

from perema.api.deps import OpContext
from perema.api.schemas.common import SuccessResponse
from perema.api.schemas.domains import NoteSchema
from perema.api.utils import _handle_error

router = APIRouter()


class CreateNoteBody(BaseModel):
    content: str = Field(min_length=1)
    date: datetime.date | None = Field(default=None, description="Defaults to today")


class UpdateNoteBody(BaseModel):
    content: str | None = None
    date: datetime.date | None = None


@router.get("/contacts/{contact_id}/notes", response_model=SuccessResponse[list[NoteSchema]])
def list_notes(ctx: OpContext, request: Request, contact_id: int = Path(..., description="Contact ID")):
    """Notes of a contact, newest first."""
    from perema.ops.notes import list_notes as _list

    result = _list(ctx, contact_id)
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=[NoteSchema(**n) for n in result.data], elapsed_ms=result.elapsed_ms)


@router.post("/contacts/{contact_id}/notes", response_model=SuccessResponse[NoteSchema], status_code=201)
def create_note(
    ctx: OpContext,
    body: CreateNoteBody,
    request: Request,
    contact_id: int = Path(..., description="Contact ID"),
):
    from perema.ops.notes import create_note as _create
    from perema.ops.requests import CreateRecordRequest

    values = body.model_dump(exclude_unset=True)
    result = _create(ctx, CreateRecordRequest(contact_id=contact_id, values=values))
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=NoteSchema(**result.data), elapsed_ms=result.elapsed_ms)


@router.get("/notes/{note_id}", response_model=SuccessResponse[NoteSchema])
def get_note(ctx: OpContext, request: Request, note_id: int = Path(..., description="Note ID")):
    from perema.ops.notes import get_note as _get

    result = _get(ctx, note_id)
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=NoteSchema(**result.data), elapsed_ms=result.elapsed_ms)


@router.put("/notes/{note_id}", response_model=SuccessResponse[NoteSchema])
def update_note(
    ctx: OpContext,
    body: UpdateNoteBody,
    request: Request,
    note_id: int = Path(..., description="Note ID"),
):
    from perema.ops.notes import update_note as _update
    from perema.ops.requests import UpdateRecordRequest

    values = body.model_dump(exclude_unset=True)
    result = _update(ctx, UpdateRecordRequest(record_id=note_id, values=values))
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=NoteSchema(**result.data), elapsed_ms=result.elapsed_ms)


@router.delete("/notes/{note_id}", status_code=204)
def delete_note(ctx: OpContext, request: Request, note_id: int = Path(..., description="Note ID")):
    from perema.ops.notes import delete_note as _delete

    result = _delete(ctx, note_id)
    if not result.success:
        return _handle_error(result, request)
    return Response(status_code=204)
