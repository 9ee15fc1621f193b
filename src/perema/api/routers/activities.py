"""
Activity router.

GET    /contacts/{contact_id}/activities
POST   /contacts/{contact_id}/activities
GET    /activities/{activity_id}
PUT    /activities/{activity_id}
DELETE /activities/{activity_id}
"""

from __future__ import annotations

import datetime

from fastapi import APIRouter, Path, Request, Response
from pydantic import BaseModel, Field

from perema.api.deps import OpContext
from perema.api.schemas.common import SuccessResponse
from perema.api.schemas.domains import ActivitySchema
from perema.api.utils import _handle_error

router = APIRouter()


class ActivityBody(BaseModel):
    description: str | None = None
    location: str | None = None
    date: datetime.date | None = None


class CreateActivityBody(ActivityBody):
    name: str = Field(min_length=1)


class UpdateActivityBody(ActivityBody):
    name: str | None = None


@router.get("/contacts/{contact_id}/activities", response_model=SuccessResponse[list[ActivitySchema]])
def list_activities(ctx: OpContext, request: Request, contact_id: int = Path(..., description="Contact ID")):
    from perema.ops.activities import list_activities as _list

    result = _list(ctx, contact_id)
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(
        data=[ActivitySchema(**a) for a in result.data], elapsed_ms=result.elapsed_ms
    )


@router.post(
    "/contacts/{contact_id}/activities",
    response_model=SuccessResponse[ActivitySchema],
    status_code=201,
)
def create_activity(
    ctx: OpContext,
    body: CreateActivityBody,
    request: Request,
    contact_id: int = Path(..., description="Contact ID"),
):
    from perema.ops.activities import create_activity as _create
    from perema.ops.requests import CreateRecordRequest

    values = body.model_dump(exclude_unset=True)
    result = _create(ctx, CreateRecordRequest(contact_id=contact_id, values=values))
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=ActivitySchema(**result.data), elapsed_ms=result.elapsed_ms)


@router.get("/activities/{activity_id}", response_model=SuccessResponse[ActivitySchema])
def get_activity(ctx: OpContext, request: Request, activity_id: int = Path(..., description="Activity ID")):
    from perema.ops.activities import get_activity as _get

    result = _get(ctx, activity_id)
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=ActivitySchema(**result.data), elapsed_ms=result.elapsed_ms)


@router.put("/activities/{activity_id}", response_model=SuccessResponse[ActivitySchema])
def update_activity(
    ctx: OpContext,
    body: UpdateActivityBody,
    request: Request,
    activity_id: int = Path(..., description="Activity ID"),
):
    from perema.ops.activities import update_activity as _update
    from perema.ops.requests import UpdateRecordRequest

    values = body.model_dump(exclude_unset=True)
    result = _update(ctx, UpdateRecordRequest(record_id=activity_id, values=values))
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=ActivitySchema(**result.data), elapsed_ms=result.elapsed_ms)


@router.delete("/activities/{activity_id}", status_code=204)
def delete_activity(ctx: OpContext, request: Request, activity_id: int = Path(..., description="Activity ID")):
    from perema.ops.activities import delete_activity as _delete

    result = _delete(ctx, activity_id)
    if not result.success:
        return _handle_error(result, request)
    return Response(status_code=204)
