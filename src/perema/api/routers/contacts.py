"""
Contact router.

GET    /contacts
POST   /contacts
GET    /contacts/circles
GET    /contacts/{contact_id}
PUT    /contacts/{contact_id}
DELETE /contacts/{contact_id}
POST   /contacts/{contact_id}/photo
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, File, Path, Query, Request, Response, UploadFile
from pydantic import BaseModel, Field

from perema.api.deps import OpContext, Settings
from perema.api.schemas.common import PagedResponse, SuccessResponse
from perema.api.schemas.domains import ContactDetailSchema, ContactSchema
from perema.api.utils import _handle_error, _page_meta

router = APIRouter(prefix="/contacts")


class ContactBody(BaseModel):
    """Fields shared by create and update.

    ``birthday`` accepts ``YYYY-MM-DD`` or ``--MM-DD`` when the year is unknown.
    """

    lastname: str | None = None
    nickname: str | None = None
    gender: str | None = None
    email: str | None = None
    phone: str | None = None
    birthday: str | None = Field(default=None, examples=["1990-05-04", "--05-04"])
    address: str | None = None
    how_we_met: str | None = None
    food_preference: str | None = None
    work_information: str | None = None
    contact_information: str | None = None
    circles: list[str] | None = None


class CreateContactBody(ContactBody):
    firstname: str = Field(min_length=1)


class UpdateContactBody(ContactBody):
    firstname: str | None = None


@router.get("", response_model=PagedResponse[dict[str, Any]])
def list_contacts(
    ctx: OpContext,
    page: int = Query(1, description="Page number (1-indexed); values below 1 become 1"),
    limit: int = Query(25, description="Items per page; values outside 1..100 become 25"),
    fields: str | None = Query(None, description="Comma-separated columns to return (id is always included)"),
    includes: str | None = Query(
        None, description="Comma-separated relations: notes, activities, relationships, reminders"
    ),
    search: str | None = Query(None, description="Substring of first, last or nick name"),
    circle: str | None = Query(None, description="Only contacts in this circle"),
):
    """List contacts, one page at a time.

    Unknown ``fields`` and ``includes`` names are ignored.

    Example:
        GET /api/v1/contacts?fields=firstname,birthday&includes=notes&search=ann

        Response:
        {
            "data": [{"id": 3, "firstname": "Anna", "birthday": "0001-05-04", "notes": []}],
            "page": {"total": 1, "limit": 25, "offset": 0, "has_more": false, "page": 1}
        }
    """
    from perema.ops.contacts import list_contacts as _list
    from perema.ops.requests import ListContactsRequest

    result = _list(
        ctx,
        ListContactsRequest(
            page=page,
            limit=limit,
            fields=fields,
            includes=includes,
            search=search,
            circle=circle,
        ),
    )
    if not result.success:
        return _handle_error(result)
    return PagedResponse(
        data=result.data or [],
        page=_page_meta(result),
        elapsed_ms=result.elapsed_ms,
        warnings=result.warnings,
    )


@router.post("", response_model=SuccessResponse[ContactSchema], status_code=201)
def create_contact(ctx: OpContext, body: CreateContactBody, request: Request):
    """Create a contact."""
    from perema.ops.contacts import create_contact as _create
    from perema.ops.requests import CreateContactRequest

    result = _create(ctx, CreateContactRequest(values=body.model_dump(exclude_unset=True)))
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=ContactSchema(**result.data), elapsed_ms=result.elapsed_ms)


@router.get("/circles", response_model=SuccessResponse[list[str]])
def list_circles(ctx: OpContext):
    """Every circle name in use, sorted; feeds the circle filter."""
    from perema.ops.contacts import list_circles as _circles

    result = _circles(ctx)
    if not result.success:
        return _handle_error(result)
    return SuccessResponse(data=result.data or [], elapsed_ms=result.elapsed_ms)


@router.get("/{contact_id}", response_model=SuccessResponse[ContactDetailSchema])
def get_contact(ctx: OpContext, request: Request, contact_id: int = Path(..., description="Contact ID")):
    """Get one contact with notes, activities, relationships and reminders.

    Raises:
        404 NOT_FOUND: Contact does not exist.
    """
    from perema.ops.contacts import get_contact as _get

    result = _get(ctx, contact_id)
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=ContactDetailSchema(**result.data), elapsed_ms=result.elapsed_ms)


@router.put("/{contact_id}", response_model=SuccessResponse[ContactSchema])
def update_contact(
    ctx: OpContext,
    body: UpdateContactBody,
    request: Request,
    contact_id: int = Path(..., description="Contact ID"),
):
    """Update a contact; only the fields present in the body change."""
    from perema.ops.contacts import update_contact as _update
    from perema.ops.requests import UpdateContactRequest

    result = _update(
        ctx,
        UpdateContactRequest(contact_id=contact_id, values=body.model_dump(exclude_unset=True)),
    )
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=ContactSchema(**result.data), elapsed_ms=result.elapsed_ms)


@router.delete("/{contact_id}", status_code=204)
def delete_contact(
    ctx: OpContext,
    settings: Settings,
    request: Request,
    contact_id: int = Path(..., description="Contact ID"),
):
    """Delete a contact, its records and its photo.

    Returns:
        No content (204) on success.
    """
    from perema.ops.contacts import delete_contact as _delete

    result = _delete(ctx, contact_id, photo_dir=settings.photo_dir)
    if not result.success:
        return _handle_error(result, request)
    return Response(status_code=204)


@router.post("/{contact_id}/photo", response_model=SuccessResponse[ContactSchema])
def upload_photo(
    ctx: OpContext,
    settings: Settings,
    request: Request,
    contact_id: int = Path(..., description="Contact ID"),
    photo: UploadFile = File(..., description="JPEG, PNG, WebP or GIF image"),
):
    """Upload (or replace) a contact's profile photo.

    The stored photo is served from ``/photos/<name>``.
    """
    from perema.ops.contacts import set_contact_photo
    from perema.ops.requests import UploadPhotoRequest

    # one byte over the limit is enough to reject
    data = photo.file.read(settings.max_photo_size_bytes + 1)
    result = set_contact_photo(
        ctx,
        UploadPhotoRequest(
            contact_id=contact_id,
            filename=photo.filename or "",
            content_type=photo.content_type,
            data=data,
        ),
        photo_dir=settings.photo_dir,
        max_bytes=settings.max_photo_size_bytes,
    )
    if not result.success:
        return _handle_error(result, request)
    return SuccessResponse(data=ContactSchema(**result.data), elapsed_ms=result.elapsed_ms)
