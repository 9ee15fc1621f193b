"""
Contact operations.

CRUD for contacts, the filtered listing used by the contact overview, the
circle catalogue and profile-photo storage.

Listing rules (``list_contacts``):

* ``page < 1`` → 1; ``limit`` outside ``1..100`` → 25.
* ``fields`` is whitelisted against :data:`CONTACT_FIELDS`; unknown names
  are dropped and ``id`` is always returned.  Omitting ``fields`` returns
  every whitelisted column.
* ``includes`` is whitelisted against the four contact relations.
* ``total`` counts every contact matching ``search``/``circle``.
"""

from __future__ import annotations

import datetime
import os
import uuid
from pathlib import Path
from typing import Any

from perema.core.errors import StorageError, ValidationError
from perema.core.logging import get_logger
from perema.core.orm.tables import UNKNOWN_BIRTH_YEAR, Contact
from perema.core.repositories import (
    CONTACT_RELATIONS,
    ContactRepository,
    PageSlice,
    RelationshipRepository,
    split_csv,
)
from perema.ops._helpers import failed, reject_unknown, require, require_text
from perema.ops.context import OperationContext
from perema.ops.requests import (
    CreateContactRequest,
    ListContactsRequest,
    UpdateContactRequest,
    UploadPhotoRequest,
)
from perema.ops.responses import CONTACT_FIELDS, contact_dict
from perema.ops.result import OperationResult, PagedResult, start_timer

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 25
MAX_PAGE_SIZE = 100

PHOTO_URL_PREFIX = "/photos/"
ALLOWED_PHOTO_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}
ALLOWED_PHOTO_MIME_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}


def _repo(ctx: OperationContext) -> ContactRepository:
    return ContactRepository(ctx.session)


# ------------------------------------------------------------------ #
# Value handling
# ------------------------------------------------------------------ #


def parse_birthday(value: Any) -> datetime.date | None:
    """Accept a date, ``YYYY-MM-DD`` or ``--MM-DD`` (year unknown)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime.datetime):
        return value.date()
    if isinstance(value, datetime.date):
        return value
    text = str(value).strip()
    if text.startswith("--"):
        text = f"{UNKNOWN_BIRTH_YEAR:04d}-{text[2:]}"
    try:
        return datetime.date.fromisoformat(text)
    except ValueError:
        raise ValidationError(
            f"Invalid birthday {value!r}; expected YYYY-MM-DD or --MM-DD", field="birthday"
        ) from None


def normalize_circles(value: Any) -> list[str]:
    """Strip, drop blanks and de-duplicate circle names, keeping order."""
    if value is None:
        return []
    if isinstance(value, str):
        value = split_csv(value)
    if not isinstance(value, (list, tuple)):
        raise ValidationError("circles must be a list of strings", field="circles")
    seen: dict[str, None] = {}
    for item in value:
        if not isinstance(item, str):
            raise ValidationError("circles must be a list of strings", field="circles")
        name = item.strip()
        if name:
            seen.setdefault(name, None)
    return list(seen)


def _clean_values(values: dict[str, Any], *, creating: bool) -> dict[str, Any]:
    reject_unknown(values, CONTACT_FIELDS, "contact")

    cleaned = dict(values)
    require_text(cleaned, "firstname", creating=creating)
    if "birthday" in cleaned:
        cleaned["birthday"] = parse_birthday(cleaned["birthday"])
    if "circles" in cleaned or creating:
        cleaned["circles"] = normalize_circles(cleaned.get("circles"))
    return cleaned


def _require(repo: ContactRepository, contact_id: int) -> Contact:
    return require(repo, contact_id, "Contact")


# ------------------------------------------------------------------ #
# Listing
# ------------------------------------------------------------------ #


def resolve_fields(raw: str | None) -> list[str]:
    """Whitelist a ``fields`` parameter; ``None``/empty means every column."""
    if not raw:
        return list(CONTACT_FIELDS)
    requested = split_csv(raw)
    return [name for name in CONTACT_FIELDS if name in requested]


def resolve_includes(raw: str | None) -> list[str]:
    requested = split_csv(raw)
    return [name for name in CONTACT_RELATIONS if name in requested]


def list_contacts(ctx: OperationContext, request: ListContactsRequest) -> PagedResult[dict[str, Any]]:
    """List one page of contacts with optional projection, relations and filters."""
    timer = start_timer()

    page = request.page if request.page >= 1 else 1
    limit = request.limit if 1 <= request.limit <= MAX_PAGE_SIZE else DEFAULT_PAGE_SIZE
    offset = (page - 1) * limit

    fields = resolve_fields(request.fields)
    includes = resolve_includes(request.includes)
    search = (request.search or "").strip() or None
    circle = (request.circle or "").strip() or None

    try:
        rows, total = _repo(ctx).list_page(
            columns=fields,
            includes=includes,
            search=search,
            circle=circle,
            page=PageSlice(limit=limit, offset=offset),
        )
        items = [contact_dict(c, fields, includes) for c in rows]
        return PagedResult.from_items(
            items,
            total=total,
            limit=limit,
            offset=offset,
            page=page,
            elapsed_ms=timer.elapsed_ms,
        )
    except Exception as exc:
        logger.exception("op_failed", op="list_contacts", error=str(exc))
        return PagedResult.fail(
            "INTERNAL", f"Failed to retrieve contacts: {exc}", elapsed_ms=timer.elapsed_ms
        )


def list_circles(ctx: OperationContext) -> OperationResult[list[str]]:
    """Every distinct circle name in use, sorted."""
    timer = start_timer()
    try:
        return OperationResult.ok(_repo(ctx).circles(), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        logger.exception("op_failed", op="list_circles", error=str(exc))
        return OperationResult.fail(
            "INTERNAL", f"Failed to retrieve circles: {exc}", elapsed_ms=timer.elapsed_ms
        )


# ------------------------------------------------------------------ #
# CRUD
# ------------------------------------------------------------------ #


def create_contact(ctx: OperationContext, request: CreateContactRequest) -> OperationResult[dict[str, Any]]:
    """Create a contact."""
    timer = start_timer()
    try:
        values = _clean_values(request.values, creating=True)
        contact = _repo(ctx).add(Contact(**values))
        ctx.session.commit()
        logger.info("contact_created", contact_id=contact.id, caller=ctx.caller)
        return OperationResult.ok(contact_dict(contact), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "save contact", timer.elapsed_ms)


def get_contact(ctx: OperationContext, contact_id: int) -> OperationResult[dict[str, Any]]:
    """Return a contact with notes, activities, relationships and reminders."""
    timer = start_timer()
    try:
        contact = _repo(ctx).get_full(contact_id)
        if contact is None:
            return OperationResult.fail(
                "NOT_FOUND", f"Contact {contact_id} not found", elapsed_ms=timer.elapsed_ms
            )
        return OperationResult.ok(
            contact_dict(contact, includes=CONTACT_RELATIONS), elapsed_ms=timer.elapsed_ms
        )
    except Exception as exc:
        return failed(ctx, exc, "get contact", timer.elapsed_ms)


def update_contact(ctx: OperationContext, request: UpdateContactRequest) -> OperationResult[dict[str, Any]]:
    """Apply the provided fields to an existing contact."""
    timer = start_timer()
    try:
        repo = _repo(ctx)
        contact = _require(repo, request.contact_id)
        values = _clean_values(request.values, creating=False)
        repo.apply(contact, values)
        ctx.session.commit()
        logger.info("contact_updated", contact_id=contact.id, fields=sorted(values))
        return OperationResult.ok(contact_dict(contact), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "update contact", timer.elapsed_ms)


def delete_contact(
    ctx: OperationContext,
    contact_id: int,
    *,
    photo_dir: Path | None = None,
) -> OperationResult[None]:
    """Delete a contact and everything it owns.

    Relationships of *other* contacts pointing here keep their name but
    lose the link.  The stored photo is removed when *photo_dir* is given.
    """
    timer = start_timer()
    try:
        repo = _repo(ctx)
        contact = _require(repo, contact_id)
        photo = contact.photo
        for rel in RelationshipRepository(ctx.session).pointing_at(contact_id):
            rel.related_contact_id = None
        repo.delete(contact)
        ctx.session.commit()
        if photo_dir is not None:
            _remove_photo(photo_dir, photo)
        logger.info("contact_deleted", contact_id=contact_id)
        return OperationResult.ok(None, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "delete contact", timer.elapsed_ms)


# ------------------------------------------------------------------ #
# Photos
# ------------------------------------------------------------------ #


def validate_photo(request: UploadPhotoRequest, max_bytes: int) -> str:
    """Check name, type and size of an upload; return the lower-cased extension."""
    if not request.filename:
        raise ValidationError("No filename provided", field="photo")
    if ".." in request.filename or "/" in request.filename or "\\" in request.filename:
        raise ValidationError("Invalid filename", field="photo")

    ext = os.path.splitext(request.filename.lower())[1]
    if ext not in ALLOWED_PHOTO_EXTENSIONS:
        allowed = ", ".join(sorted(ALLOWED_PHOTO_EXTENSIONS))
        raise ValidationError(f"Invalid file type. Allowed: {allowed}", field="photo")
    if request.content_type not in ALLOWED_PHOTO_MIME_TYPES:
        allowed = ", ".join(sorted(ALLOWED_PHOTO_MIME_TYPES))
        raise ValidationError(f"Invalid MIME type. Allowed: {allowed}", field="photo")
    if not request.data:
        raise ValidationError("Uploaded file is empty", field="photo")
    if len(request.data) > max_bytes:
        raise ValidationError(
            f"File too large. Maximum size is {max_bytes // (1024 * 1024)}MB", field="photo"
        )
    return ext


def _remove_photo(photo_dir: Path, stored: str | None) -> None:
    if not stored or not stored.startswith(PHOTO_URL_PREFIX):
        return
    path = photo_dir / Path(stored).name
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("photo_remove_failed", path=str(path), error=str(exc))


def set_contact_photo(
    ctx: OperationContext,
    request: UploadPhotoRequest,
    *,
    photo_dir: Path,
    max_bytes: int,
) -> OperationResult[dict[str, Any]]:
    """Store an uploaded profile photo and point the contact at it."""
    timer = start_timer()
    written: Path | None = None
    try:
        repo = _repo(ctx)
        contact = _require(repo, request.contact_id)
        ext = validate_photo(request, max_bytes)

        name = f"contact-{contact.id}-{uuid.uuid4().hex}{ext}"
        try:
            photo_dir.mkdir(parents=True, exist_ok=True)
            written = photo_dir / name
            written.write_bytes(request.data)
        except OSError as exc:
            raise StorageError(f"Could not store photo: {exc}", cause=exc) from exc

        previous = contact.photo
        contact.photo = f"{PHOTO_URL_PREFIX}{name}"
        ctx.session.commit()
        _remove_photo(photo_dir, previous)
        logger.info("contact_photo_stored", contact_id=contact.id, photo=contact.photo)
        return OperationResult.ok(contact_dict(contact), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        if written is not None and written.exists() and not isinstance(exc, StorageError):
            written.unlink(missing_ok=True)
        return failed(ctx, exc, "store photo", timer.elapsed_ms)
