"""Note operations."""

from __future__ import annotations

from typing import Any

from perema.core.logging import get_logger
from perema.core.orm.tables import Note
from perema.core.repositories import NoteRepository
from perema.ops._helpers import failed, reject_unknown, require, require_contact, require_text
from perema.ops.context import OperationContext
from perema.ops.requests import CreateRecordRequest, UpdateRecordRequest
from perema.ops.responses import note_dict
from perema.ops.result import OperationResult, start_timer

logger = get_logger(__name__)

NOTE_FIELDS: tuple[str, ...] = ("content", "date")


def _clean(values: dict[str, Any], *, creating: bool) -> dict[str, Any]:
    reject_unknown(values, NOTE_FIELDS, "note")
    cleaned = dict(values)
    require_text(cleaned, "content", creating=creating)
    if cleaned.get("date", ...) is None:
        # an explicit null resets to the column default (today)
        cleaned.pop("date")
    return cleaned


def list_notes(ctx: OperationContext, contact_id: int) -> OperationResult[list[dict[str, Any]]]:
    """Notes of one contact, newest first."""
    timer = start_timer()
    try:
        require_contact(ctx, contact_id)
        notes = NoteRepository(ctx.session).for_contact(contact_id)
        return OperationResult.ok([note_dict(n) for n in notes], elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "retrieve notes", timer.elapsed_ms)


def create_note(ctx: OperationContext, request: CreateRecordRequest) -> OperationResult[dict[str, Any]]:
    timer = start_timer()
    try:
        require_contact(ctx, request.contact_id)
        values = _clean(request.values, creating=True)
        note = NoteRepository(ctx.session).add(Note(contact_id=request.contact_id, **values))
        ctx.session.commit()
        logger.info("note_created", note_id=note.id, contact_id=note.contact_id)
        return OperationResult.ok(note_dict(note), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "save note", timer.elapsed_ms)


def get_note(ctx: OperationContext, note_id: int) -> OperationResult[dict[str, Any]]:
    timer = start_timer()
    try:
        note = require(NoteRepository(ctx.session), note_id, "Note")
        return OperationResult.ok(note_dict(note), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "get note", timer.elapsed_ms)


def update_note(ctx: OperationContext, request: UpdateRecordRequest) -> OperationResult[dict[str, Any]]:
    timer = start_timer()
    try:
        repo = NoteRepository(ctx.session)
        note = require(repo, request.record_id, "Note")
        repo.apply(note, _clean(request.values, creating=False))
        ctx.session.commit()
        return OperationResult.ok(note_dict(note), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "update note", timer.elapsed_ms)


def delete_note(ctx: OperationContext, note_id: int) -> OperationResult[None]:
    timer = start_timer()
    try:
        repo = NoteRepository(ctx.session)
        repo.delete(require(repo, note_id, "Note"))
        ctx.session.commit()
        logger.info("note_deleted", note_id=note_id)
        return OperationResult.ok(None, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "delete note", timer.elapsed_ms)
