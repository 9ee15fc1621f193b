"""Activity operations: things done together with a contact."""

from __future__ import annotations

from typing import Any

from perema.core.logging import get_logger
from perema.core.orm.tables import Activity
from perema.core.repositories import ActivityRepository
from perema.ops._helpers import failed, reject_unknown, require, require_contact, require_text
from perema.ops.context import OperationContext
from perema.ops.requests import CreateRecordRequest, UpdateRecordRequest
from perema.ops.responses import activity_dict
from perema.ops.result import OperationResult, start_timer

logger = get_logger(__name__)

ACTIVITY_FIELDS: tuple[str, ...] = ("name", "description", "location", "date")


def _clean(values: dict[str, Any], *, creating: bool) -> dict[str, Any]:
    reject_unknown(values, ACTIVITY_FIELDS, "activity")
    cleaned = dict(values)
    require_text(cleaned, "name", creating=creating)
    return cleaned


def list_activities(ctx: OperationContext, contact_id: int) -> OperationResult[list[dict[str, Any]]]:
    timer = start_timer()
    try:
        require_contact(ctx, contact_id)
        rows = ActivityRepository(ctx.session).for_contact(contact_id)
        return OperationResult.ok([activity_dict(a) for a in rows], elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "retrieve activities", timer.elapsed_ms)


def create_activity(ctx: OperationContext, request: CreateRecordRequest) -> OperationResult[dict[str, Any]]:
    timer = start_timer()
    try:
        require_contact(ctx, request.contact_id)
        values = _clean(request.values, creating=True)
        activity = ActivityRepository(ctx.session).add(
            Activity(contact_id=request.contact_id, **values)
        )
        ctx.session.commit()
        logger.info("activity_created", activity_id=activity.id, contact_id=activity.contact_id)
        return OperationResult.ok(activity_dict(activity), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "save activity", timer.elapsed_ms)


def get_activity(ctx: OperationContext, activity_id: int) -> OperationResult[dict[str, Any]]:
    timer = start_timer()
    try:
        activity = require(ActivityRepository(ctx.session), activity_id, "Activity")
        return OperationResult.ok(activity_dict(activity), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "get activity", timer.elapsed_ms)


def update_activity(ctx: OperationContext, request: UpdateRecordRequest) -> OperationResult[dict[str, Any]]:
    timer = start_timer()
    try:
        repo = ActivityRepository(ctx.session)
        activity = require(repo, request.record_id, "Activity")
        repo.apply(activity, _clean(request.values, creating=False))
        ctx.session.commit()
        return OperationResult.ok(activity_dict(activity), elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "update activity", timer.elapsed_ms)


def delete_activity(ctx: OperationContext, activity_id: int) -> OperationResult[None]:
    timer = start_timer()
    try:
        repo = ActivityRepository(ctx.session)
        repo.delete(require(repo, activity_id, "Activity"))
        ctx.session.commit()
        logger.info("activity_deleted", activity_id=activity_id)
        return OperationResult.ok(None, elapsed_ms=timer.elapsed_ms)
    except Exception as exc:
        return failed(ctx, exc, "delete activity", timer.elapsed_ms)
