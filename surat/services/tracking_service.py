"""
Tracking Service: manual trail entries and trail reads.

Status-changing services write their own rows through
``surat.models.tracking.write_tracking_log``; this module covers the
user-facing side: adding a note-style entry and reading the trail.
"""

from __future__ import annotations

import logging

from surat.core.exceptions import (
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from surat.models import db
from surat.models.directory import User
from surat.models.letter import VALID_STATUSES, LetterRequest
from surat.models.tracking import VALID_ACTION_TYPES, TrackingLog, write_tracking_log
from surat.services import permission
from surat.utils.helpers import transaction

logger = logging.getLogger(__name__)


def add_tracking_log(
    letter_request_id: int,
    user_id: int,
    action_type: str,
    description: str,
    notes: str | None = None,
    previous_status: str | None = None,
    new_status: str | None = None,
) -> TrackingLog:
    """Append a manual entry to a request's trail.

    The entry never moves the request: a supplied ``new_status`` must equal
    the request's current status.

    Raises:
        NotFoundError: request or user missing.
        ValidationError: unknown action type / status, or empty description.
        PermissionDeniedError: user may not see this request's trail.
        InvalidStateError: ``new_status`` differs from the current status.
    """
    action_type = getattr(action_type, "value", action_type)
    if action_type not in VALID_ACTION_TYPES:
        raise ValidationError(f"Invalid action type '{action_type}'")
    if not (description or "").strip():
        raise ValidationError("description is required", details={"description": "required"})
    for field, value in (("previous_status", previous_status), ("new_status", new_status)):
        value = getattr(value, "value", value)
        if value is not None and value not in VALID_STATUSES:
            raise ValidationError(f"Invalid {field} '{value}'")

    req = db.session.get(LetterRequest, letter_request_id)
    if not req:
        raise NotFoundError("Letter request", letter_request_id)
    user = db.session.get(User, user_id) if user_id is not None else None
    if not user:
        raise NotFoundError("User", user_id)

    if not permission.can_view_tracking_logs(user, req):
        raise PermissionDeniedError(
            user.id, "add_tracking_log",
            "User does not have permission to add tracking entries to this request",
        )
    new_status = getattr(new_status, "value", new_status)
    if new_status is not None and new_status != req.status:
        raise InvalidStateError(
            f"new_status {new_status} does not match current status {req.status}",
            current_status=req.status,
        )

    with transaction():
        log = write_tracking_log(
            letter_request_id=req.id,
            user_id=user.id,
            action_type=action_type,
            description=description,
            notes=notes,
            previous_status=previous_status,
            new_status=new_status,
        )
    logger.info(
        "Tracking entry added",
        extra={"letter_request_id": req.id, "user_id": user.id, "action_type": action_type},
    )
    return log


def get_tracking_logs(letter_request_id: int, acting_user_id: int | None = None) -> list[TrackingLog]:
    """Return the trail in chronological order.

    Unknown request, unknown actor, or an actor without visibility all yield
    an empty list.  ``acting_user_id=None`` skips the visibility check
    (internal callers).
    """
    req = db.session.get(LetterRequest, letter_request_id)
    if not req:
        return []
    if acting_user_id is not None:
        user = db.session.get(User, acting_user_id)
        if not permission.can_view_tracking_logs(user, req):
            return []
    return (
        TrackingLog.query
        .filter_by(letter_request_id=req.id)
        .order_by(TrackingLog.created_at.asc(), TrackingLog.id.asc())
        .all()
    )
