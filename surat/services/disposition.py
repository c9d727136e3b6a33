"""
Disposition Service: the dean's dispatch to officers and their processing.

Flow:
    FORWARDED_TO_DEKAN
      └─ create_disposition ──→ DISPOSISI_TO_<first officer>
           └─ process_disposition (per officer, ascending order_sequence)
                ├─ escalate               → ESCALATED, handler = an admin
                ├─ flag_for_coordination  → FORWARDED_TO_DEKAN, handler = a dean
                ├─ next step exists       → status unchanged, handler = next officer
                └─ last step              → TTD_READY, handler = a dean

At most one assignment is active per request: the un-completed row with the
lowest ``order_sequence``, whose assignee is the request's current handler.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from surat.core.exceptions import (
    ConfigurationMissingError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from surat.models import db
from surat.models.directory import User
from surat.models.letter import DispositionAssignment, RequestStatus
from surat.models.roles import UserRole, disposition_status_for, disposition_statuses
from surat.models.tracking import ActionType, write_tracking_log
from surat.services import permission
from surat.services.lifecycle import apply_transition, get_request_or_404
from surat.services.role_directory import RoleDirectory, default_directory, require_any
from surat.utils.helpers import transaction

logger = logging.getLogger(__name__)

SUPERSEDED_NOTE = "Superseded by a new disposition"


def _normalize_assignments(raw: list[dict]) -> list[dict]:
    if not raw:
        raise ValidationError("At least one disposition assignment is required")
    out = []
    for item in raw:
        try:
            user_id = int(item["assigned_to_user_id"])
            seq = int(item["order_sequence"])
        except (KeyError, TypeError, ValueError):
            raise ValidationError(
                "Each assignment needs integer assigned_to_user_id and order_sequence",
                details={"assignment": item},
            )
        out.append({"assigned_to_user_id": user_id, "order_sequence": seq})
    sequences = [a["order_sequence"] for a in out]
    if len(set(sequences)) != len(sequences):
        raise ValidationError("order_sequence values must be unique", details={"order_sequence": sequences})
    return sorted(out, key=lambda a: a["order_sequence"])


# ═════════════════════════════════════════════════════════════════════════════
# Create
# ═════════════════════════════════════════════════════════════════════════════

def create_disposition(
    request_id: int,
    instructions: str,
    assignments: list[dict],
    dekan_user_id: int,
) -> list[DispositionAssignment]:
    """Dispatch a FORWARDED_TO_DEKAN request to one or more officers.

    Args:
        assignments: ``[{"assigned_to_user_id": int, "order_sequence": int}, ...]``
            Sequences must be unique and, on a request that was dispositioned
            before, greater than every existing sequence.  Un-completed steps
            left over from an earlier disposition are closed as superseded.

    Returns:
        The created assignments in ascending ``order_sequence``.

    Raises:
        PermissionDeniedError: actor is not a dean.
        NotFoundError: request or an assignee missing.
        InvalidStateError: request not in FORWARDED_TO_DEKAN.
        ValidationError: empty/malformed batch or sequence collision.
        ConfigurationMissingError: an assignee's role has no disposition status.
    """
    dekan = db.session.get(User, dekan_user_id) if dekan_user_id is not None else None
    if not permission.can_create_disposition(dekan):
        raise PermissionDeniedError(
            dekan_user_id, "create_disposition", "Only Dekan can create disposition assignments",
        )

    req = get_request_or_404(request_id)
    if req.status != RequestStatus.FORWARDED_TO_DEKAN.value:
        raise InvalidStateError(
            f"Letter request must be in FORWARDED_TO_DEKAN status to create disposition. "
            f"Current status: {req.status}",
            current_status=req.status,
        )

    batch = _normalize_assignments(assignments)

    existing = [a.order_sequence for a in req.disposition_assignments]
    if existing and batch[0]["order_sequence"] <= max(existing):
        raise ValidationError(
            f"order_sequence must be greater than {max(existing)} for this request",
            details={"existing_max": max(existing)},
        )

    assignees = {}
    for item in batch:
        uid = item["assigned_to_user_id"]
        user = db.session.get(User, uid)
        if not user:
            raise NotFoundError("User", uid, message=f"Assigned user with ID {uid} not found")
        if not disposition_status_for(user.role):
            raise ConfigurationMissingError(
                user.role, f"No disposition status configured for role: {user.role}",
            )
        assignees[uid] = user

    first = assignees[batch[0]["assigned_to_user_id"]]
    first_status = disposition_status_for(first.role)

    with transaction():
        now = datetime.now(timezone.utc)
        for stale in req.disposition_assignments:
            if not stale.is_completed:
                stale.is_completed = True
                stale.completed_at = now
                stale.notes = SUPERSEDED_NOTE

        created = []
        for item in batch:
            row = DispositionAssignment(
                letter_request_id=req.id,
                assigned_to_user_id=item["assigned_to_user_id"],
                assigned_by_user_id=dekan.id,
                instructions=instructions,
                order_sequence=item["order_sequence"],
            )
            db.session.add(row)
            created.append(row)
        db.session.flush()

        req.dekan_instructions = instructions
        previous = apply_transition(req, first_status, first.id, dekan.id)
        write_tracking_log(
            letter_request_id=req.id,
            user_id=dekan.id,
            action_type=ActionType.DISPOSISI_ASSIGNED,
            description=f"Disposition assignments created by Dekan for {len(created)} officers",
            notes=instructions,
            previous_status=previous,
            new_status=first_status,
        )

    logger.info(
        "Disposition created",
        extra={"letter_request_id": req.id, "assignments": len(created), "first_handler": first.id},
    )
    return created


# ═════════════════════════════════════════════════════════════════════════════
# Process
# ═════════════════════════════════════════════════════════════════════════════

def _next_step(assignment: DispositionAssignment) -> DispositionAssignment | None:
    return (
        DispositionAssignment.query
        .filter(
            DispositionAssignment.letter_request_id == assignment.letter_request_id,
            DispositionAssignment.order_sequence > assignment.order_sequence,
            DispositionAssignment.is_completed.is_(False),
        )
        .order_by(DispositionAssignment.order_sequence.asc())
        .first()
    )


def _active_step(request_id: int) -> DispositionAssignment | None:
    return (
        DispositionAssignment.query
        .filter(
            DispositionAssignment.letter_request_id == request_id,
            DispositionAssignment.is_completed.is_(False),
        )
        .order_by(DispositionAssignment.order_sequence.asc())
        .first()
    )


def process_disposition(
    assignment_id: int,
    acting_user_id: int,
    notes: str | None = None,
    escalate: bool = False,
    flag_for_coordination: bool = False,
    *,
    directory: RoleDirectory = default_directory,
) -> DispositionAssignment:
    """
    Complete the acting officer's disposition step and route the request.

    Missing, someone else's, and already-completed assignments all raise
    the same ``NotFoundError("Assignment not found")``.

    ``escalate`` wins over ``flag_for_coordination``.

    Raises:
        NotFoundError: assignment not found / not yours / already completed.
        InvalidStateError: request is not in a disposition status, or the
            assignment is not the active step.
        ConfigurationMissingError: no admin / dean to route to.
    """
    assignment = db.session.get(DispositionAssignment, assignment_id)
    if assignment is None or assignment.assigned_to_user_id != acting_user_id or assignment.is_completed:
        reason = (
            "missing" if assignment is None
            else "completed" if assignment.is_completed
            else "not_assignee"
        )
        logger.debug(
            "Disposition assignment %s rejected: %s", assignment_id, reason,
            extra={"assignment_id": assignment_id, "user_id": acting_user_id, "reason": reason},
        )
        raise NotFoundError("DispositionAssignment", assignment_id, message="Assignment not found")

    req = assignment.letter_request
    if req.status not in disposition_statuses():
        raise InvalidStateError(
            f"Letter request is not under disposition. Current status: {req.status}",
            current_status=req.status,
        )
    active = _active_step(req.id)
    if active is None or active.id != assignment.id:
        raise InvalidStateError(
            "Disposition assignment is not the active step for this request",
            current_status=req.status,
        )

    # Resolve routing targets before any write
    if escalate:
        admin = require_any(directory, UserRole.ADMIN, message="No ADMIN user found to escalate to")
        target = (RequestStatus.ESCALATED.value, admin.id, ActionType.ESCALATED,
                  "Request escalated to admin")
    elif flag_for_coordination:
        dekan = require_any(directory, UserRole.DEKAN, message="No DEKAN user found for coordination")
        target = (RequestStatus.FORWARDED_TO_DEKAN.value, dekan.id, ActionType.PROCESSED,
                  "Request flagged for dean coordination")
    else:
        nxt = _next_step(assignment)
        if nxt is not None:
            target = (req.status, nxt.assigned_to_user_id, ActionType.PROCESSED,
                      "Disposition assignment completed")
        else:
            dekan = require_any(directory, UserRole.DEKAN, message="No DEKAN user found to sign")
            target = (RequestStatus.TTD_READY.value, dekan.id, ActionType.PROCESSED,
                      "All disposition assignments completed, ready for signing")

    new_status, handler_id, action, description = target

    with transaction():
        assignment.is_completed = True
        assignment.completed_at = datetime.now(timezone.utc)
        assignment.notes = notes
        previous = apply_transition(req, new_status, handler_id, acting_user_id)
        write_tracking_log(
            letter_request_id=req.id,
            user_id=acting_user_id,
            action_type=action,
            description=description,
            notes=notes,
            previous_status=previous,
            new_status=new_status,
        )
    return assignment
