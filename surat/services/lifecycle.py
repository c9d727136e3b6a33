"""
Letter Request Lifecycle Service

Owns ``LetterRequest.status`` and ``current_handler``: validates every
transition, picks the next handler, and writes the tracking trail.

Operations:
  create_letter_request       → DRAFT, handler = program chair of the student's prodi
  update_request_status       generic approve / forward / reject / return / archive steps
  upload_final_letter         PROCESSED_BY_<officer> → TTD_READY, handler = a dean
  sign_letter                 TTD_READY → TTD_DONE, handler = faculty staff (two log rows)
  upload_supporting_document  append a document, no status change

Disposition steps (FORWARDED_TO_DEKAN → DISPOSISI_TO_* → …) live in
``surat.services.disposition``.

Every operation runs inside ``transaction()``: status, handler and tracking
rows are committed together or not at all.

Usage:
    from surat.services import lifecycle

    req = lifecycle.create_letter_request(
        student_id=1,
        letter_type="Surat Keterangan Aktif",
        purpose="Beasiswa",
        priority="NORMAL",
        acting_user_id=staff.id,
    )
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from surat.core.exceptions import (
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from surat.models import db
from surat.models.directory import Student, User
from surat.models.letter import (
    OPERATION_OWNED_STATUSES,
    STATUS_HANDLER_ROLE,
    TERMINAL_STATUSES,
    VALID_PRIORITIES,
    VALID_STATUSES,
    LetterRequest,
    RequestStatus,
    SupportingDocument,
)
from surat.models.roles import UserRole, processed_statuses
from surat.models.tracking import ActionType, write_tracking_log
from surat.services import permission
from surat.services.role_directory import RoleDirectory, default_directory, require_any
from surat.utils.helpers import transaction

logger = logging.getLogger(__name__)

SIGNATURE_PREVIEW_CHARS = 20

# Target status → action type recorded by update_request_status
_STATUS_ACTION = {
    RequestStatus.REJECTED.value: ActionType.REJECTED,
    RequestStatus.FORWARDED_TO_DEKAN.value: ActionType.FORWARDED,
    RequestStatus.RETURNED_TO_PRODI.value: ActionType.RETURNED,
    RequestStatus.PRINTED.value: ActionType.PRINTED,
    RequestStatus.DELIVERED.value: ActionType.DELIVERED,
    RequestStatus.ARCHIVED.value: ActionType.ARCHIVED,
}


# ── Shared helpers ───────────────────────────────────────────────────────────

def _now() -> datetime:
    return datetime.now(timezone.utc)


def get_request_or_404(request_id: int) -> LetterRequest:
    req = db.session.get(LetterRequest, request_id)
    if not req:
        raise NotFoundError("Letter request", request_id)
    return req


def get_user_or_404(user_id: int, label: str = "User") -> User:
    user = db.session.get(User, user_id) if user_id is not None else None
    if not user:
        raise NotFoundError(label, user_id)
    return user


def apply_transition(
    req: LetterRequest, new_status: str, handler_id: int | None, actor_id: int | None = None,
) -> str:
    """Set status + handler + updated_at; return the previous status.

    Callers have already validated the transition and run inside a
    transaction together with the matching tracking row.
    """
    previous = req.status
    req.status = getattr(new_status, "value", new_status)
    req.current_handler_user_id = handler_id
    req.updated_at = _now()
    logger.info(
        "Letter request %s: %s → %s",
        req.id, previous, req.status,
        extra={
            "letter_request_id": req.id,
            "previous_status": previous,
            "new_status": req.status,
            "handler_id": handler_id,
            "actor_id": actor_id,
        },
    )
    return previous


def validate_transition(req: LetterRequest, new_status: str) -> dict:
    """
    Check whether update_request_status may move *req* to *new_status*.

    Archived requests are frozen; statuses entered through a dedicated
    operation (disposition, final letter, signing, escalation) are refused.

    Returns:
        {"valid": bool, "from": str, "to": str, "reason": str|None}
    """
    if req.status in TERMINAL_STATUSES:
        return {"valid": False, "from": req.status, "to": new_status,
                "reason": f"Letter request is {req.status} and can no longer change status"}
    if new_status in OPERATION_OWNED_STATUSES:
        return {"valid": False, "from": req.status, "to": new_status,
                "reason": f"Status {new_status} is set by its own operation, not by a status update"}
    return {"valid": True, "from": req.status, "to": new_status, "reason": None}


# ═════════════════════════════════════════════════════════════════════════════
# Create
# ═════════════════════════════════════════════════════════════════════════════

def create_letter_request(
    student_id: int,
    letter_type: str,
    purpose: str,
    priority: str,
    acting_user_id: int,
    documents: list[dict] | None = None,
    *,
    directory: RoleDirectory = default_directory,
) -> LetterRequest:
    """Create a DRAFT request routed to the program chair of the student's prodi.

    Args:
        documents: Optional ``[{"file_name", "file_url"}]`` attached on creation,
            attributed to the creator.

    Raises:
        NotFoundError: student, creator, or program chair missing.
        ValidationError: unknown priority or malformed document entry.
    """
    priority = getattr(priority, "value", priority)
    if priority not in VALID_PRIORITIES:
        raise ValidationError(f"Invalid priority '{priority}'", details={"priority": sorted(VALID_PRIORITIES)})
    documents = documents or []
    for doc in documents:
        if not doc.get("file_name") or not doc.get("file_url"):
            raise ValidationError("Each supporting document needs file_name and file_url")

    student = db.session.get(Student, student_id)
    if not student:
        raise NotFoundError("Student", student_id, message="Student not found")
    creator = get_user_or_404(acting_user_id)

    kaprodi = directory.find_any(UserRole.KAPRODI, prodi=student.prodi)
    if kaprodi is None:
        raise NotFoundError("Kaprodi", message=f"No Kaprodi found for prodi: {student.prodi}")

    with transaction():
        req = LetterRequest(
            student_id=student.id,
            created_by_user_id=creator.id,
            letter_type=letter_type,
            purpose=purpose,
            priority=priority,
            status=RequestStatus.DRAFT.value,
            current_handler_user_id=kaprodi.id,
        )
        db.session.add(req)
        db.session.flush()

        for doc in documents:
            db.session.add(SupportingDocument(
                letter_request_id=req.id,
                file_name=doc["file_name"],
                file_url=doc["file_url"],
                uploaded_by_user_id=creator.id,
            ))

        write_tracking_log(
            letter_request_id=req.id,
            user_id=creator.id,
            action_type=ActionType.CREATED,
            description=f"Letter request created: {letter_type}",
            notes=f"Purpose: {purpose}",
            previous_status=None,
            new_status=RequestStatus.DRAFT,
        )

    logger.info(
        "Letter request created",
        extra={"letter_request_id": req.id, "student_id": student.id, "handler_id": kaprodi.id},
    )
    return req


# ═════════════════════════════════════════════════════════════════════════════
# Generic status transition
# ═════════════════════════════════════════════════════════════════════════════

def update_request_status(
    request_id: int,
    new_status: str,
    acting_user_id: int,
    notes: str | None = None,
    next_handler_user_id: int | None = None,
) -> LetterRequest:
    """
    Apply a simple approve / forward / reject / return / archive step.

    The handler is replaced only when *next_handler_user_id* is given.

    Raises:
        NotFoundError: request or next handler missing.
        ValidationError: unknown status value.
        PermissionDeniedError: actor is neither creator nor current handler.
        InvalidStateError: request archived, target owned by a dedicated
            operation, or handler role does not match the target status.
    """
    new_status = getattr(new_status, "value", new_status)
    if new_status not in VALID_STATUSES:
        raise ValidationError(f"Invalid status '{new_status}'")

    req = get_request_or_404(request_id)

    if not permission.can_update_status(acting_user_id, req):
        raise PermissionDeniedError(
            acting_user_id, "update_status",
            "User does not have permission to update this request",
        )

    validation = validate_transition(req, new_status)
    if not validation["valid"]:
        raise InvalidStateError(validation["reason"], current_status=req.status)

    handler_id = req.current_handler_user_id
    if next_handler_user_id is not None:
        handler = get_user_or_404(next_handler_user_id, label="Next handler")
        expected_role = STATUS_HANDLER_ROLE.get(new_status)
        if expected_role and handler.role != expected_role:
            raise InvalidStateError(
                f"Handler for status {new_status} must have role {expected_role}, got {handler.role}",
                current_status=req.status,
            )
        handler_id = handler.id

    with transaction():
        previous = apply_transition(req, new_status, handler_id, acting_user_id)
        write_tracking_log(
            letter_request_id=req.id,
            user_id=acting_user_id,
            action_type=_STATUS_ACTION.get(new_status, ActionType.APPROVED),
            description=f"Status updated from {previous} to {new_status}",
            notes=notes or None,
            previous_status=previous,
            new_status=new_status,
        )
    return req


# ═════════════════════════════════════════════════════════════════════════════
# Final letter & signature
# ═════════════════════════════════════════════════════════════════════════════

def upload_final_letter(
    request_id: int,
    file_url: str,
    acting_user_id: int,
    *,
    directory: RoleDirectory = default_directory,
) -> LetterRequest:
    """Attach the final letter and route the request to a dean for signature.

    Only the current handler may upload, and only while the request sits in
    a ``PROCESSED_BY_<officer>`` status.
    """
    req = get_request_or_404(request_id)

    if not permission.can_upload_final_letter(acting_user_id, req):
        raise PermissionDeniedError(
            acting_user_id, "upload_final_letter",
            "User is not authorized to upload final letter for this request",
        )
    if req.status not in processed_statuses():
        raise InvalidStateError(
            f"Cannot upload final letter for request in status: {req.status}",
            current_status=req.status,
        )
    file_url = (file_url or "").strip()
    if not file_url:
        raise ValidationError("file_url is required", details={"file_url": "required"})

    dekan = require_any(
        directory, UserRole.DEKAN, message="No DEKAN user found to assign as next handler",
    )

    with transaction():
        req.final_letter_url = file_url
        previous = apply_transition(req, RequestStatus.TTD_READY, dekan.id, acting_user_id)
        write_tracking_log(
            letter_request_id=req.id,
            user_id=acting_user_id,
            action_type=ActionType.DOCUMENT_UPLOADED,
            description="Final letter document uploaded and ready for signature",
            notes=f"Final letter uploaded: {file_url}",
            previous_status=previous,
            new_status=RequestStatus.TTD_READY,
        )
    return req


def sign_letter(
    request_id: int,
    signature_data: str,
    dekan_user_id: int,
    *,
    directory: RoleDirectory = default_directory,
) -> LetterRequest:
    """Record the dean's signature and hand the letter to faculty staff.

    The signature payload is recorded (truncated) in the trail, not verified.
    Writes two rows: SIGNED (TTD_READY → TTD_DONE) and FORWARDED (TTD_DONE).
    """
    dekan = db.session.get(User, dekan_user_id) if dekan_user_id is not None else None
    if not permission.can_sign(dekan):
        raise PermissionDeniedError(dekan_user_id, "sign_letter", "Only Dean can sign letters")

    req = db.session.get(LetterRequest, request_id)
    if not req:
        raise NotFoundError("Letter request", request_id, message="Letter request not found")
    if req.status != RequestStatus.TTD_READY.value:
        raise InvalidStateError(
            f"Letter is not ready for signing. Current status: {req.status}",
            current_status=req.status,
        )
    if not (req.final_letter_url or "").strip():
        raise InvalidStateError("Final letter document not found", current_status=req.status)

    staff = require_any(directory, UserRole.STAFF_FAKULTAS, message="No Staff Fakultas available")

    preview = (signature_data or "")[:SIGNATURE_PREVIEW_CHARS]
    with transaction():
        previous = apply_transition(req, RequestStatus.TTD_DONE, staff.id, dekan.id)
        write_tracking_log(
            letter_request_id=req.id,
            user_id=dekan.id,
            action_type=ActionType.SIGNED,
            description="Letter digitally signed by Dean",
            notes=f"Digital signature applied using signature data: {preview}...",
            previous_status=previous,
            new_status=RequestStatus.TTD_DONE,
        )
        write_tracking_log(
            letter_request_id=req.id,
            user_id=dekan.id,
            action_type=ActionType.FORWARDED,
            description=f"Signed letter forwarded to Staff Fakultas: {staff.name}",
            notes="Letter ready for return to prodi or delivery",
            previous_status=RequestStatus.TTD_DONE,
            new_status=RequestStatus.TTD_DONE,
        )
    return req


# ═════════════════════════════════════════════════════════════════════════════
# Supporting documents
# ═════════════════════════════════════════════════════════════════════════════

def upload_supporting_document(
    request_id: int,
    file_name: str,
    file_url: str,
    acting_user_id: int,
) -> SupportingDocument:
    """Append a supporting document.  Does not change the request status."""
    req = db.session.get(LetterRequest, request_id)
    if not req:
        raise NotFoundError("Letter request", request_id, message="Letter request not found")
    user = db.session.get(User, acting_user_id) if acting_user_id is not None else None
    if not user:
        raise NotFoundError("User", acting_user_id, message="User not found")

    if not permission.can_upload_document(user, req):
        raise PermissionDeniedError(
            user.id, "upload_document",
            "User does not have permission to upload documents for this request",
        )
    if not file_name or not file_url:
        raise ValidationError("file_name and file_url are required")

    with transaction():
        doc = SupportingDocument(
            letter_request_id=req.id,
            file_name=file_name,
            file_url=file_url,
            uploaded_by_user_id=user.id,
        )
        db.session.add(doc)
        db.session.flush()
        write_tracking_log(
            letter_request_id=req.id,
            user_id=user.id,
            action_type=ActionType.DOCUMENT_UPLOADED,
            description=f"Supporting document uploaded: {file_name}",
            notes=f"File URL: {file_url}",
        )
    return doc
