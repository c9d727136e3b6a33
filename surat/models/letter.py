"""
Letter request domain model.

Models:
    - LetterRequest: the central entity; owns ``status`` and ``current_handler``.
    - SupportingDocument: append-only file references attached to a request.
    - DispositionAssignment: one row per officer the dean dispatched the
      request to, processed in ascending ``order_sequence``.

Main line:
    DRAFT → APPROVED_KAPRODI → FORWARDED_TO_DEKAN → DISPOSISI_TO_<ROLE>
      → PROCESSED_BY_<ROLE> → TTD_READY → TTD_DONE → RETURNED_TO_PRODI
      → PRINTED → DELIVERED → ARCHIVED
Side branches: REJECTED, ESCALATED.
"""

from datetime import datetime, timezone
from enum import Enum

from surat.models import db
from surat.models.roles import ROLE_ATTRIBUTES, UserRole


class RequestStatus(str, Enum):
    DRAFT = "DRAFT"
    APPROVED_KAPRODI = "APPROVED_KAPRODI"
    FORWARDED_TO_DEKAN = "FORWARDED_TO_DEKAN"
    DISPOSISI_TO_WD1 = "DISPOSISI_TO_WD1"
    DISPOSISI_TO_WD2 = "DISPOSISI_TO_WD2"
    DISPOSISI_TO_WD3 = "DISPOSISI_TO_WD3"
    DISPOSISI_TO_KABAG_TU = "DISPOSISI_TO_KABAG_TU"
    DISPOSISI_TO_KAUR_AKADEMIK = "DISPOSISI_TO_KAUR_AKADEMIK"
    DISPOSISI_TO_KAUR_KEMAHASISWAAN = "DISPOSISI_TO_KAUR_KEMAHASISWAAN"
    DISPOSISI_TO_KAUR_KEUANGAN = "DISPOSISI_TO_KAUR_KEUANGAN"
    PROCESSED_BY_WD1 = "PROCESSED_BY_WD1"
    PROCESSED_BY_WD2 = "PROCESSED_BY_WD2"
    PROCESSED_BY_WD3 = "PROCESSED_BY_WD3"
    PROCESSED_BY_KABAG_TU = "PROCESSED_BY_KABAG_TU"
    PROCESSED_BY_KAUR_AKADEMIK = "PROCESSED_BY_KAUR_AKADEMIK"
    PROCESSED_BY_KAUR_KEMAHASISWAAN = "PROCESSED_BY_KAUR_KEMAHASISWAAN"
    PROCESSED_BY_KAUR_KEUANGAN = "PROCESSED_BY_KAUR_KEUANGAN"
    TTD_READY = "TTD_READY"
    TTD_DONE = "TTD_DONE"
    RETURNED_TO_PRODI = "RETURNED_TO_PRODI"
    PRINTED = "PRINTED"
    DELIVERED = "DELIVERED"
    ARCHIVED = "ARCHIVED"
    REJECTED = "REJECTED"
    ESCALATED = "ESCALATED"


class Priority(str, Enum):
    NORMAL = "NORMAL"
    URGENT = "URGENT"


VALID_STATUSES = frozenset(s.value for s in RequestStatus)
VALID_PRIORITIES = frozenset(p.value for p in Priority)

# ── Generic status updates (update_request_status) ──────────────────────────
# Any target is accepted except the ones below.
TERMINAL_STATUSES = frozenset({RequestStatus.ARCHIVED.value})

# Entered only through create_disposition, process_disposition,
# upload_final_letter and sign_letter.
OPERATION_OWNED_STATUSES = frozenset({
    *(a.disposition_status for a in ROLE_ATTRIBUTES.values() if a.is_officer),
    RequestStatus.TTD_READY.value,
    RequestStatus.TTD_DONE.value,
    RequestStatus.ESCALATED.value,
})

# Role a handler must hold while the request sits in these statuses
STATUS_HANDLER_ROLE: dict[str, str] = {
    "FORWARDED_TO_DEKAN": UserRole.DEKAN.value,
    "TTD_READY": UserRole.DEKAN.value,
    "TTD_DONE": UserRole.STAFF_FAKULTAS.value,
    "ESCALATED": UserRole.ADMIN.value,
    **{a.disposition_status: role for role, a in ROLE_ATTRIBUTES.items() if a.is_officer},
}


def _iso(value):
    return value.isoformat() if value else None


class LetterRequest(db.Model):
    """
    A formal-letter request moving through the faculty approval workflow.

    Mutated exclusively through the lifecycle services; never hard-deleted.
    """

    __tablename__ = "letter_requests"
    __table_args__ = (
        db.Index("ix_letter_requests_status", "status"),
        db.Index("ix_letter_requests_handler", "current_handler_user_id"),
        db.Index("ix_letter_requests_creator", "created_by_user_id"),
        db.Index("ix_letter_requests_created_at", "created_at"),
    )

    id = db.Column(db.Integer, primary_key=True)
    student_id = db.Column(db.Integer, db.ForeignKey("students.id"), nullable=False)
    created_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    letter_type = db.Column(db.String(200), nullable=False)
    purpose = db.Column(db.Text, nullable=False)
    priority = db.Column(db.String(10), nullable=False, default=Priority.NORMAL.value, comment="NORMAL | URGENT")
    status = db.Column(db.String(40), nullable=False, default=RequestStatus.DRAFT.value)
    current_handler_user_id = db.Column(
        db.Integer, db.ForeignKey("users.id"), nullable=True,
        comment="The single user responsible for the next step",
    )
    dekan_instructions = db.Column(db.Text, nullable=True)
    final_letter_url = db.Column(db.String(1000), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    student = db.relationship("Student")
    created_by = db.relationship("User", foreign_keys=[created_by_user_id])
    current_handler = db.relationship("User", foreign_keys=[current_handler_user_id])
    supporting_documents = db.relationship(
        "SupportingDocument", back_populates="letter_request",
        order_by="SupportingDocument.id",
    )
    tracking_logs = db.relationship(
        "TrackingLog", back_populates="letter_request",
        order_by="TrackingLog.id",
    )
    disposition_assignments = db.relationship(
        "DispositionAssignment", back_populates="letter_request",
        order_by="DispositionAssignment.order_sequence",
    )

    def to_dict(self, include_details: bool = False) -> dict:
        d = {
            "id": self.id,
            "student_id": self.student_id,
            "created_by_user_id": self.created_by_user_id,
            "letter_type": self.letter_type,
            "purpose": self.purpose,
            "priority": self.priority,
            "status": self.status,
            "current_handler_user_id": self.current_handler_user_id,
            "dekan_instructions": self.dekan_instructions,
            "final_letter_url": self.final_letter_url,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if include_details:
            d["student"] = self.student.to_dict() if self.student else None
            d["created_by"] = self.created_by.to_dict() if self.created_by else None
            d["current_handler"] = self.current_handler.to_dict() if self.current_handler else None
            d["supporting_documents"] = [
                doc.to_dict(include_uploader=True) for doc in self.supporting_documents
            ]
            d["tracking_logs"] = [log.to_dict(include_user=True) for log in self.tracking_logs]
            d["disposition_assignments"] = [
                a.to_dict(include_assignee=True) for a in self.disposition_assignments
            ]
        return d

    def __repr__(self):
        return f"<LetterRequest {self.id}: {self.status}>"


class SupportingDocument(db.Model):
    __tablename__ = "supporting_documents"

    id = db.Column(db.Integer, primary_key=True)
    letter_request_id = db.Column(
        db.Integer, db.ForeignKey("letter_requests.id"), nullable=False, index=True,
    )
    file_name = db.Column(db.String(500), nullable=False)
    file_url = db.Column(db.String(1000), nullable=False)
    uploaded_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    letter_request = db.relationship("LetterRequest", back_populates="supporting_documents")
    uploaded_by = db.relationship("User")

    def to_dict(self, include_uploader: bool = False) -> dict:
        d = {
            "id": self.id,
            "letter_request_id": self.letter_request_id,
            "file_name": self.file_name,
            "file_url": self.file_url,
            "uploaded_by_user_id": self.uploaded_by_user_id,
            "created_at": _iso(self.created_at),
        }
        if include_uploader:
            d["uploaded_by"] = self.uploaded_by.to_dict() if self.uploaded_by else None
        return d


class DispositionAssignment(db.Model):
    """
    One officer step of the dean's disposition.

    Business rules:
    - Created in a batch by the dean; ``order_sequence`` is unique per request.
    - Only the completion fields (is_completed, completed_at, notes) change
      after creation.
    - The active step is the un-completed row with the lowest sequence.
    """

    __tablename__ = "disposition_assignments"
    __table_args__ = (
        db.UniqueConstraint("letter_request_id", "order_sequence", name="uq_disposition_request_sequence"),
        db.Index("ix_disposition_assignee", "assigned_to_user_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    letter_request_id = db.Column(
        db.Integer, db.ForeignKey("letter_requests.id"), nullable=False, index=True,
    )
    assigned_to_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    assigned_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    instructions = db.Column(db.Text, nullable=False)
    order_sequence = db.Column(db.Integer, nullable=False)
    is_completed = db.Column(db.Boolean, nullable=False, default=False)
    completed_at = db.Column(db.DateTime, nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    letter_request = db.relationship("LetterRequest", back_populates="disposition_assignments")
    assigned_to = db.relationship("User", foreign_keys=[assigned_to_user_id])
    assigned_by = db.relationship("User", foreign_keys=[assigned_by_user_id])

    def to_dict(self, include_assignee: bool = False) -> dict:
        d = {
            "id": self.id,
            "letter_request_id": self.letter_request_id,
            "assigned_to_user_id": self.assigned_to_user_id,
            "assigned_by_user_id": self.assigned_by_user_id,
            "instructions": self.instructions,
            "order_sequence": self.order_sequence,
            "is_completed": self.is_completed,
            "completed_at": _iso(self.completed_at),
            "notes": self.notes,
            "created_at": _iso(self.created_at),
        }
        if include_assignee:
            d["assigned_to"] = self.assigned_to.to_dict() if self.assigned_to else None
        return d

    def __repr__(self):
        return f"<DispositionAssignment {self.id}: req={self.letter_request_id} seq={self.order_sequence}>"
