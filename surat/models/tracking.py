"""
Tracking log: immutable, append-only audit trail for letter requests.

Every status-changing operation writes at least one row whose ``new_status``
equals the request's post-mutation status.  Rows are never updated or
deleted; ORM-level guards below reject both.
"""

from datetime import datetime, timezone
from enum import Enum

from sqlalchemy import event as _sa_event

from surat.models import db


class ActionType(str, Enum):
    CREATED = "CREATED"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    FORWARDED = "FORWARDED"
    DISPOSISI_ASSIGNED = "DISPOSISI_ASSIGNED"
    PROCESSED = "PROCESSED"
    ESCALATED = "ESCALATED"
    SIGNED = "SIGNED"
    RETURNED = "RETURNED"
    PRINTED = "PRINTED"
    DELIVERED = "DELIVERED"
    ARCHIVED = "ARCHIVED"
    NOTE_ADDED = "NOTE_ADDED"
    DOCUMENT_UPLOADED = "DOCUMENT_UPLOADED"


VALID_ACTION_TYPES = frozenset(a.value for a in ActionType)


class TrackingLog(db.Model):
    """
    One row per action against a letter request.

    ``user_id`` references the acting user by id only; user rows are never
    cascaded into the log.
    """

    __tablename__ = "tracking_logs"
    __table_args__ = (
        db.Index("ix_tracking_logs_request_created", "letter_request_id", "created_at"),
    )

    id = db.Column(db.Integer, primary_key=True)
    letter_request_id = db.Column(db.Integer, db.ForeignKey("letter_requests.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    action_type = db.Column(db.String(30), nullable=False)
    description = db.Column(db.Text, nullable=False)
    notes = db.Column(db.Text, nullable=True)
    previous_status = db.Column(db.String(40), nullable=True)
    new_status = db.Column(db.String(40), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    letter_request = db.relationship("LetterRequest", back_populates="tracking_logs")
    user = db.relationship("User")

    def to_dict(self, include_user: bool = False) -> dict:
        d = {
            "id": self.id,
            "letter_request_id": self.letter_request_id,
            "user_id": self.user_id,
            "action_type": self.action_type,
            "description": self.description,
            "notes": self.notes,
            "previous_status": self.previous_status,
            "new_status": self.new_status,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_user:
            d["user"] = self.user.to_dict() if self.user else None
        return d

    def __repr__(self):
        return f"<TrackingLog {self.id}: {self.action_type} on request {self.letter_request_id}>"


@_sa_event.listens_for(TrackingLog, "before_update")
def _block_tracking_log_update(mapper, connection, target) -> None:  # noqa: ANN001
    raise RuntimeError(f"TrackingLog {target.id} is append-only and cannot be updated")


@_sa_event.listens_for(TrackingLog, "before_delete")
def _block_tracking_log_delete(mapper, connection, target) -> None:  # noqa: ANN001
    raise RuntimeError(f"TrackingLog {target.id} is append-only and cannot be deleted")


# ── Convenience writer ───────────────────────────────────────────────────────

def write_tracking_log(
    *,
    letter_request_id: int,
    user_id: int,
    action_type: str,
    description: str,
    notes: str | None = None,
    previous_status: str | None = None,
    new_status: str | None = None,
) -> TrackingLog:
    """
    Append a single tracking row.  Uses ``flush`` so callers keep
    transaction control.
    """
    log = TrackingLog(
        letter_request_id=letter_request_id,
        user_id=user_id,
        action_type=getattr(action_type, "value", action_type),
        description=description,
        notes=notes,
        previous_status=getattr(previous_status, "value", previous_status),
        new_status=getattr(new_status, "value", new_status),
    )
    db.session.add(log)
    db.session.flush()
    return log
