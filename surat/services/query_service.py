"""
Query Service: role-scoped read paths over letter requests.

Read paths never raise on missing permission: an actor who may not see
something gets an empty list (or None for a single request).

Role scope of ``get_requests``:
    STUDENT          requests they created
    program roles    requests of students in their prodi
    faculty roles    requests they created or currently handle
    ADMIN            everything
    unknown actor    nothing
    no actor         everything (permission check skipped)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import false, or_

from surat.core.exceptions import ValidationError
from surat.models import db
from surat.models.directory import Student, User
from surat.models.letter import (
    VALID_PRIORITIES,
    VALID_STATUSES,
    DispositionAssignment,
    LetterRequest,
    SupportingDocument,
)
from surat.models.roles import RoleScope, role_attributes
from surat.services import permission
from surat.utils.helpers import parse_datetime


@dataclass
class RequestFilter:
    """Optional, ANDed list filters.  Date bounds are inclusive."""

    status: str | None = None
    priority: str | None = None
    student_nim: str | None = None
    created_by_user_id: int | None = None
    current_handler_user_id: int | None = None
    from_date: datetime | None = None
    to_date: datetime | None = None

    @classmethod
    def from_mapping(cls, data) -> "RequestFilter":
        """Build from query-string style input (all values may be strings)."""
        data = data or {}

        def _int(key):
            raw = data.get(key)
            if raw in (None, ""):
                return None
            try:
                return int(raw)
            except (TypeError, ValueError):
                raise ValidationError(f"{key} must be an integer", details={key: raw})

        status = data.get("status") or None
        if status and status not in VALID_STATUSES:
            raise ValidationError(f"Invalid status '{status}'")
        priority = data.get("priority") or None
        if priority and priority not in VALID_PRIORITIES:
            raise ValidationError(f"Invalid priority '{priority}'")

        return cls(
            status=status,
            priority=priority,
            student_nim=(data.get("student_nim") or "").strip() or None,
            created_by_user_id=_int("created_by_user_id"),
            current_handler_user_id=_int("current_handler_user_id"),
            from_date=parse_datetime(data.get("from_date")),
            to_date=parse_datetime(data.get("to_date"), end_of_day=True),
        )


def _scope_clause(user: User | None):
    """SQL predicate limiting requests to what *user* may list."""
    attrs = role_attributes(user.role) if user else None
    if attrs is None:
        return false()
    if attrs.scope == RoleScope.GLOBAL:
        return None
    if attrs.scope == RoleScope.OWN:
        return LetterRequest.created_by_user_id == user.id
    if attrs.scope == RoleScope.PROGRAM:
        if not user.prodi:
            return false()
        return Student.prodi == user.prodi
    return or_(
        LetterRequest.created_by_user_id == user.id,
        LetterRequest.current_handler_user_id == user.id,
    )


def get_requests(
    filters: RequestFilter | None = None, acting_user_id: int | None = None,
) -> list[LetterRequest]:
    """List requests visible to *acting_user_id*, newest first.

    ``acting_user_id=None`` skips the role scope (internal callers).
    """
    filters = filters or RequestFilter()
    q = LetterRequest.query.join(Student, LetterRequest.student_id == Student.id)

    if acting_user_id is not None:
        scope = _scope_clause(db.session.get(User, acting_user_id))
        if scope is not None:
            q = q.filter(scope)

    if filters.status:
        q = q.filter(LetterRequest.status == filters.status)
    if filters.priority:
        q = q.filter(LetterRequest.priority == filters.priority)
    if filters.student_nim:
        q = q.filter(Student.nim == filters.student_nim)
    if filters.created_by_user_id is not None:
        q = q.filter(LetterRequest.created_by_user_id == filters.created_by_user_id)
    if filters.current_handler_user_id is not None:
        q = q.filter(LetterRequest.current_handler_user_id == filters.current_handler_user_id)
    if filters.from_date:
        q = q.filter(LetterRequest.created_at >= filters.from_date)
    if filters.to_date:
        q = q.filter(LetterRequest.created_at <= filters.to_date)

    return q.order_by(LetterRequest.created_at.desc(), LetterRequest.id.desc()).all()


def _load(request_id: int, acting_user_id: int | None):
    req = db.session.get(LetterRequest, request_id)
    if not req:
        return None, None
    if acting_user_id is None:
        return req, None
    return req, db.session.get(User, acting_user_id)


def get_request_by_id(request_id: int, acting_user_id: int | None = None) -> dict | None:
    """Request with nested parties, documents, trail and dispositions, or None."""
    req, user = _load(request_id, acting_user_id)
    if req is None:
        return None
    if acting_user_id is not None and not permission.can_view_request(user, req):
        return None
    return req.to_dict(include_details=True)


def get_supporting_documents(request_id: int, acting_user_id: int | None = None) -> list[SupportingDocument]:
    req, user = _load(request_id, acting_user_id)
    if req is None:
        return []
    if acting_user_id is not None and not permission.can_view_documents(user, req):
        return []
    return (
        SupportingDocument.query
        .filter_by(letter_request_id=req.id)
        .order_by(SupportingDocument.created_at.asc(), SupportingDocument.id.asc())
        .all()
    )


def get_disposition_assignments(
    request_id: int, acting_user_id: int | None = None,
) -> list[DispositionAssignment]:
    req, user = _load(request_id, acting_user_id)
    if req is None:
        return []
    if acting_user_id is not None and not permission.can_view_dispositions(user, req):
        return []
    return (
        DispositionAssignment.query
        .filter_by(letter_request_id=req.id)
        .order_by(DispositionAssignment.order_sequence.asc())
        .all()
    )
