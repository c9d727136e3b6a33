"""
Letter request permission evaluator.

Pure predicates over (acting user, letter request).  They read the request's
already-mapped relationships but never write.  Write paths turn a ``False``
into PermissionDeniedError; read paths turn it into an empty result.

Rules:
    ADMIN                       everything
    creator / current handler   request detail, documents, logs, dispositions
    disposition assignee        request detail, dispositions, logs
    faculty-level roles         request detail, logs
    program-level roles         logs of requests for students of their prodi

Usage:
    from surat.services.permission import can_view_tracking_logs

    if not can_view_tracking_logs(user, req):
        return []
"""

from __future__ import annotations

from surat.models.directory import User
from surat.models.letter import LetterRequest
from surat.models.roles import RoleScope, UserRole, role_attributes


def _scope(user: User | None) -> RoleScope | None:
    attrs = role_attributes(user.role) if user else None
    return attrs.scope if attrs else None


def is_admin(user: User | None) -> bool:
    return user is not None and user.role == UserRole.ADMIN.value


def is_dean(user: User | None) -> bool:
    return user is not None and user.role == UserRole.DEKAN.value


def is_creator_or_handler(user_id: int | None, req: LetterRequest) -> bool:
    if user_id is None:
        return False
    return req.created_by_user_id == user_id or req.current_handler_user_id == user_id


def is_assignee(user_id: int | None, req: LetterRequest) -> bool:
    """True when the user holds any disposition step on the request, completed or not."""
    if user_id is None:
        return False
    return any(a.assigned_to_user_id == user_id for a in req.disposition_assignments)


def is_faculty_level(user: User | None) -> bool:
    return _scope(user) == RoleScope.FACULTY


def is_same_program(user: User | None, req: LetterRequest) -> bool:
    if _scope(user) != RoleScope.PROGRAM or not user.prodi:
        return False
    return req.student is not None and req.student.prodi == user.prodi


# ── Read predicates ──────────────────────────────────────────────────────────

def can_view_request(user: User | None, req: LetterRequest) -> bool:
    if user is None:
        return False
    return (
        is_admin(user)
        or is_creator_or_handler(user.id, req)
        or is_assignee(user.id, req)
        or is_faculty_level(user)
    )


def can_view_documents(user: User | None, req: LetterRequest) -> bool:
    if user is None:
        return False
    return is_admin(user) or is_creator_or_handler(user.id, req)


def can_view_dispositions(user: User | None, req: LetterRequest) -> bool:
    if user is None:
        return False
    return is_admin(user) or is_creator_or_handler(user.id, req) or is_assignee(user.id, req)


def can_view_tracking_logs(user: User | None, req: LetterRequest) -> bool:
    if user is None:
        return False
    return (
        can_view_dispositions(user, req)
        or is_faculty_level(user)
        or is_same_program(user, req)
    )


# ── Write predicates ─────────────────────────────────────────────────────────

def can_update_status(user_id: int, req: LetterRequest) -> bool:
    return is_creator_or_handler(user_id, req)


def can_upload_document(user: User, req: LetterRequest) -> bool:
    if is_creator_or_handler(user.id, req):
        return True
    attrs = role_attributes(user.role)
    return bool(attrs and attrs.can_upload_documents)


def can_upload_final_letter(user_id: int, req: LetterRequest) -> bool:
    return req.current_handler_user_id is not None and req.current_handler_user_id == user_id


def can_create_disposition(user: User | None) -> bool:
    return is_dean(user)


def can_sign(user: User | None) -> bool:
    return is_dean(user)
