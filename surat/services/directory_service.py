"""
Directory Service: users and students.

Read-mostly reference data.  Users carry a role and an optional prodi
(required for program-level roles); students carry the prodi that routes
their letter requests to the right program chair.
"""

from __future__ import annotations

import logging

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import or_

from surat.core.exceptions import ConflictError, ValidationError
from surat.models import db
from surat.models.directory import Student, User
from surat.models.roles import VALID_ROLES, role_attributes
from surat.utils.helpers import transaction

logger = logging.getLogger(__name__)

STUDENT_SEARCH_LIMIT = 100


# ═══════════════════════════════════════════════════════════════
# Users
# ═══════════════════════════════════════════════════════════════

def create_user(email: str, name: str, role: str, prodi: str | None = None) -> User:
    """Create a directory user.

    Raises:
        ValidationError: invalid email, unknown role, or missing prodi for
            a program-level role.
        ConflictError: email already registered.
    """
    try:
        email = validate_email(email or "", check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email: {e}", details={"email": str(e)})

    role = getattr(role, "value", role)
    if role not in VALID_ROLES:
        raise ValidationError(
            f"Invalid role '{role}'", details={"role": f"must be one of {sorted(VALID_ROLES)}"},
        )
    prodi = (prodi or "").strip() or None
    if role_attributes(role).requires_program and not prodi:
        raise ValidationError(f"prodi is required for role {role}", details={"prodi": "required"})

    if User.query.filter_by(email=email).first():
        raise ConflictError("User", "email", email)

    with transaction():
        user = User(email=email, name=name, role=role, prodi=prodi)
        db.session.add(user)

    logger.info("User created", extra={"user_id": user.id, "role": role})
    return user


def get_user_by_id(user_id: int | None) -> User | None:
    if user_id is None:
        return None
    return db.session.get(User, user_id)


def get_users_by_role(role: str) -> list[User]:
    """All users holding *role*, ordered by id.  Unknown roles yield []."""
    return User.query.filter_by(role=getattr(role, "value", role)).order_by(User.id).all()


def get_all_users() -> list[User]:
    return User.query.order_by(User.id).all()


# ═══════════════════════════════════════════════════════════════
# Students
# ═══════════════════════════════════════════════════════════════

def create_student(nim: str, name: str, prodi: str) -> Student:
    nim = (nim or "").strip()
    if not nim:
        raise ValidationError("nim is required", details={"nim": "required"})
    if Student.query.filter_by(nim=nim).first():
        raise ConflictError("Student", "nim", nim)

    with transaction():
        student = Student(nim=nim, name=name, prodi=prodi)
        db.session.add(student)

    logger.info("Student created", extra={"student_id": student.id})
    return student


def get_students(search_term: str | None = None) -> list[Student]:
    """Students ordered by name, optionally filtered by NIM/name substring.

    Matching is case-insensitive; a blank or whitespace-only term returns
    everyone.  At most ``STUDENT_SEARCH_LIMIT`` rows are returned.
    """
    q = Student.query
    term = (search_term or "").strip()
    if term:
        pattern = f"%{term}%"
        q = q.filter(or_(Student.nim.ilike(pattern), Student.name.ilike(pattern)))
    return q.order_by(Student.name.asc(), Student.id.asc()).limit(STUDENT_SEARCH_LIMIT).all()


# ═══════════════════════════════════════════════════════════════
# Demo directory (CLI: flask seed-directory)
# ═══════════════════════════════════════════════════════════════

DEMO_USERS = [
    ("kaprodi.ti@fakultas.ac.id", "Kaprodi TI", "KAPRODI", "TI"),
    ("staff.ti@fakultas.ac.id", "Staff Prodi TI", "STAFF_PRODI", "TI"),
    ("staff.fakultas@fakultas.ac.id", "Staff Fakultas", "STAFF_FAKULTAS", None),
    ("dekan@fakultas.ac.id", "Dekan", "DEKAN", None),
    ("wd1@fakultas.ac.id", "Wakil Dekan 1", "WD1", None),
    ("wd2@fakultas.ac.id", "Wakil Dekan 2", "WD2", None),
    ("wd3@fakultas.ac.id", "Wakil Dekan 3", "WD3", None),
    ("kabag.tu@fakultas.ac.id", "Kabag TU", "KABAG_TU", None),
    ("kaur.akademik@fakultas.ac.id", "Kaur Akademik", "KAUR_AKADEMIK", None),
    ("kaur.kemahasiswaan@fakultas.ac.id", "Kaur Kemahasiswaan", "KAUR_KEMAHASISWAAN", None),
    ("kaur.keuangan@fakultas.ac.id", "Kaur Keuangan", "KAUR_KEUANGAN", None),
    ("admin@fakultas.ac.id", "Administrator", "ADMIN", None),
]


def seed_demo_directory() -> int:
    """Insert the demo faculty directory; existing emails are skipped.  Returns rows added."""
    added = 0
    with transaction():
        for email, name, role, prodi in DEMO_USERS:
            if User.query.filter_by(email=email).first():
                continue
            db.session.add(User(email=email, name=name, role=role, prodi=prodi))
            added += 1
    return added
