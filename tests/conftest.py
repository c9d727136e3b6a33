"""
Shared pytest fixtures for the faculty letter workflow test suite.

Provides:
    - app: Flask application (session-scoped)
    - session: per-test table creation / teardown (autouse)
    - client: Flask test client
    - make_user / make_student: committed directory rows
    - faculty: one user per routed role plus a TI program chair and staff
    - student: NIM 2024001 in prodi TI
    - draft_request / forwarded_request: requests at the two main entry points

Fixtures commit instead of flush: a failing service call rolls the session
back, and the directory rows must survive that.
"""

import pytest

from surat import create_app
from surat.models import db as _db
from surat.models.directory import Student, User


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(autouse=True)
def session(app):
    """Per-test: open app context, create tables, drop them afterwards."""
    with app.app_context():
        _db.create_all()
        yield _db.session
        _db.session.rollback()
        _db.drop_all()


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def make_user():
    counter = {"n": 0}

    def _make(role: str, prodi: str | None = None, name: str | None = None) -> User:
        counter["n"] += 1
        user = User(
            email=f"{role.lower()}.{counter['n']}@univ.ac.id",
            name=name or f"{role} {counter['n']}",
            role=role,
            prodi=prodi,
        )
        _db.session.add(user)
        _db.session.commit()
        return user

    return _make


@pytest.fixture()
def make_student():
    def _make(nim: str = "2024001", name: str = "Budi Santoso", prodi: str = "TI") -> Student:
        student = Student(nim=nim, name=name, prodi=prodi)
        _db.session.add(student)
        _db.session.commit()
        return student

    return _make


@pytest.fixture()
def faculty(make_user):
    """Routing targets used by most workflow tests, keyed by role."""
    return {
        "STAFF_PRODI": make_user("STAFF_PRODI", prodi="TI"),
        "KAPRODI": make_user("KAPRODI", prodi="TI"),
        "DEKAN": make_user("DEKAN"),
        "STAFF_FAKULTAS": make_user("STAFF_FAKULTAS"),
        "WD1": make_user("WD1"),
        "KABAG_TU": make_user("KABAG_TU"),
        "ADMIN": make_user("ADMIN"),
    }


@pytest.fixture()
def student(make_student):
    return make_student()


@pytest.fixture()
def draft_request(faculty, student):
    from surat.services import lifecycle

    return lifecycle.create_letter_request(
        student_id=student.id,
        letter_type="Surat Keterangan Aktif Kuliah",
        purpose="Pengajuan beasiswa",
        priority="NORMAL",
        acting_user_id=faculty["STAFF_PRODI"].id,
    )


@pytest.fixture()
def forwarded_request(faculty, draft_request):
    """DRAFT → APPROVED_KAPRODI → FORWARDED_TO_DEKAN, handler = the dean."""
    from surat.services import lifecycle

    lifecycle.update_request_status(
        draft_request.id, "APPROVED_KAPRODI", faculty["KAPRODI"].id,
    )
    return lifecycle.update_request_status(
        draft_request.id, "FORWARDED_TO_DEKAN", faculty["KAPRODI"].id,
        next_handler_user_id=faculty["DEKAN"].id,
    )
