"""
Tests: directory service and role directory.

Covers user/student creation rules, student search, role lookups, the
demo seed, and the lowest-id routing policy.
"""

import pytest

from surat.core.exceptions import ConfigurationMissingError, ConflictError, ValidationError
from surat.services import directory_service
from surat.services.role_directory import LowestIdRoleDirectory, default_directory, require_any


# ── Users ────────────────────────────────────────────────────────────────────


def test_create_user_normalizes_email_domain():
    user = directory_service.create_user("Dosen.Satu@UNIV.AC.ID", "Dosen Satu", "WD1")
    assert user.id is not None
    assert user.email == "Dosen.Satu@univ.ac.id"
    assert user.role == "WD1"
    assert user.prodi is None


def test_create_user_rejects_invalid_email():
    with pytest.raises(ValidationError, match="Invalid email"):
        directory_service.create_user("not-an-email", "X", "WD1")


def test_create_user_rejects_unknown_role():
    with pytest.raises(ValidationError, match="Invalid role"):
        directory_service.create_user("a@univ.ac.id", "X", "REKTOR")


def test_program_roles_require_prodi():
    with pytest.raises(ValidationError, match="prodi is required"):
        directory_service.create_user("kaprodi@univ.ac.id", "Kaprodi", "KAPRODI")
    user = directory_service.create_user("kaprodi@univ.ac.id", "Kaprodi", "KAPRODI", prodi="TI")
    assert user.prodi == "TI"


def test_duplicate_email_conflicts():
    directory_service.create_user("dup@univ.ac.id", "First", "ADMIN")
    with pytest.raises(ConflictError):
        directory_service.create_user("dup@univ.ac.id", "Second", "ADMIN")


def test_get_users_by_role_ordered_by_id(make_user):
    second = make_user("WD2")
    make_user("WD1")
    third = make_user("WD2")
    ids = [u.id for u in directory_service.get_users_by_role("WD2")]
    assert ids == [second.id, third.id]
    assert directory_service.get_users_by_role("UNKNOWN") == []


def test_get_user_by_id_missing_returns_none():
    assert directory_service.get_user_by_id(999) is None
    assert directory_service.get_user_by_id(None) is None


# ── Students ─────────────────────────────────────────────────────────────────


def test_create_student_rejects_duplicate_nim():
    directory_service.create_student(" 2024001 ", "Budi", "TI")
    with pytest.raises(ConflictError):
        directory_service.create_student("2024001", "Budi Lagi", "TI")


def test_student_search_matches_nim_or_name_case_insensitive(make_student):
    make_student(nim="2024001", name="Budi Santoso")
    make_student(nim="2024002", name="Ani Wijaya")
    make_student(nim="2023999", name="Citra Budiman")

    by_name = directory_service.get_students("budi")
    assert [s.name for s in by_name] == ["Budi Santoso", "Citra Budiman"]

    by_nim = directory_service.get_students("2024")
    assert {s.nim for s in by_nim} == {"2024001", "2024002"}


def test_student_search_blank_term_returns_all_ordered_by_name(make_student):
    make_student(nim="1", name="Zaki")
    make_student(nim="2", name="Ani")
    names = [s.name for s in directory_service.get_students("   ")]
    assert names == ["Ani", "Zaki"]


def test_student_search_caps_results(make_student):
    for i in range(directory_service.STUDENT_SEARCH_LIMIT + 5):
        make_student(nim=f"N{i:04d}", name=f"Student {i:04d}")
    assert len(directory_service.get_students()) == directory_service.STUDENT_SEARCH_LIMIT


# ── Seed & role directory ────────────────────────────────────────────────────


def test_seed_demo_directory_is_idempotent():
    added = directory_service.seed_demo_directory()
    assert added == len(directory_service.DEMO_USERS)
    assert directory_service.seed_demo_directory() == 0


def test_role_directory_picks_lowest_id(make_user):
    first = make_user("DEKAN")
    make_user("DEKAN")
    assert default_directory.find_any("DEKAN").id == first.id


def test_role_directory_filters_by_prodi(make_user):
    make_user("KAPRODI", prodi="SI")
    ti_chair = make_user("KAPRODI", prodi="TI")
    assert LowestIdRoleDirectory().find_any("KAPRODI", prodi="TI").id == ti_chair.id
    assert default_directory.find_any("KAPRODI", prodi="MI") is None


def test_require_any_raises_configuration_missing():
    with pytest.raises(ConfigurationMissingError, match="No STAFF_FAKULTAS user found"):
        require_any(default_directory, "STAFF_FAKULTAS")
