"""
Role attribute table.

Every user role is described once, here.  Routing and permission code reads
capabilities from ``ROLE_ATTRIBUTES`` instead of matching on role names, so
making a new role routable (or able to upload documents) is a data change.

Usage:
    from surat.models.roles import UserRole, role_attributes

    attrs = role_attributes(user.role)
    if attrs.disposition_status:
        ...
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class UserRole(str, Enum):
    STUDENT = "STUDENT"
    STAFF_PRODI = "STAFF_PRODI"
    KAPRODI = "KAPRODI"
    STAFF_FAKULTAS = "STAFF_FAKULTAS"
    DEKAN = "DEKAN"
    WD1 = "WD1"
    WD2 = "WD2"
    WD3 = "WD3"
    KABAG_TU = "KABAG_TU"
    KAUR_AKADEMIK = "KAUR_AKADEMIK"
    KAUR_KEMAHASISWAAN = "KAUR_KEMAHASISWAAN"
    KAUR_KEUANGAN = "KAUR_KEUANGAN"
    ADMIN = "ADMIN"


class RoleScope(str, Enum):
    """Default visibility scope of a role when listing requests."""
    OWN = "own"            # only requests the user created
    PROGRAM = "program"    # requests of students in the user's program
    FACULTY = "faculty"    # requests the user created or currently handles
    GLOBAL = "global"      # everything


@dataclass(frozen=True)
class RoleAttributes:
    scope: RoleScope
    can_upload_documents: bool = False
    requires_program: bool = False
    # Officer roles: status pair used while the request is with this role
    disposition_status: str | None = None
    processed_status: str | None = None

    @property
    def is_officer(self) -> bool:
        return self.disposition_status is not None


def _officer(role: str) -> RoleAttributes:
    return RoleAttributes(
        scope=RoleScope.FACULTY,
        can_upload_documents=True,
        disposition_status=f"DISPOSISI_TO_{role}",
        processed_status=f"PROCESSED_BY_{role}",
    )


ROLE_ATTRIBUTES: dict[str, RoleAttributes] = {
    UserRole.STUDENT.value: RoleAttributes(scope=RoleScope.OWN),
    UserRole.STAFF_PRODI.value: RoleAttributes(
        scope=RoleScope.PROGRAM, can_upload_documents=True, requires_program=True,
    ),
    UserRole.KAPRODI.value: RoleAttributes(
        scope=RoleScope.PROGRAM, can_upload_documents=True, requires_program=True,
    ),
    UserRole.STAFF_FAKULTAS.value: RoleAttributes(scope=RoleScope.FACULTY, can_upload_documents=True),
    UserRole.DEKAN.value: RoleAttributes(scope=RoleScope.FACULTY, can_upload_documents=True),
    UserRole.WD1.value: _officer("WD1"),
    UserRole.WD2.value: _officer("WD2"),
    UserRole.WD3.value: _officer("WD3"),
    UserRole.KABAG_TU.value: _officer("KABAG_TU"),
    UserRole.KAUR_AKADEMIK.value: _officer("KAUR_AKADEMIK"),
    UserRole.KAUR_KEMAHASISWAAN.value: _officer("KAUR_KEMAHASISWAAN"),
    UserRole.KAUR_KEUANGAN.value: _officer("KAUR_KEUANGAN"),
    UserRole.ADMIN.value: RoleAttributes(scope=RoleScope.GLOBAL, can_upload_documents=True),
}

VALID_ROLES = frozenset(ROLE_ATTRIBUTES)


def role_attributes(role: str | None) -> RoleAttributes | None:
    """Return the attribute row for *role*, or None for unknown roles."""
    if role is None:
        return None
    return ROLE_ATTRIBUTES.get(getattr(role, "value", role))


def disposition_status_for(role: str) -> str | None:
    attrs = role_attributes(role)
    return attrs.disposition_status if attrs else None


def processed_statuses() -> frozenset[str]:
    return frozenset(
        attrs.processed_status for attrs in ROLE_ATTRIBUTES.values() if attrs.processed_status
    )


def disposition_statuses() -> frozenset[str]:
    return frozenset(
        attrs.disposition_status for attrs in ROLE_ATTRIBUTES.values() if attrs.disposition_status
    )
