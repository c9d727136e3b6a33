"""
Role directory: "who is responsible" lookups used for routing.

The workflow routes to *any* valid holder of a role (the dean, an admin, the
faculty staff desk).  Selection policy lives behind ``RoleDirectory`` so it
can be swapped (round-robin, load-based, test doubles) without touching the
lifecycle services.  The default implementation picks the lowest user id,
which keeps routing deterministic.

Usage:
    from surat.services.role_directory import default_directory, require_any

    dean = require_any(default_directory, "DEKAN")
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from surat.core.exceptions import ConfigurationMissingError
from surat.models.directory import User


class RoleDirectory(ABC):
    """Abstract lookup of a responsible user by role."""

    @abstractmethod
    def find_any(self, role: str, *, prodi: str | None = None) -> User | None:
        """Return one user holding *role* (and *prodi*, when given), or None."""


class LowestIdRoleDirectory(RoleDirectory):
    """Deterministic default: the lowest-id user holding the role."""

    def find_any(self, role: str, *, prodi: str | None = None) -> User | None:
        q = User.query.filter(User.role == getattr(role, "value", role))
        if prodi is not None:
            q = q.filter(User.prodi == prodi)
        return q.order_by(User.id.asc()).first()


default_directory = LowestIdRoleDirectory()


def require_any(
    directory: RoleDirectory,
    role: str,
    *,
    prodi: str | None = None,
    message: str | None = None,
) -> User:
    """Like ``find_any`` but raise ConfigurationMissingError when nobody qualifies."""
    user = directory.find_any(role, prodi=prodi)
    if user is None:
        raise ConfigurationMissingError(getattr(role, "value", role), message)
    return user
