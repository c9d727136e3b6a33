"""
Directory models: faculty users and students.

Models:
    - User: faculty / program staff account with a role and optional program (prodi).
    - Student: read-mostly student record; its prodi drives request routing.
"""

from datetime import datetime, timezone

from surat.models import db


class User(db.Model):
    __tablename__ = "users"
    __table_args__ = (
        db.Index("ix_users_role", "role"),
        db.Index("ix_users_role_prodi", "role", "prodi"),
    )

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(200), nullable=False, unique=True)
    name = db.Column(db.String(200), nullable=False)
    role = db.Column(
        db.String(30), nullable=False,
        comment="STUDENT | STAFF_PRODI | KAPRODI | STAFF_FAKULTAS | DEKAN | WD1..3 | KABAG_TU | KAUR_* | ADMIN",
    )
    prodi = db.Column(
        db.String(100), nullable=True,
        comment="Study program; required for KAPRODI and STAFF_PRODI",
    )
    created_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "prodi": self.prodi,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<User {self.id}: {self.role} {self.email}>"


class Student(db.Model):
    __tablename__ = "students"

    id = db.Column(db.Integer, primary_key=True)
    nim = db.Column(db.String(30), nullable=False, unique=True, comment="Student registration number")
    name = db.Column(db.String(200), nullable=False)
    prodi = db.Column(db.String(100), nullable=False, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "nim": self.nim,
            "name": self.name,
            "prodi": self.prodi,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Student {self.nim}: {self.name}>"
