"""
Directory Blueprint: faculty users and students.

Endpoints:
    GET    /api/v1/users                 ?role=<ROLE> (optional filter)
    POST   /api/v1/users                 { email, name, role, prodi? }
    GET    /api/v1/users/<id>
    GET    /api/v1/students              ?search=<nim or name fragment>
    POST   /api/v1/students              { nim, name, prodi }

The directory is read-mostly: the workflow only needs it to route requests.
"""

import logging

from flask import Blueprint, jsonify, request

from surat.blueprints import register_error_handlers
from surat.models.roles import VALID_ROLES
from surat.services import directory_service
from surat.utils.errors import E, api_error

logger = logging.getLogger(__name__)

directory_bp = Blueprint("directory", __name__, url_prefix="/api/v1")
register_error_handlers(directory_bp)


# ── Users ──────────────────────────────────────────────────────────────────


@directory_bp.route("/users", methods=["GET"])
def list_users():
    role = request.args.get("role")
    if role:
        if role not in VALID_ROLES:
            return api_error(E.VALIDATION_INVALID, f"Unknown role '{role}'",
                             details={"valid_roles": sorted(VALID_ROLES)})
        users = directory_service.get_users_by_role(role)
    else:
        users = directory_service.get_all_users()
    return jsonify({"items": [u.to_dict() for u in users], "total": len(users)}), 200


@directory_bp.route("/users", methods=["POST"])
def create_user():
    data = request.get_json(silent=True) or {}
    missing = [f for f in ("email", "name", "role") if not (data.get(f) or "").strip()]
    if missing:
        return api_error(E.VALIDATION_REQUIRED, f"Missing required fields: {', '.join(missing)}",
                         details={f: "required" for f in missing})
    user = directory_service.create_user(
        email=data["email"].strip(),
        name=data["name"].strip(),
        role=data["role"].strip(),
        prodi=(data.get("prodi") or "").strip() or None,
    )
    return jsonify(user.to_dict()), 201


@directory_bp.route("/users/<int:user_id>", methods=["GET"])
def get_user(user_id):
    user = directory_service.get_user_by_id(user_id)
    if not user:
        return api_error(E.NOT_FOUND, f"User with ID {user_id} not found")
    return jsonify(user.to_dict()), 200


# ── Students ───────────────────────────────────────────────────────────────


@directory_bp.route("/students", methods=["GET"])
def list_students():
    students = directory_service.get_students(request.args.get("search"))
    return jsonify({"items": [s.to_dict() for s in students], "total": len(students)}), 200


@directory_bp.route("/students", methods=["POST"])
def create_student():
    data = request.get_json(silent=True) or {}
    missing = [f for f in ("nim", "name", "prodi") if not str(data.get(f) or "").strip()]
    if missing:
        return api_error(E.VALIDATION_REQUIRED, f"Missing required fields: {', '.join(missing)}",
                         details={f: "required" for f in missing})
    student = directory_service.create_student(
        nim=str(data["nim"]).strip(),
        name=data["name"].strip(),
        prodi=data["prodi"].strip(),
    )
    return jsonify(student.to_dict()), 201
