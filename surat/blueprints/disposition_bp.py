"""
Disposition Blueprint.

Endpoints (acting user in the ``X-User-Id`` header):
    GET    /api/v1/letter-requests/<id>/dispositions
    POST   /api/v1/letter-requests/<id>/dispositions
           Body: { "instructions": "...",
                   "assignments": [{"assigned_to_user_id": 7, "order_sequence": 1}, ...] }
    POST   /api/v1/disposition-assignments/<id>/process
           Body: { "notes"?: "...", "escalate"?: bool, "flag_for_coordination"?: bool }
"""

import logging

from flask import Blueprint, jsonify, request

from surat.blueprints import register_error_handlers, require_acting_user_id
from surat.services import disposition, query_service
from surat.utils.errors import E, api_error

logger = logging.getLogger(__name__)

disposition_bp = Blueprint("dispositions", __name__, url_prefix="/api/v1")
register_error_handlers(disposition_bp)


@disposition_bp.route("/letter-requests/<int:request_id>/dispositions", methods=["GET"])
def list_dispositions(request_id):
    uid = require_acting_user_id()
    rows = query_service.get_disposition_assignments(request_id, uid)
    return jsonify({"items": [a.to_dict(include_assignee=True) for a in rows], "total": len(rows)}), 200


@disposition_bp.route("/letter-requests/<int:request_id>/dispositions", methods=["POST"])
def create_disposition(request_id):
    uid = require_acting_user_id()
    data = request.get_json(silent=True) or {}
    instructions = (data.get("instructions") or "").strip()
    if not instructions:
        return api_error(E.VALIDATION_REQUIRED, "Field 'instructions' is required",
                         details={"instructions": "required"})
    assignments = data.get("assignments")
    if not isinstance(assignments, list) or not assignments:
        return api_error(E.VALIDATION_REQUIRED, "Field 'assignments' must be a non-empty list",
                         details={"assignments": "required"})

    created = disposition.create_disposition(request_id, instructions, assignments, uid)
    return jsonify({"items": [a.to_dict() for a in created], "total": len(created)}), 201


@disposition_bp.route("/disposition-assignments/<int:assignment_id>/process", methods=["POST"])
def process_assignment(assignment_id):
    uid = require_acting_user_id()
    data = request.get_json(silent=True) or {}
    assignment = disposition.process_disposition(
        assignment_id,
        uid,
        notes=data.get("notes"),
        escalate=bool(data.get("escalate")),
        flag_for_coordination=bool(data.get("flag_for_coordination")),
    )
    return jsonify(assignment.to_dict()), 200
