"""
Letter Request Blueprint.

Endpoints (all under /api/v1, acting user in the ``X-User-Id`` header):
    GET    /letter-requests                      role-scoped list
           Query params: status, priority, student_nim, created_by_user_id,
                         current_handler_user_id, from_date, to_date
    POST   /letter-requests                      { student_id, letter_type, purpose,
                                                   priority?, documents? }
    GET    /letter-requests/<id>                 detail with nested trail
    POST   /letter-requests/<id>/status          { status, notes?, next_handler_user_id? }
    GET    /letter-requests/<id>/documents
    POST   /letter-requests/<id>/documents       { file_name, file_url }
    GET    /letter-requests/<id>/tracking-logs
    POST   /letter-requests/<id>/tracking-logs   { action_type, description, notes?,
                                                   previous_status?, new_status? }
    POST   /letter-requests/<id>/final-letter    { file_url }
    POST   /letter-requests/<id>/sign            { signature_data }

Layer contract:
    - Blueprint: parse input, read the acting user, call the service, shape JSON.
    - NO db.session calls and NO permission checks here.
"""

import logging

from flask import Blueprint, jsonify, request

from surat.blueprints import register_error_handlers, require_acting_user_id
from surat.models.letter import Priority
from surat.services import lifecycle, query_service, tracking_service
from surat.services.query_service import RequestFilter
from surat.utils.errors import E, api_error

logger = logging.getLogger(__name__)

letter_request_bp = Blueprint("letter_requests", __name__, url_prefix="/api/v1/letter-requests")
register_error_handlers(letter_request_bp)


def _missing(data: dict, *fields) -> list[str]:
    return [f for f in fields if data.get(f) in (None, "")]


def _required_error(missing: list[str]):
    return api_error(E.VALIDATION_REQUIRED, f"Missing required fields: {', '.join(missing)}",
                     details={f: "required" for f in missing})


# ── Requests ───────────────────────────────────────────────────────────────


@letter_request_bp.route("", methods=["GET"])
def list_requests():
    uid = require_acting_user_id()
    filters = RequestFilter.from_mapping(request.args)
    items = query_service.get_requests(filters, uid)
    return jsonify({"items": [r.to_dict() for r in items], "total": len(items)}), 200


@letter_request_bp.route("", methods=["POST"])
def create_request():
    uid = require_acting_user_id()
    data = request.get_json(silent=True) or {}
    missing = _missing(data, "student_id", "letter_type", "purpose")
    if missing:
        return _required_error(missing)
    documents = data.get("documents") or []
    if not isinstance(documents, list):
        return api_error(E.VALIDATION_INVALID, "documents must be a list")

    req = lifecycle.create_letter_request(
        student_id=data["student_id"],
        letter_type=data["letter_type"],
        purpose=data["purpose"],
        priority=data.get("priority") or Priority.NORMAL.value,
        acting_user_id=uid,
        documents=documents,
    )
    return jsonify(req.to_dict()), 201


@letter_request_bp.route("/<int:request_id>", methods=["GET"])
def get_request(request_id):
    uid = require_acting_user_id()
    detail = query_service.get_request_by_id(request_id, uid)
    if detail is None:
        return api_error(E.NOT_FOUND, f"Letter request with ID {request_id} not found")
    return jsonify(detail), 200


@letter_request_bp.route("/<int:request_id>/status", methods=["POST"])
def update_status(request_id):
    uid = require_acting_user_id()
    data = request.get_json(silent=True) or {}
    if not data.get("status"):
        return _required_error(["status"])
    req = lifecycle.update_request_status(
        request_id,
        data["status"],
        uid,
        notes=data.get("notes"),
        next_handler_user_id=data.get("next_handler_user_id"),
    )
    return jsonify(req.to_dict()), 200


# ── Supporting documents ───────────────────────────────────────────────────


@letter_request_bp.route("/<int:request_id>/documents", methods=["GET"])
def list_documents(request_id):
    uid = require_acting_user_id()
    docs = query_service.get_supporting_documents(request_id, uid)
    return jsonify({"items": [d.to_dict() for d in docs], "total": len(docs)}), 200


@letter_request_bp.route("/<int:request_id>/documents", methods=["POST"])
def upload_document(request_id):
    uid = require_acting_user_id()
    data = request.get_json(silent=True) or {}
    missing = _missing(data, "file_name", "file_url")
    if missing:
        return _required_error(missing)
    doc = lifecycle.upload_supporting_document(request_id, data["file_name"], data["file_url"], uid)
    return jsonify(doc.to_dict()), 201


# ── Tracking trail ─────────────────────────────────────────────────────────


@letter_request_bp.route("/<int:request_id>/tracking-logs", methods=["GET"])
def list_tracking_logs(request_id):
    uid = require_acting_user_id()
    logs = tracking_service.get_tracking_logs(request_id, uid)
    return jsonify({"items": [log.to_dict(include_user=True) for log in logs], "total": len(logs)}), 200


@letter_request_bp.route("/<int:request_id>/tracking-logs", methods=["POST"])
def add_tracking_log(request_id):
    uid = require_acting_user_id()
    data = request.get_json(silent=True) or {}
    missing = _missing(data, "action_type", "description")
    if missing:
        return _required_error(missing)
    log = tracking_service.add_tracking_log(
        letter_request_id=request_id,
        user_id=uid,
        action_type=data["action_type"],
        description=data["description"],
        notes=data.get("notes"),
        previous_status=data.get("previous_status"),
        new_status=data.get("new_status"),
    )
    return jsonify(log.to_dict()), 201


# ── Final letter & signature ───────────────────────────────────────────────


@letter_request_bp.route("/<int:request_id>/final-letter", methods=["POST"])
def upload_final_letter(request_id):
    uid = require_acting_user_id()
    data = request.get_json(silent=True) or {}
    if not data.get("file_url"):
        return _required_error(["file_url"])
    req = lifecycle.upload_final_letter(request_id, data["file_url"], uid)
    return jsonify(req.to_dict()), 200


@letter_request_bp.route("/<int:request_id>/sign", methods=["POST"])
def sign_letter(request_id):
    uid = require_acting_user_id()
    data = request.get_json(silent=True) or {}
    if not data.get("signature_data"):
        return _required_error(["signature_data"])
    req = lifecycle.sign_letter(request_id, data["signature_data"], uid)
    return jsonify(req.to_dict()), 200
