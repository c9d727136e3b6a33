"""JSON error bodies for the letter workflow API.

Every error response has the shape ``{"error": <message>, "code": <ERR_*>}``
plus an optional ``details`` object.  Domain exceptions are translated in
``surat.blueprints.register_error_handlers``; views call ``api_error``
directly for request-shape problems.

    return api_error(E.NOT_FOUND, "Letter request with ID 7 not found")
"""

from __future__ import annotations

from flask import jsonify


class E:
    """Error codes, each bound to one HTTP status in ``_STATUS``."""

    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"  # missing field
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"    # malformed field
    VALIDATION_RULE = "ERR_VALIDATION_RULE"          # ValidationError from a service
    NOT_FOUND = "ERR_NOT_FOUND"
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"    # email / NIM already taken
    CONFLICT_STATE = "ERR_CONFLICT_STATE"            # wrong request status
    FORBIDDEN = "ERR_FORBIDDEN"
    CONFIGURATION = "ERR_CONFIGURATION_MISSING"      # no user holds a required role
    DATABASE = "ERR_DATABASE"


_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.VALIDATION_RULE: 422,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.CONFLICT_STATE: 409,
    E.FORBIDDEN: 403,
    E.CONFIGURATION: 500,
    E.DATABASE: 500,
}


def api_error(code: str, message: str, *, details: dict | None = None):
    """Build ``(response, status)`` for *code*.

    Parameters
    ----------
    code : str
        One of the ``E.*`` constants.
    message : str
        Shown to the client as ``error``.
    details : dict, optional
        Field errors, current status, offending role, ...
    """
    body: dict = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), _STATUS.get(code, 400)
