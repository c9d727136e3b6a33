"""
Faculty Letter Workflow
Blueprint registry.

Shared pieces every API blueprint uses: the acting-user header and the
exception → JSON error mapping.
"""

import logging

from flask import current_app, request
from sqlalchemy.exc import SQLAlchemyError

from surat.core.exceptions import (
    ConfigurationMissingError,
    ConflictError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from surat.utils.errors import E, api_error

logger = logging.getLogger(__name__)


def acting_user_id():
    """Return the acting user id from the request header, or None.

    Authentication happens upstream; the header is trusted as-is.
    """
    raw = request.headers.get(current_app.config.get("ACTING_USER_HEADER", "X-User-Id"))
    if raw is None or str(raw).strip() == "":
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError("X-User-Id header must be an integer", details={"X-User-Id": raw})


def require_acting_user_id():
    uid = acting_user_id()
    if uid is None:
        raise ValidationError("X-User-Id header is required", details={"X-User-Id": "required"})
    return uid


def register_error_handlers(bp):
    """Attach the workflow exception → HTTP mapping to *bp*."""

    @bp.errorhandler(NotFoundError)
    def _handle_not_found(error):
        return api_error(E.NOT_FOUND, str(error))

    @bp.errorhandler(ValidationError)
    def _handle_validation(error):
        return api_error(E.VALIDATION_RULE, str(error), details=error.details)

    @bp.errorhandler(ConflictError)
    def _handle_conflict(error):
        return api_error(E.CONFLICT_DUPLICATE, str(error), details={"field": error.field})

    @bp.errorhandler(PermissionDeniedError)
    def _handle_forbidden(error):
        return api_error(E.FORBIDDEN, str(error))

    @bp.errorhandler(InvalidStateError)
    def _handle_invalid_state(error):
        details = {"current_status": error.current_status} if error.current_status else None
        return api_error(E.CONFLICT_STATE, str(error), details=details)

    @bp.errorhandler(ConfigurationMissingError)
    def _handle_configuration(error):
        logger.error("Routing configuration missing: %s", error, extra={"role": error.role})
        return api_error(E.CONFIGURATION, str(error), details={"role": error.role})

    @bp.errorhandler(SQLAlchemyError)
    def _handle_db(error):
        logger.exception("Database error in %s endpoint=%s", bp.name, request.endpoint)
        return api_error(E.DATABASE, "Database error")

    return bp
