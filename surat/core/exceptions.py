"""
Workflow exception hierarchy.

All services raise these types; blueprints register handlers against them
once and get consistent HTTP status codes everywhere.

Usage:
    from surat.core.exceptions import NotFoundError, InvalidStateError

    raise NotFoundError(resource="LetterRequest", resource_id=42)
    raise InvalidStateError("Letter is not ready for signing. Current status: DRAFT")
"""


class NotFoundError(Exception):
    """Raised when a requested resource does not exist.

    Also used where "missing", "not yours" and "already done" are
    reported the same way (e.g. processing a disposition assignment).

    Args:
        resource: Human-readable entity name (e.g. "LetterRequest", "Student").
        resource_id: The PK that was looked up.
        message: Optional full message overriding the generated one.
    """

    def __init__(
        self,
        resource: str,
        resource_id: int | str | None = None,
        message: str | None = None,
    ) -> None:
        self.resource = resource
        self.resource_id = resource_id
        if message is None:
            message = f"{resource}"
            if resource_id is not None:
                message += f" with ID {resource_id}"
            message += " not found"
        super().__init__(message)


class ValidationError(Exception):
    """Raised when well-formed input violates a business rule.

    Maps to HTTP 422.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown for structured API responses.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would violate a unique constraint.  Maps to HTTP 409."""

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        super().__init__(f"{resource} with {field}={value!r} already exists")


class PermissionDeniedError(Exception):
    """Raised when the acting user may not perform a write.  Maps to HTTP 403.

    Read paths never raise this; they degrade to an empty result instead.
    """

    def __init__(self, user_id: int | None, action: str, message: str | None = None) -> None:
        self.user_id = user_id
        self.action = action
        super().__init__(message or f"User {user_id} does not have permission for '{action}'")


class InvalidStateError(Exception):
    """Raised when an operation is attempted from a status that does not permit it.

    Maps to HTTP 409.
    """

    def __init__(self, message: str, current_status: str | None = None) -> None:
        self.current_status = current_status
        super().__init__(message)


class ConfigurationMissingError(Exception):
    """Raised when no user holds a role the workflow must route to.

    Fatal and not retryable: the directory must be fixed first.  Maps to HTTP 500.
    """

    def __init__(self, role: str, message: str | None = None) -> None:
        self.role = role
        super().__init__(message or f"No {role} user found")
