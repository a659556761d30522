"""Application-specific exceptions.

Workflow services raise these instead of ``HTTPException`` so they stay usable
outside a request. ``main.create_app`` registers a handler that turns them into
JSON responses using ``status_code``.
"""


class CampusConnectError(Exception):
    """Base exception for all Campus Connect errors."""

    status_code = 500

    def __init__(self, message: str, **extra):
        self.message = message
        self.extra = extra
        super().__init__(message)


class NotFoundError(CampusConnectError):
    """Raised when a requested record does not exist or is not visible to the caller."""

    status_code = 404


class PermissionDeniedError(CampusConnectError):
    """Raised when the caller has the wrong role or does not own the resource."""

    status_code = 403


class InvalidStateError(CampusConnectError):
    """Raised when a status transition is not allowed from the record's current state."""

    status_code = 400


class ValidationError(CampusConnectError):
    """Raised when a request is well-formed but violates a business rule."""

    status_code = 400
