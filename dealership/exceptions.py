# dealership/exceptions.py
"""
Domain exceptions raised by the service layer.
main.py converts each one to a JSON error response with its status code.
"""


class BackOfficeError(Exception):
    """Base class for errors that map directly to an HTTP response."""

    status_code = 500

    def __init__(self, message: str, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class UnauthorizedError(BackOfficeError):
    """Missing or invalid credentials, or a role without the required permission."""

    status_code = 401


class BusinessRuleError(BackOfficeError):
    """Request is well-formed but violates a business rule (e.g. selling an unowned vehicle)."""

    status_code = 400


class NotFoundError(BackOfficeError):
    """Record does not exist or has been soft-deleted."""

    status_code = 404


class ConflictError(BackOfficeError):
    """A unique identifier is already held by another active record."""

    status_code = 409
