"""
Service error kinds.

Every error carries the HTTP status it maps to; the API layer renders them
with the standard ``{success: false, message, error}`` envelope.
"""
from typing import Optional


class ServiceError(Exception):
    status_code: int = 500

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.error = error


class InvalidInput(ServiceError):
    status_code = 400


class Unauthorized(ServiceError):
    status_code = 401


class Forbidden(ServiceError):
    status_code = 403


class NotFound(ServiceError):
    status_code = 404


class Conflict(ServiceError):
    status_code = 409


class StoreFailure(ServiceError):
    """The database rejected or failed an operation."""
    status_code = 500


class UpstreamFailure(ServiceError):
    """The profile service could not be reached."""
    status_code = 502
