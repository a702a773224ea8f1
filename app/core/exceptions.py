"""Domain Exceptions

Services raise these; the API layer renders them as ``ErrorResponse`` envelopes
with the status code carried by the exception.
"""

from typing import Optional


class AppError(Exception):
    """Base class for errors surfaced to API callers"""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ValidationError(AppError):
    """Missing or malformed bill fields, non-positive or excessive payment amounts"""

    status_code = 400
    code = "VALIDATION_ERROR"


class NotFoundError(AppError):
    """A bill, dormitory, room, tenant or config id does not resolve"""

    status_code = 404
    code = "RESOURCE_NOT_FOUND"


class InvalidStateError(AppError):
    """Operation not allowed from the bill's current status"""

    status_code = 409
    code = "INVALID_STATE"


class ConflictError(AppError):
    """Duplicate bill for a period, or a write based on a stale read"""

    status_code = 409
    code = "CONFLICT"


class StoreError(AppError):
    """Persistence layer failure"""

    status_code = 500
    code = "STORE_ERROR"


class NotificationError(AppError):
    """Delivery failure. Logged and swallowed by callers, never returned to clients."""

    status_code = 502
    code = "NOTIFICATION_FAILED"
