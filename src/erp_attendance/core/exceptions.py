from __future__ import annotations

from typing import Any, Optional


class DomainError(Exception):
    """Base exception for business rule violations.

    Every subclass carries a stable ``code`` and the HTTP status the controller
    layer answers with. ``context`` holds extra data returned to the client
    (for example the existing record on a duplicate clock-in).
    """

    code = "DomainError"
    http_status = 400

    def __init__(self, message: str = "", *, context: Optional[dict[str, Any]] = None):
        super().__init__(message or self.code)
        self.message = message or self.code
        self.context = dict(context or {})


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "ValidationError"


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid or no identity is present."""

    code = "AuthenticationError"
    http_status = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "Forbidden"
    http_status = 403


class NotFoundError(DomainError):
    code = "NotFound"
    http_status = 404


class OutsideShiftWindow(DomainError):
    code = "OutsideShiftWindow"
    http_status = 422


class AlreadyClockedIn(DomainError):
    code = "AlreadyClockedIn"
    http_status = 409


class AlreadyClockedOut(DomainError):
    code = "AlreadyClockedOut"
    http_status = 409


class NoClockIn(DomainError):
    code = "NoClockIn"
    http_status = 409


class RecordLocked(DomainError):
    code = "RecordLocked"
    http_status = 423


class AlreadyReviewed(DomainError):
    code = "AlreadyReviewed"
    http_status = 409


class DuplicatePayroll(DomainError):
    code = "DuplicatePayroll"
    http_status = 409


class EmployeeNotFound(DomainError):
    code = "EmployeeNotFound"
    http_status = 404


class DeviceNotRegistered(DomainError):
    code = "DeviceNotRegistered"
    http_status = 403
