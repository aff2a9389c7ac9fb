"""
Domain errors raised by the scheduling core and the services around it.
Handlers in main.py translate them into HTTP responses so routes stay thin.
"""
from __future__ import annotations

from enum import Enum
from typing import Any

from fastapi import status

# ---------------------------------------------------------------------------
# User-facing messages
# ---------------------------------------------------------------------------

MSG_OUTSIDE_AVAILABILITY = "Selected time slot is not available"
MSG_INVALID_INTERVAL = "end must be after start"
MSG_STORAGE_FAILURE = "Storage failure, please retry"


class ConflictReason(str, Enum):
    OVERLAPS_BOOKING = "OVERLAPS_BOOKING"
    OUTSIDE_AVAILABILITY = "OUTSIDE_AVAILABILITY"


class BookingCalendarError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_content(self) -> dict[str, Any]:
        return {"detail": self.message}


class ValidationError(BookingCalendarError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(BookingCalendarError):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(BookingCalendarError):
    status_code = status.HTTP_404_NOT_FOUND


class PermissionDeniedError(BookingCalendarError):
    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(BookingCalendarError):
    """Business-rule rejection of a booking interval. Always recoverable."""

    status_code = status.HTTP_409_CONFLICT

    def __init__(
        self,
        reason: ConflictReason,
        message: str,
        conflicting_booking: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.reason = reason
        self.conflicting_booking = conflicting_booking

    def to_content(self) -> dict[str, Any]:
        return {
            "detail": self.message,
            "reason": self.reason.value,
            "conflicting_booking": self.conflicting_booking,
        }


class PersistenceError(BookingCalendarError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = MSG_STORAGE_FAILURE) -> None:
        super().__init__(message)

    def to_content(self) -> dict[str, Any]:
        # Storage internals are never echoed back to clients
        return {"detail": MSG_STORAGE_FAILURE}
