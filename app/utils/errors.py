"""
Error taxonomy for booking operations.

Every error is an ``HTTPException`` so routers can raise it directly; the
handlers registered in ``app.main`` render it as
``{"success": false, "message": ..., **payload}``.
"""
from typing import Any, Dict, Optional
from fastapi import HTTPException, status
from app.utils.timezones import iso_utc


class BookingError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, payload: Optional[Dict[str, Any]] = None):
        super().__init__(status_code=self.status_code, detail=message)
        self.message = message
        self.payload = payload or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "message": self.message, **self.payload}


class InvalidInput(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(BookingError):
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(BookingError):
    status_code = status.HTTP_403_FORBIDDEN


class CapacityExceeded(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST


class OutOfOperatingHours(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, opening_time: str, closing_time: str):
        super().__init__(
            f"Room only operates from {opening_time} - {closing_time}",
            {"operating_hours": {"start": opening_time, "end": closing_time}},
        )


class Conflict(BookingError):
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str, conflicting):
        super().__init__(message, {"conflict": conflict_summary(conflicting)})


class InvalidState(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, current_status: str):
        super().__init__(message, {"current_status": current_status})
        self.current_status = current_status


class Internal(BookingError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def conflict_summary(booking) -> Dict[str, Any]:
    """Describe a colliding booking for the caller."""
    return {
        "id": booking.id,
        "activity_name": booking.activity_name,
        "start_time": iso_utc(booking.start_time),
        "end_time": iso_utc(booking.end_time),
        "booked_by": booking.user.name if booking.user else None,
    }
