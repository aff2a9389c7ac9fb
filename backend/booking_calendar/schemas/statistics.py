from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class BookingStatistics(BaseModel):
    """Booking counts and booked time for a date range."""

    from_date: datetime
    to_date: datetime
    total_bookings: int = Field(default=0, description="All bookings starting in the range")
    pending: int = 0
    confirmed: int = 0
    canceled: int = 0
    booked_minutes: int = Field(default=0, description="Minutes held by active bookings")
    booked_hours: float = Field(default=0.0, description="Hours held by active bookings")
    by_weekday: dict[int, int] = Field(
        default_factory=dict, description="Active bookings per start weekday, 0=Sunday"
    )
