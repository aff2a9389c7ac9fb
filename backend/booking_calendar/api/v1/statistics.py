from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlmodel import select

from booking_calendar.api.deps import get_current_admin
from booking_calendar.db import SessionDep
from booking_calendar.models import Booking, User
from booking_calendar.models.booking import (
    BOOKING_STATUSES,
    STATUS_CANCELED,
    STATUS_CONFIRMED,
    STATUS_PENDING,
)
from booking_calendar.schemas import BookingStatistics
from booking_calendar.services.scheduling import (
    sunday_first_weekday,
    to_reference_zone,
    to_utc_naive,
)

router = APIRouter()


@router.get("/bookings", response_model=BookingStatistics, summary="Booking statistics")
def get_booking_statistics(
    session: SessionDep,
    from_date: datetime = Query(..., alias="from", description="Range start (ISO format)"),
    to_date: datetime = Query(..., alias="to", description="Range end (ISO format)"),
    current_user: User = Depends(get_current_admin),
) -> BookingStatistics:
    """Counts per status and booked time for bookings starting in the range."""
    from_date = to_utc_naive(from_date)
    to_date = to_utc_naive(to_date)
    if to_date <= from_date:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="to must be after from",
        )

    bookings = session.exec(
        select(Booking)
        .where(Booking.starts_at >= from_date)
        .where(Booking.starts_at < to_date)
    ).all()

    counts = dict.fromkeys(BOOKING_STATUSES, 0)
    booked_minutes = 0
    by_weekday: dict[int, int] = {}

    for booking in bookings:
        counts[booking.status] = counts.get(booking.status, 0) + 1
        if not booking.is_active:
            continue
        booked_minutes += int((booking.ends_at - booking.starts_at).total_seconds() / 60)
        weekday = sunday_first_weekday(to_reference_zone(booking.starts_at))
        by_weekday[weekday] = by_weekday.get(weekday, 0) + 1

    return BookingStatistics(
        from_date=from_date,
        to_date=to_date,
        total_bookings=len(bookings),
        pending=counts[STATUS_PENDING],
        confirmed=counts[STATUS_CONFIRMED],
        canceled=counts[STATUS_CANCELED],
        booked_minutes=booked_minutes,
        booked_hours=round(booked_minutes / 60, 2),
        by_weekday=by_weekday,
    )
