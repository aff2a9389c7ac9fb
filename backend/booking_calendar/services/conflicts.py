from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from uuid import UUID
from zoneinfo import ZoneInfo

from sqlmodel import Session, and_, or_, select

from booking_calendar.core.errors import (
    MSG_OUTSIDE_AVAILABILITY,
    ConflictError,
    ConflictReason,
)
from booking_calendar.models import AvailabilityWindow, Booking
from booking_calendar.models.booking import STATUS_CANCELED
from booking_calendar.services.scheduling import (
    AvailabilityIndex,
    intervals_overlap,
    normalize_interval,
)

logger = logging.getLogger(__name__)


def active_bookings_in_range(
    session: Session,
    starts_at: datetime,
    ends_at: datetime,
    exclude_booking_id: UUID | None = None,
) -> List[Booking]:
    """Non-canceled bookings overlapping [starts_at, ends_at), earliest first."""
    filters = [
        Booking.status != STATUS_CANCELED,
        Booking.starts_at < ends_at,
        Booking.ends_at > starts_at,
    ]
    if exclude_booking_id:
        filters.append(Booking.id != exclude_booking_id)
    return list(
        session.exec(select(Booking).where(*filters).order_by(Booking.starts_at)).all()
    )


def candidate_windows(
    session: Session, starts_at: datetime, ends_at: datetime
) -> List[AvailabilityWindow]:
    """Every recurring window plus the one-time windows containing the interval."""
    stmt = select(AvailabilityWindow).where(
        or_(
            AvailabilityWindow.recurring == True,  # noqa: E712
            and_(
                AvailabilityWindow.starts_at <= starts_at,
                AvailabilityWindow.ends_at >= ends_at,
            ),
        )
    )
    return list(session.exec(stmt).all())


@dataclass(frozen=True)
class BookingDecision:
    allowed: bool
    reason: Optional[ConflictReason] = None
    conflicting_booking: Optional[Booking] = None

    def __bool__(self) -> bool:
        return self.allowed


def describe_booking(booking: Booking) -> dict:
    return {
        "id": str(booking.id),
        "title": booking.title,
        "starts_at": booking.starts_at.isoformat(),
        "ends_at": booking.ends_at.isoformat(),
    }


class ConflictChecker:
    """Decides whether a booking may occupy an interval.

    A booking is allowed when it overlaps no active booking (other than the
    excluded one) and a single availability window covers it entirely.
    The checker only reads; callers serialize check and write together.
    """

    def __init__(self, session: Session, zone: ZoneInfo | None = None) -> None:
        self.session = session
        self.zone = zone

    def can_book(
        self,
        starts_at: datetime,
        ends_at: datetime,
        exclude_booking_id: UUID | None = None,
    ) -> BookingDecision:
        starts_at, ends_at = normalize_interval(starts_at, ends_at)

        for booking in active_bookings_in_range(
            self.session, starts_at, ends_at, exclude_booking_id
        ):
            if intervals_overlap(starts_at, ends_at, booking.starts_at, booking.ends_at):
                return BookingDecision(
                    allowed=False,
                    reason=ConflictReason.OVERLAPS_BOOKING,
                    conflicting_booking=booking,
                )

        index = AvailabilityIndex(
            candidate_windows(self.session, starts_at, ends_at), self.zone
        )
        if not index.is_covered(starts_at, ends_at):
            return BookingDecision(
                allowed=False, reason=ConflictReason.OUTSIDE_AVAILABILITY
            )
        return BookingDecision(allowed=True)

    def ensure_bookable(
        self,
        starts_at: datetime,
        ends_at: datetime,
        exclude_booking_id: UUID | None = None,
    ) -> None:
        decision = self.can_book(starts_at, ends_at, exclude_booking_id)
        if decision:
            return

        if decision.reason is ConflictReason.OVERLAPS_BOOKING:
            other = decision.conflicting_booking
            logger.info(f"Rejected {starts_at} - {ends_at}: overlaps booking {other.id}")
            raise ConflictError(
                ConflictReason.OVERLAPS_BOOKING,
                f'Time slot overlaps booking "{other.title}" '
                f"({other.starts_at:%Y-%m-%d %H:%M} to {other.ends_at:%Y-%m-%d %H:%M})",
                conflicting_booking=describe_booking(other),
            )

        logger.info(f"Rejected {starts_at} - {ends_at}: outside availability")
        raise ConflictError(ConflictReason.OUTSIDE_AVAILABILITY, MSG_OUTSIDE_AVAILABILITY)
