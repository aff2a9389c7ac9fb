from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import select

from booking_calendar.api.deps import get_change_sink, get_current_admin, get_current_user
from booking_calendar.db import SessionDep
from booking_calendar.models import Booking, User
from booking_calendar.schemas import (
    BookingCheckRequest,
    BookingCheckResult,
    BookingCreate,
    BookingRead,
    BookingUpdate,
    BookingWithUser,
    ConflictingBookingSummary,
    ExternalEventRefUpdate,
)
from booking_calendar.services import bookings as booking_service
from booking_calendar.services.change_events import ChangeSink
from booking_calendar.services.conflicts import ConflictChecker
from booking_calendar.services.permissions import ensure_can_modify_booking
from booking_calendar.services.scheduling import to_utc_naive

router = APIRouter()


@router.post(
    "/check",
    response_model=BookingCheckResult,
    summary="Check whether an interval can be booked",
)
def check_booking_interval(
    payload: BookingCheckRequest,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> BookingCheckResult:
    """Dry run of the conflict check; nothing is reserved."""
    decision = ConflictChecker(session).can_book(
        payload.starts_at, payload.ends_at, payload.exclude_booking_id
    )
    conflicting = None
    if decision.conflicting_booking is not None:
        conflicting = ConflictingBookingSummary.model_validate(decision.conflicting_booking)
    return BookingCheckResult(
        allowed=decision.allowed,
        reason=decision.reason.value if decision.reason else None,
        conflicting_booking=conflicting,
    )


@router.post(
    "/",
    response_model=BookingRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create booking",
)
def create_booking(
    payload: BookingCreate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
    sink: ChangeSink = Depends(get_change_sink),
) -> Booking:
    return booking_service.create_booking(
        session, sink, owner=current_user, payload=payload
    )


@router.get("/me", response_model=List[BookingRead], summary="List my bookings")
def list_my_bookings(
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> List[Booking]:
    stmt = (
        select(Booking)
        .where(Booking.user_id == current_user.id)
        .order_by(Booking.starts_at)
    )
    return list(session.exec(stmt).all())


@router.get("/", response_model=List[BookingWithUser], summary="List all bookings")
def list_bookings(
    session: SessionDep,
    current_user: User = Depends(get_current_admin),
    status_filter: Optional[Literal["pending", "confirmed", "canceled"]] = Query(
        default=None, alias="status", description="Filter by status"
    ),
    from_date: Optional[datetime] = Query(
        default=None, alias="from", description="Bookings ending after this"
    ),
    to_date: Optional[datetime] = Query(
        default=None, alias="to", description="Bookings starting before this"
    ),
) -> List[BookingWithUser]:
    stmt = select(Booking, User).join(User, Booking.user_id == User.id)
    if status_filter:
        stmt = stmt.where(Booking.status == status_filter)
    if from_date:
        stmt = stmt.where(Booking.ends_at > to_utc_naive(from_date))
    if to_date:
        stmt = stmt.where(Booking.starts_at < to_utc_naive(to_date))
    stmt = stmt.order_by(Booking.starts_at)

    return [
        BookingWithUser(
            **BookingRead.model_validate(booking).model_dump(),
            user_name=user.full_name,
            user_email=user.email,
        )
        for booking, user in session.exec(stmt).all()
    ]


@router.get("/{booking_id}", response_model=BookingRead, summary="Get booking by id")
def get_booking(
    booking_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
) -> Booking:
    booking = booking_service.get_booking_or_404(session, booking_id)
    ensure_can_modify_booking(booking, current_user)
    return booking


@router.put("/{booking_id}", response_model=BookingRead, summary="Update booking")
def update_booking(
    booking_id: UUID,
    payload: BookingUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
    sink: ChangeSink = Depends(get_change_sink),
) -> Booking:
    booking = booking_service.get_booking_or_404(session, booking_id)
    ensure_can_modify_booking(booking, current_user)
    return booking_service.update_booking(
        session, sink, booking=booking, payload=payload, actor=current_user
    )


@router.put(
    "/{booking_id}/external-ref",
    response_model=BookingRead,
    summary="Attach external calendar event reference",
)
def set_external_event_ref(
    booking_id: UUID,
    payload: ExternalEventRefUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
    sink: ChangeSink = Depends(get_change_sink),
) -> Booking:
    booking = booking_service.get_booking_or_404(session, booking_id)
    ensure_can_modify_booking(booking, current_user)
    return booking_service.set_external_event_ref(
        session,
        sink,
        booking=booking,
        external_event_ref=payload.external_event_ref,
        actor=current_user,
    )


@router.delete(
    "/{booking_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete booking",
    response_model=None,
)
def delete_booking(
    booking_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_user),
    sink: ChangeSink = Depends(get_change_sink),
) -> None:
    booking = booking_service.get_booking_or_404(session, booking_id)
    ensure_can_modify_booking(booking, current_user)
    booking_service.delete_booking(session, sink, booking=booking, actor=current_user)
