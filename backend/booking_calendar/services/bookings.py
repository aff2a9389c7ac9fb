"""
Booking write path: conflict check, persistence and change events.

Every mutation runs inside serialized_write so the conflict check and the
write it guards form one atomic unit, and emits its change event only after
the commit succeeded.
"""
from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from booking_calendar.core.errors import NotFoundError, PersistenceError, ValidationError
from booking_calendar.models import Booking, User
from booking_calendar.models.booking import (
    STATUS_CANCELED,
    STATUS_CONFIRMED,
    STATUS_PENDING,
)
from booking_calendar.schemas.booking import BookingCreate, BookingRead, BookingUpdate
from booking_calendar.services.change_events import ChangeSink, emit_change
from booking_calendar.services.conflicts import ConflictChecker
from booking_calendar.services.scheduling import normalize_interval
from booking_calendar.services.write_lock import serialized_write

logger = logging.getLogger(__name__)

ENTITY_TYPE = "booking"

ALLOWED_TRANSITIONS: dict[str, set[str]] = {
    STATUS_PENDING: {STATUS_CONFIRMED, STATUS_CANCELED},
    STATUS_CONFIRMED: {STATUS_CANCELED},
    STATUS_CANCELED: set(),
}


def check_status_transition(current: str, new: str) -> None:
    if new == current:
        return
    if new not in ALLOWED_TRANSITIONS.get(current, set()):
        raise ValidationError(f"Cannot change booking status from {current} to {new}")


def serialize_booking(booking: Booking) -> dict:
    return BookingRead.model_validate(booking).model_dump(mode="json")


def get_booking_or_404(session: Session, booking_id: UUID) -> Booking:
    booking = session.get(Booking, booking_id)
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


def create_booking(
    session: Session,
    sink: ChangeSink,
    *,
    owner: User,
    payload: BookingCreate,
) -> Booking:
    starts_at, ends_at = normalize_interval(payload.starts_at, payload.ends_at)

    with serialized_write(session):
        ConflictChecker(session).ensure_bookable(starts_at, ends_at)
        booking = Booking(
            user_id=owner.id,
            title=payload.title,
            notes=payload.notes,
            starts_at=starts_at,
            ends_at=ends_at,
            status=STATUS_PENDING,
        )
        session.add(booking)
        session.commit()
        session.refresh(booking)

    logger.info(f"Booking {booking.id} created by {owner.id}: {starts_at} - {ends_at}")
    emit_change(
        sink,
        entity_type=ENTITY_TYPE,
        action="create",
        entity_id=booking.id,
        entity=serialize_booking(booking),
        actor_id=owner.id,
    )
    return booking


def update_booking(
    session: Session,
    sink: ChangeSink,
    *,
    booking: Booking,
    payload: BookingUpdate,
    actor: User,
) -> Booking:
    """Apply a partial update.

    A changed interval is re-checked with the booking's own id excluded, so
    the booking never conflicts with its previous position. An unchanged
    interval is not re-checked.
    """
    data = payload.model_dump(exclude_unset=True)

    with serialized_write(session):
        session.refresh(booking)

        new_status = data.get("status") or booking.status
        check_status_transition(booking.status, new_status)

        starts_at, ends_at = normalize_interval(
            data.get("starts_at") or booking.starts_at,
            data.get("ends_at") or booking.ends_at,
        )
        interval_changed = (starts_at, ends_at) != (booking.starts_at, booking.ends_at)

        if interval_changed:
            if booking.status == STATUS_CANCELED:
                raise ValidationError("Canceled bookings cannot be rescheduled")
            if new_status != STATUS_CANCELED:
                ConflictChecker(session).ensure_bookable(
                    starts_at, ends_at, exclude_booking_id=booking.id
                )

        if "title" in data and data["title"] is not None:
            booking.title = data["title"]
        if "notes" in data:
            booking.notes = data["notes"]
        booking.starts_at = starts_at
        booking.ends_at = ends_at
        booking.status = new_status
        booking.touch()

        session.add(booking)
        session.commit()
        session.refresh(booking)

    logger.info(f"Booking {booking.id} updated by {actor.id} (status={booking.status})")
    emit_change(
        sink,
        entity_type=ENTITY_TYPE,
        action="update",
        entity_id=booking.id,
        entity=serialize_booking(booking),
        actor_id=actor.id,
    )
    return booking


def delete_booking(
    session: Session,
    sink: ChangeSink,
    *,
    booking: Booking,
    actor: User,
) -> None:
    booking_id = booking.id
    with serialized_write(session):
        session.delete(booking)
        session.commit()

    logger.info(f"Booking {booking_id} deleted by {actor.id}")
    emit_change(
        sink,
        entity_type=ENTITY_TYPE,
        action="delete",
        entity_id=booking_id,
        actor_id=actor.id,
    )


def set_external_event_ref(
    session: Session,
    sink: ChangeSink,
    *,
    booking: Booking,
    external_event_ref: Optional[str],
    actor: User,
) -> Booking:
    """Record (or clear) the id of the synced external calendar event.

    Independent of the booking's interval and status; a failure here never
    touches the accepted booking itself.
    """
    booking.external_event_ref = external_event_ref
    booking.touch()
    try:
        session.add(booking)
        session.commit()
        session.refresh(booking)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error(f"Failed to store external ref for booking {booking.id}: {exc}")
        raise PersistenceError() from exc

    emit_change(
        sink,
        entity_type=ENTITY_TYPE,
        action="update",
        entity_id=booking.id,
        entity=serialize_booking(booking),
        actor_id=actor.id,
    )
    return booking
