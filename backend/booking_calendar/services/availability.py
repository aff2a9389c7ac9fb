from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlmodel import Session, or_, select

from booking_calendar.core.errors import NotFoundError, ValidationError
from booking_calendar.models import AvailabilityWindow, User
from booking_calendar.schemas.availability_window import (
    AvailabilityWindowCreate,
    AvailabilityWindowRead,
    AvailabilityWindowUpdate,
)
from booking_calendar.services.change_events import ChangeSink, emit_change
from booking_calendar.services.scheduling import (
    normalize_days,
    normalize_interval,
    to_reference_zone,
    to_utc_naive,
)
from booking_calendar.services.write_lock import serialized_write

logger = logging.getLogger(__name__)

ENTITY_TYPE = "availability_window"


def prepare_window_fields(
    starts_at: datetime,
    ends_at: datetime,
    recurring: bool,
    days_of_week: List[int],
) -> tuple[datetime, datetime, List[int]]:
    """Validate and normalize window fields before they are stored."""
    starts_at, ends_at = normalize_interval(starts_at, ends_at)
    if not recurring:
        return starts_at, ends_at, []

    if to_reference_zone(starts_at).time() >= to_reference_zone(ends_at).time():
        raise ValidationError(
            "Recurring window must start and end on the same day (no midnight crossing)"
        )
    return starts_at, ends_at, normalize_days(days_of_week)


def serialize_window(window: AvailabilityWindow) -> dict:
    return AvailabilityWindowRead.model_validate(window).model_dump(mode="json")


def get_window_or_404(session: Session, window_id: UUID) -> AvailabilityWindow:
    window = session.get(AvailabilityWindow, window_id)
    if not window:
        raise NotFoundError("Availability window not found")
    return window


def list_windows(
    session: Session,
    from_date: Optional[datetime] = None,
    to_date: Optional[datetime] = None,
) -> List[AvailabilityWindow]:
    """All windows; the date filter narrows one-time windows only."""
    stmt = select(AvailabilityWindow)
    if from_date:
        from_date = to_utc_naive(from_date)
        stmt = stmt.where(
            or_(AvailabilityWindow.recurring == True, AvailabilityWindow.ends_at >= from_date)  # noqa: E712
        )
    if to_date:
        to_date = to_utc_naive(to_date)
        stmt = stmt.where(
            or_(AvailabilityWindow.recurring == True, AvailabilityWindow.starts_at <= to_date)  # noqa: E712
        )
    stmt = stmt.order_by(AvailabilityWindow.starts_at)
    return list(session.exec(stmt).all())


def create_window(
    session: Session,
    sink: ChangeSink,
    *,
    owner: User,
    payload: AvailabilityWindowCreate,
) -> AvailabilityWindow:
    starts_at, ends_at, days = prepare_window_fields(
        payload.starts_at, payload.ends_at, payload.recurring, payload.days_of_week
    )

    with serialized_write(session):
        window = AvailabilityWindow(
            owner_id=owner.id,
            starts_at=starts_at,
            ends_at=ends_at,
            recurring=payload.recurring,
            days_of_week=days,
        )
        session.add(window)
        session.commit()
        session.refresh(window)

    logger.info(f"Availability window {window.id} created by {owner.id}")
    emit_change(
        sink,
        entity_type=ENTITY_TYPE,
        action="create",
        entity_id=window.id,
        entity=serialize_window(window),
        actor_id=owner.id,
    )
    return window


def update_window(
    session: Session,
    sink: ChangeSink,
    *,
    window: AvailabilityWindow,
    payload: AvailabilityWindowUpdate,
    actor: User,
) -> AvailabilityWindow:
    """Partial update. Existing bookings are not re-validated against the result."""
    data = payload.model_dump(exclude_unset=True)

    with serialized_write(session):
        session.refresh(window)

        recurring = window.recurring if data.get("recurring") is None else data["recurring"]
        days = window.days_of_week or []
        if data.get("days_of_week") is not None:
            days = data["days_of_week"]

        starts_at, ends_at, days = prepare_window_fields(
            data.get("starts_at") or window.starts_at,
            data.get("ends_at") or window.ends_at,
            recurring,
            days,
        )
        window.starts_at = starts_at
        window.ends_at = ends_at
        window.recurring = recurring
        window.days_of_week = days
        window.touch()

        session.add(window)
        session.commit()
        session.refresh(window)

    logger.info(f"Availability window {window.id} updated by {actor.id}")
    emit_change(
        sink,
        entity_type=ENTITY_TYPE,
        action="update",
        entity_id=window.id,
        entity=serialize_window(window),
        actor_id=actor.id,
    )
    return window


def delete_window(
    session: Session,
    sink: ChangeSink,
    *,
    window: AvailabilityWindow,
    actor: User,
) -> None:
    window_id = window.id
    with serialized_write(session):
        session.delete(window)
        session.commit()

    logger.info(f"Availability window {window_id} deleted by {actor.id}")
    emit_change(
        sink,
        entity_type=ENTITY_TYPE,
        action="delete",
        entity_id=window_id,
        actor_id=actor.id,
    )
