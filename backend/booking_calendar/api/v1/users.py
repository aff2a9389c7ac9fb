from __future__ import annotations

import logging
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import select

from booking_calendar.api.deps import get_change_sink, get_current_admin, get_current_user
from booking_calendar.db import SessionDep
from booking_calendar.models import AvailabilityWindow, Booking, User
from booking_calendar.schemas import RoleUpdate, UserRead
from booking_calendar.services.availability import serialize_window
from booking_calendar.services.change_events import ChangeSink, emit_change
from booking_calendar.services.write_lock import serialized_write

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_user_or_404(session: SessionDep, user_id: UUID) -> User:
    user = session.get(User, user_id)
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found",
        )
    return user


@router.get("/me", response_model=UserRead, summary="Get current user profile")
def get_current_user_profile(
    current_user: User = Depends(get_current_user),
) -> User:
    return current_user


@router.get("/", response_model=List[UserRead], summary="List users")
def list_users(
    session: SessionDep,
    current_user: User = Depends(get_current_admin),
) -> List[User]:
    return list(session.exec(select(User).order_by(User.created_at.asc())).all())


@router.put("/{user_id}/role", response_model=UserRead, summary="Change user role")
def update_user_role(
    user_id: UUID,
    payload: RoleUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_admin),
) -> User:
    user = _get_user_or_404(session, user_id)
    if user.id == current_user.id and payload.role != user.role:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot change your own role",
        )

    user.role = payload.role
    session.add(user)
    session.commit()
    session.refresh(user)
    logger.info(f"User {user.id} role set to {user.role} by {current_user.id}")
    return user


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete user",
    response_model=None,
)
def delete_user(
    user_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_admin),
    sink: ChangeSink = Depends(get_change_sink),
) -> None:
    """Delete a user together with their bookings.

    Availability windows the user created are handed over to the deleting
    administrator, since ownership is informational only.
    """
    user = _get_user_or_404(session, user_id)
    if user.id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="You cannot delete your own account",
        )

    with serialized_write(session):
        bookings = session.exec(select(Booking).where(Booking.user_id == user_id)).all()
        booking_ids = [booking.id for booking in bookings]
        for booking in bookings:
            session.delete(booking)

        windows = session.exec(
            select(AvailabilityWindow).where(AvailabilityWindow.owner_id == user_id)
        ).all()
        for window in windows:
            window.owner_id = current_user.id
            window.touch()
            session.add(window)

        # Flush dependents first so the user row has no remaining references
        session.flush()
        session.delete(user)
        session.commit()

    logger.info(
        f"User {user_id} deleted by {current_user.id}: "
        f"{len(booking_ids)} bookings removed, {len(windows)} windows reassigned"
    )
    for booking_id in booking_ids:
        emit_change(
            sink,
            entity_type="booking",
            action="delete",
            entity_id=booking_id,
            actor_id=current_user.id,
        )
    for window in windows:
        session.refresh(window)
        emit_change(
            sink,
            entity_type="availability_window",
            action="update",
            entity_id=window.id,
            entity=serialize_window(window),
            actor_id=current_user.id,
        )
