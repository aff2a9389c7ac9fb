from __future__ import annotations

from booking_calendar.core.errors import PermissionDeniedError
from booking_calendar.models import Booking, User


def can_manage_availability(actor: User) -> bool:
    return actor.is_admin


def can_modify_booking(booking: Booking, actor: User) -> bool:
    return actor.is_admin or booking.user_id == actor.id


def ensure_can_manage_availability(actor: User) -> None:
    if not can_manage_availability(actor):
        raise PermissionDeniedError("Only administrators can manage availability")


def ensure_can_modify_booking(booking: Booking, actor: User) -> None:
    if not can_modify_booking(booking, actor):
        raise PermissionDeniedError("Not authorized to modify this booking")
