from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from booking_calendar.api.deps import get_change_sink, get_current_admin
from booking_calendar.db import SessionDep
from booking_calendar.models import AvailabilityWindow, User
from booking_calendar.schemas import (
    AvailabilityWindowCreate,
    AvailabilityWindowRead,
    AvailabilityWindowUpdate,
)
from booking_calendar.services import availability as availability_service
from booking_calendar.services.change_events import ChangeSink
from booking_calendar.services.permissions import ensure_can_manage_availability

router = APIRouter()


@router.get(
    "/",
    response_model=List[AvailabilityWindowRead],
    summary="List availability windows",
)
def list_availability_windows(
    session: SessionDep,
    from_date: Optional[datetime] = Query(
        default=None, alias="from", description="Hide one-time windows ending before this"
    ),
    to_date: Optional[datetime] = Query(
        default=None, alias="to", description="Hide one-time windows starting after this"
    ),
) -> List[AvailabilityWindow]:
    return availability_service.list_windows(session, from_date, to_date)


@router.post(
    "/",
    response_model=AvailabilityWindowRead,
    summary="Create availability window",
    status_code=status.HTTP_201_CREATED,
)
def create_availability_window(
    payload: AvailabilityWindowCreate,
    session: SessionDep,
    current_user: User = Depends(get_current_admin),
    sink: ChangeSink = Depends(get_change_sink),
) -> AvailabilityWindow:
    ensure_can_manage_availability(current_user)
    return availability_service.create_window(
        session, sink, owner=current_user, payload=payload
    )


@router.put(
    "/{window_id}",
    response_model=AvailabilityWindowRead,
    summary="Update availability window",
)
def update_availability_window(
    window_id: UUID,
    payload: AvailabilityWindowUpdate,
    session: SessionDep,
    current_user: User = Depends(get_current_admin),
    sink: ChangeSink = Depends(get_change_sink),
) -> AvailabilityWindow:
    ensure_can_manage_availability(current_user)
    window = availability_service.get_window_or_404(session, window_id)
    return availability_service.update_window(
        session, sink, window=window, payload=payload, actor=current_user
    )


@router.delete(
    "/{window_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete availability window",
    response_model=None,
)
def delete_availability_window(
    window_id: UUID,
    session: SessionDep,
    current_user: User = Depends(get_current_admin),
    sink: ChangeSink = Depends(get_change_sink),
) -> None:
    ensure_can_manage_availability(current_user)
    window = availability_service.get_window_or_404(session, window_id)
    availability_service.delete_window(session, sink, window=window, actor=current_user)
