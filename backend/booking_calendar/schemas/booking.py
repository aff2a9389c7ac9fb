from __future__ import annotations

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

BookingStatus = Literal["pending", "confirmed", "canceled"]


class BookingBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    notes: Optional[str] = Field(default=None, max_length=2000)
    starts_at: datetime
    ends_at: datetime


class BookingCreate(BookingBase):
    pass


class BookingUpdate(BaseModel):
    """Partial update; changing either bound re-runs the conflict check."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    notes: Optional[str] = Field(default=None, max_length=2000)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    status: Optional[BookingStatus] = None


class ExternalEventRefUpdate(BaseModel):
    external_event_ref: Optional[str] = Field(default=None, max_length=255)


class BookingRead(BookingBase):
    id: UUID
    user_id: UUID
    status: BookingStatus
    external_event_ref: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingWithUser(BookingRead):
    """Booking with owner information for the admin listing."""
    user_name: Optional[str] = None
    user_email: str


class ConflictingBookingSummary(BaseModel):
    id: UUID
    title: str
    starts_at: datetime
    ends_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingCheckRequest(BaseModel):
    starts_at: datetime
    ends_at: datetime
    exclude_booking_id: Optional[UUID] = Field(
        default=None, description="Booking being rescheduled; its own interval is ignored"
    )


class BookingCheckResult(BaseModel):
    allowed: bool
    reason: Optional[Literal["OVERLAPS_BOOKING", "OUTSIDE_AVAILABILITY"]] = None
    conflicting_booking: Optional[ConflictingBookingSummary] = None
