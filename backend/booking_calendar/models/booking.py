from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import Index
from sqlmodel import Field, SQLModel

STATUS_PENDING = "pending"
STATUS_CONFIRMED = "confirmed"
STATUS_CANCELED = "canceled"

BOOKING_STATUSES = (STATUS_PENDING, STATUS_CONFIRMED, STATUS_CANCELED)


class Booking(SQLModel, table=True):
    """Time interval reserved by a user."""

    __tablename__ = "bookings"
    __table_args__ = (
        # Overlap scans filter on status and both interval bounds
        Index("ix_bookings_status_interval", "status", "starts_at", "ends_at"),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)
    title: str = Field(max_length=255)
    notes: Optional[str] = Field(default=None, max_length=2000)
    starts_at: datetime = Field(nullable=False, index=True)
    ends_at: datetime = Field(nullable=False, index=True)
    status: str = Field(default=STATUS_PENDING, max_length=50, index=True)

    # Opaque id of the event in a synced external calendar, set after creation
    external_event_ref: Optional[str] = Field(default=None, max_length=255)

    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)

    @property
    def is_active(self) -> bool:
        return self.status != STATUS_CANCELED

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()
