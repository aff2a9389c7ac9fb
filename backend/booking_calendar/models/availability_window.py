from __future__ import annotations

from datetime import datetime
from typing import List
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel


class AvailabilityWindow(SQLModel, table=True):
    """Interval, one-time or weekly recurring, during which bookings may be placed."""

    __tablename__ = "availability_windows"

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    owner_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)

    # For recurring windows only the time-of-day of these values is used
    starts_at: datetime = Field(nullable=False, index=True)
    ends_at: datetime = Field(nullable=False, index=True)

    recurring: bool = Field(default=False)
    # 0 = Sunday ... 6 = Saturday; always empty for one-time windows
    days_of_week: List[int] = Field(
        default_factory=list, sa_column=Column(JSON, nullable=False)
    )

    created_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)
    updated_at: datetime = Field(default_factory=datetime.utcnow, nullable=False)

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()
