from __future__ import annotations

from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

# 0 = Sunday ... 6 = Saturday
Weekday = Annotated[int, Field(ge=0, le=6)]


class AvailabilityWindowBase(BaseModel):
    """Base schema for availability window."""
    starts_at: datetime = Field(..., description="Window start (time-of-day only for recurring windows)")
    ends_at: datetime = Field(..., description="Window end (time-of-day only for recurring windows)")
    recurring: bool = Field(default=False, description="Repeat weekly on days_of_week")
    days_of_week: List[Weekday] = Field(default_factory=list, description="0=Sunday .. 6=Saturday")


class AvailabilityWindowCreate(AvailabilityWindowBase):
    """Schema for creating availability window."""
    pass


class AvailabilityWindowUpdate(BaseModel):
    """Schema for partial window updates."""
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    recurring: Optional[bool] = None
    days_of_week: Optional[List[Weekday]] = None


class AvailabilityWindowRead(AvailabilityWindowBase):
    id: UUID
    owner_id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
