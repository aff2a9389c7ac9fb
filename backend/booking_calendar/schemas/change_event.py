from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

EntityType = Literal["booking", "availability_window"]
ChangeAction = Literal["create", "update", "delete"]


class ChangeEvent(BaseModel):
    """Notification emitted once per committed booking/window mutation."""
    entity_type: EntityType
    action: ChangeAction
    entity_id: UUID
    entity: Optional[dict[str, Any]] = Field(
        default=None, description="Serialized record; null for deletes"
    )
    actor_id: Optional[UUID] = None
    occurred_at: datetime = Field(default_factory=datetime.utcnow)
