from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ActivityResponse(BaseModel):
    id: UUID
    type: str
    target_id: UUID | None
    target_model: str | None
    description: str | None
    meta: dict | None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationResponse(BaseModel):
    id: UUID
    type: str
    title: str
    content: str | None
    reference_id: UUID | None
    reference_type: str | None
    action_url: str | None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
