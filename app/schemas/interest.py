from datetime import datetime, timezone
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, computed_field

from app.config import settings
from app.schemas.profile import ProfileResponse


class InterestStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"
    withdrawn = "withdrawn"


class InterestDecision(str, Enum):
    accepted = "accepted"
    rejected = "rejected"


class InterestCreate(BaseModel):
    """Send interest to another user"""

    to_user_id: UUID
    message: str | None = Field(None, max_length=settings.INTEREST_MESSAGE_MAX_LENGTH)


class InterestRespond(BaseModel):
    """Accept or reject an interest"""

    status: InterestDecision
    message: str | None = Field(None, max_length=settings.INTEREST_MESSAGE_MAX_LENGTH)


def _as_utc(value: datetime) -> datetime:
    # Some backends hand back naive datetimes; they are stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class InterestResponse(BaseModel):
    """Interest details returned by API"""

    id: UUID
    from_user_id: UUID
    to_user_id: UUID
    message: str | None
    status: InterestStatus
    is_read: bool
    responded_at: datetime | None
    expires_at: datetime
    created_at: datetime
    updated_at: datetime

    # Counterpart's profile after the privacy filter; None when not visible
    other_user_profile: ProfileResponse | None = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def is_expired(self) -> bool:
        return _as_utc(self.expires_at) < datetime.now(timezone.utc)


class InterestListResponse(BaseModel):
    """Paginated list of interests"""

    interests: list[InterestResponse]
    total: int
    page: int
    per_page: int


class InterestStats(BaseModel):
    """Counts per status, both directions"""

    received: dict[InterestStatus, int]
    sent: dict[InterestStatus, int]
    unread_count: int
