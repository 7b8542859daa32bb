from app.schemas.activity import ActivityResponse, NotificationResponse
from app.schemas.interest import (
    InterestCreate,
    InterestDecision,
    InterestListResponse,
    InterestRespond,
    InterestResponse,
    InterestStats,
    InterestStatus,
)
from app.schemas.profile import (
    BlockedUsersResponse,
    PrivacySettings,
    PrivacySettingsUpdate,
    ProfileCreate,
    ProfileListResponse,
    ProfileOwner,
    ProfileResponse,
    ProfileSearch,
    ProfileSearchResponse,
    ProfileUpdate,
)
from app.schemas.user import Token, TokenPayload, UserCreate, UserResponse

__all__ = [
    "UserCreate",
    "UserResponse",
    "Token",
    "TokenPayload",
    "ProfileCreate",
    "ProfileUpdate",
    "ProfileResponse",
    "ProfileListResponse",
    "ProfileOwner",
    "ProfileSearch",
    "ProfileSearchResponse",
    "PrivacySettings",
    "PrivacySettingsUpdate",
    "BlockedUsersResponse",
    "InterestCreate",
    "InterestDecision",
    "InterestRespond",
    "InterestResponse",
    "InterestListResponse",
    "InterestStats",
    "InterestStatus",
    "ActivityResponse",
    "NotificationResponse",
]
