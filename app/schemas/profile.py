from datetime import date, datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class Gender(str, Enum):
    male = "male"
    female = "female"
    other = "other"


class MaritalStatus(str, Enum):
    never_married = "never_married"
    divorced = "divorced"
    widowed = "widowed"
    awaiting_divorce = "awaiting_divorce"
    annulled = "annulled"


class Income(str, Enum):
    below_5_lakhs = "below_5_lakhs"
    lakhs_5_10 = "5_10_lakhs"
    lakhs_10_15 = "10_15_lakhs"
    lakhs_15_25 = "15_25_lakhs"
    lakhs_25_50 = "25_50_lakhs"
    lakhs_50_75 = "50_75_lakhs"
    lakhs_75_100 = "75_100_lakhs"
    above_100_lakhs = "above_100_lakhs"
    prefer_not_to_say = "prefer_not_to_say"


class ContactPermission(str, Enum):
    all = "all"
    matches = "matches"
    none = "none"


class Photo(BaseModel):
    url: str = Field(..., max_length=500)
    is_primary: bool = False


class ProfileCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    gender: Gender
    date_of_birth: date | None = None
    marital_status: MaritalStatus | None = None
    height_cm: int | None = Field(None, ge=100, le=250)

    religion: str | None = Field(None, max_length=100)
    mother_tongue: str | None = Field(None, max_length=100)

    highest_qualification: str | None = Field(None, max_length=200)
    profession: str | None = Field(None, max_length=200)
    income: Income | None = None

    country: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    city: str | None = Field(None, max_length=200)
    address: str | None = Field(None, max_length=300)

    photos: list[Photo] = []
    about: str | None = Field(None, max_length=2000)


class ProfileUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    date_of_birth: date | None = None
    marital_status: MaritalStatus | None = None
    height_cm: int | None = Field(None, ge=100, le=250)

    religion: str | None = Field(None, max_length=100)
    mother_tongue: str | None = Field(None, max_length=100)

    highest_qualification: str | None = Field(None, max_length=200)
    profession: str | None = Field(None, max_length=200)
    income: Income | None = None

    country: str | None = Field(None, max_length=100)
    state: str | None = Field(None, max_length=100)
    city: str | None = Field(None, max_length=200)
    address: str | None = Field(None, max_length=300)

    photos: list[Photo] | None = None
    about: str | None = Field(None, max_length=2000)


class PrivacySettings(BaseModel):
    show_photos: bool = True
    show_contact: bool = False
    show_income: bool = True
    show_location: bool = True
    is_hidden: bool = False
    who_can_contact: ContactPermission = ContactPermission.all

    model_config = ConfigDict(from_attributes=True)


class PrivacySettingsUpdate(BaseModel):
    """Partial update; omitted fields keep their value"""

    show_photos: bool | None = None
    show_contact: bool | None = None
    show_income: bool | None = None
    show_location: bool | None = None
    is_hidden: bool | None = None
    who_can_contact: ContactPermission | None = None


class ProfileOwner(BaseModel):
    """Embedded user reference; phone and email are the contact fields"""

    id: UUID
    email: str | None = None
    phone: str | None = None

    model_config = ConfigDict(from_attributes=True)


class Location(BaseModel):
    country: str | None = None
    state: str | None = None
    city: str | None = None
    address: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ProfileResponse(BaseModel):
    """Profile as seen by a viewer.

    Built from the ORM row and then passed through
    privacy_service.apply_privacy before leaving the API. The owner's block
    list is carried for the filter but never serialized.
    """

    id: UUID
    user_id: UUID
    user: ProfileOwner | None = None

    first_name: str
    last_name: str
    date_of_birth: date | None = None
    gender: str
    marital_status: str | None = None
    height_cm: int | None = None
    religion: str | None = None
    mother_tongue: str | None = None
    highest_qualification: str | None = None
    profession: str | None = None
    income: str | None = None
    location: Location = Location()
    photos: list[Photo] = []
    about: str | None = None

    is_complete: bool = False
    is_approved: bool = False
    profile_score: int = 0
    privacy: PrivacySettings = PrivacySettings()
    blocked_users: list[str] = Field(default_factory=list, exclude=True)

    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class ProfileSearch(BaseModel):
    gender: Gender | None = None
    min_age: int | None = Field(None, ge=18, le=100)
    max_age: int | None = Field(None, ge=18, le=100)
    religion: str | None = None
    mother_tongue: str | None = None
    marital_status: MaritalStatus | None = None
    country: str | None = None
    state: str | None = None
    city: str | None = None

    page: int = Field(1, ge=1)
    per_page: int = Field(20, ge=1, le=100)


class ProfileSearchResponse(BaseModel):
    profiles: list[ProfileResponse]
    total: int
    page: int
    per_page: int


class BlockedUsersResponse(BaseModel):
    blocked_users: list[UUID]


class ProfileListResponse(BaseModel):
    """Paginated profiles for moderation"""

    profiles: list[ProfileResponse]
    total: int
    page: int
    per_page: int
