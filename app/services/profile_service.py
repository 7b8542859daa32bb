from datetime import date, timedelta
from uuid import UUID

from sqlalchemy import String, and_, cast, func, not_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.profile import Profile
from app.schemas.profile import (
    PrivacySettingsUpdate,
    ProfileCreate,
    ProfileResponse,
    ProfileSearch,
    ProfileUpdate,
)


def _to_column_values(data: dict) -> dict:
    """Flatten enums and nested photo models for storage."""
    if data.get("photos") is not None:
        data["photos"] = [
            photo.model_dump() if hasattr(photo, "model_dump") else photo
            for photo in data["photos"]
        ]
    for key, value in data.items():
        if hasattr(value, "value"):
            data[key] = value.value
    return data


def _refresh_completeness(profile: Profile) -> None:
    profile.profile_score = calculate_profile_score(profile)
    profile.is_complete = profile.profile_score >= settings.PROFILE_COMPLETE_SCORE


async def create_profile(
    db: AsyncSession, user_id: UUID, data: ProfileCreate
) -> Profile:
    """Create new profile for user. New profiles await admin approval."""
    profile = Profile(user_id=user_id, **_to_column_values(data.model_dump()))
    profile.blocked_users = []
    _refresh_completeness(profile)

    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    return profile


async def get_profile_by_user_id(db: AsyncSession, user_id: UUID) -> Profile | None:
    """Get profile by user ID."""
    result = await db.execute(select(Profile).where(Profile.user_id == user_id))
    return result.unique().scalar_one_or_none()


async def get_profile_by_id(db: AsyncSession, profile_id: UUID) -> Profile | None:
    """Get profile by profile ID."""
    result = await db.execute(select(Profile).where(Profile.id == profile_id))
    return result.unique().scalar_one_or_none()


async def get_profiles_by_user_ids(
    db: AsyncSession, user_ids: set[UUID]
) -> dict[UUID, Profile]:
    if not user_ids:
        return {}
    result = await db.execute(select(Profile).where(Profile.user_id.in_(user_ids)))
    return {profile.user_id: profile for profile in result.unique().scalars().all()}


async def update_profile(
    db: AsyncSession, profile: Profile, data: ProfileUpdate
) -> Profile:
    """Update profile fields. Only update fields that are provided."""
    update_data = _to_column_values(data.model_dump(exclude_unset=True))

    for field, value in update_data.items():
        setattr(profile, field, value)

    _refresh_completeness(profile)

    await db.commit()
    await db.refresh(profile)
    return profile


async def update_privacy_settings(
    db: AsyncSession, profile: Profile, data: PrivacySettingsUpdate
) -> Profile:
    """Merge the provided privacy flags into the profile."""
    update_data = _to_column_values(data.model_dump(exclude_unset=True, exclude_none=True))

    for field, value in update_data.items():
        setattr(profile, field, value)

    await db.commit()
    await db.refresh(profile)
    return profile


async def block_user(db: AsyncSession, profile: Profile, user_id: UUID) -> Profile:
    """Add user_id to the owner's block list (no-op if already there)."""
    blocked = list(profile.blocked_users or [])
    if str(user_id) not in blocked:
        # Reassign so the JSON column is flagged dirty
        profile.blocked_users = [*blocked, str(user_id)]
        await db.commit()
        await db.refresh(profile)
    return profile


async def unblock_user(db: AsyncSession, profile: Profile, user_id: UUID) -> Profile:
    blocked = list(profile.blocked_users or [])
    if str(user_id) in blocked:
        profile.blocked_users = [uid for uid in blocked if uid != str(user_id)]
        await db.commit()
        await db.refresh(profile)
    return profile


async def set_profile_approval(
    db: AsyncSession, profile: Profile, approved: bool
) -> Profile:
    profile.is_approved = approved
    await db.commit()
    await db.refresh(profile)
    return profile


async def get_pending_profiles(
    db: AsyncSession,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[Profile], int]:
    """Profiles waiting for admin approval, oldest first."""
    query = select(Profile).where(Profile.is_approved == False)

    count_query = select(func.count()).select_from(query.subquery())
    total = (await db.execute(count_query)).scalar() or 0

    offset = (page - 1) * per_page
    query = query.order_by(Profile.created_at.asc()).offset(offset).limit(per_page)

    result = await db.execute(query)
    return list(result.unique().scalars().all()), total


async def search_profiles(
    db: AsyncSession,
    filters: ProfileSearch,
    viewer_id: UUID,
    viewer_blocked: list[str] | None = None,
    accepted_user_ids: set[UUID] | None = None,
) -> tuple[list[Profile], int]:
    """
    Discovery search.
    Returns (profiles, total_count) for pagination. Only approved, complete
    profiles are returned. Hidden profiles only show up for users holding an
    accepted interest with the owner, and blocks in either direction exclude
    the profile. Results still need privacy_service.filter_visible.
    """
    accepted_user_ids = accepted_user_ids or set()

    query = select(Profile).where(
        and_(
            Profile.user_id != viewer_id,
            Profile.is_approved == True,
            Profile.is_complete == True,
            # UUID strings cannot be substrings of one another
            not_(cast(Profile.blocked_users, String).contains(str(viewer_id))),
        )
    )

    if accepted_user_ids:
        query = query.where(
            or_(Profile.is_hidden == False, Profile.user_id.in_(accepted_user_ids))
        )
    else:
        query = query.where(Profile.is_hidden == False)

    if viewer_blocked:
        query = query.where(
            Profile.user_id.not_in([UUID(uid) for uid in viewer_blocked])
        )

    # Apply filters
    if filters.gender:
        query = query.where(Profile.gender == filters.gender.value)

    if filters.religion:
        query = query.where(Profile.religion == filters.religion)

    if filters.mother_tongue:
        query = query.where(Profile.mother_tongue == filters.mother_tongue)

    if filters.marital_status:
        query = query.where(Profile.marital_status == filters.marital_status.value)

    if filters.country:
        query = query.where(Profile.country == filters.country)

    if filters.state:
        query = query.where(Profile.state == filters.state)

    if filters.city:
        query = query.where(Profile.city == filters.city)

    # Age filters based on date_of_birth
    today = date.today()
    if filters.min_age:
        max_birth_date = today - timedelta(days=filters.min_age * 365)
        query = query.where(Profile.date_of_birth <= max_birth_date)

    if filters.max_age:
        min_birth_date = today - timedelta(days=(filters.max_age + 1) * 365)
        query = query.where(Profile.date_of_birth > min_birth_date)

    # Get total count
    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    # Most complete first, then pagination
    offset = (filters.page - 1) * filters.per_page
    query = (
        query.order_by(Profile.profile_score.desc(), Profile.created_at.desc())
        .offset(offset)
        .limit(filters.per_page)
    )

    result = await db.execute(query)
    profiles = list(result.unique().scalars().all())

    return profiles, total


def to_profile_response(profile: Profile) -> ProfileResponse:
    """Full, unredacted view; callers pass it through the privacy filter."""
    return ProfileResponse.model_validate(profile)


def calculate_profile_score(profile: Profile) -> int:
    """
    Calculate profile completeness score (0-100).
    - Basic info: 30 points
    - Location: 15 points
    - Religion and community: 15 points
    - Education and career: 20 points
    - Photos: 5 points each, up to 20
    """
    score = 0

    # Basic info (30 points)
    basic_fields = [
        profile.first_name,
        profile.last_name,
        profile.date_of_birth,
        profile.gender,
        profile.marital_status,
        profile.height_cm,
    ]
    score += 5 * sum(1 for f in basic_fields if f)

    # Location (15 points)
    location_fields = [profile.country, profile.state, profile.city]
    score += 5 * sum(1 for f in location_fields if f)

    # Religion (15 points)
    if profile.religion:
        score += 10
    if profile.mother_tongue:
        score += 5

    # Education and career (20 points)
    if profile.highest_qualification:
        score += 10
    if profile.profession:
        score += 5
    if profile.income:
        score += 5

    # Photos (20 points)
    score += min(len(profile.photos or []) * 5, 20)

    return min(score, 100)
