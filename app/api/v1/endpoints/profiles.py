from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_current_user
from app.core.exceptions import (
    AlreadyExistsError,
    NotFoundError,
    ProfileNotFoundError,
    ValidationError,
)
from app.database import get_db
from app.models.profile import Profile
from app.schemas.profile import (
    BlockedUsersResponse,
    PrivacySettingsUpdate,
    ProfileCreate,
    ProfileResponse,
    ProfileSearch,
    ProfileSearchResponse,
    ProfileUpdate,
)
from app.schemas.user import UserResponse
from app.services import (
    activity_service,
    interest_service,
    privacy_service,
    profile_service,
    user_service,
)
from app.services.activity_service import ActivityTypes

router = APIRouter(prefix="", tags=["profiles"])


async def _get_own_profile(db: AsyncSession, user_id: UUID) -> Profile:
    profile = await profile_service.get_profile_by_user_id(db, user_id)
    if not profile:
        raise ProfileNotFoundError()
    return profile


async def _log(
    db: AsyncSession,
    request: Request,
    user_id: UUID,
    activity_type: str,
    **kwargs,
) -> None:
    ip_address, user_agent = activity_service.extract_client_info(request)
    await activity_service.log_activity(
        db,
        user_id,
        activity_type,
        ip_address=ip_address,
        user_agent=user_agent,
        **kwargs,
    )


@router.post("/", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(
    profile_data: ProfileCreate,
    request: Request,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProfileResponse:
    """Create a new profile for the current user."""
    existing_profile = await profile_service.get_profile_by_user_id(db, current_user.id)
    if existing_profile:
        raise AlreadyExistsError("Profile already exists for this user")

    profile = await profile_service.create_profile(db, current_user.id, profile_data)
    response = profile_service.to_profile_response(profile)

    await _log(
        db,
        request,
        current_user.id,
        ActivityTypes.PROFILE_CREATE,
        target_id=response.id,
        target_model="Profile",
        description="Profile created",
    )
    return response


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProfileResponse:
    """Get the current user's profile."""
    profile = await _get_own_profile(db, current_user.id)
    return profile_service.to_profile_response(profile)


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    request: Request,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProfileResponse:
    """Update the current user's profile."""
    profile = await _get_own_profile(db, current_user.id)

    updated_profile = await profile_service.update_profile(db, profile, profile_data)
    response = profile_service.to_profile_response(updated_profile)

    await _log(
        db,
        request,
        current_user.id,
        ActivityTypes.PROFILE_UPDATE,
        target_id=response.id,
        target_model="Profile",
        description="Profile updated",
        meta={"fields": sorted(profile_data.model_dump(exclude_unset=True))},
    )
    return response


@router.put("/me/privacy", response_model=ProfileResponse)
async def update_my_privacy(
    privacy_data: PrivacySettingsUpdate,
    request: Request,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProfileResponse:
    """Change privacy flags; omitted flags keep their value."""
    profile = await _get_own_profile(db, current_user.id)

    updated_profile = await profile_service.update_privacy_settings(db, profile, privacy_data)
    response = profile_service.to_profile_response(updated_profile)

    await _log(
        db,
        request,
        current_user.id,
        ActivityTypes.PRIVACY_UPDATE,
        target_id=response.id,
        target_model="Profile",
        description="Privacy settings updated",
    )
    return response


@router.get("/me/blocked", response_model=BlockedUsersResponse)
async def get_blocked_users(
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BlockedUsersResponse:
    profile = await _get_own_profile(db, current_user.id)
    return BlockedUsersResponse(blocked_users=[UUID(uid) for uid in profile.blocked_users or []])


@router.post("/block/{user_id}", response_model=BlockedUsersResponse)
async def block_user(
    user_id: UUID,
    request: Request,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BlockedUsersResponse:
    """Block a user. They can no longer see your profile or send you interests."""
    if user_id == current_user.id:
        raise ValidationError("Cannot block yourself", field="user_id", status_code=400)

    if await user_service.get_user_by_id(db, user_id) is None:
        raise NotFoundError("User not found", resource="user")

    profile = await _get_own_profile(db, current_user.id)
    profile = await profile_service.block_user(db, profile, user_id)
    blocked = [UUID(uid) for uid in profile.blocked_users or []]

    await _log(
        db,
        request,
        current_user.id,
        ActivityTypes.BLOCK_USER,
        target_id=user_id,
        target_model="User",
        description="Blocked a user",
    )
    return BlockedUsersResponse(blocked_users=blocked)


@router.post("/unblock/{user_id}", response_model=BlockedUsersResponse)
async def unblock_user(
    user_id: UUID,
    request: Request,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> BlockedUsersResponse:
    profile = await _get_own_profile(db, current_user.id)
    profile = await profile_service.unblock_user(db, profile, user_id)
    blocked = [UUID(uid) for uid in profile.blocked_users or []]

    await _log(
        db,
        request,
        current_user.id,
        ActivityTypes.UNBLOCK_USER,
        target_id=user_id,
        target_model="User",
        description="Unblocked a user",
    )
    return BlockedUsersResponse(blocked_users=blocked)


@router.post("/search", response_model=ProfileSearchResponse)
async def search_profiles(
    search_params: ProfileSearch,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProfileSearchResponse:
    """Search profiles with filters."""
    own_profile = await profile_service.get_profile_by_user_id(db, current_user.id)
    viewer_blocked = list(own_profile.blocked_users or []) if own_profile else []
    accepted = await interest_service.get_accepted_counterparts(db, current_user.id)

    profiles, total = await profile_service.search_profiles(
        db,
        search_params,
        current_user.id,
        viewer_blocked=viewer_blocked,
        accepted_user_ids=accepted,
    )

    visible = privacy_service.filter_visible(
        [profile_service.to_profile_response(p) for p in profiles],
        current_user.id,
        accepted_user_ids=accepted,
    )

    return ProfileSearchResponse(
        profiles=visible,
        total=total,
        page=search_params.page,
        per_page=search_params.per_page,
    )


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: UUID,
    request: Request,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProfileResponse:
    """Get a profile by user ID, as the current user is allowed to see it."""
    profile = await profile_service.get_profile_by_user_id(db, user_id)
    if not profile:
        raise ProfileNotFoundError()

    if user_id == current_user.id:
        return profile_service.to_profile_response(profile)

    # Unapproved profiles are only visible to their owner
    if not profile.is_approved:
        raise ProfileNotFoundError()

    accepted = await interest_service.has_accepted_interest(db, current_user.id, user_id)
    response = privacy_service.apply_privacy(
        profile_service.to_profile_response(profile),
        current_user.id,
        has_accepted_interest=accepted,
    )

    await _log(
        db,
        request,
        current_user.id,
        ActivityTypes.PROFILE_VIEW,
        target_id=response.id,
        target_model="Profile",
        description="Viewed a profile",
    )
    return response
