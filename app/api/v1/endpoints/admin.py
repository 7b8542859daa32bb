from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_current_user
from app.core.exceptions import InsufficientPermissionsError, ProfileNotFoundError
from app.database import get_db
from app.schemas.profile import ProfileListResponse, ProfileResponse
from app.schemas.user import UserResponse
from app.services import activity_service, profile_service
from app.services.activity_service import ActivityTypes

router = APIRouter(prefix="", tags=["admin"])


async def get_current_admin_user(
    current_user: Annotated[UserResponse, Depends(get_current_user)],
) -> UserResponse:
    """Dependency that checks if current user is admin."""
    if not current_user.is_admin:
        raise InsufficientPermissionsError()
    return current_user


async def _set_approval(
    db: AsyncSession,
    request: Request,
    admin_user: UserResponse,
    profile_id: UUID,
    approved: bool,
) -> ProfileResponse:
    profile = await profile_service.get_profile_by_id(db, profile_id)
    if not profile:
        raise ProfileNotFoundError()

    profile = await profile_service.set_profile_approval(db, profile, approved)
    response = profile_service.to_profile_response(profile)

    action = "approve_profile" if approved else "reject_profile"
    ip_address, user_agent = activity_service.extract_client_info(request)
    await activity_service.log_activity(
        db,
        admin_user.id,
        ActivityTypes.ADMIN_ACTION,
        target_id=response.id,
        target_model="Profile",
        description=f"Admin {action.replace('_', ' ')}",
        meta={"action": action, "profile_user_id": str(response.user_id)},
        ip_address=ip_address,
        user_agent=user_agent,
    )
    return response


# ==================== Profile Moderation Endpoints ====================


@router.get("/profiles/pending", response_model=ProfileListResponse)
async def list_pending_profiles(
    admin_user: Annotated[UserResponse, Depends(get_current_admin_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
) -> ProfileListResponse:
    """List profiles awaiting approval, oldest first (admin only)."""
    profiles, total = await profile_service.get_pending_profiles(db, page, per_page)
    return ProfileListResponse(
        profiles=[profile_service.to_profile_response(p) for p in profiles],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.put("/profiles/{profile_id}/approve", response_model=ProfileResponse)
async def approve_profile(
    profile_id: UUID,
    request: Request,
    admin_user: Annotated[UserResponse, Depends(get_current_admin_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProfileResponse:
    """Approve a profile so it shows up in search (admin only)."""
    return await _set_approval(db, request, admin_user, profile_id, approved=True)


@router.put("/profiles/{profile_id}/reject", response_model=ProfileResponse)
async def reject_profile(
    profile_id: UUID,
    request: Request,
    admin_user: Annotated[UserResponse, Depends(get_current_admin_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> ProfileResponse:
    """Withdraw approval from a profile (admin only)."""
    return await _set_approval(db, request, admin_user, profile_id, approved=False)
