from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_current_user
from app.core.exceptions import RateLimitError
from app.core.rate_limit import RateLimiter, get_interest_rate_limiter
from app.database import get_db
from app.schemas.interest import (
    InterestCreate,
    InterestListResponse,
    InterestRespond,
    InterestResponse,
    InterestStats,
    InterestStatus,
)
from app.schemas.user import UserResponse
from app.services import interest_service

router = APIRouter(prefix="", tags=["interests"])


async def enforce_send_limit(
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    limiter: Annotated[RateLimiter, Depends(get_interest_rate_limiter)],
) -> None:
    """Cap how many interests one user may send per window."""
    result = await limiter.hit(f"interest_send:{current_user.id}")
    if not result.allowed:
        raise RateLimitError(
            "Too many interests sent. Please wait and try again",
            retry_after=result.retry_after,
        )


async def _single_response(
    db: AsyncSession, interest, viewer_id: UUID
) -> InterestResponse:
    responses = await interest_service.build_interest_responses(db, [interest], viewer_id)
    return responses[0]


@router.post(
    "/",
    response_model=InterestResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(enforce_send_limit)],
)
async def send_interest(
    data: InterestCreate,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> InterestResponse:
    """
    Send interest to another user.

    Fails if the target is yourself, is not approved/complete/visible, has a
    block with you in either direction, or if any interest already exists
    between you two (in either direction, whatever its status).

    Hidden profiles are deliberately not eligible: a member who hides their
    profile should not keep collecting new interests, so a hidden target gets
    the same TargetNotEligibleError as an unapproved or incomplete one.
    Existing interests with them are unaffected.
    """
    interest = await interest_service.create_interest(db, current_user.id, data)
    return await _single_response(db, interest, current_user.id)


@router.get("/received", response_model=InterestListResponse)
async def get_received_interests(
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    interest_status: InterestStatus | None = Query(None, alias="status"),
    include_expired: bool = Query(True),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
) -> InterestListResponse:
    """Get interests received by current user."""
    interests, total = await interest_service.get_received_interests(
        db,
        current_user.id,
        interest_status.value if interest_status else None,
        include_expired,
        page,
        per_page,
    )

    return InterestListResponse(
        interests=await interest_service.build_interest_responses(
            db, interests, current_user.id
        ),
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/sent", response_model=InterestListResponse)
async def get_sent_interests(
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    interest_status: InterestStatus | None = Query(None, alias="status"),
    include_expired: bool = Query(True),
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
) -> InterestListResponse:
    """Get interests sent by current user."""
    interests, total = await interest_service.get_sent_interests(
        db,
        current_user.id,
        interest_status.value if interest_status else None,
        include_expired,
        page,
        per_page,
    )

    return InterestListResponse(
        interests=await interest_service.build_interest_responses(
            db, interests, current_user.id
        ),
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/stats", response_model=InterestStats)
async def get_interest_stats(
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> InterestStats:
    return await interest_service.get_interest_stats(db, current_user.id)


@router.put("/{interest_id}/respond", response_model=InterestResponse)
async def respond_to_interest(
    interest_id: UUID,
    data: InterestRespond,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> InterestResponse:
    """Accept or reject a pending interest you received."""
    interest = await interest_service.respond_to_interest(
        db, interest_id, current_user.id, data
    )
    return await _single_response(db, interest, current_user.id)


@router.put("/{interest_id}/withdraw", response_model=InterestResponse)
async def withdraw_interest(
    interest_id: UUID,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> InterestResponse:
    """Withdraw a pending interest you sent."""
    interest = await interest_service.withdraw_interest(db, interest_id, current_user.id)
    return await _single_response(db, interest, current_user.id)


@router.put("/{interest_id}/read", response_model=InterestResponse)
async def mark_interest_read(
    interest_id: UUID,
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> InterestResponse:
    interest = await interest_service.mark_interest_read(db, interest_id, current_user.id)
    return await _single_response(db, interest, current_user.id)
