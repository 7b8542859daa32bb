from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_current_user
from app.database import get_db
from app.schemas.activity import ActivityResponse
from app.schemas.user import UserResponse
from app.services import activity_service

router = APIRouter(prefix="", tags=["activities"])


@router.get("/recent", response_model=list[ActivityResponse])
async def get_recent_activities(
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    limit: int = Query(10, ge=1, le=100),
) -> list[ActivityResponse]:
    """Latest activity entries for the current user."""
    activities = await activity_service.get_recent_activities(db, current_user.id, limit)
    return [ActivityResponse.model_validate(a) for a in activities]
