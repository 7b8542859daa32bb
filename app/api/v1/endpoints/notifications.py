from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.endpoints.auth import get_current_user
from app.database import get_db
from app.schemas.activity import NotificationResponse
from app.schemas.user import UserResponse
from app.services import notification_service

router = APIRouter(prefix="", tags=["notifications"])


@router.get("/", response_model=list[NotificationResponse])
async def list_notifications(
    current_user: Annotated[UserResponse, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
    unread_only: bool = Query(False),
    limit: int = Query(50, ge=1, le=100),
) -> list[NotificationResponse]:
    notifications = await notification_service.get_notifications(
        db, current_user.id, unread_only=unread_only, limit=limit
    )
    return [NotificationResponse.model_validate(n) for n in notifications]
