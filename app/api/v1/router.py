from fastapi import APIRouter

from app.api.v1.endpoints import (
    activities,
    admin,
    auth,
    interests,
    notifications,
    profiles,
)

router = APIRouter()

router.include_router(auth.router, prefix="/auth")
router.include_router(profiles.router, prefix="/profiles")
router.include_router(interests.router, prefix="/interests")
router.include_router(activities.router, prefix="/activities")
router.include_router(notifications.router, prefix="/notifications")
router.include_router(admin.router, prefix="/admin")
