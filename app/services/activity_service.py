"""
Activity log (audit trail).

Logging an activity is best effort: a failure is logged and swallowed so the
operation that triggered it is never affected.
"""

import logging
from typing import Any
from uuid import UUID

from fastapi import Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.activity import Activity

logger = logging.getLogger(__name__)


class ActivityTypes:
    """Activity type values stored in Activity.type."""

    INTEREST_SENT = "interest_sent"
    INTEREST_RECEIVED = "interest_received"
    INTEREST_ACCEPTED = "interest_accepted"
    INTEREST_REJECTED = "interest_rejected"
    INTEREST_WITHDRAWN = "interest_withdrawn"
    INTEREST_READ = "interest_read"

    PROFILE_CREATE = "profile_create"
    PROFILE_UPDATE = "profile_update"
    PROFILE_VIEW = "profile_view"
    PRIVACY_UPDATE = "privacy_update"
    BLOCK_USER = "block_user"
    UNBLOCK_USER = "unblock_user"

    ADMIN_ACTION = "admin_action"


async def log_activity(
    db: AsyncSession,
    user_id: UUID,
    activity_type: str,
    target_id: UUID | None = None,
    target_model: str | None = None,
    description: str | None = None,
    meta: dict[str, Any] | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> Activity | None:
    """Append an activity entry. Returns None if it could not be stored."""
    activity = Activity(
        user_id=user_id,
        type=activity_type,
        target_id=target_id,
        target_model=target_model,
        description=description,
        meta=meta,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    try:
        db.add(activity)
        await db.commit()
    except Exception:
        logger.exception(
            "Activity log error (type=%s, user_id=%s)", activity_type, user_id
        )
        await db.rollback()
        return None
    return activity


async def log_interest_activity(
    db: AsyncSession,
    sender_id: UUID,
    receiver_id: UUID,
    interest_id: UUID,
    action: str,
) -> None:
    """
    Record an interest event for both parties.

    action is one of: sent, accepted, rejected, withdrawn, read.
    """
    if action == "sent":
        await log_activity(
            db,
            sender_id,
            ActivityTypes.INTEREST_SENT,
            target_id=interest_id,
            target_model="Interest",
            description="Sent interest to another user",
            meta={"receiver_id": str(receiver_id)},
        )
        await log_activity(
            db,
            receiver_id,
            ActivityTypes.INTEREST_RECEIVED,
            target_id=interest_id,
            target_model="Interest",
            description="Received interest from another user",
            meta={"sender_id": str(sender_id)},
        )
    elif action in ("accepted", "rejected"):
        activity_type = f"interest_{action}"
        await log_activity(
            db,
            receiver_id,
            activity_type,
            target_id=interest_id,
            target_model="Interest",
            description=f"{action.capitalize()} interest from another user",
            meta={"sender_id": str(sender_id)},
        )
        await log_activity(
            db,
            sender_id,
            activity_type,
            target_id=interest_id,
            target_model="Interest",
            description=f"Your interest was {action} by another user",
            meta={"receiver_id": str(receiver_id)},
        )
    elif action == "withdrawn":
        await log_activity(
            db,
            sender_id,
            ActivityTypes.INTEREST_WITHDRAWN,
            target_id=interest_id,
            target_model="Interest",
            description="Interest withdrawn",
        )
    elif action == "read":
        await log_activity(
            db,
            receiver_id,
            ActivityTypes.INTEREST_READ,
            target_id=interest_id,
            target_model="Interest",
            description="Interest marked as read",
        )
    else:
        logger.warning("Unknown interest activity action: %s", action)


async def get_recent_activities(
    db: AsyncSession,
    user_id: UUID,
    limit: int = 10,
) -> list[Activity]:
    """Latest activities for a user, newest first."""
    result = await db.execute(
        select(Activity)
        .where(Activity.user_id == user_id)
        .order_by(Activity.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


def extract_client_info(request: Request | None) -> tuple[str | None, str | None]:
    """Return (ip_address, user_agent), honouring X-Forwarded-For."""
    if request is None:
        return None, None

    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        ip_address = forwarded_for.split(",")[0].strip()
    else:
        ip_address = request.client.host if request.client else None

    return ip_address, request.headers.get("User-Agent")
