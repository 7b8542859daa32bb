"""
Notifications for interest events: an in-app record plus an email.

Both channels are best effort: storage and SMTP failures are logged here, and
interest_service swallows anything else, so an interest mutation that already
committed never fails because a notification did.
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.interest import Interest
from app.models.notification import Notification
from app.models.profile import Profile
from app.models.user import User
from app.services.email_service import email_service

logger = logging.getLogger(__name__)


def _display_name(profile: Profile | None) -> str:
    if profile is None:
        return "A member"
    return f"{profile.first_name} {profile.last_name[:1]}.".strip()


async def _load_party(db: AsyncSession, user_id: UUID) -> tuple[User | None, Profile | None]:
    user = (await db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
    profile = (
        await db.execute(select(Profile).where(Profile.user_id == user_id))
    ).unique().scalar_one_or_none()
    return user, profile


async def create_notification(
    db: AsyncSession,
    user_id: UUID,
    notification_type: str,
    title: str,
    content: str | None = None,
    reference_id: UUID | None = None,
    reference_type: str | None = None,
    action_url: str | None = None,
) -> Notification | None:
    """Store an in-app notification. Returns None if it could not be stored."""
    notification = Notification(
        user_id=user_id,
        type=notification_type,
        title=title,
        content=content,
        reference_id=reference_id,
        reference_type=reference_type,
        action_url=action_url,
    )
    try:
        db.add(notification)
        await db.commit()
    except Exception:
        logger.exception(
            "Failed to store notification (type=%s, user_id=%s)",
            notification_type,
            user_id,
        )
        await db.rollback()
        return None
    return notification


async def notify_interest_received(db: AsyncSession, interest: Interest) -> None:
    """Tell the recipient that someone sent them an interest."""
    # Read everything up front: a failed commit below expires loaded objects
    interest_id, message = interest.id, interest.message
    recipient_id = interest.to_user_id
    recipient, _ = await _load_party(db, recipient_id)
    _, sender_profile = await _load_party(db, interest.from_user_id)
    recipient_email = recipient.email if recipient else None
    sender_name = _display_name(sender_profile)

    await create_notification(
        db,
        user_id=recipient_id,
        notification_type="interest_received",
        title="New interest received",
        content=f"{sender_name} is interested in your profile",
        reference_id=interest_id,
        reference_type="interest",
        action_url="/interests/received",
    )

    if recipient_email:
        await email_service.send_interest_received(recipient_email, sender_name, message)


async def notify_interest_responded(db: AsyncSession, interest: Interest) -> None:
    """Tell the sender that the recipient accepted or rejected."""
    interest_id, status = interest.id, interest.status
    sender_id = interest.from_user_id
    sender, _ = await _load_party(db, sender_id)
    _, responder_profile = await _load_party(db, interest.to_user_id)
    sender_email = sender.email if sender else None
    responder_name = _display_name(responder_profile)

    await create_notification(
        db,
        user_id=sender_id,
        notification_type="interest_responded",
        title=f"Your interest was {status}",
        content=f"{responder_name} has {status} your interest",
        reference_id=interest_id,
        reference_type="interest",
        action_url="/interests/sent",
    )

    if sender_email:
        await email_service.send_interest_responded(sender_email, responder_name, status)


async def get_notifications(
    db: AsyncSession,
    user_id: UUID,
    unread_only: bool = False,
    limit: int = 50,
) -> list[Notification]:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.is_read == False)
    query = query.order_by(Notification.created_at.desc()).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())
