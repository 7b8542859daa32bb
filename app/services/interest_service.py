"""
Interest lifecycle.

    (none) --create--> pending --respond(accepted)--> accepted
                               --respond(rejected)--> rejected
                               --withdraw-----------> withdrawn

Every state after pending is terminal. Uniqueness per unordered pair is
enforced by the UNIQUE pair_key column, and every transition is a conditional
UPDATE on status='pending', so concurrent requests cannot both succeed.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    DuplicateRelationshipError,
    InvalidTransitionError,
    NotAuthorizedError,
    NotFoundError,
    ProfileNotFoundError,
    TargetNotEligibleError,
)
from app.models.interest import Interest, canonical_pair_key, default_expires_at
from app.schemas.interest import (
    InterestCreate,
    InterestRespond,
    InterestResponse,
    InterestStats,
    InterestStatus,
)
from app.services import (
    activity_service,
    notification_service,
    privacy_service,
    profile_service,
)

logger = logging.getLogger(__name__)


async def _best_effort(
    db: AsyncSession,
    label: str,
    call: Callable[[], Awaitable[object]],
) -> None:
    """Run a post-commit side effect; log and swallow any failure."""
    try:
        await call()
    except Exception:
        logger.exception("Best-effort %s failed", label)
        await db.rollback()


async def get_interest_by_id(
    db: AsyncSession,
    interest_id: UUID,
) -> Interest | None:
    """Get interest by ID."""
    result = await db.execute(select(Interest).where(Interest.id == interest_id))
    return result.scalar_one_or_none()


async def _get_interest_or_404(db: AsyncSession, interest_id: UUID) -> Interest:
    interest = await get_interest_by_id(db, interest_id)
    if interest is None:
        raise NotFoundError("Interest not found", resource="interest")
    return interest


async def get_interest_between_users(
    db: AsyncSession,
    user_a_id: UUID,
    user_b_id: UUID,
) -> Interest | None:
    """The interest for this pair in either direction, whatever its status."""
    result = await db.execute(
        select(Interest).where(Interest.pair_key == canonical_pair_key(user_a_id, user_b_id))
    )
    return result.scalar_one_or_none()


async def has_accepted_interest(
    db: AsyncSession,
    user_a_id: UUID,
    user_b_id: UUID,
) -> bool:
    interest = await get_interest_between_users(db, user_a_id, user_b_id)
    return interest is not None and interest.status == InterestStatus.accepted.value


async def get_accepted_counterparts(db: AsyncSession, user_id: UUID) -> set[UUID]:
    """User ids holding an accepted interest with user_id, in either direction."""
    result = await db.execute(
        select(Interest.from_user_id, Interest.to_user_id).where(
            and_(
                or_(Interest.from_user_id == user_id, Interest.to_user_id == user_id),
                Interest.status == InterestStatus.accepted.value,
            )
        )
    )
    return {
        to_user if from_user == user_id else from_user
        for from_user, to_user in result.all()
    }


async def create_interest(
    db: AsyncSession,
    from_user_id: UUID,
    data: InterestCreate,
) -> Interest:
    """
    Create a pending interest from from_user_id to data.to_user_id.

    Raises TargetNotEligibleError for self-targeting, a target profile that is
    missing, unapproved, incomplete or hidden, or a block in either direction.
    Raises DuplicateRelationshipError if the pair already has an interest in
    either direction, regardless of its status.
    """
    to_user_id = data.to_user_id
    if to_user_id == from_user_id:
        raise TargetNotEligibleError("Cannot send interest to yourself")

    target = await profile_service.get_profile_by_user_id(db, to_user_id)
    if (
        target is None
        or not target.is_approved
        or not target.is_complete
        or target.is_hidden
    ):
        raise TargetNotEligibleError()

    sender = await profile_service.get_profile_by_user_id(db, from_user_id)
    if privacy_service.is_blocked_between(sender, from_user_id, target, to_user_id):
        raise TargetNotEligibleError()

    interest = Interest(
        from_user_id=from_user_id,
        to_user_id=to_user_id,
        pair_key=canonical_pair_key(from_user_id, to_user_id),
        message=data.message or None,
        status=InterestStatus.pending.value,
        is_read=False,
        expires_at=default_expires_at(),
    )
    db.add(interest)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        existing = await get_interest_between_users(db, from_user_id, to_user_id)
        raise DuplicateRelationshipError(
            existing_status=existing.status if existing else None
        )
    await db.refresh(interest)

    interest_id = interest.id
    await _best_effort(
        db,
        "interest_received notification",
        lambda: notification_service.notify_interest_received(db, interest),
    )
    await _best_effort(
        db,
        "interest_sent activity",
        lambda: activity_service.log_interest_activity(
            db, from_user_id, to_user_id, interest_id, "sent"
        ),
    )

    await db.refresh(interest)
    return interest


async def _transition_from_pending(
    db: AsyncSession,
    interest: Interest,
    values: dict,
) -> Interest:
    """Apply `values` only if the interest is still pending."""
    result = await db.execute(
        update(Interest)
        .where(
            and_(
                Interest.id == interest.id,
                Interest.status == InterestStatus.pending.value,
            )
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        await db.rollback()
        await db.refresh(interest)
        raise InvalidTransitionError(current_status=interest.status)

    await db.commit()
    await db.refresh(interest)
    return interest


async def respond_to_interest(
    db: AsyncSession,
    interest_id: UUID,
    acting_user_id: UUID,
    data: InterestRespond,
) -> Interest:
    """Accept or reject. Only the recipient may respond, only while pending."""
    interest = await _get_interest_or_404(db, interest_id)

    if interest.to_user_id != acting_user_id:
        raise NotAuthorizedError()

    if interest.status != InterestStatus.pending.value:
        raise InvalidTransitionError(current_status=interest.status)

    values = {
        "status": data.status.value,
        "responded_at": datetime.now(timezone.utc),
        "is_read": True,
    }
    if data.message:
        values["message"] = data.message

    interest = await _transition_from_pending(db, interest, values)

    sender_id, receiver_id = interest.from_user_id, interest.to_user_id
    await _best_effort(
        db,
        "interest_responded notification",
        lambda: notification_service.notify_interest_responded(db, interest),
    )
    await _best_effort(
        db,
        f"interest_{data.status.value} activity",
        lambda: activity_service.log_interest_activity(
            db, sender_id, receiver_id, interest_id, data.status.value
        ),
    )

    await db.refresh(interest)
    return interest


async def withdraw_interest(
    db: AsyncSession,
    interest_id: UUID,
    acting_user_id: UUID,
) -> Interest:
    """Withdraw a pending interest. Only the sender may withdraw."""
    interest = await _get_interest_or_404(db, interest_id)

    if interest.from_user_id != acting_user_id:
        raise NotAuthorizedError()

    if interest.status != InterestStatus.pending.value:
        raise InvalidTransitionError(current_status=interest.status)

    interest = await _transition_from_pending(
        db, interest, {"status": InterestStatus.withdrawn.value}
    )

    sender_id, receiver_id = interest.from_user_id, interest.to_user_id
    await _best_effort(
        db,
        "interest_withdrawn activity",
        lambda: activity_service.log_interest_activity(
            db, sender_id, receiver_id, interest_id, "withdrawn"
        ),
    )

    await db.refresh(interest)
    return interest


async def mark_interest_read(
    db: AsyncSession,
    interest_id: UUID,
    acting_user_id: UUID,
) -> Interest:
    """Recipient marks an interest as read. Idempotent, status untouched."""
    interest = await _get_interest_or_404(db, interest_id)

    if interest.to_user_id != acting_user_id:
        raise NotAuthorizedError()

    if not interest.is_read:
        interest.is_read = True
        await db.commit()
        await db.refresh(interest)

    sender_id, receiver_id = interest.from_user_id, interest.to_user_id
    await _best_effort(
        db,
        "interest_read activity",
        lambda: activity_service.log_interest_activity(
            db, sender_id, receiver_id, interest_id, "read"
        ),
    )

    await db.refresh(interest)
    return interest


async def _list_interests(
    db: AsyncSession,
    party_column,
    user_id: UUID,
    status: str | None,
    include_expired: bool,
    page: int,
    per_page: int,
) -> tuple[list[Interest], int]:
    query = select(Interest).where(party_column == user_id)

    if status:
        query = query.where(Interest.status == status)

    if not include_expired:
        # Only pending interests can go stale; decided ones stay listed
        query = query.where(
            or_(
                Interest.status != InterestStatus.pending.value,
                Interest.expires_at > datetime.now(timezone.utc),
            )
        )

    # Get total count
    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    # Apply pagination and ordering
    offset = (page - 1) * per_page
    query = (
        query.order_by(Interest.created_at.desc(), Interest.id.desc())
        .offset(offset)
        .limit(per_page)
    )

    result = await db.execute(query)
    return list(result.scalars().all()), total


async def get_received_interests(
    db: AsyncSession,
    user_id: UUID,
    status: str | None = None,
    include_expired: bool = True,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[Interest], int]:
    """Get interests received by user, newest first."""
    return await _list_interests(
        db, Interest.to_user_id, user_id, status, include_expired, page, per_page
    )


async def get_sent_interests(
    db: AsyncSession,
    user_id: UUID,
    status: str | None = None,
    include_expired: bool = True,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[Interest], int]:
    """Get interests sent by user, newest first."""
    return await _list_interests(
        db, Interest.from_user_id, user_id, status, include_expired, page, per_page
    )


async def build_interest_responses(
    db: AsyncSession,
    interests: list[Interest],
    viewer_id: UUID,
) -> list[InterestResponse]:
    """
    Attach the counterpart's profile, as the viewer is allowed to see it.
    A counterpart that blocked the viewer or is hidden comes back as None.
    """
    counterpart_ids = {
        i.to_user_id if i.from_user_id == viewer_id else i.from_user_id
        for i in interests
    }
    profiles = await profile_service.get_profiles_by_user_ids(db, counterpart_ids)

    responses = []
    for interest in interests:
        response = InterestResponse.model_validate(interest)
        other_id = (
            interest.to_user_id
            if interest.from_user_id == viewer_id
            else interest.from_user_id
        )
        profile = profiles.get(other_id)
        if profile is not None:
            try:
                response.other_user_profile = privacy_service.apply_privacy(
                    profile_service.to_profile_response(profile),
                    viewer_id,
                    has_accepted_interest=interest.status == InterestStatus.accepted.value,
                )
            except ProfileNotFoundError:
                response.other_user_profile = None
        responses.append(response)
    return responses


async def _count_by_status(db: AsyncSession, party_column, user_id: UUID) -> dict:
    result = await db.execute(
        select(Interest.status, func.count())
        .where(party_column == user_id)
        .group_by(Interest.status)
    )
    counts = {status: 0 for status in InterestStatus}
    for status, count in result.all():
        counts[InterestStatus(status)] = count
    return counts


async def get_interest_stats(db: AsyncSession, user_id: UUID) -> InterestStats:
    """Counts of sent/received interests per status, plus unread received."""
    received = await _count_by_status(db, Interest.to_user_id, user_id)
    sent = await _count_by_status(db, Interest.from_user_id, user_id)

    unread_result = await db.execute(
        select(func.count()).where(
            and_(Interest.to_user_id == user_id, Interest.is_read == False)
        )
    )

    return InterestStats(
        received=received,
        sent=sent,
        unread_count=unread_result.scalar() or 0,
    )
