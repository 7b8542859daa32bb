import uuid
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.config import settings
from app.database import Base

if TYPE_CHECKING:
    from app.models.user import User


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def default_expires_at() -> datetime:
    return utcnow() + timedelta(days=settings.INTEREST_EXPIRY_DAYS)


def canonical_pair_key(user_a_id: uuid.UUID, user_b_id: uuid.UUID) -> str:
    """Same key for (A, B) and (B, A)."""
    low, high = sorted((str(user_a_id), str(user_b_id)))
    return f"{low}:{high}"


class Interest(Base):
    __tablename__ = "interests"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    # Who sent the interest
    from_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # Who receives the interest
    to_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )

    # At most one interest per unordered pair, in either direction
    pair_key: Mapped[str] = mapped_column(String(73), unique=True, nullable=False)

    # Status: pending, accepted, rejected, withdrawn
    status: Mapped[str] = mapped_column(String(20), default="pending", nullable=False)

    # Optional message, bounded by INTEREST_MESSAGE_MAX_LENGTH
    message: Mapped[str | None] = mapped_column(
        String(settings.INTEREST_MESSAGE_MAX_LENGTH), nullable=True
    )

    # Set when the recipient reads or responds
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Set on accept/reject only
    responded_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Never transitions automatically; listings filter on it
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=default_expires_at,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )

    # Relationships
    from_user: Mapped["User"] = relationship(
        "User", foreign_keys=[from_user_id], back_populates="sent_interests"
    )
    to_user: Mapped["User"] = relationship(
        "User", foreign_keys=[to_user_id], back_populates="received_interests"
    )

    __table_args__ = (
        CheckConstraint("from_user_id <> to_user_id", name="interest_not_self_check"),
        Index("ix_interests_to_user_status", "to_user_id", "status"),
        Index("ix_interests_from_user_status", "from_user_id", "status"),
        Index("ix_interests_status_created", "status", "created_at"),
    )
