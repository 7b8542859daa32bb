import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base

if TYPE_CHECKING:
    from app.models.user import User


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )

    # Basic info
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str] = mapped_column(String(20), nullable=False)
    marital_status: Mapped[str | None] = mapped_column(String(30), nullable=True)
    height_cm: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Religion and community
    religion: Mapped[str | None] = mapped_column(String(100), nullable=True)
    mother_tongue: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Education and career
    highest_qualification: Mapped[str | None] = mapped_column(
        String(200), nullable=True
    )
    profession: Mapped[str | None] = mapped_column(String(200), nullable=True)
    income: Mapped[str | None] = mapped_column(String(50), nullable=True)

    # Location (address is the fine-grained part hidden by show_location)
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)
    state: Mapped[str | None] = mapped_column(String(100), nullable=True)
    city: Mapped[str | None] = mapped_column(String(200), nullable=True)
    address: Mapped[str | None] = mapped_column(String(300), nullable=True)

    # [{"url": ..., "is_primary": bool}]
    photos: Mapped[list] = mapped_column(JSON, default=list)
    about: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Profile status
    is_complete: Mapped[bool] = mapped_column(Boolean, default=False)
    is_approved: Mapped[bool] = mapped_column(Boolean, default=False)
    profile_score: Mapped[int] = mapped_column(Integer, default=0)

    # Privacy settings, mutated only by the owner
    show_photos: Mapped[bool] = mapped_column(Boolean, default=True)
    show_contact: Mapped[bool] = mapped_column(Boolean, default=False)
    show_income: Mapped[bool] = mapped_column(Boolean, default=True)
    show_location: Mapped[bool] = mapped_column(Boolean, default=True)
    is_hidden: Mapped[bool] = mapped_column(Boolean, default=False)
    # all, matches, none
    who_can_contact: Mapped[str] = mapped_column(String(20), default="all")
    # User ids (as strings) this owner has blocked
    blocked_users: Mapped[list] = mapped_column(JSON, default=list)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationship
    user: Mapped["User"] = relationship(
        "User", back_populates="profile", lazy="joined"
    )

    @property
    def location(self) -> dict:
        return {
            "country": self.country,
            "state": self.state,
            "city": self.city,
            "address": self.address,
        }

    @property
    def privacy(self) -> dict:
        return {
            "show_photos": self.show_photos,
            "show_contact": self.show_contact,
            "show_income": self.show_income,
            "show_location": self.show_location,
            "is_hidden": self.is_hidden,
            "who_can_contact": self.who_can_contact,
        }

    def has_blocked(self, user_id: uuid.UUID) -> bool:
        return str(user_id) in (self.blocked_users or [])
