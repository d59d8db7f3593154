"""Activities, their categories, and appreciations sent between partners."""

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from appreciatemate.core.clock import utcnow
from appreciatemate.models.base import Base

if TYPE_CHECKING:
    from appreciatemate.models.user import User


class ActivityCategory(Base):
    """Category an activity is filed under, e.g. "Cooking"."""

    __tablename__ = "activity_categories"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)  # e.g., "cooking"
    name: Mapped[str] = mapped_column(String(100))  # e.g., "Cooking"
    icon: Mapped[str] = mapped_column(String(100))
    color: Mapped[str] = mapped_column(String(50))


class Activity(Base):
    """A single logged contribution."""

    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_id: Mapped[str] = mapped_column(ForeignKey("activity_categories.id"))
    # Assigned at creation time from category/complexity rules
    points: Mapped[int] = mapped_column(Integer, default=5)
    is_ai_suggested: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="activities")
    category: Mapped["ActivityCategory"] = relationship("ActivityCategory")

    __table_args__ = (
        Index("ix_activity_user_completed", "user_id", "completed_at"),
    )


class Appreciation(Base):
    """A thank-you message from one partner to another for an activity."""

    __tablename__ = "appreciations"

    id: Mapped[int] = mapped_column(primary_key=True)
    from_user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"))
    to_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    activity_id: Mapped[int] = mapped_column(ForeignKey("activities.id", ondelete="CASCADE"))
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )


class AiSuggestion(Base):
    """An activity idea generated for a user, waiting to be accepted."""

    __tablename__ = "ai_suggestions"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category_id: Mapped[str] = mapped_column(ForeignKey("activity_categories.id"))
    points: Mapped[int] = mapped_column(Integer, default=5)
    confidence: Mapped[int] = mapped_column(Integer)  # 0-100
    is_accepted: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )

    category: Mapped["ActivityCategory"] = relationship("ActivityCategory")
