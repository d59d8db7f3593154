"""Gamification models for points, levels, streaks, achievements, and milestones."""

from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from appreciatemate.core.clock import utcnow
from appreciatemate.models.base import Base

if TYPE_CHECKING:
    from appreciatemate.models.user import User


class AchievementType(str, Enum):
    """How an achievement's criteria are evaluated."""
    POINTS = "points"
    ACTIVITY_COUNT = "activity_count"
    STREAK = "streak"
    CATEGORY_MASTER = "category_master"
    SPECIAL = "special"


class AchievementRarity(str, Enum):
    """Achievement rarity levels (presentation only)."""
    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    EPIC = "epic"
    LEGENDARY = "legendary"


class MilestoneType(str, Enum):
    """Milestone kinds the completion check understands."""
    WEEKLY_GOAL = "weekly_goal"
    POINT_MILESTONE = "point_milestone"
    STREAK_MILESTONE = "streak_milestone"


class UserStats(Base):
    """Aggregate progress for one user, created lazily on first activity."""

    __tablename__ = "user_stats"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        index=True,
    )

    total_points: Mapped[int] = mapped_column(Integer, default=0)
    total_activities: Mapped[int] = mapped_column(Integer, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0)
    level: Mapped[int] = mapped_column(Integer, default=1)  # always calculate_level(total_points)

    # Most recent moment counted toward the streak
    last_activity_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
    )

    # Relationship
    user: Mapped["User"] = relationship("User", back_populates="stats")


class Achievement(Base):
    """Catalog entry - seeded once, shared by all users."""

    __tablename__ = "achievements"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text)
    icon: Mapped[str] = mapped_column(String(50))  # Emoji or icon identifier
    # Use String to avoid PostgreSQL enum mapping issues - values validated at app layer
    type: Mapped[str] = mapped_column(String(50))
    criteria: Mapped[str] = mapped_column(Text)  # JSON, e.g. {"type": "points", "threshold": 100}
    points: Mapped[int] = mapped_column(Integer, default=0)  # Bonus on unlock, not yet credited
    rarity: Mapped[str] = mapped_column(String(50), default=AchievementRarity.COMMON.value)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Relationships
    user_achievements: Mapped[list["UserAchievement"]] = relationship(
        "UserAchievement",
        back_populates="achievement",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_achievement_type", "type"),
    )


class UserAchievement(Base):
    """Junction table tracking which achievements a user has earned."""

    __tablename__ = "user_achievements"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    achievement_id: Mapped[int] = mapped_column(
        ForeignKey("achievements.id", ondelete="CASCADE"),
        index=True,
    )

    earned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )
    progress: Mapped[int] = mapped_column(Integer, default=100)  # 0-100
    is_new: Mapped[bool] = mapped_column(Boolean, default=True)  # Until the user has seen it

    # Relationships
    achievement: Mapped["Achievement"] = relationship(
        "Achievement",
        back_populates="user_achievements",
    )

    __table_args__ = (
        Index("ix_user_achievement_unique", "user_id", "achievement_id", unique=True),
    )


class Milestone(Base):
    """Per-user goal with a numeric target."""

    __tablename__ = "milestones"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    type: Mapped[str] = mapped_column(String(50))
    title: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    target_value: Mapped[int] = mapped_column(Integer)
    current_value: Mapped[int] = mapped_column(Integer, default=0)
    is_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
    )

    __table_args__ = (
        Index("ix_milestone_user_open", "user_id", "is_completed"),
    )
