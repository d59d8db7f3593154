"""Storage layer - async CRUD for everything the gamification engine reads and writes.

Methods flush but never commit; the caller owns the transaction.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from appreciatemate.core.clock import to_utc, utcnow
from appreciatemate.models.activity import Activity, ActivityCategory, AiSuggestion, Appreciation
from appreciatemate.models.gamification import (
    Achievement,
    Milestone,
    UserAchievement,
    UserStats,
)
from appreciatemate.models.user import User


class Storage:
    """Repository over a single database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    # Users

    async def get_user(self, user_id: int) -> User | None:
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    # User stats

    async def get_user_stats(self, user_id: int, for_update: bool = False) -> UserStats | None:
        """Get a user's stats row.

        With for_update the row stays locked until the transaction ends, so
        two activities logged at once for the same user can't both read the
        old totals.
        """
        query = select(UserStats).where(UserStats.user_id == user_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def create_user_stats(self, user_id: int, **defaults: Any) -> UserStats:
        stats = UserStats(user_id=user_id, **defaults)
        self.db.add(stats)
        await self.db.flush()
        return stats

    async def update_user_stats(self, user_id: int, **fields: Any) -> UserStats | None:
        stats = await self.get_user_stats(user_id)
        if stats is None:
            return None
        for key, value in fields.items():
            setattr(stats, key, value)
        await self.db.flush()
        return stats

    # Activity categories

    async def get_activity_categories(self) -> list[ActivityCategory]:
        result = await self.db.execute(select(ActivityCategory).order_by(ActivityCategory.name))
        return list(result.scalars().all())

    async def get_activity_category(self, category_id: str) -> ActivityCategory | None:
        return await self.db.get(ActivityCategory, category_id)

    async def get_activity_category_by_name(self, name: str) -> ActivityCategory | None:
        """Case-insensitive lookup by display name."""
        result = await self.db.execute(
            select(ActivityCategory).where(func.lower(ActivityCategory.name) == name.lower())
        )
        return result.scalars().first()

    async def find_activity_category(self, value: str) -> ActivityCategory | None:
        """Look a category up by id, then by display name."""
        return await self.get_activity_category(value) or await self.get_activity_category_by_name(value)

    # Activities

    async def get_activities_by_user(self, user_id: int, limit: int | None = None) -> list[Activity]:
        """Get a user's activities, most recent first, with categories loaded."""
        query = (
            select(Activity)
            .options(selectinload(Activity.category))
            .where(Activity.user_id == user_id)
            .order_by(Activity.completed_at.desc(), Activity.id.desc())
        )
        if limit is not None:
            query = query.limit(limit)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_activities_by_user_between(
        self,
        user_id: int,
        start: datetime,
        end: datetime,
    ) -> list[Activity]:
        """Get a user's activities completed in [start, end)."""
        result = await self.db.execute(
            select(Activity)
            .where(
                Activity.user_id == user_id,
                Activity.completed_at >= to_utc(start),
                Activity.completed_at < to_utc(end),
            )
            .order_by(Activity.completed_at.desc())
        )
        return list(result.scalars().all())

    async def get_activity(self, activity_id: int) -> Activity | None:
        return await self.db.get(Activity, activity_id)

    async def create_activity(self, user_id: int, **fields: Any) -> Activity:
        activity = Activity(user_id=user_id, **fields)
        # Stored as UTC; SQLite drops the offset
        activity.completed_at = to_utc(activity.completed_at) if activity.completed_at else utcnow()
        self.db.add(activity)
        await self.db.flush()
        await self.db.refresh(activity, ["category"])
        return activity

    # Achievements

    async def get_achievements(self) -> list[Achievement]:
        """Get the active achievement catalog."""
        result = await self.db.execute(
            select(Achievement)
            .where(Achievement.is_active.is_(True))
            .order_by(Achievement.id)
        )
        return list(result.scalars().all())

    async def create_achievement(self, **fields: Any) -> Achievement:
        achievement = Achievement(**fields)
        self.db.add(achievement)
        await self.db.flush()
        return achievement

    async def get_user_achievements(self, user_id: int) -> list[UserAchievement]:
        result = await self.db.execute(
            select(UserAchievement)
            .where(UserAchievement.user_id == user_id)
            .order_by(UserAchievement.earned_at.desc())
        )
        return list(result.scalars().all())

    async def award_achievement(
        self,
        user_id: int,
        achievement_id: int,
        progress: int = 100,
        is_new: bool = True,
        earned_at: datetime | None = None,
    ) -> UserAchievement:
        user_achievement = UserAchievement(
            user_id=user_id,
            achievement_id=achievement_id,
            progress=progress,
            is_new=is_new,
            earned_at=to_utc(earned_at) if earned_at else utcnow(),
        )
        self.db.add(user_achievement)
        await self.db.flush()
        return user_achievement

    async def mark_achievement_seen(self, user_id: int, achievement_id: int) -> bool:
        """Clear the is_new flag. Returns False when the user hasn't earned it."""
        result = await self.db.execute(
            select(UserAchievement).where(
                UserAchievement.user_id == user_id,
                UserAchievement.achievement_id == achievement_id,
            )
        )
        user_achievement = result.scalar_one_or_none()
        if user_achievement is None:
            return False
        user_achievement.is_new = False
        await self.db.flush()
        return True

    # Milestones

    async def get_user_milestones(self, user_id: int) -> list[Milestone]:
        result = await self.db.execute(
            select(Milestone)
            .where(Milestone.user_id == user_id)
            .order_by(Milestone.created_at, Milestone.id)
        )
        return list(result.scalars().all())

    async def create_milestone(self, user_id: int, **fields: Any) -> Milestone:
        milestone = Milestone(user_id=user_id, **fields)
        self.db.add(milestone)
        await self.db.flush()
        return milestone

    async def complete_milestone(
        self,
        milestone_id: int,
        completed_at: datetime | None = None,
    ) -> Milestone | None:
        """Mark a milestone completed.

        Returns None if it doesn't exist or was already completed; completion
        happens once and completed_at is never overwritten.
        """
        milestone = await self.db.get(Milestone, milestone_id)
        if milestone is None or milestone.is_completed:
            return None
        milestone.is_completed = True
        milestone.completed_at = completed_at or utcnow()
        await self.db.flush()
        return milestone

    # Appreciations

    async def get_appreciations_by_user(self, user_id: int) -> list[Appreciation]:
        """Get appreciations received by a user, newest first."""
        result = await self.db.execute(
            select(Appreciation)
            .where(Appreciation.to_user_id == user_id)
            .order_by(Appreciation.created_at.desc())
        )
        return list(result.scalars().all())

    async def create_appreciation(self, from_user_id: int, **fields: Any) -> Appreciation:
        appreciation = Appreciation(from_user_id=from_user_id, **fields)
        self.db.add(appreciation)
        await self.db.flush()
        return appreciation

    # AI suggestions

    async def get_ai_suggestions_by_user(self, user_id: int) -> list[AiSuggestion]:
        """Get a user's suggestions that haven't been accepted, newest first."""
        result = await self.db.execute(
            select(AiSuggestion)
            .options(selectinload(AiSuggestion.category))
            .where(AiSuggestion.user_id == user_id, AiSuggestion.is_accepted.is_(False))
            .order_by(AiSuggestion.created_at.desc(), AiSuggestion.id.desc())
        )
        return list(result.scalars().all())

    async def get_ai_suggestion(self, suggestion_id: int) -> AiSuggestion | None:
        return await self.db.get(AiSuggestion, suggestion_id)

    async def create_ai_suggestion(self, user_id: int, **fields: Any) -> AiSuggestion:
        suggestion = AiSuggestion(user_id=user_id, **fields)
        self.db.add(suggestion)
        await self.db.flush()
        await self.db.refresh(suggestion, ["category"])
        return suggestion

    async def accept_ai_suggestion(self, suggestion_id: int) -> AiSuggestion | None:
        suggestion = await self.get_ai_suggestion(suggestion_id)
        if suggestion is None:
            return None
        suggestion.is_accepted = True
        await self.db.flush()
        return suggestion
