"""Gamification service - points, levels, streaks, achievements, and milestones."""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from appreciatemate.core.clock import (
    calendar_days_between,
    start_of_week,
    to_local,
    to_utc,
    utcnow,
)
from appreciatemate.models.activity import Activity, Appreciation
from appreciatemate.models.gamification import (
    Achievement,
    Milestone,
    MilestoneType,
    UserStats,
)
from appreciatemate.services.criteria import (
    AchievementCriteria,
    ActivityCountCriteria,
    CategoryMasterCriteria,
    PointsCriteria,
    SpecialCriteria,
    StreakCriteria,
    parse_criteria,
)
from appreciatemate.services.storage import Storage

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

# Activities needed for the weekend_warrior, early_bird and night_owl conditions
SPECIAL_ACTIVITY_THRESHOLD = 5
APPRECIATION_MASTER_THRESHOLD = 10

# Local hour windows, end exclusive
EARLY_BIRD_HOURS = (5, 9)
NIGHT_OWL_HOURS = (20, 24)

# datetime.weekday(): Saturday=5, Sunday=6
WEEKEND_DAYS = (5, 6)

DEFAULT_MILESTONES = [
    {
        "type": MilestoneType.WEEKLY_GOAL.value,
        "title": "Weekly Activity Goal",
        "description": "Complete 7 activities this week",
        "target_value": 7,
    },
    {
        "type": MilestoneType.POINT_MILESTONE.value,
        "title": "Century Club",
        "description": "Earn 100 total points",
        "target_value": 100,
    },
]


# =============================================================================
# LEVEL CALCULATIONS
# =============================================================================

def calculate_level(total_points: int) -> int:
    """Level from lifetime points: 1 below 100, then floor(sqrt(points / 50)) + 1."""
    if total_points < 100:
        return 1
    # isqrt(p // 50) == floor(sqrt(p / 50)) without float rounding
    return math.isqrt(total_points // 50) + 1


def get_points_for_level_start(level: int) -> int:
    """Point total at which a level begins."""
    if level <= 1:
        return 0
    if level == 2:
        return 100
    return (level - 1) ** 2 * 50


def get_points_for_next_level(current_level: int) -> int:
    """Point total needed to reach current_level + 1."""
    return get_points_for_level_start(current_level + 1)


def get_level_progress(total_points: int, level: int) -> dict[str, Any]:
    """Progress within the current level, as a percentage clamped to 0-100."""
    level_start = get_points_for_level_start(level)
    next_level_points = get_points_for_next_level(level)
    if next_level_points > level_start:
        progress = (total_points - level_start) / (next_level_points - level_start) * 100
    else:
        progress = 0.0

    return {
        "current_level_start": level_start,
        "next_level_points": next_level_points,
        "progress_to_next_level": max(0.0, min(100.0, progress)),
    }


# =============================================================================
# STREAKS
# =============================================================================

def next_streak(current_streak: int, last_activity_date: datetime | None, now: datetime) -> int:
    """Streak after logging an activity at `now`.

    Counted in whole local calendar days: same day keeps the streak, the next
    day extends it, and any longer gap starts over at 1.
    """
    if last_activity_date is None:
        return 1

    diff_days = calendar_days_between(now, last_activity_date)
    # A last activity dated after `now` counts as the same day
    if diff_days <= 0:
        return current_streak
    if diff_days == 1:
        return current_streak + 1
    return 1


# =============================================================================
# GAMIFICATION SERVICE
# =============================================================================

@dataclass
class GamificationUpdate:
    """What changed for a user after one activity."""

    new_achievements: list[Achievement]
    completed_milestones: list[Milestone]
    level_up: bool
    old_level: int
    new_level: int
    stats_updated: UserStats


@dataclass
class _UserHistory:
    """Activity and appreciation history, loaded at most once per evaluation pass."""

    storage: Storage
    user_id: int
    _activities: list[Activity] | None = field(default=None, repr=False)
    _appreciations: list[Appreciation] | None = field(default=None, repr=False)

    async def activities(self) -> list[Activity]:
        if self._activities is None:
            self._activities = await self.storage.get_activities_by_user(self.user_id)
        return self._activities

    async def appreciations(self) -> list[Appreciation]:
        if self._appreciations is None:
            self._appreciations = await self.storage.get_appreciations_by_user(self.user_id)
        return self._appreciations


class GamificationService:
    """Service for updating user progress and awarding achievements and milestones.

    Every method runs inside the caller's session and only flushes; the caller
    commits. Storage errors propagate unchanged.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.storage = Storage(db)

    async def initialize_user_stats(self, user_id: int) -> UserStats:
        """Get the user's stats, creating a zeroed record if there is none."""
        stats = await self.storage.get_user_stats(user_id)
        if stats is None:
            stats = await self.storage.create_user_stats(
                user_id,
                total_points=0,
                total_activities=0,
                current_streak=0,
                longest_streak=0,
                level=1,
                last_activity_date=None,
            )
        return stats

    async def update_user_stats(
        self,
        user_id: int,
        activity: Activity,
        now: datetime | None = None,
    ) -> GamificationUpdate:
        """Fold a newly completed activity into the user's stats.

        Then checks achievements and milestones against the updated stats.
        """
        now = now or utcnow()

        stats = await self.storage.get_user_stats(user_id, for_update=True)
        if stats is None:
            stats = await self.initialize_user_stats(user_id)

        old_level = stats.level
        new_total_points = stats.total_points + activity.points
        new_total_activities = stats.total_activities + 1
        new_level = calculate_level(new_total_points)
        new_streak = next_streak(stats.current_streak, stats.last_activity_date, now)

        updated_stats = await self.storage.update_user_stats(
            user_id,
            total_points=new_total_points,
            total_activities=new_total_activities,
            level=new_level,
            current_streak=new_streak,
            longest_streak=max(stats.longest_streak, new_streak),
            last_activity_date=to_utc(now),
        )

        if new_level > old_level:
            logger.info("User %s leveled up: %s -> %s", user_id, old_level, new_level)

        new_achievements = await self.check_and_award_achievements(
            user_id, updated_stats, activity, now=now
        )
        completed_milestones = await self.check_and_complete_milestones(
            user_id, updated_stats, now=now
        )

        return GamificationUpdate(
            new_achievements=new_achievements,
            completed_milestones=completed_milestones,
            level_up=new_level > old_level,
            old_level=old_level,
            new_level=new_level,
            stats_updated=updated_stats,
        )

    async def record_activity(
        self,
        user_id: int,
        now: datetime | None = None,
        **fields: Any,
    ) -> tuple[Activity, GamificationUpdate]:
        """Save an activity and apply its gamification update.

        The onboarding milestones are created after the user's first activity.
        """
        activity = await self.storage.create_activity(user_id, **fields)
        update = await self.update_user_stats(user_id, activity, now=now)

        # First activity for this user
        if update.stats_updated.total_activities == 1:
            await self.create_default_milestones(user_id, now=now)

        return activity, update

    # -------------------------------------------------------------------------
    # Achievements
    # -------------------------------------------------------------------------

    async def _load_catalog(self) -> list[tuple[Achievement, AchievementCriteria | None]]:
        """Active achievements with parsed criteria. Raises InvalidCriteriaError."""
        achievements = await self.storage.get_achievements()
        return [(a, parse_criteria(a.criteria, a.id)) for a in achievements]

    async def check_and_award_achievements(
        self,
        user_id: int,
        stats: UserStats,
        latest_activity: Activity | None = None,
        now: datetime | None = None,
    ) -> list[Achievement]:
        """Award every active, not-yet-earned achievement whose criteria now hold.

        Returns the newly awarded achievements.
        """
        now = now or utcnow()
        catalog = await self._load_catalog()
        user_achievements = await self.storage.get_user_achievements(user_id)
        earned_ids = {ua.achievement_id for ua in user_achievements}
        history = _UserHistory(self.storage, user_id)

        newly_awarded = []
        for achievement, criteria in catalog:
            if achievement.id in earned_ids:
                continue
            if criteria is None:
                continue

            if await self.check_achievement_criteria(criteria, stats, history):
                await self.storage.award_achievement(
                    user_id=user_id,
                    achievement_id=achievement.id,
                    progress=100,
                    is_new=True,
                    earned_at=now,
                )
                newly_awarded.append(achievement)
                logger.info("User %s earned achievement %s (%s)", user_id, achievement.id, achievement.name)

        return newly_awarded

    async def check_achievement_criteria(
        self,
        criteria: AchievementCriteria,
        stats: UserStats,
        history: _UserHistory,
    ) -> bool:
        if isinstance(criteria, PointsCriteria):
            return stats.total_points >= criteria.threshold

        if isinstance(criteria, ActivityCountCriteria):
            if criteria.category:
                activities = await history.activities()
                count = sum(
                    1 for a in activities
                    if a.category is not None and a.category.name == criteria.category
                )
                return count >= criteria.threshold
            return stats.total_activities >= criteria.threshold

        if isinstance(criteria, StreakCriteria):
            return stats.current_streak >= criteria.threshold

        if isinstance(criteria, CategoryMasterCriteria):
            wanted = criteria.category.lower()
            activities = await history.activities()
            count = sum(
                1 for a in activities
                if a.category is not None and a.category.name.lower() == wanted
            )
            return count >= criteria.threshold

        if isinstance(criteria, SpecialCriteria):
            return await self._check_special(criteria, stats, history)

        return False

    async def _check_special(
        self,
        criteria: SpecialCriteria,
        stats: UserStats,
        history: _UserHistory,
    ) -> bool:
        if not criteria.conditions:
            return False

        if criteria.mode == "first":
            return await self._check_special_condition(criteria.conditions[0], stats, history)

        if criteria.mode == "any":
            for condition in criteria.conditions:
                if await self._check_special_condition(condition, stats, history):
                    return True
            return False

        for condition in criteria.conditions:
            if not await self._check_special_condition(condition, stats, history):
                return False
        return True

    async def _check_special_condition(
        self,
        condition: str,
        stats: UserStats,
        history: _UserHistory,
    ) -> bool:
        if condition == "first_activity":
            return stats.total_activities >= 1

        if condition == "weekend_warrior":
            activities = await history.activities()
            weekend = [a for a in activities if to_local(a.completed_at).weekday() in WEEKEND_DAYS]
            return len(weekend) >= SPECIAL_ACTIVITY_THRESHOLD

        if condition == "early_bird":
            return await self._count_in_hours(history, *EARLY_BIRD_HOURS) >= SPECIAL_ACTIVITY_THRESHOLD

        if condition == "night_owl":
            return await self._count_in_hours(history, *NIGHT_OWL_HOURS) >= SPECIAL_ACTIVITY_THRESHOLD

        if condition == "appreciation_master":
            appreciations = await history.appreciations()
            return len(appreciations) >= APPRECIATION_MASTER_THRESHOLD

        return False

    @staticmethod
    async def _count_in_hours(history: _UserHistory, start_hour: int, end_hour: int) -> int:
        activities = await history.activities()
        return sum(
            1 for a in activities
            if start_hour <= to_local(a.completed_at).hour < end_hour
        )

    async def check_appreciation_achievements(
        self,
        user_id: int,
        now: datetime | None = None,
    ) -> list[Achievement]:
        """Award appreciation_master achievements after the user receives an appreciation.

        Only special achievements whose deciding conditions include
        appreciation_master are considered: the first condition under mode
        "first", any listed condition otherwise. Each one is then decided by
        its full criteria, so an "all" entry still needs its other conditions.
        """
        now = now or utcnow()
        stats = await self.initialize_user_stats(user_id)

        catalog = await self._load_catalog()
        earned_ids = {ua.achievement_id for ua in await self.storage.get_user_achievements(user_id)}
        history = _UserHistory(self.storage, user_id)

        newly_awarded = []
        for achievement, criteria in catalog:
            if achievement.id in earned_ids:
                continue
            if not isinstance(criteria, SpecialCriteria) or not criteria.conditions:
                continue
            if criteria.mode == "first":
                if criteria.conditions[0] != "appreciation_master":
                    continue
            elif "appreciation_master" not in criteria.conditions:
                continue

            if await self._check_special(criteria, stats, history):
                await self.storage.award_achievement(
                    user_id=user_id,
                    achievement_id=achievement.id,
                    progress=100,
                    is_new=True,
                    earned_at=now,
                )
                newly_awarded.append(achievement)
                logger.info("User %s earned achievement %s (%s)", user_id, achievement.id, achievement.name)

        return newly_awarded

    # -------------------------------------------------------------------------
    # Milestones
    # -------------------------------------------------------------------------

    async def check_and_complete_milestones(
        self,
        user_id: int,
        stats: UserStats,
        now: datetime | None = None,
    ) -> list[Milestone]:
        """Complete every open milestone whose target has been reached."""
        now = now or utcnow()
        milestones = await self.storage.get_user_milestones(user_id)

        completed = []
        for milestone in milestones:
            if milestone.is_completed:
                continue

            if await self._milestone_reached(user_id, milestone, stats, now):
                done = await self.storage.complete_milestone(milestone.id, completed_at=to_utc(now))
                if done is not None:
                    completed.append(done)
                    logger.info("User %s completed milestone %s (%s)", user_id, milestone.id, milestone.title)

        return completed

    async def _milestone_reached(
        self,
        user_id: int,
        milestone: Milestone,
        stats: UserStats,
        now: datetime,
    ) -> bool:
        if milestone.type == MilestoneType.WEEKLY_GOAL.value:
            # The week is always the one containing `now`, not the milestone's own window
            week_start = start_of_week(now)
            week_end = week_start + timedelta(days=7)
            week_activities = await self.storage.get_activities_by_user_between(
                user_id, week_start, week_end
            )
            return len(week_activities) >= milestone.target_value

        if milestone.type == MilestoneType.POINT_MILESTONE.value:
            return stats.total_points >= milestone.target_value

        if milestone.type == MilestoneType.STREAK_MILESTONE.value:
            return stats.current_streak >= milestone.target_value

        return False

    async def create_default_milestones(
        self,
        user_id: int,
        now: datetime | None = None,
    ) -> list[Milestone]:
        """Seed the onboarding milestones, skipping any the user already has.

        The weekly goal expires at the end of the coming Sunday (local time).
        """
        now = now or utcnow()
        existing = await self.storage.get_user_milestones(user_id)
        existing_keys = {(m.type, m.title) for m in existing}

        weekly_expiry = (start_of_week(now) + timedelta(days=7)).replace(
            hour=23, minute=59, second=59, microsecond=999999
        )

        created = []
        for default in DEFAULT_MILESTONES:
            if (default["type"], default["title"]) in existing_keys:
                continue
            expires_at = None
            if default["type"] == MilestoneType.WEEKLY_GOAL.value:
                expires_at = to_utc(weekly_expiry)

            milestone = await self.storage.create_milestone(
                user_id,
                current_value=0,
                expires_at=expires_at,
                **default,
            )
            created.append(milestone)

        return created

    # -------------------------------------------------------------------------
    # Read models
    # -------------------------------------------------------------------------

    async def get_stats_summary(self, user_id: int) -> dict[str, Any]:
        """Stats plus progress toward the next level."""
        stats = await self.initialize_user_stats(user_id)
        return {
            "stats": stats,
            **get_level_progress(stats.total_points, stats.level),
        }

    async def get_achievements_with_status(self, user_id: int) -> dict[str, Any]:
        """The active catalog, each entry annotated with the user's earned status."""
        achievements = await self.storage.get_achievements()
        user_achievements = {
            ua.achievement_id: ua for ua in await self.storage.get_user_achievements(user_id)
        }

        entries = []
        for achievement in achievements:
            earned = user_achievements.get(achievement.id)
            entries.append({
                "id": achievement.id,
                "name": achievement.name,
                "description": achievement.description,
                "icon": achievement.icon,
                "type": achievement.type,
                "points": achievement.points,
                "rarity": achievement.rarity,
                "is_earned": earned is not None,
                "earned_at": earned.earned_at if earned else None,
                "is_new": earned.is_new if earned else False,
                "progress": earned.progress if earned else 0,
            })

        return {
            "achievements": entries,
            "total_earned": len(user_achievements),
            "new_achievements": sum(1 for ua in user_achievements.values() if ua.is_new),
        }

    async def mark_achievement_seen(self, user_id: int, achievement_id: int) -> bool:
        return await self.storage.mark_achievement_seen(user_id, achievement_id)

    async def get_milestones_with_progress(self, user_id: int) -> list[dict[str, Any]]:
        """Milestones with current values taken from live stats where available."""
        milestones = await self.storage.get_user_milestones(user_id)
        stats = await self.storage.get_user_stats(user_id)

        entries = []
        for milestone in milestones:
            if milestone.type == MilestoneType.POINT_MILESTONE.value:
                current = stats.total_points if stats else 0
            elif milestone.type == MilestoneType.STREAK_MILESTONE.value:
                current = stats.current_streak if stats else 0
            else:
                current = milestone.current_value

            percentage = (
                min(current / milestone.target_value * 100, 100.0)
                if milestone.target_value > 0 else 100.0
            )
            entries.append({
                "id": milestone.id,
                "type": milestone.type,
                "title": milestone.title,
                "description": milestone.description,
                "target_value": milestone.target_value,
                "current_value": current,
                "is_completed": milestone.is_completed,
                "completed_at": milestone.completed_at,
                "expires_at": milestone.expires_at,
                "progress_percentage": percentage,
            })

        return entries
