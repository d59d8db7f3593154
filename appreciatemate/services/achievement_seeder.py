"""Achievement seeder - the default activity categories and the starter achievement catalog."""

import logging
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from appreciatemate.models.activity import ActivityCategory
from appreciatemate.models.gamification import (
    Achievement,
    AchievementRarity,
    UserAchievement,
)
from appreciatemate.services.criteria import (
    ActivityCountCriteria,
    CategoryMasterCriteria,
    PointsCriteria,
    SpecialCriteria,
    StreakCriteria,
    dump_criteria,
)

logger = logging.getLogger(__name__)


DEFAULT_CATEGORIES: list[dict[str, str]] = [
    {"id": "household", "name": "Household", "icon": "fas fa-home", "color": "primary"},
    {"id": "childcare", "name": "Childcare", "icon": "fas fa-baby", "color": "blue-500"},
    {"id": "finance", "name": "Finance", "icon": "fas fa-dollar-sign", "color": "green-500"},
    {"id": "maintenance", "name": "Maintenance", "icon": "fas fa-wrench", "color": "purple-500"},
    {"id": "cooking", "name": "Cooking", "icon": "fas fa-utensils", "color": "pink-500"},
    {"id": "shopping", "name": "Shopping", "icon": "fas fa-shopping-cart", "color": "amber-500"},
    {"id": "transportation", "name": "Transportation", "icon": "fas fa-car", "color": "blue-500"},
    {"id": "emotional_support", "name": "Emotional Support", "icon": "fas fa-heart", "color": "secondary"},
]


def _achievement(
    name: str,
    description: str,
    icon: str,
    criteria: Any,
    points: int,
    rarity: AchievementRarity,
) -> dict[str, Any]:
    return {
        "name": name,
        "description": description,
        "icon": icon,
        "type": criteria.type,
        "criteria": dump_criteria(criteria),
        "points": points,
        "rarity": rarity.value,
        "is_active": True,
    }


INITIAL_ACHIEVEMENTS: list[dict[str, Any]] = [
    # Points
    _achievement(
        "Getting Started",
        "Earn your first 25 points by helping around the house",
        "🌟",
        PointsCriteria(type="points", threshold=25),
        10,
        AchievementRarity.COMMON,
    ),
    _achievement(
        "Helper Hero",
        "Accumulate 100 points through your amazing contributions",
        "🦸",
        PointsCriteria(type="points", threshold=100),
        25,
        AchievementRarity.UNCOMMON,
    ),
    _achievement(
        "Household Champion",
        "Reach 500 points - you're a relationship rockstar!",
        "🏆",
        PointsCriteria(type="points", threshold=500),
        50,
        AchievementRarity.RARE,
    ),
    _achievement(
        "Partnership Pro",
        "Achieve 1000 points - a true partner in every way",
        "💎",
        PointsCriteria(type="points", threshold=1000),
        100,
        AchievementRarity.EPIC,
    ),
    # Activity count
    _achievement(
        "First Steps",
        "Complete your very first activity - every journey begins with one step",
        "👶",
        SpecialCriteria(type="special", conditions=["first_activity"]),
        5,
        AchievementRarity.COMMON,
    ),
    _achievement(
        "Helping Hand",
        "Complete 10 activities - you're building great habits!",
        "🙌",
        ActivityCountCriteria(type="activity_count", threshold=10),
        15,
        AchievementRarity.COMMON,
    ),
    _achievement(
        "Busy Bee",
        "Complete 50 activities - your partner notices your efforts!",
        "🐝",
        ActivityCountCriteria(type="activity_count", threshold=50),
        30,
        AchievementRarity.UNCOMMON,
    ),
    _achievement(
        "Activity Addict",
        "Complete 100 activities - you're unstoppable!",
        "⚡",
        ActivityCountCriteria(type="activity_count", threshold=100),
        50,
        AchievementRarity.RARE,
    ),
    # Streaks
    _achievement(
        "Streak Starter",
        "Maintain a 3-day activity streak - consistency is key!",
        "🔥",
        StreakCriteria(type="streak", threshold=3),
        20,
        AchievementRarity.COMMON,
    ),
    _achievement(
        "Week Warrior",
        "Keep a 7-day streak going - you're forming amazing habits!",
        "⚡",
        StreakCriteria(type="streak", threshold=7),
        35,
        AchievementRarity.UNCOMMON,
    ),
    _achievement(
        "Consistency King/Queen",
        "Achieve a 14-day streak - your dedication is inspiring!",
        "👑",
        StreakCriteria(type="streak", threshold=14),
        60,
        AchievementRarity.RARE,
    ),
    _achievement(
        "Unstoppable Force",
        "Maintain a 30-day streak - you're a relationship legend!",
        "🚀",
        StreakCriteria(type="streak", threshold=30),
        100,
        AchievementRarity.LEGENDARY,
    ),
    # Category mastery
    _achievement(
        "Kitchen Master",
        "Complete 20 cooking activities - you're the chef of the house!",
        "👨‍🍳",
        CategoryMasterCriteria(type="category_master", category="cooking", threshold=20),
        40,
        AchievementRarity.UNCOMMON,
    ),
    _achievement(
        "Cleaning Guru",
        "Complete 25 household activities - cleanliness is next to godliness!",
        "🧹",
        CategoryMasterCriteria(type="category_master", category="household", threshold=25),
        40,
        AchievementRarity.UNCOMMON,
    ),
    _achievement(
        "Childcare Champion",
        "Complete 15 childcare activities - you're an amazing parent!",
        "👶",
        CategoryMasterCriteria(type="category_master", category="childcare", threshold=15),
        45,
        AchievementRarity.RARE,
    ),
    _achievement(
        "Money Manager",
        "Complete 10 finance activities - financial responsibility rocks!",
        "💰",
        CategoryMasterCriteria(type="category_master", category="finance", threshold=10),
        35,
        AchievementRarity.UNCOMMON,
    ),
    # Special
    _achievement(
        "Weekend Warrior",
        "Complete 5 activities during weekends - you never rest!",
        "🏖️",
        SpecialCriteria(type="special", conditions=["weekend_warrior"]),
        25,
        AchievementRarity.UNCOMMON,
    ),
    _achievement(
        "Early Bird",
        "Complete activities consistently in the morning hours",
        "🌅",
        SpecialCriteria(type="special", conditions=["early_bird"]),
        30,
        AchievementRarity.UNCOMMON,
    ),
    _achievement(
        "Night Owl",
        "Get things done in the evening - dedication has no schedule!",
        "🦉",
        SpecialCriteria(type="special", conditions=["night_owl"]),
        30,
        AchievementRarity.UNCOMMON,
    ),
    _achievement(
        "Appreciation Master",
        "Receive 10 appreciations from your partner - you're loved!",
        "💝",
        SpecialCriteria(type="special", conditions=["appreciation_master"]),
        50,
        AchievementRarity.RARE,
    ),
]


def get_achievement_count() -> int:
    return len(INITIAL_ACHIEVEMENTS)


async def seed_categories(session: AsyncSession) -> int:
    """Insert any default category that's missing. Returns how many were added."""
    result = await session.execute(select(ActivityCategory.id))
    existing_ids = set(result.scalars().all())

    added = 0
    for category in DEFAULT_CATEGORIES:
        if category["id"] in existing_ids:
            continue
        session.add(ActivityCategory(**category))
        added += 1

    await session.flush()
    if added:
        logger.info("Seeded %s activity categories", added)
    return added


async def seed_achievements(session: AsyncSession, force: bool = False) -> int:
    """Seed the starter achievement catalog. Returns how many were inserted.

    Skips when any achievement exists unless force is set, in which case the
    catalog and every earned record pointing at it are replaced.
    """
    result = await session.execute(select(Achievement.id).limit(1))
    existing = result.scalar_one_or_none()

    if existing is not None and not force:
        logger.info("Achievements already seeded, skipping")
        return 0

    if existing is not None and force:
        await session.execute(delete(UserAchievement))
        await session.execute(delete(Achievement))
        logger.info("Cleared existing achievement catalog")

    for achievement_data in INITIAL_ACHIEVEMENTS:
        session.add(Achievement(**achievement_data))

    await session.flush()
    logger.info("Seeded %s achievements", len(INITIAL_ACHIEVEMENTS))
    return len(INITIAL_ACHIEVEMENTS)
