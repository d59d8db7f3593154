from appreciatemate.models.base import Base
from appreciatemate.models.user import User
from appreciatemate.models.activity import Activity, ActivityCategory, AiSuggestion, Appreciation
from appreciatemate.models.gamification import (
    Achievement,
    Milestone,
    UserAchievement,
    UserStats,
)

__all__ = [
    "Base",
    "User",
    "Activity",
    "ActivityCategory",
    "AiSuggestion",
    "Appreciation",
    "Achievement",
    "Milestone",
    "UserAchievement",
    "UserStats",
]
