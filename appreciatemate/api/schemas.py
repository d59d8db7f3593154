from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    status: str
    version: str
    anthropic_configured: bool


# Activities

class CategoryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    icon: str
    color: str


class ActivityCreate(BaseModel):
    """Log a completed activity. Category and points are inferred when omitted."""
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    category_id: str | None = None
    points: int | None = Field(default=None, ge=1, le=100)
    is_ai_suggested: bool = False
    completed_at: datetime | None = None


class ActivityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    description: str | None
    category_id: str
    points: int
    is_ai_suggested: bool
    completed_at: datetime
    category: CategoryResponse | None = None


# Gamification

class UserStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    total_points: int
    total_activities: int
    current_streak: int
    longest_streak: int
    level: int
    last_activity_date: datetime | None


class AchievementSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    icon: str
    type: str
    points: int
    rarity: str


class MilestoneResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: str
    title: str
    description: str | None
    target_value: int
    current_value: int
    is_completed: bool
    completed_at: datetime | None
    expires_at: datetime | None


class GamificationUpdateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    new_achievements: list[AchievementSummary]
    completed_milestones: list[MilestoneResponse]
    level_up: bool
    old_level: int
    new_level: int
    stats_updated: UserStatsResponse


class ActivityCreateResponse(BaseModel):
    activity: ActivityResponse
    gamification: GamificationUpdateResponse


class StatsResponse(BaseModel):
    """Stats plus progress toward the next level."""
    stats: UserStatsResponse
    current_level_start: int
    next_level_points: int
    progress_to_next_level: float


class AchievementStatusResponse(AchievementSummary):
    is_earned: bool
    earned_at: datetime | None
    is_new: bool
    progress: int


class AchievementListResponse(BaseModel):
    achievements: list[AchievementStatusResponse]
    total_earned: int
    new_achievements: int


class MilestoneProgressResponse(MilestoneResponse):
    progress_percentage: float


# Appreciations

class AppreciationCreate(BaseModel):
    """Thank a partner. A message is generated when omitted."""
    to_user_id: int
    activity_id: int
    message: str | None = Field(default=None, max_length=2000)


class AppreciationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    from_user_id: int
    to_user_id: int
    activity_id: int
    message: str | None
    created_at: datetime


class AppreciationCreateResponse(BaseModel):
    appreciation: AppreciationResponse
    new_achievements: list[AchievementSummary]


# AI

class AiSuggestionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    description: str | None
    category_id: str
    points: int
    confidence: int
    is_accepted: bool
    created_at: datetime
    category: CategoryResponse | None = None


class SuggestionListResponse(BaseModel):
    suggestions: list[AiSuggestionResponse]
