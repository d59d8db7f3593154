"""Gamification API endpoints for stats, levels, achievements, and milestones."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from appreciatemate.api.deps import get_current_user
from appreciatemate.api.schemas import (
    AchievementListResponse,
    MilestoneProgressResponse,
    StatsResponse,
)
from appreciatemate.core.database import get_db
from appreciatemate.models.user import User
from appreciatemate.services.gamification import GamificationService

router = APIRouter(prefix="/gamification", tags=["gamification"])


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Get the current user's stats and progress toward the next level."""
    service = GamificationService(db)
    summary = await service.get_stats_summary(current_user.id)
    # Stats may have just been created
    await db.commit()
    return summary


@router.get("/achievements", response_model=AchievementListResponse)
async def get_achievements(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Get the achievement catalog with the user's earned status."""
    service = GamificationService(db)
    return await service.get_achievements_with_status(current_user.id)


@router.post("/achievements/{achievement_id}/seen")
async def mark_achievement_seen(
    achievement_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict[str, str]:
    """Mark an earned achievement as seen."""
    service = GamificationService(db)
    updated = await service.mark_achievement_seen(current_user.id, achievement_id)
    if not updated:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Achievement not earned",
        )
    await db.commit()
    return {"status": "ok"}


@router.get("/milestones", response_model=list[MilestoneProgressResponse])
async def get_milestones(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[dict[str, Any]]:
    """Get the user's milestones with progress percentages."""
    service = GamificationService(db)
    return await service.get_milestones_with_progress(current_user.id)
