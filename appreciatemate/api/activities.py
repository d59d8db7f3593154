"""Activity logging endpoints. Logging an activity drives the gamification engine."""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from appreciatemate.api.deps import get_current_user, get_suggestion_service
from appreciatemate.api.schemas import (
    ActivityCreate,
    ActivityCreateResponse,
    ActivityResponse,
    CategoryResponse,
    GamificationUpdateResponse,
)
from appreciatemate.core.database import get_db
from appreciatemate.models.user import User
from appreciatemate.services.gamification import GamificationService
from appreciatemate.services.storage import Storage
from appreciatemate.services.suggestions import FALLBACK_CATEGORY, SuggestionService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["activities"])


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(db: AsyncSession = Depends(get_db)):
    """List activity categories."""
    return await Storage(db).get_activity_categories()


@router.get("/activities", response_model=list[ActivityResponse])
async def list_activities(
    limit: int = Query(default=50, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get the current user's most recent activities."""
    return await Storage(db).get_activities_by_user(current_user.id, limit=limit)


@router.post(
    "/activities",
    response_model=ActivityCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_activity(
    request: ActivityCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    suggestions: SuggestionService = Depends(get_suggestion_service),
):
    """Log a completed activity and apply points, streaks, achievements, and milestones."""
    storage = Storage(db)

    category_id = request.category_id
    points = request.points

    if category_id is not None and await storage.get_activity_category(category_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown category: {category_id}",
        )

    if category_id is None or points is None:
        categorization = await suggestions.categorize_activity(request.title)
        if category_id is None:
            category = await storage.find_activity_category(categorization.category)
            category_id = category.id if category else FALLBACK_CATEGORY
        if points is None:
            points = categorization.points

    activity, update = await GamificationService(db).record_activity(
        current_user.id,
        title=request.title,
        description=request.description,
        category_id=category_id,
        points=points,
        is_ai_suggested=request.is_ai_suggested,
        completed_at=request.completed_at,
    )
    await db.commit()

    logger.info(
        "User %s logged activity %s (%s points, category %s)",
        current_user.id, activity.id, activity.points, activity.category_id,
    )

    return ActivityCreateResponse(
        activity=ActivityResponse.model_validate(activity),
        gamification=GamificationUpdateResponse.model_validate(update),
    )
