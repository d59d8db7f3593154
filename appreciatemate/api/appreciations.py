"""Appreciation endpoints - partners thanking each other for activities."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from appreciatemate.api.deps import get_current_user, get_suggestion_service
from appreciatemate.api.schemas import (
    AchievementSummary,
    AppreciationCreate,
    AppreciationCreateResponse,
    AppreciationResponse,
)
from appreciatemate.core.database import get_db
from appreciatemate.models.user import User
from appreciatemate.services.criteria import InvalidCriteriaError
from appreciatemate.services.gamification import GamificationService
from appreciatemate.services.storage import Storage
from appreciatemate.services.suggestions import SuggestionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/appreciations", tags=["appreciations"])


@router.get("", response_model=list[AppreciationResponse])
async def list_appreciations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get appreciations the current user has received."""
    return await Storage(db).get_appreciations_by_user(current_user.id)


@router.post(
    "",
    response_model=AppreciationCreateResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_appreciation(
    request: AppreciationCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    suggestions: SuggestionService = Depends(get_suggestion_service),
):
    """Send an appreciation and check the recipient's appreciation achievements."""
    storage = Storage(db)

    if await storage.get_user(request.to_user_id) is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Recipient not found",
        )

    activity = await storage.get_activity(request.activity_id)
    if activity is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Activity not found",
        )

    message = request.message
    if not message:
        message = await suggestions.generate_appreciation_message(activity.title)

    appreciation = await storage.create_appreciation(
        current_user.id,
        to_user_id=request.to_user_id,
        activity_id=request.activity_id,
        message=message,
    )

    # The appreciation is kept even if the achievement check fails
    new_achievements = []
    try:
        async with db.begin_nested():
            service = GamificationService(db)
            new_achievements = await service.check_appreciation_achievements(request.to_user_id)
    except InvalidCriteriaError:
        logger.exception("Appreciation achievement check failed for user %s", request.to_user_id)

    await db.commit()

    return AppreciationCreateResponse(
        appreciation=AppreciationResponse.model_validate(appreciation),
        new_achievements=[AchievementSummary.model_validate(a) for a in new_achievements],
    )
