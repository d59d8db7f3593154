"""AI suggestion endpoints - generate, list, and accept activity ideas."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from appreciatemate.api.deps import get_current_user, get_suggestion_service
from appreciatemate.api.schemas import (
    ActivityCreateResponse,
    ActivityResponse,
    AiSuggestionResponse,
    GamificationUpdateResponse,
    SuggestionListResponse,
)
from appreciatemate.core.clock import local_now
from appreciatemate.core.database import get_db
from appreciatemate.models.user import User
from appreciatemate.services.gamification import GamificationService
from appreciatemate.services.storage import Storage
from appreciatemate.services.suggestions import (
    FALLBACK_CATEGORY,
    SuggestionService,
    time_of_day_label,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ai", tags=["ai"])

RECENT_ACTIVITY_LIMIT = 10


@router.get("/suggestions", response_model=SuggestionListResponse)
async def list_suggestions(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SuggestionListResponse:
    """Get the user's saved suggestions that haven't been accepted yet."""
    saved = await Storage(db).get_ai_suggestions_by_user(current_user.id)
    return SuggestionListResponse(
        suggestions=[AiSuggestionResponse.model_validate(s) for s in saved]
    )


@router.post(
    "/suggestions/generate",
    response_model=SuggestionListResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_suggestions(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    suggestions: SuggestionService = Depends(get_suggestion_service),
) -> SuggestionListResponse:
    """Generate new suggestions from recent history and the time of day, and save them."""
    storage = Storage(db)
    recent = await storage.get_activities_by_user(current_user.id, limit=RECENT_ACTIVITY_LIMIT)
    now = local_now()

    results = await suggestions.generate_activity_suggestions(
        user_activities=[a.title for a in recent],
        partner_activities=[],
        time_of_day=time_of_day_label(now.hour),
        day_of_week=now.strftime("%A"),
    )

    saved = []
    for suggestion in results:
        category = await storage.find_activity_category(suggestion.category)
        saved.append(await storage.create_ai_suggestion(
            current_user.id,
            title=suggestion.title,
            description=suggestion.description,
            category_id=category.id if category else FALLBACK_CATEGORY,
            points=suggestion.points,
            confidence=suggestion.confidence,
        ))
    await db.commit()

    logger.info("Saved %d suggestions for user %s", len(saved), current_user.id)

    return SuggestionListResponse(
        suggestions=[AiSuggestionResponse.model_validate(s) for s in saved]
    )


@router.post("/suggestions/{suggestion_id}/accept", response_model=ActivityCreateResponse)
async def accept_suggestion(
    suggestion_id: int,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ActivityCreateResponse:
    """Accept a suggestion, logging it as a completed activity."""
    storage = Storage(db)

    suggestion = await storage.get_ai_suggestion(suggestion_id)
    if suggestion is None or suggestion.user_id != current_user.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Suggestion not found")
    if suggestion.is_accepted:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Suggestion already accepted")

    await storage.accept_ai_suggestion(suggestion.id)
    activity, update = await GamificationService(db).record_activity(
        current_user.id,
        title=suggestion.title,
        description=suggestion.description,
        category_id=suggestion.category_id,
        points=suggestion.points,
        is_ai_suggested=True,
    )
    await db.commit()

    logger.info("User %s accepted suggestion %s as activity %s", current_user.id, suggestion.id, activity.id)

    return ActivityCreateResponse(
        activity=ActivityResponse.model_validate(activity),
        gamification=GamificationUpdateResponse.model_validate(update),
    )
