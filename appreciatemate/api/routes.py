from fastapi import APIRouter

from appreciatemate.api.activities import router as activities_router
from appreciatemate.api.appreciations import router as appreciations_router
from appreciatemate.api.gamification import router as gamification_router
from appreciatemate.api.schemas import HealthResponse
from appreciatemate.api.suggestions import router as suggestions_router
from appreciatemate.core.config import settings

router = APIRouter()


@router.get("/health", response_model=HealthResponse)
async def health_check():
    """Check API health and configuration status."""
    return HealthResponse(
        status="healthy",
        version=settings.version,
        anthropic_configured=bool(settings.anthropic_api_key),
    )


router.include_router(activities_router)
router.include_router(appreciations_router)
router.include_router(gamification_router)
router.include_router(suggestions_router)
