import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from appreciatemate.api import router
from appreciatemate.core.config import settings
from appreciatemate.core.database import async_session_maker, init_db
from appreciatemate.services.achievement_seeder import seed_achievements, seed_categories

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables and seed reference data on startup."""
    await init_db()

    if settings.seed_on_startup:
        async with async_session_maker() as session:
            await seed_categories(session)
            await seed_achievements(session)
            await session.commit()

    logger.info("%s %s started", settings.app_name, settings.version)
    yield


app = FastAPI(
    lifespan=lifespan,
    title=settings.app_name,
    description="Household contribution tracking with points, streaks, achievements, and milestones",
    version=settings.version,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,  # Must be False when using allow_origins=["*"]
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.app_name,
        "version": settings.version,
        "docs": "/docs",
        "health": "/api/v1/health",
    }
