"""Shared test fixtures - async SQLite engine, sessions, test client, and users."""

import os

# Set env vars BEFORE importing app modules (config reads at import time)
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOCAL_TIMEZONE", "UTC")
os.environ.setdefault("SEED_ON_STARTUP", "false")
os.environ["ANTHROPIC_API_KEY"] = ""

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from appreciatemate.api.deps import get_suggestion_service  # noqa: E402
from appreciatemate.core.database import get_db  # noqa: E402
from appreciatemate.main import app  # noqa: E402
from appreciatemate.models import Base, User  # noqa: E402
from appreciatemate.services.achievement_seeder import seed_achievements, seed_categories  # noqa: E402
from appreciatemate.services.suggestions import (  # noqa: E402
    ActivityCategorization,
    SuggestionService,
)


@pytest.fixture
async def engine():
    """In-memory SQLite shared by every session in one test."""
    test_engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_maker):
    """Session for service-level tests."""
    async with session_maker() as session:
        yield session


@pytest.fixture
async def seeded_db(db):
    """Session with default categories and the starter achievement catalog."""
    await seed_categories(db)
    await seed_achievements(db)
    await db.commit()
    return db


@pytest.fixture
async def user(db):
    u = User(email="alex@example.com", name="Alex")
    db.add(u)
    await db.commit()
    return u


@pytest.fixture
async def partner(db):
    u = User(email="sam@example.com", name="Sam")
    db.add(u)
    await db.commit()
    return u


@pytest.fixture
def mock_suggestions():
    """Stand-in for the LLM-backed suggestion service."""
    service = MagicMock(spec=SuggestionService)
    service.categorize_activity = AsyncMock(
        return_value=ActivityCategorization(category="cooking", points=8, confidence=90)
    )
    service.generate_appreciation_message = AsyncMock(return_value="You're the best!")
    service.generate_activity_suggestions = AsyncMock(return_value=[])
    return service


@pytest.fixture
async def client(session_maker, mock_suggestions):
    """Async HTTP test client for the FastAPI app, backed by the test database."""

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_suggestion_service] = lambda: mock_suggestions

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
