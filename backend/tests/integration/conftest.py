"""
Integration Test Fixtures

Provides an HTTP client wired to the FastAPI app with the database and the
server clock replaced by test doubles.

IMPORTANT: The async_test_client fixture overrides get_db so every request
gets its own session on the per-test SQLite database; the configured
database is never touched. ASGITransport does not run the app lifespan, so
tables come from the db_engine fixture instead of init_db.
"""

from collections.abc import AsyncGenerator

import httpx
import pytest_asyncio
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from study_tracker.db.base import get_db
from study_tracker.dependencies import get_analytics_service, get_session_service
from study_tracker.main import app
from study_tracker.services.study import AnalyticsService, SessionService
from tests.conftest import DEFAULT_USER_ID, FrozenClock


@pytest_asyncio.fixture
async def async_test_client(
    session_maker: async_sessionmaker[AsyncSession],
    clock: FrozenClock,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    Create an async HTTP client configured to use the test database.

    Requests carry X-User-Id for DEFAULT_USER_ID unless a test overrides
    the header.
    """

    async def get_test_db() -> AsyncGenerator[AsyncSession, None]:
        """Yield a fresh test database session per request."""
        async with session_maker() as session:
            yield session

    async def get_test_session_service(
        db: AsyncSession = Depends(get_db),
    ) -> SessionService:
        return SessionService(db, clock=clock)

    async def get_test_analytics_service(
        db: AsyncSession = Depends(get_db),
    ) -> AnalyticsService:
        return AnalyticsService(db, clock=clock)

    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_session_service] = get_test_session_service
    app.dependency_overrides[get_analytics_service] = get_test_analytics_service

    # Use ASGITransport for httpx 0.28+ compatibility
    transport = httpx.ASGITransport(app=app)
    try:
        async with httpx.AsyncClient(
            transport=transport,
            base_url="http://test",
            headers={"X-User-Id": DEFAULT_USER_ID},
        ) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
