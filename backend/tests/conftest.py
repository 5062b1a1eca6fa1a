"""
Shared Test Fixtures and Configuration

This module provides pytest fixtures used across unit and integration tests.

Tests run against a throwaway SQLite database (aiosqlite) per test, so no
PostgreSQL server is needed. Time is controlled through FrozenClock, which
the services accept in place of the real server clock.
"""

import os
import sys
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

# Add the backend directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Pick up local settings (log level, thresholds) from the project .env
_env_file = Path(__file__).parent.parent.parent / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

# Must be set before study_tracker.config is first imported: settings are
# read once at import time and the module-level engine is built from them.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ANALYTICS_TIMEZONE"] = "UTC"
os.environ["DEBUG"] = "false"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from study_tracker.db.base import Base  # noqa: E402
from study_tracker.db.models import StudySession, Task  # noqa: E402


# ============================================================================
# Test Data Constants
# ============================================================================

DEFAULT_USER_ID: str = "user-1"
OTHER_USER_ID: str = "user-2"

# A Friday afternoon, far from any DST switch
REFERENCE_NOW: datetime = datetime(2024, 3, 15, 15, 0, tzinfo=timezone.utc)


# ============================================================================
# Clock
# ============================================================================


class FrozenClock:
    """Controllable stand-in for the server clock."""

    def __init__(self, now: datetime = REFERENCE_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        """Move the clock by a timedelta expressed as keyword arguments."""
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    """Provide a clock frozen at REFERENCE_NOW."""
    return FrozenClock()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest_asyncio.fixture
async def db_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """
    Create a file-backed SQLite engine with all tables.

    A file (rather than :memory:) lets several sessions share the database,
    which the concurrency tests rely on.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'study_tracker_test.db'}", echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for a single test."""
    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


# ============================================================================
# Factories
# ============================================================================

TaskFactory = Callable[..., Awaitable[Task]]
SessionFactory = Callable[..., Awaitable[StudySession]]


@pytest.fixture
def make_task(db_session: AsyncSession) -> TaskFactory:
    """
    Factory that persists a Task.

    Usage:
        task = await make_task(subject="Math", estimated_hours=2)
    """

    async def _make_task(**overrides: Any) -> Task:
        fields: dict[str, Any] = {
            "user_id": DEFAULT_USER_ID,
            "title": "Read chapter 3",
            "subject": "Math",
            "estimated_hours": 2.0,
            "actual_hours": 0.0,
            "created_at": REFERENCE_NOW - timedelta(days=10),
        }
        fields.update(overrides)
        task = Task(**fields)
        db_session.add(task)
        await db_session.commit()
        return task

    return _make_task


@pytest.fixture
def make_study_session(db_session: AsyncSession) -> SessionFactory:
    """
    Factory that persists a finished StudySession directly.

    end_time and total_minutes are derived from start_time and minutes
    unless given explicitly; pass end_time=None for an active session.
    """

    async def _make_session(
        task: Task,
        start_time: datetime,
        minutes: int = 25,
        **overrides: Any,
    ) -> StudySession:
        fields: dict[str, Any] = {
            "user_id": task.user_id,
            "task_id": task.id,
            "start_time": start_time,
            "end_time": start_time + timedelta(minutes=minutes),
            "total_minutes": minutes,
            "pomodoros_completed": 1,
            "was_completed": True,
            "notes": "",
            "created_at": start_time,
        }
        fields.update(overrides)
        session = StudySession(**fields)
        db_session.add(session)
        await db_session.commit()
        return session

    return _make_session
