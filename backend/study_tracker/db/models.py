"""
SQLAlchemy Database Models for Study Tracking

Tables:
- tasks: User tasks with estimated and accumulated actual effort
- study_sessions: Timed study sessions recorded against a task

ARCHITECTURE NOTE:
    This file contains SQLALCHEMY models for database persistence.
    There are corresponding Pydantic models in study_tracker/models/.

    Data flows: Service Layer → Pydantic → SQLAlchemy → Database

    Task rows are written by the task management collaborator. The session
    services only ever touch Task.actual_hours, and only when a session is
    completed.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from study_tracker.db.base import Base
from study_tracker.enums.study import SessionState, TaskPriority, TaskStatus


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a stored timestamp to an aware UTC datetime.

    Backends without timezone support (SQLite) hand back naive values;
    those are always UTC because that is what gets written.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# ===========================================
# Tasks
# ===========================================


class Task(Base):
    """
    A unit of work the user plans to study for.

    Attributes:
        id: Opaque UUID string identifier.
        user_id: Owning user, resolved by the authentication layer.
        title: Short task title.
        subject: Free-text subject label (e.g. "Math"). Empty subjects are
            excluded from subject analytics.
        priority: low / medium / high.
        deadline: Optional due date.
        estimated_hours: Effort the user predicted, >= 0.
        actual_hours: Sum of completed session durations in hours. Starts at 0
            and only ever grows, via atomic increments on session completion.
        status: pending / in-progress / completed.
        notes: Free-text notes.
        created_at: Creation timestamp.
    """

    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), index=True)

    title: Mapped[str] = mapped_column(String(500))
    subject: Mapped[str] = mapped_column(String(200), default="")
    priority: Mapped[str] = mapped_column(
        String(20), default=TaskPriority.MEDIUM.value
    )
    deadline: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Effort tracking
    estimated_hours: Mapped[float] = mapped_column(Float, default=0.0)
    actual_hours: Mapped[float] = mapped_column(Float, default=0.0)

    status: Mapped[str] = mapped_column(String(20), default=TaskStatus.PENDING.value)
    notes: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )


# ===========================================
# Study Sessions
# ===========================================


class StudySession(Base):
    """
    A timed study session against a single task.

    end_time is the sole persisted discriminator of the active state: a
    null end_time means the session is still running. At most one such row
    may exist per user, enforced by a partial unique index.

    Attributes:
        id: Opaque UUID string identifier.
        user_id: Owning user.
        task_id: Referenced task. Deliberately not a foreign key; the task
            owner may delete tasks while their session history survives.
        start_time: Server time at session start.
        end_time: Server time at completion/cancellation; null while active.
        total_minutes: floor((end_time - start_time) / 60s), 0 while active.
        pomodoros_completed: Focus intervals finished within the session.
        was_completed: True for a natural finish, False for a cancellation.
        notes: Optional free text.
        created_at: Row creation time, used for listing order.
    """

    __tablename__ = "study_sessions"
    __table_args__ = (
        Index(
            "uq_study_sessions_active_user",
            "user_id",
            unique=True,
            postgresql_where=text("end_time IS NULL"),
            sqlite_where=text("end_time IS NULL"),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    task_id: Mapped[str] = mapped_column(String(36), index=True)

    start_time: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # Results
    total_minutes: Mapped[int] = mapped_column(Integer, default=0)
    pomodoros_completed: Mapped[int] = mapped_column(Integer, default=0)
    was_completed: Mapped[bool] = mapped_column(Boolean, default=False)
    notes: Mapped[str] = mapped_column(Text, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now
    )

    @property
    def state(self) -> SessionState:
        """Explicit lifecycle state derived from the persisted columns."""
        if self.end_time is None:
            return SessionState.ACTIVE
        if self.was_completed:
            return SessionState.COMPLETED
        return SessionState.CANCELLED
