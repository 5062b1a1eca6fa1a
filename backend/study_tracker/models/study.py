"""
Study Tracking API Models (Pydantic)

Request/response schemas for study sessions and productivity analytics.

ARCHITECTURE NOTE:
    This file contains PYDANTIC models for API validation.
    There is a corresponding SQLAlchemy file: study_tracker/db/models.py

    Data flows: API Request → Pydantic → Service → SQLAlchemy → Database

API Contract:
    Request models use StrictRequest (extra="forbid") to reject unknown fields.
    Timestamps are never accepted from clients; all durations come from the
    server clock.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from study_tracker.enums.study import SessionState
from study_tracker.models.base import StrictRequest, StrictResponse


# ===========================================
# Session Models
# ===========================================


class SessionStartRequest(StrictRequest):
    """
    Request to start a study session.

    Note: Uses StrictRequest - unknown fields will be rejected with 422.
    """

    task_id: str = Field(..., description="Task to study for")


class SessionStartResponse(StrictResponse):
    """Newly created active session."""

    id: str
    task_id: str
    start_time: datetime


class SessionCompleteRequest(StrictRequest):
    """
    Request to finish (or cancel) the active session.

    The end time is taken from the server clock, so the body only carries
    what the client timer knows: how many pomodoros finished and whether
    the session ran to its natural end.
    """

    pomodoros_completed: int = Field(
        0, ge=0, description="Focus intervals completed during the session"
    )
    was_completed: bool = Field(
        ..., description="True for a natural finish, False for an early stop"
    )
    notes: Optional[str] = Field(None, description="Optional session notes")


class TaskSummary(StrictResponse):
    """Task fields embedded in session listings."""

    id: str
    title: str
    subject: str
    estimated_hours: float
    actual_hours: float
    status: str


class SessionResponse(StrictResponse):
    """A study session, optionally resolved against its task."""

    id: str
    user_id: str
    task_id: str
    start_time: datetime
    end_time: Optional[datetime] = None
    total_minutes: int = 0
    pomodoros_completed: int = 0
    was_completed: bool = False
    notes: str = ""
    state: SessionState
    created_at: Optional[datetime] = None
    task: Optional[TaskSummary] = None


class SessionCompleteResponse(SessionResponse):
    """
    Finalized session plus the outcome of the task propagation.

    task_updated is False when the referenced task no longer exists; the
    session itself is still finalized and the reason is in warnings.
    """

    task_updated: bool = True
    warnings: list[str] = Field(default_factory=list)


# ===========================================
# Analytics Models
# ===========================================


class AnalyticsSummary(StrictResponse):
    """Headline numbers for the analytics dashboard."""

    total_pomodoros: int = 0
    weekly_pomodoros: int = 0
    total_hours_studied: float = 0.0  # Rounded to 1 decimal
    overall_accuracy: float = 0.0  # Percent, rounded to 1 decimal
    current_streak: int = 0  # Days
    sessions_count: int = 0


class TaskAccuracy(StrictResponse):
    """
    Estimation accuracy for a single task.

    accuracy_percent is symmetric in over- and under-estimation and floored
    at zero: (estimated - |actual - estimated|) / estimated * 100.
    """

    task_id: str
    title: str
    subject: str
    estimated: float
    actual: float
    difference: float
    accuracy_percent: float


class AnalyticsResponse(StrictResponse):
    """
    Full analytics snapshot for a user.

    Mappings:
        subject_hours: subject → hours studied
        hourly_hours: local hour of day (0-23) → hours studied
        daily_hours: ISO date → hours studied, exactly the last 7 days
    """

    summary: AnalyticsSummary
    task_accuracy: list[TaskAccuracy] = Field(default_factory=list)
    subject_hours: dict[str, float] = Field(default_factory=dict)
    hourly_hours: dict[int, float] = Field(default_factory=dict)
    daily_hours: dict[str, float] = Field(default_factory=dict)
    most_productive_hour: Optional[int] = None
    insights: list[str] = Field(default_factory=list)
