"""
Study Analytics Service

Derives a productivity snapshot from a user's tasks and completed study
sessions. Every call recomputes from scratch; nothing is persisted.

Responsibilities:
- Pomodoro and study-hour totals (all time and last 7 days)
- Estimation accuracy per task and overall
- Study time by subject, hour of day, and calendar day
- Current study streak
- Rule-based insights over the snapshot

Reads only sessions with an end_time, so an active session never counts.
A session may be visible before its task credit lands; the numbers
converge on the next call.

Usage:
    from study_tracker.services.study import AnalyticsService

    service = AnalyticsService(db)
    analytics = await service.compute_analytics(user_id)
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timedelta, tzinfo
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from study_tracker.config import settings
from study_tracker.db.models import StudySession, Task, ensure_utc, utc_now
from study_tracker.models.study import (
    AnalyticsResponse,
    AnalyticsSummary,
    TaskAccuracy,
)
from study_tracker.services.study.insights import (
    InsightSnapshot,
    SubjectEffort,
    generate_insights,
)
from study_tracker.services.study.streak_tracking import (
    build_daily_buckets,
    calculate_current_streak,
    resolve_timezone,
    to_local,
)

logger = logging.getLogger(__name__)


def calculate_accuracy(estimated: float, actual: float) -> float:
    """
    Symmetric estimation accuracy in percent.

    Over- and under-estimation are penalized equally and the score is
    floored at zero, so an estimate off by more than 100% of itself scores 0.

    Args:
        estimated: Predicted hours.
        actual: Hours actually spent.

    Returns:
        max(0, (estimated - |actual - estimated|) / estimated * 100), or 0
        when nothing was estimated.

    Examples:
        calculate_accuracy(10, 8) → 80.0
        calculate_accuracy(10, 25) → 0.0
    """
    if estimated <= 0:
        return 0.0
    difference = actual - estimated
    return max(0.0, (estimated - abs(difference)) / estimated * 100)


def most_productive_hour(hourly_hours: dict[int, float]) -> Optional[int]:
    """Hour with the most study time; ties go to the earliest hour."""
    if not hourly_hours:
        return None
    return max(sorted(hourly_hours), key=lambda hour: hourly_hours[hour])


def build_analytics(
    tasks: Sequence[Task],
    sessions: Sequence[StudySession],
    now: datetime,
    tz: Optional[tzinfo] = None,
) -> AnalyticsResponse:
    """
    Fold tasks and completed sessions into an analytics snapshot.

    Args:
        tasks: The user's tasks, in display order.
        sessions: The user's completed sessions (any order).
        now: Current server time.
        tz: Timezone for day/hour bucketing; None means server local time.

    Returns:
        AnalyticsResponse. Empty inputs give zeroed totals, seven zero-valued
        daily buckets and no insights.
    """
    today = to_local(now, tz).date()
    recent_start = today - timedelta(days=settings.RECENT_WINDOW_DAYS - 1)

    # Fixed fold order makes hour tie-breaks reproducible
    ordered = sorted(sessions, key=lambda s: ensure_utc(s.start_time))
    tasks_by_id = {task.id: task for task in tasks}

    total_pomodoros = 0
    weekly_pomodoros = 0
    total_minutes = 0
    subject_hours: dict[str, float] = {}
    hourly_hours: dict[int, float] = {}
    day_entries: list[tuple] = []
    study_dates = set()

    for session in ordered:
        local_start = to_local(session.start_time, tz)
        day = local_start.date()
        minutes = session.total_minutes or 0
        hours = minutes / 60
        pomodoros = session.pomodoros_completed or 0

        total_pomodoros += pomodoros
        total_minutes += minutes
        if recent_start <= day <= today:
            weekly_pomodoros += pomodoros

        task = tasks_by_id.get(session.task_id)
        subject = (task.subject or "") if task is not None else ""
        # Labels are kept as entered; only blank ones are dropped
        if subject.strip():
            subject_hours[subject] = subject_hours.get(subject, 0.0) + hours

        hourly_hours[local_start.hour] = hourly_hours.get(local_start.hour, 0.0) + hours
        day_entries.append((day, hours))
        study_dates.add(day)

    # Estimation accuracy
    task_accuracy: list[TaskAccuracy] = []
    subject_effort: dict[str, SubjectEffort] = {}
    total_estimated = 0.0
    total_actual = 0.0

    for task in tasks:
        estimated = task.estimated_hours or 0.0
        actual = task.actual_hours or 0.0
        total_estimated += estimated
        total_actual += actual

        task_accuracy.append(
            TaskAccuracy(
                task_id=task.id,
                title=task.title,
                subject=task.subject or "",
                estimated=estimated,
                actual=actual,
                difference=actual - estimated,
                accuracy_percent=calculate_accuracy(estimated, actual),
            )
        )

        subject = task.subject or ""
        if subject.strip():
            effort = subject_effort.setdefault(subject, SubjectEffort())
            effort.estimated += estimated
            effort.actual += actual
            effort.task_count += 1

    overall_accuracy = calculate_accuracy(total_estimated, total_actual)

    current_streak = calculate_current_streak(
        study_dates, today, lookback_days=settings.STREAK_LOOKBACK_DAYS
    )
    peak_hour = most_productive_hour(hourly_hours)

    insights = generate_insights(
        InsightSnapshot(
            weekly_pomodoros=weekly_pomodoros,
            overall_accuracy=overall_accuracy,
            task_count=len(tasks),
            sessions_count=len(ordered),
            most_productive_hour=peak_hour,
            current_streak=current_streak,
            subject_effort=subject_effort,
        )
    )

    return AnalyticsResponse(
        summary=AnalyticsSummary(
            total_pomodoros=total_pomodoros,
            weekly_pomodoros=weekly_pomodoros,
            total_hours_studied=round(total_minutes / 60, 1),
            overall_accuracy=round(overall_accuracy, 1),
            current_streak=current_streak,
            sessions_count=len(ordered),
        ),
        task_accuracy=task_accuracy,
        subject_hours=subject_hours,
        hourly_hours=dict(sorted(hourly_hours.items())),
        daily_hours=build_daily_buckets(
            day_entries, today, days=settings.RECENT_WINDOW_DAYS
        ),
        most_productive_hour=peak_hour,
        insights=insights,
    )


class AnalyticsService:
    """
    Service computing study analytics for a user.

    Read-only: takes no locks and writes nothing.
    """

    def __init__(
        self,
        db: AsyncSession,
        clock: Callable[[], datetime] = utc_now,
        tz: Optional[tzinfo] = None,
    ):
        """
        Initialize the analytics service.

        Args:
            db: SQLAlchemy async database session.
            clock: Source of the current server time (aware UTC).
            tz: Bucketing timezone. Defaults to ANALYTICS_TIMEZONE, which in
                turn defaults to the server's local zone.
        """
        self.db = db
        self.clock = clock
        self.tz = tz if tz is not None else resolve_timezone(settings.ANALYTICS_TIMEZONE)

    async def compute_analytics(self, user_id: str) -> AnalyticsResponse:
        """
        Compute the full analytics snapshot for a user.

        Args:
            user_id: Authenticated user.

        Returns:
            AnalyticsResponse with summary, per-task accuracy, subject/hour/day
            breakdowns, most productive hour and insights.
        """
        tasks = await self._fetch_tasks(user_id)
        sessions = await self._fetch_completed_sessions(user_id)

        logger.debug(
            f"Computing analytics for user {user_id}: "
            f"{len(tasks)} tasks, {len(sessions)} completed sessions"
        )

        return build_analytics(tasks, sessions, now=self.clock(), tz=self.tz)

    async def _fetch_tasks(self, user_id: str) -> list[Task]:
        query = (
            select(Task)
            .where(Task.user_id == user_id)
            .order_by(Task.created_at, Task.id)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def _fetch_completed_sessions(self, user_id: str) -> list[StudySession]:
        """
        Fetch the user's finished sessions, completed and cancelled alike.

        Active sessions (end_time null) are excluded.
        """
        query = (
            select(StudySession)
            .where(
                StudySession.user_id == user_id,
                StudySession.end_time.isnot(None),
            )
            .order_by(StudySession.start_time)
        )
        result = await self.db.execute(query)
        return list(result.scalars().all())
