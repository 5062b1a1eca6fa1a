"""
Study Tracking Services

Services for timed study sessions and the analytics derived from them.

Modules:
- session_service: Session lifecycle (start, complete/cancel, list)
- analytics_service: Productivity snapshot over tasks and completed sessions
- streak_tracking: Calendar-day helpers (streaks, daily buckets, local time)
- insights: Ordered rule pipeline producing textual insights
- locking: Per-key asyncio locks used by the session service

Usage:
    from study_tracker.services.study import (
        SessionService,
        AnalyticsService,
    )
"""

from study_tracker.services.study.analytics_service import (
    AnalyticsService,
    build_analytics,
    calculate_accuracy,
)
from study_tracker.services.study.insights import generate_insights
from study_tracker.services.study.session_service import (
    SessionService,
    calculate_total_minutes,
)
from study_tracker.services.study.streak_tracking import calculate_current_streak

__all__ = [
    # Services
    "SessionService",
    "AnalyticsService",
    # Pure helpers
    "build_analytics",
    "calculate_accuracy",
    "calculate_total_minutes",
    "calculate_current_streak",
    "generate_insights",
]
