"""Services package for study session tracking and analytics."""

from study_tracker.services.study import AnalyticsService, SessionService

__all__ = [
    "AnalyticsService",
    "SessionService",
]
