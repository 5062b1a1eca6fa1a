"""Pydantic models for the application."""

from study_tracker.models.study import (
    AnalyticsResponse,
    AnalyticsSummary,
    SessionCompleteRequest,
    SessionCompleteResponse,
    SessionResponse,
    SessionStartRequest,
    SessionStartResponse,
    TaskAccuracy,
    TaskSummary,
)

__all__ = [
    "AnalyticsResponse",
    "AnalyticsSummary",
    "SessionCompleteRequest",
    "SessionCompleteResponse",
    "SessionResponse",
    "SessionStartRequest",
    "SessionStartResponse",
    "TaskAccuracy",
    "TaskSummary",
]
