"""API routers."""

from study_tracker.routers import analytics, health, sessions

__all__ = ["analytics", "health", "sessions"]
