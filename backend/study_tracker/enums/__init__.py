"""
Centralized enum definitions for the application.

Usage:
    from study_tracker.enums import SessionState, TaskStatus

    # Or import from the specific module
    from study_tracker.enums.study import TaskPriority
"""

from study_tracker.enums.study import (
    SessionState,
    TaskPriority,
    TaskStatus,
)

__all__ = [
    "SessionState",
    "TaskPriority",
    "TaskStatus",
]
