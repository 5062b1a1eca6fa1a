"""
Study Tracking Enums

Defines enums for task metadata and the study session state machine.
"""

from enum import Enum


class SessionState(str, Enum):
    """
    Lifecycle state of a study session.

    Only end_time and was_completed are persisted; the state is derived
    from them:
    - ACTIVE: end_time is null
    - COMPLETED: end_time set, was_completed is true
    - CANCELLED: end_time set, was_completed is false

    State transitions:
    - ACTIVE → COMPLETED (timer ran to the end)
    - ACTIVE → CANCELLED (stopped early)

    COMPLETED and CANCELLED are terminal.
    """

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self is not SessionState.ACTIVE


class TaskPriority(str, Enum):
    """Priority a user assigns to a task."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskStatus(str, Enum):
    """Progress status of a task, maintained by the task owner."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
