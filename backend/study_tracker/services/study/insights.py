"""
Rule-Based Study Insights

Turns an analytics snapshot into short textual observations. Each rule is a
pure function of the snapshot that returns one message or None; rules run
in a fixed order and every triggered message is kept.

Rule order:
1. Weekly pomodoro encouragement
2. Estimation accuracy warning / praise
3. Peak productivity hour
4. Current streak callout
5. Consistently underestimated subjects

Usage:
    from study_tracker.services.study.insights import InsightSnapshot, generate_insights

    messages = generate_insights(snapshot)
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from study_tracker.config import settings


@dataclass
class SubjectEffort:
    """Estimated vs actual hours summed over one subject's tasks."""

    estimated: float = 0.0
    actual: float = 0.0
    task_count: int = 0


@dataclass
class InsightSnapshot:
    """The subset of analytics the insight rules read."""

    weekly_pomodoros: int = 0
    overall_accuracy: float = 0.0
    task_count: int = 0
    sessions_count: int = 0
    most_productive_hour: Optional[int] = None
    current_streak: int = 0
    # Insertion order is task order, which fixes the order subjects are named in
    subject_effort: dict[str, SubjectEffort] = field(default_factory=dict)


InsightRule = Callable[[InsightSnapshot], Optional[str]]


def format_hour_12(hour: int) -> str:
    """
    Format an hour of day (0-23) on the 12-hour clock.

    Examples:
        0 → "12 AM", 9 → "9 AM", 12 → "12 PM", 23 → "11 PM"
    """
    meridiem = "PM" if hour >= 12 else "AM"
    return f"{(hour + 11) % 12 + 1} {meridiem}"


# =============================================================================
# Rules
# =============================================================================


def weekly_pomodoros_insight(snapshot: InsightSnapshot) -> Optional[str]:
    if snapshot.weekly_pomodoros <= 0:
        return None
    noun = "Pomodoro" if snapshot.weekly_pomodoros == 1 else "Pomodoros"
    return f"You've completed {snapshot.weekly_pomodoros} {noun} this week!"


def estimation_accuracy_insight(snapshot: InsightSnapshot) -> Optional[str]:
    """
    Warn below the low threshold, praise above the high one.

    Values in between produce nothing. A task without an estimate scores 0%
    and so counts towards the warning. Only a user with no tasks at all gets
    no message.
    """
    if snapshot.task_count == 0:
        return None
    if snapshot.overall_accuracy < settings.ACCURACY_LOW_THRESHOLD:
        return (
            "Your time estimates are often off. Try adding "
            f"{settings.ESTIMATE_BUFFER_PERCENT}% buffer time to your estimates."
        )
    if snapshot.overall_accuracy > settings.ACCURACY_HIGH_THRESHOLD:
        return "Great job! Your time estimates are very accurate."
    return None


def peak_hour_insight(snapshot: InsightSnapshot) -> Optional[str]:
    # Hour 0 is a real hour, only None means "no data"
    if snapshot.sessions_count == 0 or snapshot.most_productive_hour is None:
        return None
    hour = format_hour_12(snapshot.most_productive_hour)
    return f"Your peak productivity is around {hour}. Schedule important tasks then!"


def streak_insight(snapshot: InsightSnapshot) -> Optional[str]:
    if snapshot.current_streak <= 0:
        return None
    return f"You're on a {snapshot.current_streak}-day study streak!"


def underestimated_subjects_insight(snapshot: InsightSnapshot) -> Optional[str]:
    """
    Name every subject whose actual effort exceeds its estimate by the
    configured ratio across at least the configured number of tasks.
    """
    subjects = [
        subject
        for subject, effort in snapshot.subject_effort.items()
        if effort.task_count >= settings.UNDERESTIMATE_MIN_TASKS
        and effort.actual > effort.estimated * settings.UNDERESTIMATE_RATIO
    ]
    if not subjects:
        return None
    names = ", ".join(subjects)
    return f"You consistently underestimate {names} tasks. Consider adding more time."


INSIGHT_RULES: tuple[InsightRule, ...] = (
    weekly_pomodoros_insight,
    estimation_accuracy_insight,
    peak_hour_insight,
    streak_insight,
    underestimated_subjects_insight,
)


def generate_insights(
    snapshot: InsightSnapshot,
    rules: tuple[InsightRule, ...] = INSIGHT_RULES,
) -> list[str]:
    """Run each rule in order and collect the messages that fire."""
    insights = []
    for rule in rules:
        message = rule(snapshot)
        if message:
            insights.append(message)
    return insights
