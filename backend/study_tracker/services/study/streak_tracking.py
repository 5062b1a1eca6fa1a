"""
Study Streak and Daily Activity Helpers

Calendar-day logic shared by the analytics service:
- Current study streak over a bounded lookback window
- Fixed-size daily study-time buckets for the last N days
- Local-time conversion for day and hour bucketing

All functions are pure; callers pass "today" explicitly so results are
reproducible.

Usage:
    from study_tracker.services.study.streak_tracking import (
        calculate_current_streak,
        build_daily_buckets,
    )

    streak = calculate_current_streak(study_dates, today, lookback_days=30)
"""

from collections.abc import Iterable
from datetime import date, datetime, timedelta, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from study_tracker.db.models import ensure_utc


def resolve_timezone(name: str) -> Optional[tzinfo]:
    """
    Resolve the configured analytics timezone.

    Args:
        name: IANA zone name, or empty for the server's local zone.

    Returns:
        ZoneInfo for the name, or None meaning server local time.
    """
    if not name:
        return None
    return ZoneInfo(name)


def to_local(value: datetime, tz: Optional[tzinfo]) -> datetime:
    """
    Convert a stored timestamp to the bucketing timezone.

    Naive values are treated as UTC. tz=None converts to the server's
    local zone.
    """
    return ensure_utc(value).astimezone(tz)


def calculate_current_streak(
    study_dates: Iterable[date], today: date, lookback_days: int = 30
) -> int:
    """
    Count consecutive study days ending today.

    Scans backward from today for at most lookback_days days. Each day with
    at least one session extends the streak. A day without sessions ends
    the scan, except today: not having studied yet today keeps the streak
    from the previous days alive.

    Args:
        study_dates: Calendar dates on which a completed session started.
        today: Reference date for the scan.
        lookback_days: Maximum number of days to examine, including today.

    Returns:
        int: Length of the current streak in days.
    """
    dates = set(study_dates)
    streak = 0

    for offset in range(lookback_days):
        day = today - timedelta(days=offset)
        if day in dates:
            streak += 1
        elif offset == 0:
            continue
        else:
            break

    return streak


def recent_days(today: date, days: int) -> list[date]:
    """Return the last ``days`` calendar dates ending today, oldest first."""
    return [today - timedelta(days=offset) for offset in range(days - 1, -1, -1)]


def build_daily_buckets(
    entries: Iterable[tuple[date, float]], today: date, days: int = 7
) -> dict[str, float]:
    """
    Sum hours per calendar day over a fixed window.

    The result always has exactly ``days`` keys (ISO dates, oldest first),
    each starting at 0. Entries outside the window are ignored, not clipped
    into the nearest bucket.

    Args:
        entries: (date, hours) pairs.
        today: Last day of the window.
        days: Window length including today.

    Returns:
        dict[str, float]: ISO date → hours studied.
    """
    buckets = {day.isoformat(): 0.0 for day in recent_days(today, days)}
    for day, hours in entries:
        key = day.isoformat()
        if key in buckets:
            buckets[key] += hours
    return buckets
