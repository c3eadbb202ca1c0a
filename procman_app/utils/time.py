"""
Clock and remaining-time utilities.

This module provides the injectable clock used by the stores and the
tick scheduler, plus the formatting helpers the presentation layer uses
to render remaining time, start/end timestamps and durations.
"""

import time
from datetime import datetime, timezone, tzinfo
from typing import Protocol
from zoneinfo import ZoneInfo

MILLIS_PER_SECOND = 1_000
MILLIS_PER_MINUTE = 60_000


class Clock(Protocol):
    """Source of the current time in epoch milliseconds."""

    def now_millis(self) -> int:
        ...


class SystemClock:
    """Wall-clock time."""

    def now_millis(self) -> int:
        return time.time_ns() // 1_000_000


class ManualClock:
    """A clock that only moves when told to.

    Used to drive the tracker deterministically across completion
    boundaries.
    """

    def __init__(self, start_millis: int = 0) -> None:
        self._now = start_millis

    def now_millis(self) -> int:
        return self._now

    def set(self, millis: int) -> None:
        self._now = millis

    def advance(self, millis: int = 0, *, seconds: float = 0, minutes: float = 0) -> int:
        """Move the clock forward and return the new time."""
        self._now += millis + int(seconds * MILLIS_PER_SECOND) + int(minutes * MILLIS_PER_MINUTE)
        return self._now


def resolve_timezone(name: str) -> tzinfo:
    """
    Resolve a timezone name for display formatting.

    Args:
        name: IANA timezone name ("UTC", "Europe/Prague", ...)

    Returns:
        tzinfo instance

    Raises:
        KeyError/ValueError: if the name is unknown
    """
    if name.upper() == "UTC":
        return timezone.utc
    return ZoneInfo(name)


def split_remaining(remaining_millis: int) -> tuple[int, int]:
    """
    Split a signed remaining duration into whole minutes and seconds.

    Minutes are ``remaining // 60000`` and seconds ``(remaining % 60000) // 1000``,
    both truncated toward zero, so a negative duration yields non-positive
    parts (e.g. -61500 -> (-1, -1)).

    Args:
        remaining_millis: Signed remaining time in milliseconds

    Returns:
        Tuple of (minutes, seconds)
    """
    sign = -1 if remaining_millis < 0 else 1
    magnitude = abs(remaining_millis)

    minutes = magnitude // MILLIS_PER_MINUTE
    seconds = (magnitude % MILLIS_PER_MINUTE) // MILLIS_PER_SECOND

    return sign * minutes, sign * seconds


def format_remaining(remaining_millis: int) -> str:
    """
    Format remaining time as ``"<m>m <ss>s"``.

    Overdue instances render with a leading minus sign, e.g. ``"-2m 05s"``.
    """
    minutes, seconds = split_remaining(remaining_millis)
    sign = "-" if remaining_millis < 0 and (minutes or seconds) else ""
    return f"{sign}{abs(minutes)}m {abs(seconds):02d}s"


def remaining_whole_minutes(remaining_millis: int) -> int:
    """Whole minutes left, truncated toward zero."""
    return split_remaining(remaining_millis)[0]


def format_timestamp(
    epoch_millis: int,
    tz: tzinfo = timezone.utc,
    fmt: str = "%d.%m.%Y %H:%M"
) -> str:
    """
    Format an epoch-millisecond timestamp for display.

    Args:
        epoch_millis: Timestamp in epoch milliseconds
        tz: Display timezone
        fmt: strftime format, DD.MM.YYYY HH:mm by default

    Returns:
        Formatted timestamp string
    """
    moment = datetime.fromtimestamp(epoch_millis / MILLIS_PER_SECOND, tz=tz)
    return moment.strftime(fmt)


def format_duration(duration_minutes: int) -> str:
    """Format a duration in minutes as ``HH:MM`` (480 -> ``"08:00"``)."""
    hours, minutes = divmod(duration_minutes, 60)
    return f"{hours:02d}:{minutes:02d}"
