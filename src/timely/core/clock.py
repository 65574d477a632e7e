"""Time utilities: current time, elapsed durations and day keys.

Everything here is a pure function. Live displays re-invoke
``elapsed_seconds`` against a fresh ``now()`` on their own timer.
"""

import math
from datetime import date, datetime, timezone, tzinfo
from typing import Optional, Union

Instant = Union[str, datetime]


def now() -> datetime:
    """Return the current instant as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Instant) -> datetime:
    """Parse a wire timestamp into an aware datetime.

    Args:
        value: ISO-8601 string (a trailing ``Z`` is accepted) or datetime

    Returns:
        Aware datetime. Naive values are taken as UTC, since wire
        timestamps are UTC-labeled.

    Raises:
        ValueError: If the string is not a valid ISO-8601 timestamp
    """
    if isinstance(value, datetime):
        dt = value
    else:
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def elapsed_seconds(start: Instant, end: Instant) -> int:
    """Whole seconds between two instants, never negative.

    Args:
        start: Beginning of the interval
        end: End of the interval

    Returns:
        floor(end - start) in seconds, clamped to 0
    """
    delta = parse_timestamp(end) - parse_timestamp(start)
    return max(0, math.floor(delta.total_seconds()))


def date_key(instant: Union[Instant, date], tz: Optional[tzinfo] = None) -> date:
    """Calendar day of an instant, used to partition entries by day.

    Args:
        instant: Instant to key. A date or a ``YYYY-MM-DD`` string is
            already a day and is returned as is.
        tz: Zone whose calendar defines the day (UTC if None)

    Returns:
        The date of ``instant`` in ``tz``
    """
    if isinstance(instant, date) and not isinstance(instant, datetime):
        return instant
    if isinstance(instant, str) and len(instant.strip()) == 10:
        return date.fromisoformat(instant.strip())
    return parse_timestamp(instant).astimezone(tz or timezone.utc).date()


def format_duration(seconds: Optional[int]) -> str:
    """Format a duration for a running timer display.

    Returns ``MM:SS``, or ``HH:MM:SS`` once an hour is reached. Missing or
    non-positive durations render as ``0m``.
    """
    if not seconds or seconds < 0:
        return "0m"

    hours = seconds // 3600
    minutes = (seconds % 3600) // 60
    secs = seconds % 60

    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_date(
    value: Union[Instant, date, None],
    tz: Optional[tzinfo] = None,
    fmt: str = "%d/%m/%Y",
) -> str:
    """Format an instant as DD/MM/YYYY in the given zone.

    A date is already a calendar day and is formatted without conversion.
    """
    if not value:
        return ""
    return date_key(value, tz).strftime(fmt)


def format_datetime(value: Optional[Instant], tz: Optional[tzinfo] = None) -> str:
    """Format an instant as DD/MM/YYYY HH:MM in the given zone."""
    if not value:
        return ""
    return parse_timestamp(value).astimezone(tz or timezone.utc).strftime("%d/%m/%Y %H:%M")
