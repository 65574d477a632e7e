"""Normalize timestamps into the canonical wire format.

The remote store expects ``YYYY-MM-DDTHH:MM:SSZ`` for every timestamp it
receives. Input that already carries a ``T`` time separator is reshaped
without any conversion: sub-second digits and zone offsets are cut off and
a ``Z`` is appended, so ``2024-01-02T03:04:05.999+02:00`` becomes
``2024-01-02T03:04:05Z``. Downstream consumers rely on this, so the offset
is deliberately not applied. Anything else is parsed as a point in time and
converted to UTC.
"""

import re
from datetime import datetime, timezone
from typing import Optional, Union

CANONICAL_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_CANONICAL_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z$")
_DATE_ONLY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_CUT_RE = re.compile(r"[Z.+-]")


def is_canonical(value: Optional[str]) -> bool:
    """Check whether a string already has the exact canonical shape."""
    return bool(value and _CANONICAL_RE.match(value))


def normalize_timestamp(value: Union[str, datetime, None]) -> Optional[str]:
    """Convert a timestamp into the canonical wire format.

    Args:
        value: Canonical or ISO-like string, local date/time string, or datetime

    Returns:
        Canonical timestamp, or None when value is None or empty (the field
        should then be left out of the outgoing payload)

    Raises:
        ValueError: If a string without time separator cannot be parsed
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        # Naive datetimes are local wall-clock time
        return value.astimezone(timezone.utc).strftime(CANONICAL_FORMAT)

    if not value:
        return None
    if is_canonical(value):
        return value

    if "T" in value:
        parts = value.split("T")
        if len(parts) != 2:
            return value
        date_part, time_part = parts
        time_part = _TIME_CUT_RE.split(time_part, maxsplit=1)[0]
        return f"{date_part}T{time_part}Z"

    text = value.strip()
    if _DATE_ONLY_RE.match(text):
        parsed = datetime.strptime(text, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    else:
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            raise ValueError(f"Invalid timestamp: {value!r}")
    # astimezone() treats naive values as local time
    return parsed.astimezone(timezone.utc).strftime(CANONICAL_FORMAT)
