"""Core functionality for time tracking."""

from timely.core.collection import EntryCollection
from timely.core.errors import EntryBusyError, InvariantViolation, RemoteError, TimelyError
from timely.core.models import TimeEntry
from timely.core.normalizer import normalize_timestamp
from timely.core.tracker import TimeTracker

__all__ = [
    "EntryCollection",
    "EntryBusyError",
    "InvariantViolation",
    "RemoteError",
    "TimeEntry",
    "TimelyError",
    "TimeTracker",
    "normalize_timestamp",
]
