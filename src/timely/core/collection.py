"""In-memory set of time entries and the views derived from it."""

from datetime import date, datetime, tzinfo
from typing import Any, Iterator, Optional, Union

from timely.core.clock import Instant, date_key, elapsed_seconds, parse_timestamp
from timely.core.errors import InvariantViolation
from timely.core.models import TimeEntry

Day = Union[date, datetime, str]


class EntryCollection:
    """Ordered collection of time entries.

    Only the tracking engine mutates a collection. Views are recomputed on
    every access and never cached.
    """

    def __init__(self, entries: Optional[list[TimeEntry]] = None, tz: Optional[tzinfo] = None):
        """Initialize collection.

        Args:
            entries: Initial entries (empty if None)
            tz: Zone whose calendar defines a day (UTC if None)
        """
        self._entries: list[TimeEntry] = list(entries or [])
        self.tz = tz

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[TimeEntry]:
        return iter(list(self._entries))

    @property
    def entries(self) -> list[TimeEntry]:
        """Snapshot of all entries in insertion order."""
        return list(self._entries)

    # Mutation

    def replace_all(self, entries: list[TimeEntry]) -> None:
        """Replace every entry with an authoritative set."""
        self._entries = list(entries)

    def append(self, entry: TimeEntry) -> None:
        """Add a newly created entry."""
        self._entries.append(entry)

    def replace(self, entry: TimeEntry) -> bool:
        """Replace the entry with the same id in place.

        Returns:
            True if replaced, False if no entry has that id
        """
        index = self._index_of(entry.id)
        if index is None:
            return False
        self._entries[index] = entry
        return True

    def remove(self, entry_id: Any) -> bool:
        """Remove an entry by id.

        Returns:
            True if removed, False if not found
        """
        index = self._index_of(entry_id)
        if index is None:
            return False
        del self._entries[index]
        return True

    def get(self, entry_id: Any) -> Optional[TimeEntry]:
        """Get an entry by id."""
        index = self._index_of(entry_id)
        return None if index is None else self._entries[index]

    def _index_of(self, entry_id: Any) -> Optional[int]:
        for i, entry in enumerate(self._entries):
            if entry.id == entry_id:
                return i
        return None

    # Derived views

    @property
    def running_entries(self) -> list[TimeEntry]:
        """All entries without an end."""
        return [e for e in self._entries if e.is_running]

    @property
    def active_entry(self) -> Optional[TimeEntry]:
        """The currently running entry.

        If several entries are running (the remote store has not converged
        yet), the one with the latest start wins; on equal starts the first
        one inserted is kept.
        """
        active: Optional[TimeEntry] = None
        for entry in self.running_entries:
            if active is None or parse_timestamp(entry.start) > parse_timestamp(active.start):
                active = entry
        return active

    def ensure_single_active(self) -> Optional[TimeEntry]:
        """Return the active entry, refusing to pick one among several.

        Raises:
            InvariantViolation: If more than one entry is running
        """
        running = self.running_entries
        if len(running) > 1:
            ids = ", ".join(str(e.id) for e in running)
            raise InvariantViolation(f"{len(running)} entries are running: {ids}")
        return running[0] if running else None

    def entries_on_day(self, day: Day) -> list[TimeEntry]:
        """Entries whose start falls on the given calendar day."""
        key = date_key(day, self.tz)
        return [e for e in self._entries if date_key(e.start, self.tz) == key]

    def total_duration_on_day(self, day: Day) -> int:
        """Seconds tracked by closed entries on a day.

        The running entry has no end and is left out; callers display it
        separately with ``current_active_duration``.
        """
        return sum(
            elapsed_seconds(e.start, e.end)  # type: ignore[arg-type]
            for e in self.entries_on_day(day)
            if not e.is_running
        )

    def current_active_duration(self, now: Instant) -> int:
        """Seconds the active entry has been running at ``now`` (0 if none)."""
        active = self.active_entry
        if active is None:
            return 0
        return elapsed_seconds(active.start, now)
