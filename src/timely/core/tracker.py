"""Core time tracking engine."""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator, Optional, Union

from timely.core.clock import Instant, date_key, now as clock_now, parse_timestamp
from timely.core.collection import Day, EntryCollection
from timely.core.errors import EntryBusyError, RemoteError
from timely.core.models import TimeEntry
from timely.core.normalizer import normalize_timestamp
from timely.remote.base import RemoteStore

logger = logging.getLogger(__name__)

Timestamp = Union[str, datetime, None]
CommentSnapshot = tuple[Any, Optional[str]]


class TimeTracker:
    """Keeps a local view of time entries in step with a remote store.

    Every operation calls the remote store first and touches the local
    collection only once the call has succeeded; a failed call leaves the
    collection exactly as it was and re-raises ``RemoteError``.

    Operations issued concurrently are not serialized. If ``update`` and
    ``stop`` overlap on one entry, whichever response arrives last decides
    the final local state. Pass ``guard_in_flight=True`` to reject a second
    mutating call on an entry while one is outstanding.
    """

    def __init__(
        self,
        remote: RemoteStore,
        collection: Optional[EntryCollection] = None,
        refetch_after_update: bool = True,
        guard_in_flight: bool = False,
    ):
        """Initialize time tracker.

        Args:
            remote: Remote store the entries live in
            collection: Collection to manage. Creates an empty one if None.
            refetch_after_update: Reload all entries after an update so that
                relations computed by the remote store are present. When
                False the update response is spliced in place.
            guard_in_flight: Reject overlapping mutations of the same entry
        """
        self.remote = remote
        self.entries = collection if collection is not None else EntryCollection()
        self.refetch_after_update = refetch_after_update
        self.guard_in_flight = guard_in_flight
        self.loading = False
        self.last_filters: dict[str, Any] = {}
        self._in_flight: set[Any] = set()

    # Operations

    async def fetch(self, filters: Optional[dict[str, Any]] = None) -> list[TimeEntry]:
        """Reload all entries from the remote store.

        A comment typed on the running entry lives only in the local
        collection until the entry is stopped or updated, so it is carried
        over onto the refreshed entry when that entry is still running.

        Args:
            filters: Query filters such as ``from``, ``to`` or ``project_id``

        Returns:
            The refreshed entries
        """
        return await self._fetch(filters or {}, self._comment_snapshot())

    async def start(self, project_id: Any, activity_id: Any, comment: str = "") -> TimeEntry:
        """Start tracking. The remote store sets the start time to now.

        Returns:
            Created entry
        """
        payload = {"project_id": project_id, "activity_id": activity_id, "comment": comment}
        try:
            record = await self.remote.create_entry(payload)
        except RemoteError as e:
            logger.error(f"Failed to start tracking: {e}")
            raise

        entry = TimeEntry.from_dict(record)
        self.entries.append(entry)
        logger.info(f"Started entry {entry.id} (project {project_id}, activity {activity_id})")
        return entry

    async def create_past(
        self,
        project_id: Any,
        activity_id: Any,
        start: Timestamp,
        end: Timestamp,
        comment: str = "",
    ) -> TimeEntry:
        """Record a finished interval after the fact.

        Returns:
            Created entry

        Raises:
            ValueError: If a bound is missing or end is before start
        """
        start_ts = normalize_timestamp(start)
        end_ts = normalize_timestamp(end)
        if start_ts is None or end_ts is None:
            raise ValueError("Both start and end are required for a past entry")
        if parse_timestamp(end_ts) < parse_timestamp(start_ts):
            raise ValueError("end must not be before start")

        payload = {
            "project_id": project_id,
            "activity_id": activity_id,
            "start": start_ts,
            "end": end_ts,
            "comment": comment,
        }
        try:
            record = await self.remote.create_entry(payload)
        except RemoteError as e:
            logger.error(f"Failed to add past entry: {e}")
            raise

        entry = TimeEntry.from_dict(record)
        self.entries.append(entry)
        logger.info(f"Added entry {entry.id} from {start_ts} to {end_ts}")
        return entry

    async def update(
        self,
        entry_id: Any,
        project_id: Any,
        activity_id: Any,
        start: Timestamp,
        end: Timestamp = None,
        comment: Optional[str] = "",
    ) -> TimeEntry:
        """Replace every field of an entry.

        ``end`` is only sent when given, so updating a running entry does
        not close or clear it.

        Returns:
            Updated entry

        Raises:
            ValueError: If start is missing
            EntryBusyError: If the in-flight guard is on and the entry is busy
        """
        with self._claim(entry_id):
            return await self._update(entry_id, project_id, activity_id, start, end, comment)

    def set_active_comment(self, comment: str) -> Optional[TimeEntry]:
        """Change the running entry's comment locally, without a remote call.

        The comment reaches the remote store when the entry is stopped or
        updated.

        Returns:
            The active entry, or None if nothing is running
        """
        active = self.entries.active_entry
        if active is not None:
            active.comment = comment
        return active

    async def stop(self, entry_id: Any) -> TimeEntry:
        """Stop a running entry. The remote store sets the end time to now.

        The stop endpoint takes no comment, so a local comment the remote
        store does not have yet is saved with a follow-up update.

        Returns:
            Stopped entry
        """
        with self._claim(entry_id):
            try:
                record = await self.remote.stop_entry(entry_id)
            except RemoteError as e:
                logger.error(f"Failed to stop entry {entry_id}: {e}")
                raise

            stopped = TimeEntry.from_dict(record)
            local = self.entries.get(entry_id)
            if local is not None and local.comment and local.comment != stopped.comment:
                logger.debug(f"Saving pending comment of entry {entry_id}")
                return await self._update(
                    entry_id,
                    stopped.project_id,
                    stopped.activity_id,
                    stopped.start,
                    stopped.end,
                    local.comment,
                )

            self.entries.replace(stopped)
            logger.info(f"Stopped entry {entry_id}")
            return stopped

    async def delete(self, entry_id: Any) -> bool:
        """Delete an entry.

        Returns:
            True if the entry was in the local collection
        """
        with self._claim(entry_id):
            try:
                await self.remote.delete_entry(entry_id)
            except RemoteError as e:
                logger.error(f"Failed to delete entry {entry_id}: {e}")
                raise

            logger.info(f"Deleted entry {entry_id}")
            return self.entries.remove(entry_id)

    # Views

    @property
    def active_entry(self) -> Optional[TimeEntry]:
        """Currently running entry, if any."""
        return self.entries.active_entry

    def entries_on_day(self, day: Day) -> list[TimeEntry]:
        return self.entries.entries_on_day(day)

    def total_duration_on_day(self, day: Day) -> int:
        return self.entries.total_duration_on_day(day)

    def current_active_duration(self, now: Optional[Instant] = None) -> int:
        """Seconds the active entry has been running (0 if none)."""
        return self.entries.current_active_duration(now or clock_now())

    def today_entries(self, now: Optional[Instant] = None) -> list[TimeEntry]:
        return self.entries.entries_on_day(self._today(now))

    def total_today_seconds(self, now: Optional[Instant] = None) -> int:
        """Seconds tracked today by finished entries."""
        return self.entries.total_duration_on_day(self._today(now))

    # Internals

    def _today(self, now: Optional[Instant]) -> Any:
        return date_key(now or clock_now(), self.entries.tz)

    def _comment_snapshot(self) -> CommentSnapshot:
        active = self.entries.active_entry
        if active is None:
            return None, None
        return active.id, active.comment

    async def _fetch(self, filters: dict[str, Any], snapshot: CommentSnapshot) -> list[TimeEntry]:
        self.loading = True
        try:
            records = await self.remote.list_entries(filters)
        except RemoteError as e:
            logger.error(f"Failed to load time entries: {e}")
            raise
        finally:
            self.loading = False

        self.entries.replace_all([TimeEntry.from_dict(r) for r in records])
        self.last_filters = dict(filters)

        pending_id, pending_comment = snapshot
        if pending_id is not None and pending_comment:
            refreshed = self.entries.get(pending_id)
            if refreshed is not None and refreshed.is_running:
                refreshed.comment = pending_comment

        logger.debug(f"Loaded {len(self.entries)} time entries")
        return self.entries.entries

    async def _update(
        self,
        entry_id: Any,
        project_id: Any,
        activity_id: Any,
        start: Timestamp,
        end: Timestamp,
        comment: Optional[str],
    ) -> TimeEntry:
        start_ts = normalize_timestamp(start)
        if start_ts is None:
            raise ValueError("start is required to update an entry")

        payload: dict[str, Any] = {
            "project_id": project_id,
            "activity_id": activity_id,
            "start": start_ts,
            "comment": "" if comment is None else comment,
        }
        end_ts = normalize_timestamp(end)
        if end_ts is not None:
            payload["end"] = end_ts

        logger.debug(f"PUT /time-entries/{entry_id} {payload}")
        try:
            record = await self.remote.update_entry(entry_id, payload)
        except RemoteError as e:
            logger.error(f"Failed to update entry {entry_id}: {e}")
            if e.errors:
                logger.error(f"Validation details: {e.errors}")
            raise

        updated = TimeEntry.from_dict(record)
        if not self.refetch_after_update:
            self.entries.replace(updated)
            return updated

        # The comment just sent is the one to keep if the entry is still running
        snapshot = self._comment_snapshot()
        if snapshot[0] == entry_id:
            snapshot = (entry_id, payload["comment"])
        try:
            await self._fetch(self.last_filters, snapshot)
        except RemoteError as e:
            # The update itself went through; keep its response
            logger.warning(f"Reload after updating entry {entry_id} failed: {e}")
            self.entries.replace(updated)
            return updated
        return self.entries.get(entry_id) or updated

    @contextmanager
    def _claim(self, entry_id: Any) -> Iterator[None]:
        if not self.guard_in_flight:
            yield
            return
        if entry_id in self._in_flight:
            raise EntryBusyError(entry_id)
        self._in_flight.add(entry_id)
        try:
            yield
        finally:
            self._in_flight.discard(entry_id)
