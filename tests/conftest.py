"""Pytest configuration and shared fixtures."""

import asyncio
from typing import Any, Optional

import pytest  # type: ignore[import-not-found]

from timely.core.collection import EntryCollection
from timely.core.errors import RemoteError
from timely.core.tracker import TimeTracker
from timely.remote.base import RemoteStore


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest."""
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "slow: Slow tests")


class FakeRemoteStore(RemoteStore):
    """In-memory remote store that records every call.

    ``now`` is the server clock used for starts and stops. Operation names
    listed in ``fail_on`` raise ``RemoteError``. When ``gate`` is set, stop
    calls wait for it before answering.
    """

    def __init__(self) -> None:
        self.records: dict[int, dict[str, Any]] = {}
        self.calls: list[tuple[Any, ...]] = []
        self.next_id = 1
        self.now = "2024-01-02T10:00:00Z"
        self.fail_on: set[str] = set()
        self.gate: Optional[asyncio.Event] = None

    def seed(self, **record: Any) -> dict[str, Any]:
        """Put a record on the server without going through the API."""
        entry = {
            "id": self.next_id,
            "project_id": 1,
            "activity_id": 2,
            "start": self.now,
            "end": None,
            "comment": "",
        }
        entry.update(record)
        self.records[entry["id"]] = entry
        self.next_id = max(self.next_id, entry["id"]) + 1
        return entry

    def _check(self, operation: str) -> None:
        if operation in self.fail_on:
            raise RemoteError(
                f"{operation} failed",
                status=422,
                payload={"errors": {"start": ["is invalid"]}},
            )

    def _get(self, entry_id: Any) -> dict[str, Any]:
        if entry_id not in self.records:
            raise RemoteError(f"Resource not found: {entry_id}", status=404)
        return self.records[entry_id]

    async def list_entries(self, filters: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        self.calls.append(("list", dict(filters or {})))
        self._check("list")
        return [dict(r) for r in self.records.values()]

    async def create_entry(self, payload: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("create", dict(payload)))
        self._check("create")
        record = self.seed(
            id=self.next_id,
            project_id=payload["project_id"],
            activity_id=payload["activity_id"],
            start=payload.get("start") or self.now,
            end=payload.get("end"),
            comment=payload.get("comment", ""),
        )
        return dict(record)

    async def update_entry(self, entry_id: Any, payload: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("update", entry_id, dict(payload)))
        self._check("update")
        record = self._get(entry_id)
        record.update(payload)
        return dict(record)

    async def stop_entry(self, entry_id: Any) -> dict[str, Any]:
        self.calls.append(("stop", entry_id))
        if self.gate is not None:
            await self.gate.wait()
        self._check("stop")
        record = self._get(entry_id)
        record["end"] = self.now
        return dict(record)

    async def delete_entry(self, entry_id: Any) -> None:
        self.calls.append(("delete", entry_id))
        self._check("delete")
        self._get(entry_id)
        del self.records[entry_id]

    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def remote() -> FakeRemoteStore:
    """Create an empty fake remote store."""
    return FakeRemoteStore()


@pytest.fixture
def tracker(remote: FakeRemoteStore) -> TimeTracker:
    """Create a tracker bound to the fake remote store."""
    return TimeTracker(remote, EntryCollection())
