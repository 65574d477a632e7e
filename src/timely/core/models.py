"""Core data models for time tracking."""

from dataclasses import dataclass, field
from typing import Any, Optional

from timely.core.clock import elapsed_seconds


@dataclass
class TimeEntry:
    """One interval of tracked work, as held by the remote store.

    Attributes:
        start: When the entry started (canonical timestamp)
        project_id: Project reference
        activity_id: Activity reference
        id: Identifier assigned by the remote store (None until persisted)
        end: When the entry ended (None while running)
        comment: Free-text comment
        project: Related project object as returned by the remote store
        activity: Related activity object as returned by the remote store
    """

    start: str
    project_id: Any = None
    activity_id: Any = None
    id: Any = None
    end: Optional[str] = None
    comment: str = ""
    project: Optional[dict[str, Any]] = field(default=None, compare=False)
    activity: Optional[dict[str, Any]] = field(default=None, compare=False)

    @property
    def is_running(self) -> bool:
        """Check if this entry is currently running."""
        return not self.end

    @property
    def duration_seconds(self) -> Optional[int]:
        """Calculate duration in seconds. Returns None if entry is ongoing."""
        if self.is_running:
            return None
        return elapsed_seconds(self.start, self.end)  # type: ignore[arg-type]

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire representation."""
        data: dict[str, Any] = {
            "id": self.id,
            "project_id": self.project_id,
            "activity_id": self.activity_id,
            "start": self.start,
            "end": self.end,
            "comment": self.comment,
        }
        if self.project is not None:
            data["project"] = self.project
        if self.activity is not None:
            data["activity"] = self.activity
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TimeEntry":
        """Create TimeEntry from a remote store record.

        Relations may come back either as ``*_id`` keys or as nested objects;
        both are accepted.
        """
        project = data.get("project") if isinstance(data.get("project"), dict) else None
        activity = data.get("activity") if isinstance(data.get("activity"), dict) else None

        project_id = data.get("project_id")
        if project_id is None and project is not None:
            project_id = project.get("id")
        activity_id = data.get("activity_id")
        if activity_id is None and activity is not None:
            activity_id = activity.get("id")

        return cls(
            id=data.get("id"),
            project_id=project_id,
            activity_id=activity_id,
            start=data["start"],
            end=data.get("end") or None,
            comment=data.get("comment") or "",
            project=project,
            activity=activity,
        )
