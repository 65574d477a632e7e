"""Tests for core data models."""

from timely.core.models import TimeEntry


class TestTimeEntry:
    """Test TimeEntry model."""

    def test_entry_creation(self) -> None:
        """Test basic entry creation."""
        entry = TimeEntry(start="2024-01-02T10:00:00Z", project_id=1, activity_id=2)

        assert entry.id is None
        assert entry.end is None
        assert entry.comment == ""
        assert entry.project is None
        assert entry.is_running is True
        assert entry.duration_seconds is None

    def test_duration_calculation(self) -> None:
        """Test duration of a closed entry."""
        entry = TimeEntry(start="2024-01-02T10:00:00Z", end="2024-01-02T11:30:15Z")

        assert entry.is_running is False
        assert entry.duration_seconds == 5415

    def test_negative_duration_is_zero(self) -> None:
        """Test that an end before start yields zero, not a negative number."""
        entry = TimeEntry(start="2024-01-02T10:00:00Z", end="2024-01-02T09:00:00Z")

        assert entry.duration_seconds == 0

    def test_from_dict_with_ids(self) -> None:
        """Test parsing a flat record."""
        entry = TimeEntry.from_dict(
            {
                "id": 7,
                "project_id": 1,
                "activity_id": 2,
                "start": "2024-01-02T10:00:00Z",
                "end": None,
                "comment": None,
            }
        )

        assert entry.id == 7
        assert entry.project_id == 1
        assert entry.activity_id == 2
        assert entry.comment == ""
        assert entry.is_running is True

    def test_from_dict_with_relations(self) -> None:
        """Test that nested relation objects fill in the ids."""
        entry = TimeEntry.from_dict(
            {
                "id": 7,
                "start": "2024-01-02T10:00:00Z",
                "end": "2024-01-02T11:00:00Z",
                "comment": "review",
                "project": {"id": 1, "name": "Website"},
                "activity": {"id": 2, "name": "Design"},
            }
        )

        assert entry.project_id == 1
        assert entry.activity_id == 2
        assert entry.project == {"id": 1, "name": "Website"}
        assert entry.activity == {"id": 2, "name": "Design"}

    def test_from_dict_empty_end_means_running(self) -> None:
        """Test that an empty end string is treated as running."""
        entry = TimeEntry.from_dict({"id": 1, "start": "2024-01-02T10:00:00Z", "end": ""})

        assert entry.end is None
        assert entry.is_running is True

    def test_to_dict(self) -> None:
        """Test wire representation."""
        entry = TimeEntry(
            id=3,
            project_id=1,
            activity_id=2,
            start="2024-01-02T10:00:00Z",
            end="2024-01-02T11:00:00Z",
            comment="notes",
        )

        assert entry.to_dict() == {
            "id": 3,
            "project_id": 1,
            "activity_id": 2,
            "start": "2024-01-02T10:00:00Z",
            "end": "2024-01-02T11:00:00Z",
            "comment": "notes",
        }

    def test_to_dict_includes_relations(self) -> None:
        """Test that relations are written back when present."""
        entry = TimeEntry(start="2024-01-02T10:00:00Z", project={"id": 1, "name": "Website"})

        assert entry.to_dict()["project"] == {"id": 1, "name": "Website"}
        assert "activity" not in entry.to_dict()
