"""Contract between the tracking engine and the remote record store."""

from abc import ABC, abstractmethod
from typing import Any, Optional


class RemoteStore(ABC):
    """Abstract base class for remote time entry stores.

    Every method raises ``RemoteError`` when the call fails. Records are
    plain dictionaries in the wire shape.
    """

    @abstractmethod
    async def list_entries(self, filters: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        """Fetch the entries matching the filters."""

    @abstractmethod
    async def create_entry(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Create an entry. Without ``start`` the store starts it now."""

    @abstractmethod
    async def update_entry(self, entry_id: Any, payload: dict[str, Any]) -> dict[str, Any]:
        """Replace an entry. The payload must carry every field."""

    @abstractmethod
    async def stop_entry(self, entry_id: Any) -> dict[str, Any]:
        """Stop a running entry. The store sets ``end`` to its own now."""

    @abstractmethod
    async def delete_entry(self, entry_id: Any) -> None:
        """Delete an entry."""

    async def aclose(self) -> None:
        """Release resources held by the store."""

    async def __aenter__(self) -> "RemoteStore":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
