"""Exceptions raised by the tracking engine and the remote store adapter."""

from typing import Any, Optional


class TimelyError(Exception):
    """Base class for all Timely errors."""


class RemoteError(TimelyError):
    """A remote store call failed.

    Raised for transport failures (no response) and for non-2xx responses.

    Attributes:
        status: HTTP status code, or None when no response was received
        payload: Decoded JSON body of the error response, raw text when the
            body is not JSON, or None
    """

    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status = status
        self.payload = payload

    @property
    def errors(self) -> Optional[Any]:
        """Structured validation details sent by the remote store, if any."""
        if isinstance(self.payload, dict):
            return self.payload.get("errors")
        return None


class InvariantViolation(TimelyError):
    """More than one entry is running and the caller refuses to reconcile it."""


class EntryBusyError(TimelyError):
    """A mutating call was issued for an entry that already has one in flight."""

    def __init__(self, entry_id: Any):
        super().__init__(f"Another operation is already in progress for entry {entry_id}")
        self.entry_id = entry_id
