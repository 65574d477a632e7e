"""Remote store adapters for the Timely API."""

from timely.remote.base import RemoteStore
from timely.remote.http_store import HttpRemoteStore

__all__ = ["RemoteStore", "HttpRemoteStore"]
