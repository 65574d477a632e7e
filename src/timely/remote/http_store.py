"""Remote store backed by the Timely REST API."""

import logging
from typing import Any, Optional

import httpx

from timely.core.errors import RemoteError
from timely.remote.base import RemoteStore

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://timely.edu.netlor.fr/api"


class HttpRemoteStore(RemoteStore):
    """Time entry store reached over HTTP with httpx.

    The API key is attached to every request as ``Authorization: key=<key>``.
    Obtaining and storing the key is up to the caller.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the store.

        Args:
            base_url: API root (defaults to the public Timely API)
            api_key: API key of the signed-in user, if any
            timeout: Request timeout in seconds
            transport: Custom httpx transport (tests use httpx.MockTransport)
        """
        self.base_url = (base_url or DEFAULT_BASE_URL).strip().rstrip("/")
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"key={api_key}"

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            follow_redirects=True,
            transport=transport,
        )
        logger.debug(f"Timely store initialized with base URL: {self.base_url}")

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and decode the JSON body.

        Raises:
            RemoteError: On transport failure, non-2xx status or a body
                that is not JSON
        """
        if not path.startswith("/"):
            path = f"/{path}"

        try:
            logger.debug(f"{method} {path} {kwargs.get('json') or kwargs.get('params') or ''}")
            response = await self.client.request(method, path, **kwargs)
            logger.debug(f"{method} {path} -> {response.status_code}")
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise self._status_error(method, e) from e
        except httpx.RequestError as e:
            error_msg = f"Request to {e.request.url} failed: {e}"
            logger.error(error_msg)
            raise RemoteError(error_msg) from e

        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise RemoteError(
                f"Invalid JSON in response to {method} {path}",
                status=response.status_code,
                payload=response.text,
            ) from e

    def _status_error(self, method: str, error: httpx.HTTPStatusError) -> RemoteError:
        status = error.response.status_code
        url = str(error.request.url)

        payload: Any
        try:
            payload = error.response.json()
        except ValueError:
            payload = error.response.text

        if status == 401:
            error_msg = f"Authentication failed for {url}: invalid or missing API key"
        elif status == 403:
            error_msg = f"Permission denied for {url}"
        elif status == 404:
            error_msg = f"Resource not found: {url}"
        elif status == 422:
            error_msg = f"Validation error for {method} {url}"
        else:
            error_msg = f"HTTP {status} error for {method} {url}"

        logger.error(f"{error_msg}: {payload}")
        return RemoteError(error_msg, status=status, payload=payload)

    async def list_entries(self, filters: Optional[dict[str, Any]] = None) -> list[dict[str, Any]]:
        params = {k: v for k, v in (filters or {}).items() if v is not None}
        data = await self._request("GET", "/time-entries", params=params)
        if not isinstance(data, list):
            raise RemoteError("Expected a list of time entries", payload=data)
        logger.info(f"Received {len(data)} time entries")
        return data

    async def create_entry(self, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("POST", "/time-entries", json=payload)

    async def update_entry(self, entry_id: Any, payload: dict[str, Any]) -> dict[str, Any]:
        return await self._request("PUT", f"/time-entries/{entry_id}", json=payload)

    async def stop_entry(self, entry_id: Any) -> dict[str, Any]:
        return await self._request("PATCH", f"/time-entries/{entry_id}/stop")

    async def delete_entry(self, entry_id: Any) -> None:
        await self._request("DELETE", f"/time-entries/{entry_id}")

    async def aclose(self) -> None:
        await self.client.aclose()
