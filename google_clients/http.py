"""
Shared HTTP plumbing for the Google API clients.

Authentication is handled elsewhere; clients are handed a ready OAuth
access token and send it as a bearer token on every request.
"""
from __future__ import annotations

import logging
import typing as t

import httpx

from planner_engine.config import GOOGLE_API_TIMEOUT
from planner_engine.errors import ExternalFetchError

logger = logging.getLogger(__name__)


class GoogleApiClient:
    """Thin async wrapper around one Google REST API."""

    def __init__(
            self,
            access_token: str,
            base_url: str,
            timeout: float = GOOGLE_API_TIMEOUT,
            transport: t.Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not access_token:
            raise ValueError("No access token provided for Google API calls.")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._headers = {"Authorization": f"Bearer {access_token}"}
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._headers,
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _get_json(self, path: str, params: t.Optional[dict[str, t.Any]] = None) -> dict[str, t.Any]:
        """GETs ``path`` and decodes the JSON body.

        :raises ExternalFetchError: On timeouts, transport errors and non-success statuses.
        """
        try:
            async with self._client() as client:
                response = await client.get(path, params=params)
                response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            raise ExternalFetchError(f"Request to {self.base_url}{path} timed out after {self.timeout} seconds") from e
        except httpx.HTTPStatusError as e:
            logger.error("Google API error body: %s", e.response.text)
            raise ExternalFetchError(
                f"Failed to fetch {self.base_url}{path}: {e.response.status_code} {e.response.reason_phrase}"
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ExternalFetchError(f"Error calling {self.base_url}{path}: {e}") from e

    async def _get_paged(self, path: str, key: str, params: t.Optional[dict[str, t.Any]] = None) -> list[dict[str, t.Any]]:
        """Collects ``key`` across all pages of a list endpoint."""
        params = dict(params or {})
        items: list[dict[str, t.Any]] = []
        while True:
            data = await self._get_json(path, params)
            items.extend(data.get(key, []) or [])
            page_token = data.get("nextPageToken")
            if not page_token:
                return items
            params["pageToken"] = page_token

    async def _post_json(self, path: str, body: dict[str, t.Any]) -> dict[str, t.Any]:
        async with self._client() as client:
            response = await client.post(path, json=body)
            response.raise_for_status()
        return response.json()
