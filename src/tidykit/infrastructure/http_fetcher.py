from __future__ import annotations

from typing import Any

import httpx

from tidykit import config
from tidykit.domain.exceptions import ApiError

DEFAULT_HEADERS = {"Accept": "application/json"}


class HttpJsonFetcher:
    """Fetches JSON documents addressed by a key below a base URL.

    A single httpx.AsyncClient is reused for every request.
    """

    def __init__(self, base_url: str, http_client: httpx.AsyncClient) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = http_client

    @classmethod
    def create(cls, base_url: str) -> HttpJsonFetcher:
        """Build a fetcher with its own client, timeout taken from TIDYKIT_HTTP_TIMEOUT."""
        http_client = httpx.AsyncClient(timeout=config.http_timeout(), follow_redirects=True)
        return cls(base_url, http_client)

    def url_for(self, key: str) -> str:
        return f"{self._base_url}/{key.lstrip('/')}"

    async def fetch(self, key: str) -> Any:
        """GET {base_url}/{key} and return the decoded JSON body."""
        response = await self._http.get(self.url_for(key), headers=DEFAULT_HEADERS)
        self._raise_for_status(response)
        return response.json()

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Raise ApiError for non-2xx responses."""
        if response.status_code == 404:
            raise ApiError(404, f"Resource not found (404): {response.url}")
        if response.status_code >= 400:
            raise ApiError(response.status_code)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._http.aclose()
