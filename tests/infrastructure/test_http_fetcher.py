"""Tests for HttpJsonFetcher using respx to mock HTTP calls."""
from __future__ import annotations

import httpx
import pytest
import respx

from tidykit.domain.exceptions import ApiError
from tidykit.infrastructure.http_fetcher import HttpJsonFetcher

BASE_URL = "https://api.example.test/v1/owners"


def make_fetcher() -> HttpJsonFetcher:
    return HttpJsonFetcher(BASE_URL + "/", httpx.AsyncClient())


@respx.mock
async def test_fetch_returns_json() -> None:
    route = respx.get(f"{BASE_URL}/user-42").mock(
        return_value=httpx.Response(200, json={"owns": True})
    )
    fetcher = make_fetcher()

    assert await fetcher.fetch("user-42") == {"owns": True}
    assert route.called
    assert route.calls[0].request.headers["Accept"] == "application/json"
    await fetcher.close()


@respx.mock
async def test_fetch_404_raises_api_error() -> None:
    respx.get(f"{BASE_URL}/missing").mock(return_value=httpx.Response(404))
    fetcher = make_fetcher()

    with pytest.raises(ApiError) as exc_info:
        await fetcher.fetch("missing")

    assert exc_info.value.status_code == 404
    assert "not found" in str(exc_info.value)
    await fetcher.close()


@respx.mock
async def test_fetch_500_raises_api_error() -> None:
    respx.get(f"{BASE_URL}/user-1").mock(return_value=httpx.Response(503))
    fetcher = make_fetcher()

    with pytest.raises(ApiError) as exc_info:
        await fetcher.fetch("user-1")

    assert exc_info.value.status_code == 503
    await fetcher.close()


def test_url_for_joins_without_double_slash() -> None:
    fetcher = make_fetcher()
    assert fetcher.url_for("/a/b") == f"{BASE_URL}/a/b"


async def test_create_uses_configured_timeout(monkeypatch) -> None:  # type: ignore[no-untyped-def]
    monkeypatch.setenv("TIDYKIT_HTTP_TIMEOUT", "3")
    fetcher = HttpJsonFetcher.create(BASE_URL)
    assert fetcher._http.timeout == httpx.Timeout(3.0)
    await fetcher.close()
