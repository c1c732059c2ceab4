"""Fetch transport tests with httpx.AsyncClient mocked out."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from app.config import settings
from app.services.fetcher import BROWSER_HEADERS, TransportError, fetch_page

TARGET = "https://stats.example/rider/mathieu-van-der-poel"


def _mock_client(resp=None, side_effect=None) -> tuple[MagicMock, AsyncMock]:
    client = AsyncMock()
    client.get = AsyncMock(return_value=resp, side_effect=side_effect)
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    factory = MagicMock(return_value=client)
    return factory, client


def _mock_response(text: str = "<html></html>", status_code: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.text = text
    resp.raise_for_status = MagicMock()
    return resp


@pytest.fixture
def no_proxy(monkeypatch):
    monkeypatch.setattr(settings, "scraper_api_key", "")


@pytest.fixture
def with_proxy(monkeypatch):
    monkeypatch.setattr(settings, "scraper_api_key", "secret-key")
    monkeypatch.setattr(settings, "scraper_api_url", "https://proxy.example/api/v1/")


@pytest.mark.asyncio
async def test_direct_fetch_uses_browser_headers(no_proxy):
    factory, client = _mock_client(_mock_response("<html>rider</html>"))

    with patch("app.services.fetcher.httpx.AsyncClient", factory):
        html = await fetch_page(TARGET, timeout=15)

    assert html == "<html>rider</html>"
    client.get.assert_awaited_once_with(TARGET, params={})
    kwargs = factory.call_args.kwargs
    assert kwargs["timeout"] == 15
    assert kwargs["headers"]["User-Agent"] == BROWSER_HEADERS["User-Agent"]
    assert kwargs["headers"]["Referer"] == "https://stats.example/"


@pytest.mark.asyncio
async def test_proxy_fetch_passes_target_and_disables_rendering(with_proxy):
    factory, client = _mock_client(_mock_response())

    with patch("app.services.fetcher.httpx.AsyncClient", factory):
        await fetch_page(TARGET)

    client.get.assert_awaited_once_with(
        "https://proxy.example/api/v1/",
        params={"api_key": "secret-key", "url": TARGET, "render_js": "false"},
    )
    assert factory.call_args.kwargs["timeout"] == settings.fetch_timeout


@pytest.mark.asyncio
async def test_non_success_status_raises_transport_error(no_proxy):
    request = httpx.Request("GET", TARGET)
    resp = _mock_response(status_code=403)
    resp.raise_for_status.side_effect = httpx.HTTPStatusError(
        "forbidden", request=request, response=httpx.Response(403, request=request)
    )
    factory, _ = _mock_client(resp)

    with patch("app.services.fetcher.httpx.AsyncClient", factory):
        with pytest.raises(TransportError) as exc:
            await fetch_page(TARGET)

    assert exc.value.url == TARGET
    assert exc.value.reason == "HTTP 403"


@pytest.mark.asyncio
async def test_timeout_raises_transport_error(no_proxy):
    factory, _ = _mock_client(side_effect=httpx.ReadTimeout("slow"))

    with patch("app.services.fetcher.httpx.AsyncClient", factory):
        with pytest.raises(TransportError, match="timed out after 20s"):
            await fetch_page(TARGET, timeout=20)


@pytest.mark.asyncio
async def test_network_error_raises_transport_error(no_proxy):
    factory, _ = _mock_client(side_effect=httpx.ConnectError("refused"))

    with patch("app.services.fetcher.httpx.AsyncClient", factory):
        with pytest.raises(TransportError, match="ConnectError"):
            await fetch_page(TARGET)
