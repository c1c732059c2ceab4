from __future__ import annotations

import logging
from typing import Any

import httpx

from app.config import settings

logger = logging.getLogger(__name__)

# The statistics site blocks obvious bots; look like a desktop browser
BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
}


class TransportError(Exception):
    """Page could not be retrieved (network, timeout or non-2xx status)."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


async def fetch_page(url: str, timeout: float | None = None) -> str:
    """Fetch raw markup for *url*, through the bypass proxy when configured.

    Fails fast with TransportError; retrying is the caller's decision.
    """
    timeout = timeout if timeout is not None else settings.fetch_timeout
    if settings.scraper_api_key:
        request_url = settings.scraper_api_url
        params: dict[str, Any] = {
            "api_key": settings.scraper_api_key,
            "url": url,
            # Target is server-rendered, skip the proxy's headless browser
            "render_js": "false",
        }
        headers: dict[str, str] = {}
        via = "proxy"
    else:
        request_url = url
        params = {}
        headers = {**BROWSER_HEADERS, "Referer": _site_root(url)}
        via = "direct"

    try:
        async with httpx.AsyncClient(
            follow_redirects=True, timeout=timeout, headers=headers
        ) as client:
            resp = await client.get(request_url, params=params)
            resp.raise_for_status()
            html = resp.text
    except httpx.HTTPStatusError as e:
        raise TransportError(url, f"HTTP {e.response.status_code}") from e
    except httpx.TimeoutException as e:
        raise TransportError(url, f"timed out after {timeout:.0f}s") from e
    except httpx.HTTPError as e:
        raise TransportError(url, f"{type(e).__name__}: {e}") from e

    logger.info("Fetched %s via %s (%d chars)", url, via, len(html))
    return html


def _site_root(url: str) -> str:
    parsed = httpx.URL(url)
    return f"{parsed.scheme}://{parsed.host}/"
