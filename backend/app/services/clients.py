"""Process-level HTTP client used for connection reuse only."""

from typing import Optional

import httpx

from app.config import get_settings
from app.services.page_fetcher import build_http_client

_http_client: Optional[httpx.AsyncClient] = None


def get_http_client() -> httpx.AsyncClient:
    """Get the shared ``httpx.AsyncClient``."""
    global _http_client
    if _http_client is None or _http_client.is_closed:
        settings = get_settings()
        _http_client = build_http_client(settings.user_agent, settings.page_fetch_timeout)
    return _http_client


async def close_http_client() -> None:
    """Close the shared client (application shutdown)."""
    global _http_client
    if _http_client is not None:
        await _http_client.aclose()
        _http_client = None
