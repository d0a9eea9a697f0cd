"""HTML page retrieval over a shared ``httpx.AsyncClient``."""

import logging
from typing import Optional

import httpx

from app.errors import NetworkError

logger = logging.getLogger(__name__)


def build_http_client(user_agent: str, timeout: float = 30.0) -> httpx.AsyncClient:
    """Create the process-wide HTTP client (connection reuse only)."""
    return httpx.AsyncClient(
        headers={"User-Agent": user_agent},
        timeout=timeout,
        follow_redirects=True,
    )


class PageFetcher:
    """Single-GET page fetcher with a fixed identifying user agent."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        user_agent: str,
        timeout: float = 30.0,
    ) -> None:
        self.client = client
        self.user_agent = user_agent
        self.timeout = timeout

    async def fetch(self, url: str, *, timeout: Optional[float] = None) -> str:
        """GET *url* and return the body text.

        Raises:
            NetworkError: On non-2xx status, timeout, or transport failure.
        """
        try:
            response = await self.client.get(
                url,
                headers={"User-Agent": self.user_agent},
                timeout=timeout or self.timeout,
            )
        except httpx.TimeoutException as e:
            raise NetworkError(f"Timeout fetching {url}", url=url) from e
        except httpx.HTTPError as e:
            raise NetworkError(f"Failed to fetch {url}: {e}", url=url) from e

        if not response.is_success:
            raise NetworkError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                url=url,
                status_code=response.status_code,
            )

        logger.debug(f"Fetched {len(response.text)} characters from {url}")
        return response.text

    async def fetch_or_empty(self, url: str, *, timeout: Optional[float] = None) -> str:
        """Like ``fetch`` but returns ``""`` when the page is unreachable."""
        try:
            return await self.fetch(url, timeout=timeout)
        except NetworkError as e:
            logger.warning(f"Skipping unreachable page {url}: {e}")
            return ""
