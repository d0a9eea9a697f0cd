"""Recursive sitemap and sitemap-index parsing."""

import logging
from dataclasses import dataclass, field
from typing import Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup

from app.errors import NetworkError
from app.services.page_fetcher import PageFetcher
from app.services.progress import ProgressPublisher
from app.services.validation.constants import (
    SITEMAP_FETCH_TIMEOUT_SECONDS,
    SITEMAP_MAX_DEPTH,
)
from app.services.validation.domains import DomainConfig

logger = logging.getLogger(__name__)

PHASE = "sitemap-parsing"


@dataclass
class SitemapParseResult:
    urls: list[str] = field(default_factory=list)
    nested_sitemaps: int = 0


def is_http_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def url_path(value: str) -> str:
    """Path component of a sitemap entry; bare paths pass through."""
    if is_http_url(value):
        return urlparse(value).path or "/"
    return value


def _locs(soup: BeautifulSoup, entry_tag: str) -> list[str]:
    locs = []
    for entry in soup.find_all(entry_tag):
        loc = entry.find("loc")
        if loc is None:
            continue
        value = loc.get_text().strip()
        if value:
            locs.append(value)
    return locs


class SitemapParser:
    """Flattens a sitemap (and any nested sitemap indexes) into page URLs.

    Nested indexes are followed up to ``max_depth`` levels and each sitemap
    URL is fetched at most once per parse, so cyclic indexes terminate.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        *,
        max_depth: int = SITEMAP_MAX_DEPTH,
        timeout: float = SITEMAP_FETCH_TIMEOUT_SECONDS,
    ) -> None:
        self.fetcher = fetcher
        self.max_depth = max_depth
        self.timeout = timeout

    async def parse(
        self, sitemap_url: str, progress: Optional[ProgressPublisher] = None
    ) -> SitemapParseResult:
        result = await self._parse(sitemap_url, progress, 0, set())
        if progress:
            await progress.progress(
                f"Sitemap parsing complete: {len(result.urls)} unique URLs found", PHASE
            )
        logger.info(
            f"Parsed {sitemap_url}: {len(result.urls)} URLs, "
            f"{result.nested_sitemaps} nested sitemaps"
        )
        return result

    async def doc_paths(self, config: DomainConfig) -> list[str]:
        """Documentation paths listed in the domain's sitemap, in sitemap order."""
        result = await self.parse(config.sitemap_url)
        paths = [url_path(url) for url in result.urls]
        doc_paths = [p for p in dict.fromkeys(paths) if config.is_doc_path(p)]
        logger.info(
            f"Found {len(doc_paths)} documentation URLs from {len(paths)} total URLs"
        )
        return doc_paths

    async def _parse(
        self,
        sitemap_url: str,
        progress: Optional[ProgressPublisher],
        depth: int,
        seen: set[str],
    ) -> SitemapParseResult:
        if depth > self.max_depth or sitemap_url in seen:
            return SitemapParseResult()
        seen.add(sitemap_url)

        try:
            if progress:
                await progress.progress(f"Fetching sitemap: {sitemap_url}", PHASE)
            xml = await self.fetcher.fetch(sitemap_url, timeout=self.timeout)
        except NetworkError as e:
            logger.error(f"Error parsing sitemap {sitemap_url}: {e}")
            if progress:
                await progress.error(f"Failed to parse sitemap: {sitemap_url} - {e}")
            return SitemapParseResult()

        soup = BeautifulSoup(xml, "xml")
        urls: list[str] = []
        nested = 0

        for nested_url in _locs(soup, "sitemap"):
            child = await self._parse(nested_url, progress, depth + 1, seen)
            urls.extend(child.urls)
            nested += 1 + child.nested_sitemaps

        urls.extend(u for u in _locs(soup, "url") if is_http_url(u))

        return SitemapParseResult(urls=list(dict.fromkeys(urls)), nested_sitemaps=nested)
