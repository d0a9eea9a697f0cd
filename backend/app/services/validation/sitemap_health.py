"""Domain-level sitemap health: parse the sitemap, probe every doc URL, cache.

Results are cached per domain and reused by later validation runs. Any
failure yields ``None`` so a broken sitemap never fails a validation.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from app.errors import CacheError
from app.models.ingestion import LinkCandidate
from app.models.validation import SitemapHealthSummary
from app.services.ingestion.link_validator import LinkValidator
from app.services.progress import ProgressPublisher
from app.services.storage import ArtifactStore, sitemap_health_path
from app.services.validation.domains import get_domain_config
from app.services.validation.sitemap import SitemapParser, url_path

logger = logging.getLogger(__name__)

PHASE = "sitemap-health-check"


def _percentage(part: int, total: int) -> int:
    if total == 0:
        return 100
    return int(part * 100 / total + 0.5)


class SitemapHealthChecker:
    def __init__(
        self,
        artifacts: ArtifactStore,
        parser: SitemapParser,
        link_validator: LinkValidator,
    ) -> None:
        self.artifacts = artifacts
        self.parser = parser
        self.link_validator = link_validator

    async def check(
        self, domain: str, progress: Optional[ProgressPublisher] = None
    ) -> Optional[SitemapHealthSummary]:
        """Cached or fresh health summary for *domain*; ``None`` on any failure."""
        try:
            cached = await self.artifacts.get_json_or_none(sitemap_health_path(domain))
            if cached:
                logger.info(f"Using cached sitemap health for {domain}")
                return SitemapHealthSummary.model_validate(cached)

            summary = await self._run(domain, progress)
            await self._store(domain, summary)
            return summary
        except Exception as e:
            logger.error(f"Sitemap health check failed for {domain}: {e}")
            if progress:
                await progress.error(f"Sitemap health check failed: {e}")
            return None

    async def _run(
        self, domain: str, progress: Optional[ProgressPublisher]
    ) -> SitemapHealthSummary:
        start = time.monotonic()
        config = get_domain_config(domain)
        logger.info(f"Checking sitemap: {config.sitemap_url} (filtering for: {config.doc_filter})")

        parsed = await self.parser.parse(config.sitemap_url, progress)
        doc_urls = [u for u in parsed.urls if url_path(u).startswith(config.doc_filter)]
        logger.info(
            f"Filtered to {len(doc_urls)} documentation URLs from {len(parsed.urls)} total URLs"
        )

        if not doc_urls:
            if progress:
                await progress.info("No URLs found in sitemap, skipping health check")
            return SitemapHealthSummary(
                processing_time_ms=int((time.monotonic() - start) * 1000),
                timestamp=datetime.now(timezone.utc),
            )

        if progress:
            await progress.progress(
                f"Starting bulk health check for {len(doc_urls)} URLs from sitemap", PHASE
            )
        result = await self.link_validator.validate(
            [LinkCandidate(url=u) for u in doc_urls], progress
        )

        total = len(doc_urls)
        healthy = total - len(result.link_issue_findings)
        summary = SitemapHealthSummary(
            total_urls=total,
            healthy_urls=healthy,
            health_percentage=_percentage(healthy, total),
            link_issues=result.link_issue_findings,
            broken_urls=result.broken_links,
            access_denied_urls=result.access_denied_links,
            timeout_urls=result.timeout_links,
            other_error_urls=result.other_errors,
            processing_time_ms=int((time.monotonic() - start) * 1000),
            timestamp=datetime.now(timezone.utc),
        )
        if progress:
            await progress.success(
                f"Sitemap health check complete: {healthy}/{total} URLs healthy "
                f"({summary.health_percentage}%)",
                {"totalUrls": total, "healthyUrls": healthy, "brokenUrls": summary.broken_urls},
            )
        return summary

    async def _store(self, domain: str, summary: SitemapHealthSummary) -> None:
        try:
            await self.artifacts.put_json(sitemap_health_path(domain), summary.to_payload())
        except CacheError as e:
            logger.warning(f"Failed to cache sitemap health for {domain}: {e}")
