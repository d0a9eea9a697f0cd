"""Batched concurrent link health checks.

Links are probed in fixed-width windows: checks inside one window run
concurrently via ``asyncio.gather``; windows run one after another. Each probe
carries its own cancellable timeout.
"""

import asyncio
import logging
from collections.abc import Iterable
from typing import Optional

import httpx

from app.models.ingestion import (
    LinkCandidate,
    LinkIssue,
    LinkIssueType,
    LinkValidationSummary,
)
from app.services.ingestion.constants import (
    LINK_CHECK_BATCH_SIZE,
    LINK_CHECK_TIMEOUT_SECONDS,
)
from app.services.progress import ProgressPublisher

logger = logging.getLogger(__name__)


def summarize_link_issues(
    issues: list[LinkIssue], healthy_links: int
) -> LinkValidationSummary:
    """Fold issues and the healthy count into per-type totals."""
    types = [i.issue_type for i in issues]
    return LinkValidationSummary(
        checked_links=len(issues) + healthy_links,
        link_issue_findings=issues,
        healthy_links=healthy_links,
        broken_links=types.count(LinkIssueType.BROKEN),
        access_denied_links=types.count(LinkIssueType.ACCESS_DENIED),
        timeout_links=types.count(LinkIssueType.TIMEOUT),
        other_errors=types.count(LinkIssueType.ERROR),
    )


class LinkValidator:
    """Classifies links as healthy, broken, access-denied, timed out or erroring."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        batch_size: int = LINK_CHECK_BATCH_SIZE,
        timeout: float = LINK_CHECK_TIMEOUT_SECONDS,
        method: str = "HEAD",
        user_agent: Optional[str] = None,
        source_location: str = "main page",
    ) -> None:
        self.client = client
        self.batch_size = batch_size
        self.timeout = timeout
        self.method = method
        self.user_agent = user_agent
        self.source_location = source_location

    async def check(self, candidate: LinkCandidate) -> Optional[LinkIssue]:
        """Probe one link. Returns ``None`` when it is healthy."""
        headers = {"User-Agent": self.user_agent} if self.user_agent else None
        try:
            response = await asyncio.wait_for(
                self.client.request(
                    self.method, candidate.url, headers=headers, timeout=self.timeout
                ),
                timeout=self.timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            return self._issue(
                candidate,
                "timeout",
                f"Request timeout (>{self.timeout:g} seconds)",
                LinkIssueType.TIMEOUT,
            )
        except httpx.HTTPError as e:
            return self._issue(
                candidate, "error", str(e) or type(e).__name__, LinkIssueType.ERROR
            )

        status = response.status_code
        if status == 404:
            return self._issue(candidate, status, "Page not found", LinkIssueType.BROKEN)
        if status == 403:
            return self._issue(
                candidate,
                status,
                "Access denied (403 Forbidden)",
                LinkIssueType.ACCESS_DENIED,
            )
        if status >= 400:
            return self._issue(
                candidate,
                status,
                f"HTTP {status}: {response.reason_phrase}",
                LinkIssueType.ERROR,
            )
        return None

    async def validate(
        self,
        candidates: Iterable[LinkCandidate],
        progress: Optional[ProgressPublisher] = None,
    ) -> LinkValidationSummary:
        """Check every unique candidate and summarize the findings."""
        unique: dict[str, LinkCandidate] = {}
        for candidate in candidates:
            unique.setdefault(candidate.url, candidate)
        links = list(unique.values())

        if not links:
            return summarize_link_issues([], 0)

        if progress:
            await progress.info(
                f"Checking {len(links)} unique internal and related domain links for accessibility..."
            )

        issues: dict[str, LinkIssue] = {}
        healthy = 0
        total_batches = (len(links) + self.batch_size - 1) // self.batch_size

        for batch_number, start in enumerate(range(0, len(links), self.batch_size), start=1):
            batch = links[start : start + self.batch_size]
            results = await asyncio.gather(*(self.check(link) for link in batch))

            batch_issues = 0
            for result in results:
                if result is None:
                    healthy += 1
                else:
                    batch_issues += 1
                    issues.setdefault(result.url, result)

            logger.info(
                f"Link batch {batch_number}/{total_batches}: "
                f"{len(batch) - batch_issues} healthy, {batch_issues} issues"
            )
            if progress:
                await progress.info(
                    f"Checked link batch {batch_number}/{total_batches}: "
                    f"{batch_issues} issues found",
                    {"batch": batch_number, "issues": batch_issues},
                )

        summary = summarize_link_issues(list(issues.values()), healthy)
        if progress:
            await progress.success(self._summary_message(summary), {
                "brokenLinks": summary.broken_links,
                "healthyLinks": summary.healthy_links,
            })
        return summary

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _issue(
        self,
        candidate: LinkCandidate,
        status,
        message: str,
        issue_type: LinkIssueType,
    ) -> LinkIssue:
        logger.warning(f"Link issue ({issue_type.value}): {candidate.url}")
        return LinkIssue(
            url=candidate.url,
            status=status,
            anchor_text=candidate.anchor_text or None,
            source_location=self.source_location,
            error_message=message,
            issue_type=issue_type,
        )

    @staticmethod
    def _summary_message(summary: LinkValidationSummary) -> str:
        total_issues = len(summary.link_issue_findings)
        if not total_issues:
            return f"Link check complete: All {summary.healthy_links} links healthy"
        return (
            f"Link check complete: {summary.broken_links} broken (404), "
            f"{summary.access_denied_links} access denied, "
            f"{summary.timeout_links} timeouts, {summary.other_errors} other errors, "
            f"{summary.healthy_links} healthy"
        )
