"""Slim orchestrator for issue validation.

For each issue: pick candidate pages (curated -> semantic -> keyword), collect
evidence from the live pages, classify the gap, and generate recommendations.
All issues run concurrently with one domain-level sitemap health check.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Sequence
from typing import Optional

from app.config import get_settings
from app.errors import CacheError, ConfigurationError, InputValidationError
from app.models.validation import (
    CandidatePage,
    GapStatus,
    Issue,
    PotentialGap,
    RichContentEmbedding,
    ValidationRequest,
    ValidationResponse,
    ValidationResult,
    ValidationSummary,
)
from app.services.page_fetcher import PageFetcher
from app.services.progress import ProgressPublisher
from app.services.storage import ArtifactStore, validation_results_path
from app.services.validation.classification import GapThresholds, classify_gap
from app.services.validation.constants import (
    CONFIDENCE_NO_CANDIDATES,
    DOCS_PATH_MARKER,
)
from app.services.validation.domains import get_domain_config
from app.services.validation.evidence import (
    analyze_page_content,
    extract_keywords,
    keyword_search,
)
from app.services.validation.recommendations import RecommendationGenerator
from app.services.validation.semantic_search import SemanticSearchEngine, page_url
from app.services.validation.sitemap import SitemapParser
from app.services.validation.sitemap_health import SitemapHealthChecker

logger = logging.getLogger(__name__)

PHASE = "issue-validation"

NO_PAGE_MISSING_CONTENT = [
    "Complete documentation page missing",
    "Code examples needed",
    "Troubleshooting guide needed",
    "Production deployment guidance needed",
]

# Singleton state
_validator: Optional["IssueValidator"] = None
_lock = asyncio.Lock()


def no_candidates_result(issue: Issue, keywords: Sequence[str]) -> ValidationResult:
    """Critical gap for an issue no documentation page could be matched to."""
    return ValidationResult(
        issue_id=issue.id,
        issue_title=issue.title,
        status=GapStatus.CRITICAL_GAP,
        missing_elements=["Complete documentation page"],
        potential_gaps=[
            PotentialGap(
                gap_type=GapStatus.CRITICAL_GAP,
                missing_content=list(NO_PAGE_MISSING_CONTENT),
                reasoning=(
                    "Searched sitemap.xml but found no pages matching keywords: "
                    f"{', '.join(keywords)}"
                ),
                developer_impact=(
                    f"{issue.frequency} developers affected - "
                    f"reporting this issue since {issue.last_seen}"
                ),
            )
        ],
        critical_gaps=[f'No documentation page found addressing "{issue.title}"'],
        confidence=CONFIDENCE_NO_CANDIDATES,
        recommendations=[
            f"Create new documentation page addressing: {issue.title}",
            f"Include code examples for {issue.category}",
            "Add troubleshooting section",
            f"Reference: {issue.primary_source}",
        ],
    )


def require_parameters(request: ValidationRequest) -> None:
    """Raise ``InputValidationError`` unless issues, domain and session key are present."""
    if request.issues is None or not request.domain or not request.session_key:
        raise InputValidationError(
            "Missing required parameters: issues, domain, and sessionKey"
        )

class IssueValidator:
    """Validates developer issues against a domain's live documentation."""

    def __init__(
        self,
        fetcher: PageFetcher,
        artifacts: ArtifactStore,
        search_engine: SemanticSearchEngine,
        sitemap: SitemapParser,
        recommender: RecommendationGenerator,
        health_checker: SitemapHealthChecker,
        *,
        thresholds: GapThresholds = GapThresholds(),
        progress_factory: Optional[Callable[[str], ProgressPublisher]] = None,
    ) -> None:
        self.fetcher = fetcher
        self.artifacts = artifacts
        self.search_engine = search_engine
        self.sitemap = sitemap
        self.recommender = recommender
        self.health_checker = health_checker
        self.thresholds = thresholds
        self.progress_factory = progress_factory or (
            lambda session_id: ProgressPublisher(session_id, phase=PHASE)
        )

    async def validate(self, request: ValidationRequest) -> ValidationResponse:
        """Main entry point: validate every issue and check sitemap health.

        Raises:
            InputValidationError: If issues, domain or session key is missing.
            ConfigurationError: Propagated from collaborators.
        """
        require_parameters(request)

        start = time.monotonic()
        domain = request.domain.strip()
        progress = self.progress_factory(request.session_key)
        logger.info(f"Validating {len(request.issues)} issues for {domain}")

        try:
            await progress.progress(f"Validating {len(request.issues)} issues...", PHASE)
            results, sitemap_health = await asyncio.gather(
                self._validate_all(request.issues, domain),
                self.health_checker.check(domain, progress),
            )

            summary = ValidationSummary.from_results(results)
            response = ValidationResponse(
                success=True,
                message=f"Validated {summary.total_issues} issues",
                validation_results=results,
                summary=summary,
                processing_time_ms=int((time.monotonic() - start) * 1000),
                sitemap_health=sitemap_health,
            )
            await self._store_results(request.session_key, response)
            await progress.success(
                f"Validation complete: {summary.resolved} resolved, "
                f"{summary.potential_gaps} potential gaps, {summary.confirmed} confirmed, "
                f"{summary.critical_gaps} critical gaps",
                summary.to_payload(),
            )
            return response

        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Issue validation failed for {domain}: {e}")
            await progress.error(f"Validation failed: {e}")
            return ValidationResponse(
                success=False,
                message=str(e) or "Unknown error",
                processing_time_ms=int((time.monotonic() - start) * 1000),
            )

    async def validate_issue(
        self,
        issue: Issue,
        domain: str,
        pool: Sequence[RichContentEmbedding] = (),
    ) -> ValidationResult:
        """Classify how well *domain*'s documentation addresses one issue."""
        keywords = extract_keywords(issue)
        candidates = await self._find_candidates(issue, domain, pool, keywords)
        if not candidates:
            logger.info(f"No candidate pages for issue {issue.id}")
            return no_candidates_result(issue, keywords)

        pages = await asyncio.gather(
            *(self.fetcher.fetch_or_empty(page_url(domain, c.url)) for c in candidates)
        )
        evidence = [
            analyze_page_content(html, issue, c.url, c.similarity)
            for c, html in zip(candidates, pages)
            if html
        ]
        missing = list(dict.fromkeys(gap for e in evidence for gap in e.content_gaps))

        status, confidence = classify_gap(evidence, self.thresholds)
        logger.info(f"Issue {issue.id}: {status.value} ({confidence}%)")

        recommendations = await self.recommender.generate(issue, evidence, domain)

        return ValidationResult(
            issue_id=issue.id,
            issue_title=issue.title,
            status=status,
            evidence=evidence,
            missing_elements=missing,
            confidence=confidence,
            recommendations=recommendations,
        )

    # ------------------------------------------------------------------
    # Pipeline phases
    # ------------------------------------------------------------------

    async def _validate_all(
        self, issues: Sequence[Issue], domain: str
    ) -> list[ValidationResult]:
        pool = await self._load_pool(domain)
        return list(
            await asyncio.gather(*(self.validate_issue(i, domain, pool) for i in issues))
        )

    async def _load_pool(self, domain: str) -> list[RichContentEmbedding]:
        try:
            return await self.search_engine.load_or_generate_embeddings(domain)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.warning(f"Embedding pool unavailable for {domain}: {e}")
            return []

    async def _find_candidates(
        self,
        issue: Issue,
        domain: str,
        pool: Sequence[RichContentEmbedding],
        keywords: Sequence[str],
    ) -> list[CandidatePage]:
        if issue.related_pages:
            scores = await self.search_engine.score_pages(issue, pool, issue.related_pages)
            return [
                CandidatePage(url=url, title=url, similarity=scores.get(url))
                for url in issue.related_pages
            ]

        matches = await self.search_engine.search(issue, pool)
        if matches:
            return [
                CandidatePage(url=m.url, title=m.title, similarity=m.similarity)
                for m in matches
            ]

        doc_paths = await self.sitemap.doc_paths(get_domain_config(domain))
        doc_paths = [p for p in doc_paths if p.startswith(DOCS_PATH_MARKER)]
        logger.info(f"Keyword fallback over {len(doc_paths)} pages for issue {issue.id}")
        return [CandidatePage(url=url, title=url) for url in keyword_search(keywords, doc_paths)]

    async def _store_results(self, session_id: str, response: ValidationResponse) -> None:
        try:
            await self.artifacts.put_json(
                validation_results_path(session_id), response.to_payload()
            )
        except CacheError as e:
            logger.error(f"Failed to store validation results for {session_id}: {e}")


# =====================================================================
# Singleton factory (thread-safe via asyncio.Lock)
# =====================================================================


async def get_issue_validator() -> IssueValidator:
    """Get or create the singleton ``IssueValidator``."""
    global _validator
    if _validator is not None:
        return _validator

    async with _lock:
        # Double-checked locking
        if _validator is not None:
            return _validator

        from app.db.supabase import get_async_supabase_client_async
        from app.services.clients import get_http_client
        from app.services.embedding_service import get_embedding_service
        from app.services.ingestion.link_validator import LinkValidator
        from app.services.llm import get_anthropic_client
        from app.services.validation.constants import (
            SITEMAP_HEALTH_BATCH_SIZE,
            SITEMAP_HEALTH_TIMEOUT_SECONDS,
        )

        settings = get_settings()
        anthropic_client = get_anthropic_client()
        supabase = await get_async_supabase_client_async()
        http_client = get_http_client()

        artifacts = ArtifactStore(supabase, settings.storage_bucket)
        fetcher = PageFetcher(
            http_client,
            user_agent=settings.user_agent,
            timeout=settings.validation_fetch_timeout,
        )
        sitemap = SitemapParser(fetcher)
        _validator = IssueValidator(
            fetcher=fetcher,
            artifacts=artifacts,
            search_engine=SemanticSearchEngine(
                get_embedding_service(), artifacts, fetcher, sitemap
            ),
            sitemap=sitemap,
            recommender=RecommendationGenerator(
                anthropic_client, settings.claude_model, fetcher
            ),
            health_checker=SitemapHealthChecker(
                artifacts,
                sitemap,
                LinkValidator(
                    http_client,
                    batch_size=SITEMAP_HEALTH_BATCH_SIZE,
                    timeout=SITEMAP_HEALTH_TIMEOUT_SECONDS,
                    method="GET",
                    user_agent=settings.user_agent,
                    source_location="sitemap",
                ),
            ),
            progress_factory=lambda session_id: ProgressPublisher(
                session_id, supabase, settings.progress_table, phase=PHASE
            ),
        )

    return _validator


def reset_issue_validator() -> None:
    """Reset validator for testing."""
    global _validator
    _validator = None
