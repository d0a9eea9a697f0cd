"""Slim orchestrator for page ingestion.

Coordinates the pipeline (cache check -> fetch -> strip -> extract ->
validate links -> classify -> persist -> cache) without containing any
extraction logic itself.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Optional

from bs4 import BeautifulSoup

from app.config import get_settings
from app.errors import ConfigurationError, DocAuditError, InputValidationError
from app.models.ingestion import (
    CacheIndexEntry,
    ContextAnalysis,
    ContextualSetting,
    EnhancedCodeAnalysis,
    IngestionRequest,
    IngestionResponse,
    NoiseReductionMetrics,
    ProcessedContent,
)
from app.services.ingestion.classifier import ContentTypeClassifier
from app.services.ingestion.code_analyzer import CodeSnippetAnalyzer
from app.services.ingestion.constants import MAX_CONTEXT_PAGES
from app.services.ingestion.content_cache import ContentCache
from app.services.ingestion.content_extractor import ContentExtractor
from app.services.ingestion.context import discover_context_pages
from app.services.ingestion.link_validator import LinkValidator
from app.services.ingestion.markdown import html_to_markdown
from app.services.ingestion.noise import remove_noise, select_main_content
from app.services.ingestion.url_utils import derive_session_key
from app.services.page_fetcher import PageFetcher
from app.services.progress import ProgressPublisher
from app.services.storage import (
    ArtifactStore,
    cache_metadata_path,
    processed_content_path,
    session_metadata_path,
)

logger = logging.getLogger(__name__)

PHASE = "url-processing"

# Singleton state
_processor: Optional["UrlProcessor"] = None
_lock = asyncio.Lock()


def _page_metadata(soup: BeautifulSoup) -> tuple[str, Optional[str]]:
    title = soup.title.get_text().strip() if soup.title else ""
    meta = soup.find("meta", attrs={"name": "description"})
    description = meta.get("content") if meta else None
    return title, description or None


def require_url(request: IngestionRequest) -> None:
    if not request.url or not request.url.strip():
        raise InputValidationError("Missing required field: url")

class UrlProcessor:
    """Ingests one documentation page into a session artifact and the cache."""

    def __init__(
        self,
        fetcher: PageFetcher,
        artifacts: ArtifactStore,
        cache: ContentCache,
        classifier: ContentTypeClassifier,
        link_validator: LinkValidator,
        *,
        code_analyzer: Optional[CodeSnippetAnalyzer] = None,
        extractor: Optional[ContentExtractor] = None,
        progress_factory: Optional[Callable[[str], ProgressPublisher]] = None,
        model_name: str = "",
    ) -> None:
        self.fetcher = fetcher
        self.artifacts = artifacts
        self.cache = cache
        self.classifier = classifier
        self.link_validator = link_validator
        self.code_analyzer = code_analyzer
        self.extractor = extractor or ContentExtractor()
        self.progress_factory = progress_factory or (
            lambda session_id: ProgressPublisher(session_id, phase=PHASE)
        )
        self.model_name = model_name

    async def process(self, request: IngestionRequest) -> IngestionResponse:
        """Main entry point: serve from cache or run a fresh ingestion.

        Raises:
            InputValidationError: If the request has no URL.
            ConfigurationError: Propagated from collaborators.
        """
        require_url(request)

        url = request.url.strip()
        start_ms = int(time.time() * 1000)
        context_enabled = bool(request.analysis_context and request.analysis_context.enabled)
        cache_enabled = request.cache_control is None or request.cache_control.enabled
        setting = (
            ContextualSetting.WITH_CONTEXT if context_enabled else ContextualSetting.WITHOUT_CONTEXT
        )
        session_key = derive_session_key(url, setting)
        session_id = request.session_id or session_key
        progress = self.progress_factory(session_id)

        logger.info(
            f"Processing {url} (session: {session_id}, key: {session_key}, "
            f"context: {context_enabled}, cache: {cache_enabled})"
        )

        try:
            await progress.progress("Processing URL...", PHASE)

            # Phase 1: Cache
            if cache_enabled:
                entry = await self.cache.lookup(url, setting)
                if entry is not None and await self.cache.restore(entry, session_id):
                    return await self._serve_from_cache(
                        entry, url, session_id, session_key, setting, start_ms, progress
                    )
                await progress.cache_miss(
                    "Cache MISS - Running fresh analysis", {"cacheStatus": "miss"}
                )
            else:
                await progress.info("Cache disabled - running fresh analysis")

            # Phase 2: Fresh ingestion
            content = await self._ingest(url, request, context_enabled, progress)

            # Phase 3: Persist session artifacts
            await self.artifacts.put_json(processed_content_path(session_id), content.to_payload())
            logger.info(f"Stored processed content for session {session_id}")
            await self._store_session_metadata(url, session_id, session_key, setting, start_ms)
            await self._store_cache_metadata(session_id, was_from_cache=False)

            # Phase 4: Cache
            if cache_enabled:
                await self.cache.store(url, content, setting)
            else:
                logger.info("Cache disabled - skipping cache storage")

            return IngestionResponse(
                success=True,
                session_key=session_id,
                message="Content processed and cached",
            )

        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"URL processing failed for {url}: {e}")
            await progress.error(f"Processing failed: {e}")
            return IngestionResponse(
                success=False, session_key=session_id, message=str(e) or "Unknown error"
            )

    # ------------------------------------------------------------------
    # Pipeline phases
    # ------------------------------------------------------------------

    async def _serve_from_cache(
        self,
        entry: CacheIndexEntry,
        url: str,
        session_id: str,
        session_key: str,
        setting: ContextualSetting,
        start_ms: int,
        progress: ProgressPublisher,
    ) -> IngestionResponse:
        logger.info(f"Cache hit for {url}, served from {entry.object_location}")
        await progress.cache_hit(
            f"Cache HIT! Using cached analysis from {entry.processed_at.date().isoformat()}",
            {"cacheStatus": "hit", "contentType": entry.content_type.value},
        )
        await self._store_cache_metadata(session_id, was_from_cache=True)
        await self._store_session_metadata(url, session_id, session_key, setting, start_ms)
        return IngestionResponse(
            success=True, session_key=session_id, message="Retrieved from cache"
        )

    async def _ingest(
        self,
        url: str,
        request: IngestionRequest,
        context_enabled: bool,
        progress: ProgressPublisher,
    ) -> ProcessedContent:
        await progress.info("Fetching and cleaning content...")
        html = await self.fetcher.fetch(url)
        logger.info(f"Fetched {len(html)} characters of HTML content")

        soup = BeautifulSoup(html, "lxml")
        title, description = _page_metadata(soup)

        # Embeds, forms and breadcrumbs are noise for the text but still needed here
        media_elements = self.extractor.extract_media_elements(soup, url)
        context_analysis: Optional[ContextAnalysis] = None
        if context_enabled:
            await progress.info("Discovering related pages...")
            max_pages = request.analysis_context.max_context_pages
            pages = discover_context_pages(
                soup, url, MAX_CONTEXT_PAGES if max_pages is None else max_pages
            )
            context_analysis = ContextAnalysis(
                context_pages=pages,
                analysis_scope="with-context" if pages else "single-page",
                total_pages_analyzed=1 + len(pages),
            )
            if pages:
                await progress.success(
                    f"Context: {len(pages)} related pages discovered",
                    {"contextPages": len(pages)},
                )

        removed = remove_noise(soup)
        logger.info(f"Removed {removed} noise elements")
        main_content = select_main_content(soup)
        cleaned_html = main_content.decode_contents()

        metrics = NoiseReductionMetrics.from_sizes(len(html), len(cleaned_html))
        await progress.success(
            f"Content processed: {round(len(html) / 1024)}KB -> "
            f"{round(len(cleaned_html) / 1024)}KB ({metrics.reduction_percent}% reduction)",
            metrics.to_payload(),
        )

        code_snippets = self.extractor.extract_code_snippets(soup)
        link_analysis, candidates = self.extractor.analyze_link_structure(soup, url)

        link_summary = await self.link_validator.validate(candidates, progress)
        link_analysis.link_validation = link_summary
        link_analysis.broken_links = link_summary.broken_links
        link_analysis.total_link_issues = len(link_summary.link_issue_findings)
        if context_analysis is not None:
            link_analysis.analysis_scope = (
                "with-context"
                if context_analysis.analysis_scope == "with-context"
                else "current-page-only"
            )

        enhanced: Optional[EnhancedCodeAnalysis] = None
        if self.code_analyzer is not None and code_snippets:
            enhanced = await self.code_analyzer.analyze(code_snippets, progress)

        structured_text = html_to_markdown(main_content)
        logger.info(f"Converted to {len(structured_text)} characters of Markdown")

        content_type = await self.classifier.classify(url, title, description)
        await progress.success(
            f"Content type: {content_type.value}", {"contentType": content_type.value}
        )

        return ProcessedContent(
            url=url,
            cleaned_html=cleaned_html,
            structured_text=structured_text,
            media_elements=media_elements,
            code_snippets=code_snippets,
            content_type=content_type,
            link_analysis=link_analysis,
            enhanced_code_analysis=enhanced,
            context_analysis=context_analysis,
            noise_reduction_metrics=metrics,
        )

    # ------------------------------------------------------------------
    # Session artifacts
    # ------------------------------------------------------------------

    async def _store_session_metadata(
        self,
        url: str,
        session_id: str,
        session_key: str,
        setting: ContextualSetting,
        start_ms: int,
    ) -> None:
        await self.artifacts.put_json(
            session_metadata_path(session_id),
            {
                "url": url,
                "sessionId": session_id,
                "sessionKey": session_key,
                "contextualSetting": setting.value,
                "selectedModel": self.model_name,
                "startTime": start_ms,
            },
        )

    async def _store_cache_metadata(self, session_id: str, *, was_from_cache: bool) -> None:
        try:
            await self.artifacts.put_json(
                cache_metadata_path(session_id),
                {
                    "wasFromCache": was_from_cache,
                    "retrievedAt": datetime.now(timezone.utc).isoformat(),
                },
            )
        except DocAuditError as e:
            logger.warning(f"Failed to add cache metadata: {e}")


# =====================================================================
# Singleton factory (thread-safe via asyncio.Lock)
# =====================================================================


async def get_url_processor() -> UrlProcessor:
    """Get or create the singleton ``UrlProcessor``."""
    global _processor
    if _processor is not None:
        return _processor

    async with _lock:
        # Double-checked locking
        if _processor is not None:
            return _processor

        from app.db.supabase import get_async_supabase_client_async
        from app.services.clients import get_http_client
        from app.services.llm import get_anthropic_client
        from app.services.storage import CacheIndexStore

        settings = get_settings()
        anthropic_client = get_anthropic_client()
        supabase = await get_async_supabase_client_async()
        http_client = get_http_client()

        artifacts = ArtifactStore(supabase, settings.storage_bucket)
        _processor = UrlProcessor(
            fetcher=PageFetcher(
                http_client,
                user_agent=settings.user_agent,
                timeout=settings.page_fetch_timeout,
            ),
            artifacts=artifacts,
            cache=ContentCache(
                artifacts,
                CacheIndexStore(supabase, settings.cache_index_table),
                ttl_days=settings.cache_ttl_days,
            ),
            classifier=ContentTypeClassifier(
                anthropic_client, settings.classifier_model or settings.claude_model
            ),
            link_validator=LinkValidator(http_client, user_agent=settings.user_agent),
            code_analyzer=CodeSnippetAnalyzer(anthropic_client, settings.claude_model)
            if settings.code_analysis_enabled
            else None,
            progress_factory=lambda session_id: ProgressPublisher(
                session_id, supabase, settings.progress_table, phase=PHASE
            ),
            model_name=settings.claude_model,
        )

    return _processor


def reset_url_processor() -> None:
    """Reset processor for testing."""
    global _processor
    _processor = None
