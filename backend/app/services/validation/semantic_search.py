"""Per-domain embedding pools and cosine-similarity page search.

Each documentation domain gets its own pool of page embeddings, persisted
under a domain-normalized key so pools of unrelated domains never mix.
"""

import asyncio
import logging
import math
import re
from collections.abc import Sequence
from typing import Optional

from bs4 import BeautifulSoup
from pydantic import ValidationError

from app.errors import CacheError
from app.models.validation import Issue, RichContentEmbedding, SemanticMatch
from app.services.embedding_service import EmbeddingService
from app.services.page_fetcher import PageFetcher
from app.services.storage import ArtifactStore, embeddings_path
from app.services.validation.constants import (
    DOCS_PATH_MARKER,
    MAX_EMBEDDING_CONTENT_CHARS,
    MIN_EMBEDDING_TEXT_CHARS,
    SEMANTIC_TOP_K,
    STRIPPED_PAGE_TAGS,
)
from app.services.validation.domains import get_domain_config
from app.services.validation.sitemap import SitemapParser, url_path

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """``dot(a, b) / (|a| * |b|)``; 0 when either vector has zero norm.

    Raises:
        ValueError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise ValueError(f"Vectors must have the same length ({len(a)} != {len(b)})")
    dot = sum(x * y for x, y in zip(a, b))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


def build_issue_query_text(issue: Issue) -> str:
    """Concatenate every available issue signal into one query string."""
    parts = [issue.title, issue.description, issue.category]
    if issue.full_content:
        parts.append(issue.full_content)
    if issue.code_snippets:
        parts.append(" ".join(issue.code_snippets))
    if issue.error_messages:
        parts.append(" ".join(issue.error_messages))
    if issue.tags:
        parts.append(" ".join(issue.tags))
    if issue.stack_trace:
        parts.append(issue.stack_trace)
    return " ".join(p for p in parts if p)


def extract_page_content(html: str) -> tuple[str, str, str]:
    """Return ``(title, description, content)`` for embedding a page.

    Chrome (scripts, navigation, headers, footers, asides) is dropped and
    whitespace collapsed; content is cut to ``MAX_EMBEDDING_CONTENT_CHARS``.
    """
    soup = BeautifulSoup(html, "lxml")
    title = soup.title.get_text().strip() if soup.title else ""
    meta = soup.find("meta", attrs={"name": "description"})
    description = (meta.get("content") or "").strip() if meta else ""

    for tag in soup.find_all(STRIPPED_PAGE_TAGS):
        tag.decompose()
    body = soup.body or soup
    content = _WHITESPACE.sub(" ", body.get_text(" ")).strip()
    if len(content) > MAX_EMBEDDING_CONTENT_CHARS:
        content = content[:MAX_EMBEDDING_CONTENT_CHARS] + "..."
    return title, description, content


def page_url(domain: str, url_or_path: str) -> str:
    """Absolute URL for a pool/sitemap entry, which may be a bare path."""
    if url_or_path.startswith(("http://", "https://")):
        return url_or_path
    return f"https://{domain}{url_or_path}"


class SemanticSearchEngine:
    """Ranks a domain's documentation pages against an issue by embedding similarity."""

    def __init__(
        self,
        embedding_service: EmbeddingService,
        artifacts: ArtifactStore,
        fetcher: PageFetcher,
        sitemap: SitemapParser,
        *,
        top_k: int = SEMANTIC_TOP_K,
        request_delay: float = 0.1,
    ) -> None:
        self.embedding_service = embedding_service
        self.artifacts = artifacts
        self.fetcher = fetcher
        self.sitemap = sitemap
        self.top_k = top_k
        self.request_delay = request_delay

    # ------------------------------------------------------------------
    # Embedding pool
    # ------------------------------------------------------------------

    async def load_or_generate_embeddings(self, domain: str) -> list[RichContentEmbedding]:
        """Load the domain's persisted pool, generating and persisting it on a miss."""
        path = embeddings_path(domain)
        stored = await self.artifacts.get_json_or_none(path)
        if stored:
            try:
                pool = [RichContentEmbedding.model_validate(e) for e in stored]
                logger.info(f"Loaded {len(pool)} embeddings for {domain}")
                return pool
            except (TypeError, ValidationError) as e:
                logger.warning(f"Discarding unreadable embeddings at {path}: {e}")

        pool = await self.generate_embeddings(domain)
        try:
            await self.artifacts.put_json(path, [e.to_payload() for e in pool])
        except CacheError as e:
            logger.error(f"Failed to store embeddings for {domain}: {e}")
        return pool

    async def generate_embeddings(self, domain: str) -> list[RichContentEmbedding]:
        """Embed every documentation page in the domain's sitemap."""
        if not self.embedding_service.is_available:
            logger.warning(f"Embeddings unavailable - no pool generated for {domain}")
            return []

        doc_paths = await self.sitemap.doc_paths(get_domain_config(domain))
        doc_paths = [p for p in doc_paths if p.startswith(DOCS_PATH_MARKER)]
        logger.info(f"Generating embeddings for {len(doc_paths)} pages of {domain}")

        pool: list[RichContentEmbedding] = []
        for path in doc_paths:
            html = await self.fetcher.fetch_or_empty(page_url(domain, path))
            if not html:
                continue

            title, description, content = extract_page_content(html)
            text = f"{title} {description} {content}".strip()
            if len(text) < MIN_EMBEDDING_TEXT_CHARS:
                continue

            try:
                embedding = await self.embedding_service.embed_text(text)
            except Exception as e:
                logger.error(f"Failed to generate embedding for {path}: {e}")
                continue

            pool.append(
                RichContentEmbedding(
                    url=path,
                    title=title,
                    description=description,
                    content=content,
                    embedding=embedding,
                )
            )
            if self.request_delay:
                await asyncio.sleep(self.request_delay)

        logger.info(f"Generated {len(pool)} embeddings for {domain}")
        return pool

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def embed_issue(self, issue: Issue) -> list[float]:
        return await self.embedding_service.embed_text(build_issue_query_text(issue))

    def rank(
        self,
        query: Sequence[float],
        pool: Sequence[RichContentEmbedding],
        top_k: Optional[int] = None,
    ) -> list[SemanticMatch]:
        matches = [
            SemanticMatch(
                url=entry.url,
                title=entry.title,
                similarity=cosine_similarity(query, entry.embedding),
            )
            for entry in pool
        ]
        # Stable sort keeps pool order among equal scores
        matches.sort(key=lambda m: m.similarity, reverse=True)
        return matches[: top_k or self.top_k]

    async def search(
        self, issue: Issue, pool: Sequence[RichContentEmbedding]
    ) -> list[SemanticMatch]:
        """Top matches for *issue*; empty when the pool is empty or search fails."""
        if not pool:
            return []
        try:
            query = await self.embed_issue(issue)
            matches = self.rank(query, pool)
        except Exception as e:
            logger.warning(f"Semantic search failed for issue {issue.id}: {e}")
            return []

        for m in matches:
            logger.info(f"Semantic match {m.url} ({m.similarity:.3f})")
        return matches

    async def score_pages(
        self,
        issue: Issue,
        pool: Sequence[RichContentEmbedding],
        urls: Sequence[str],
    ) -> dict[str, float]:
        """Similarity of *issue* to each of *urls* found in the pool.

        Pages absent from the pool are left out (unscored).
        """
        entries = {}
        for url in urls:
            entry = next(
                (e for e in pool if e.url == url or e.url == url_path(url)), None
            )
            if entry is not None:
                entries[url] = entry
        if not entries:
            return {}

        try:
            query = await self.embed_issue(issue)
            return {
                url: cosine_similarity(query, entry.embedding)
                for url, entry in entries.items()
            }
        except Exception as e:
            logger.warning(f"Could not score related pages for issue {issue.id}: {e}")
            return {}
