"""Two-tier documentation content-type classification.

Tier 1 is an ordered table of URL/title keyword rules; the first rule that
matches wins. Tier 2 asks the model for a single label and only runs when no
rule matched.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from app.models.ingestion import ContentType
from app.services.ingestion.constants import CLASSIFIER_MAX_TOKENS
from app.services.llm.base_extractor import BaseLLMExtractor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeywordRule:
    """Matches when any *search_terms* occur in ``url + title`` or any
    *title_terms* occur in the title (both lowercased)."""

    content_type: ContentType
    search_terms: tuple[str, ...] = ()
    title_terms: tuple[str, ...] = ()

    def matches(self, search_text: str, title: str) -> bool:
        return any(t in search_text for t in self.search_terms) or any(
            t in title for t in self.title_terms
        )


KEYWORD_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(
        ContentType.API_REFERENCE,
        ("/reference/functions/", "/reference/classes/", "/reference/hooks/"),
        ("()", "function", "hook"),
    ),
    KeywordRule(
        ContentType.TUTORIAL,
        ("getting-started", "/tutorial"),
        ("tutorial", "getting started"),
    ),
    KeywordRule(
        ContentType.CONCEPTUAL,
        ("/explanations/", "/architecture/"),
        ("architecture", "understanding", "explanation"),
    ),
    KeywordRule(
        ContentType.HOW_TO,
        ("how-to", "/guides/"),
        ("how to", "create", "build"),
    ),
    KeywordRule(
        ContentType.OVERVIEW,
        ("/intro", "introduction"),
        ("introduction", "intro"),
    ),
    KeywordRule(
        ContentType.REFERENCE,
        ("/reference-guides/", "/reference/"),
        ("reference",),
    ),
    KeywordRule(
        ContentType.TROUBLESHOOTING,
        ("/troubleshooting/", "/faq/"),
        ("troubleshoot", "faq"),
    ),
    KeywordRule(
        ContentType.CHANGELOG,
        ("/changelog/", "/releases/"),
        ("changelog", "release"),
    ),
)


def detect_by_keywords(
    url: str,
    title: str,
    rules: tuple[KeywordRule, ...] = KEYWORD_RULES,
) -> Optional[ContentType]:
    """First matching rule's type, or ``None`` when the page is ambiguous."""
    title_lower = (title or "").lower()
    search_text = f"{url.lower()} {title_lower}"
    for rule in rules:
        if rule.matches(search_text, title_lower):
            logger.info(f"Keyword match: {rule.content_type.value}")
            return rule.content_type
    return None


@dataclass
class PageMetadata:
    url: str
    title: str = ""
    description: Optional[str] = None


class ContentTypeClassifier(BaseLLMExtractor):
    """Classifies a page as one of the closed ``ContentType`` labels."""

    def __init__(self, client, model: str, rules: tuple[KeywordRule, ...] = KEYWORD_RULES) -> None:
        super().__init__(client, model)
        self.rules = rules

    async def classify(
        self, url: str, title: str = "", description: Optional[str] = None
    ) -> ContentType:
        keyword_type = detect_by_keywords(url, title, self.rules)
        if keyword_type is not None:
            return keyword_type

        logger.info(f"Using model fallback for content type of {url}")
        return await self.extract(PageMetadata(url=url, title=title, description=description))

    # ------------------------------------------------------------------
    # Template hooks
    # ------------------------------------------------------------------

    def _prepare_content(self, source: PageMetadata, **kwargs: Any) -> str:
        return (
            "Classify this documentation page type based on URL and metadata:\n\n"
            f"URL: {source.url}\n"
            f"Title: {source.title}\n"
            f"Description: {source.description or 'N/A'}\n\n"
            "Classify as ONE of these types:\n"
            "- api-reference: Function/class documentation with parameters and return values\n"
            "- tutorial: Step-by-step learning guide or getting started content\n"
            "- conceptual: Architecture explanations, theory, or understanding concepts\n"
            "- how-to: Task-focused guides for accomplishing specific goals\n"
            "- overview: High-level introductions or summary pages\n"
            "- reference: Tables, lists, specifications, or reference materials\n"
            "- troubleshooting: Problem/solution format or FAQ content\n"
            "- changelog: Version history or release notes\n"
            "- mixed: Unclear or combination of multiple types\n\n"
            'Respond with just the type name (e.g., "api-reference").'
        )

    def _decode(self, raw_text: str) -> str:
        return raw_text.strip().strip('"').lower()

    def _parse_result(self, data: str, source: PageMetadata, **kwargs: Any) -> ContentType:
        try:
            return ContentType(data)
        except ValueError:
            logger.warning(f"Invalid content type label {data!r}, defaulting to mixed")
            return ContentType.MIXED

    def _empty_result(self) -> ContentType:
        return ContentType.MIXED

    def _max_tokens(self) -> int:
        return CLASSIFIER_MAX_TOKENS
