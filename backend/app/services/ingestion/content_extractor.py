"""Pure-Python page feature extractor.

No LLM calls: walks the parsed tree to pull media elements, code snippets and
link statistics.
"""

import re
from typing import Union
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

from app.models.ingestion import (
    CodeSnippet,
    LinkAnalysis,
    LinkCandidate,
    MediaElement,
    MediaType,
)
from app.services.ingestion.constants import (
    MAX_CODE_SNIPPET_CHARS,
    MAX_CODE_SNIPPETS,
    MAX_MEDIA_ELEMENTS,
    MAX_SUB_PAGES,
    MIN_CODE_SNIPPET_CHARS,
    RELATED_DOMAIN_GROUPS,
)
from app.services.ingestion.markdown import (
    detect_language_from_class,
    detect_language_from_content,
)
from app.services.ingestion.noise import class_tokens
from app.services.ingestion.url_utils import is_related_domain

SKIPPED_LINK_PREFIXES = ("mailto:", "tel:", "javascript:", "#")

_VERSION_PATTERNS = [
    re.compile(r"since\s+wordpress\s+\d+\.\d+", re.IGNORECASE),
    re.compile(r"wp\s+\d+\.\d+", re.IGNORECASE),
    re.compile(r"version\s+\d+\.\d+", re.IGNORECASE),
    re.compile(r"@since\s+\d+\.\d+", re.IGNORECASE),
]


def has_version_info(code: str) -> bool:
    return any(p.search(code) for p in _VERSION_PATTERNS)


def _is_video(tag: Tag) -> bool:
    if tag.name == "video":
        return True
    src = tag.get("src") or ""
    return tag.name == "iframe" and ("youtube" in src or "vimeo" in src)


def _is_interactive(tag: Tag) -> bool:
    return (
        tag.name == "form"
        or (tag.name == "button" and tag.has_attr("onclick"))
        or tag.has_attr("data-interactive")
    )


class ContentExtractor:
    """Extracts media, code and link features from a parsed page."""

    def __init__(self, domain_groups=RELATED_DOMAIN_GROUPS) -> None:
        self.domain_groups = domain_groups

    def extract_media_elements(
        self, soup: Union[BeautifulSoup, Tag], base_url: str
    ) -> list[MediaElement]:
        media: list[MediaElement] = []

        for img in soup.find_all("img"):
            alt = img.get("alt") or None
            media.append(
                MediaElement(
                    type=MediaType.IMAGE,
                    src=urljoin(base_url, img.get("src") or ""),
                    alt=alt,
                    caption=img.get("title") or None,
                    analysis_note="Has alt text"
                    if alt
                    else "Missing alt text - accessibility concern",
                )
            )

        for video in soup.find_all(_is_video):
            media.append(
                MediaElement(
                    type=MediaType.VIDEO,
                    src=video.get("src") or "",
                    analysis_note="Video content - consider accessibility and loading impact",
                )
            )

        for _ in soup.find_all(_is_interactive):
            media.append(
                MediaElement(
                    type=MediaType.INTERACTIVE,
                    analysis_note="Interactive element - may affect documentation usability",
                )
            )

        return media[:MAX_MEDIA_ELEMENTS]

    def extract_code_snippets(self, soup: Union[BeautifulSoup, Tag]) -> list[CodeSnippet]:
        snippets: list[CodeSnippet] = []

        for index, code_el in enumerate(soup.find_all("code"), start=1):
            code = code_el.get_text()
            if len(code.strip()) < MIN_CODE_SNIPPET_CHARS:
                continue

            language = detect_language_from_class(
                " ".join(class_tokens(code_el))
            ) or detect_language_from_content(code)

            snippets.append(
                CodeSnippet(
                    language=language,
                    code=code.strip()[:MAX_CODE_SNIPPET_CHARS],
                    line_number=index,
                    has_version_info=has_version_info(code),
                )
            )
            if len(snippets) >= MAX_CODE_SNIPPETS:
                break

        return snippets

    def analyze_link_structure(
        self, soup: Union[BeautifulSoup, Tag], base_url: str
    ) -> tuple[LinkAnalysis, list[LinkCandidate]]:
        """Count links and harvest internal/related-domain links for health checks.

        Returns:
            (link statistics, link candidates deduplicated by URL)
        """
        base = urlsplit(base_url)
        base_host = base.hostname or ""

        total = internal = external = 0
        sub_pages: list[str] = []
        candidates: dict[str, LinkCandidate] = {}

        for anchor in soup.find_all("a", href=True):
            href = anchor["href"].strip()
            if not href or href.startswith(SKIPPED_LINK_PREFIXES):
                continue
            total += 1

            try:
                absolute = urljoin(base_url, href)
                link = urlsplit(absolute)
                link_host = link.hostname or ""
            except ValueError:
                external += 1
                continue

            if link.scheme not in ("http", "https") or not is_related_domain(
                link_host, base_host, self.domain_groups
            ):
                external += 1
                continue

            internal += 1
            text = anchor.get_text().strip()
            candidates.setdefault(
                absolute, LinkCandidate(url=absolute, anchor_text=text or href)
            )
            if link.path != base.path and text and text not in sub_pages:
                sub_pages.append(text)

        analysis = LinkAnalysis(
            total_links=total,
            internal_links=internal,
            external_links=external,
            sub_pages_identified=sub_pages[:MAX_SUB_PAGES],
            link_context="multi-page-referenced" if sub_pages else "single-page",
            analysis_scope="current-page-only",
        )
        return analysis, list(candidates.values())
