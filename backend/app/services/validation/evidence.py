"""Keyword extraction, keyword-overlap page search and per-page evidence."""

import re
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from bs4 import BeautifulSoup

from app.models.validation import Evidence, Issue
from app.services.validation.constants import (
    CATEGORY_KEYWORDS,
    CODE_MARKERS,
    DOCS_PATH_BONUS,
    DOCS_PATH_MARKER,
    KEYWORD_TOP_K,
    MAX_PAGE_CODE_SNIPPETS,
    MIN_FENCED_SNIPPET_CHARS,
    MIN_INLINE_SNIPPET_CHARS,
    MIN_RELEVANT_KEYWORD_MATCHES,
    PRODUCTION_KEYWORDS,
    STOP_WORDS,
)

_WORD = re.compile(r"\b[a-z0-9]{3,}\b")
_LANGUAGE_CLASS = re.compile(r"^language-(\w+)$")


def extract_keywords(issue: Issue) -> list[str]:
    """Stop-word-filtered words of the issue, plus its category's keywords."""
    text = f"{issue.title} {issue.description} {issue.category}".lower()
    words = [w for w in _WORD.findall(text) if w not in STOP_WORDS]
    words.extend(CATEGORY_KEYWORDS.get(issue.category, ()))
    return list(dict.fromkeys(words))


def keyword_search(
    keywords: Iterable[str], urls: Iterable[str], top_k: int = KEYWORD_TOP_K
) -> list[str]:
    """Rank *urls* by keyword hits in the URL itself, with a bonus for doc paths."""
    keywords = list(keywords)
    scored: list[tuple[str, float]] = []
    for url in urls:
        url_lower = url.lower()
        score = float(sum(1 for kw in keywords if kw in url_lower))
        if DOCS_PATH_MARKER in url_lower:
            score += DOCS_PATH_BONUS
        if score > 0:
            scored.append((url, score))
    scored.sort(key=lambda pair: pair[1], reverse=True)
    return [url for url, _ in scored[:top_k]]


@dataclass
class PageCodeSnippet:
    code: str
    language: Optional[str] = None


def extract_page_code_snippets(
    html: str, limit: int = MAX_PAGE_CODE_SNIPPETS
) -> list[PageCodeSnippet]:
    """Existing code on a documentation page.

    Language-tagged ``pre > code`` blocks win; only when there are none do
    long bare ``code`` elements count.
    """
    soup = BeautifulSoup(html, "lxml")
    snippets: list[PageCodeSnippet] = []

    for code in soup.select("pre > code"):
        language = _fence_language(code)
        text = code.get_text().strip()
        if language and len(text) > MIN_FENCED_SNIPPET_CHARS:
            snippets.append(PageCodeSnippet(text, language))

    if not snippets:
        for code in soup.find_all("code"):
            text = code.get_text().strip()
            if len(text) > MIN_INLINE_SNIPPET_CHARS:
                snippets.append(PageCodeSnippet(text))

    return snippets[:limit]


def _fence_language(code) -> Optional[str]:
    for cls in code.get("class") or []:
        match = _LANGUAGE_CLASS.match(cls)
        if match:
            return match.group(1)
    return None


def _page_title(content: str, fallback: str) -> str:
    soup = BeautifulSoup(content, "lxml")
    if soup.title and soup.title.get_text().strip():
        return soup.title.get_text().strip()
    return fallback


def _contains_any(text: str, terms: Iterable[str]) -> bool:
    return any(term in text for term in terms)


def find_content_gaps(content_lower: str, issue: Issue, code_examples: int) -> list[str]:
    """Named gaps in a page's coverage of *issue*, in a fixed order."""
    gaps: list[str] = []
    production_guidance = _contains_any(content_lower, PRODUCTION_KEYWORDS)

    if code_examples == 0:
        gaps.append("Missing code examples")
    if not production_guidance and issue.category == "deployment":
        gaps.append("Missing production deployment guidance")
    if not _contains_any(content_lower, ("error", "troubleshoot")):
        gaps.append("Missing error handling and troubleshooting steps")

    if issue.category == "email-delivery":
        if not _contains_any(content_lower, ("spam", "deliverability")):
            gaps.append("Missing spam/deliverability troubleshooting")
        if not _contains_any(content_lower, ("dns", "spf", "dkim")):
            gaps.append("Missing DNS configuration examples")

    if issue.category == "deployment":
        if (
            not _contains_any(content_lower, ("vercel", "netlify"))
            and "vercel" in issue.title.lower()
        ):
            gaps.append("Missing platform-specific deployment examples (Vercel/Netlify)")
        if not _contains_any(content_lower, ("environment variable", "env")):
            gaps.append("Missing environment variable configuration")

    return gaps


def analyze_page_content(
    content: str,
    issue: Issue,
    page_url: str,
    semantic_score: Optional[float] = None,
) -> Evidence:
    """Evidence of how well the raw page *content* addresses *issue*."""
    content_lower = content.lower()
    keywords = extract_keywords(issue)
    matches = [kw for kw in keywords if kw in content_lower]
    code_examples = sum(content_lower.count(marker) for marker in CODE_MARKERS)

    return Evidence(
        page_url=page_url,
        page_title=_page_title(content, page_url),
        has_relevant_content=len(matches) >= MIN_RELEVANT_KEYWORD_MATCHES,
        content_gaps=find_content_gaps(content_lower, issue, code_examples),
        code_examples=code_examples,
        production_guidance=_contains_any(content_lower, PRODUCTION_KEYWORDS),
        semantic_score=semantic_score,
    )
