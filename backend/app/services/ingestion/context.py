"""Parent/child context page discovery from a page's own links."""

import logging
from typing import Union
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup, Tag

from app.models.ingestion import ContextPage, ContextRelationship
from app.services.ingestion.constants import (
    CHILD_CONFIDENCE,
    MAX_CHILD_PAGES,
    MAX_CHILD_PATH_LENGTH,
    MAX_CONTEXT_PAGES,
    PARENT_CONFIDENCE,
    PARENT_TITLE_PLACEHOLDER,
)
from app.services.ingestion.noise import any_of, has_class, tag_named, within

logger = logging.getLogger(__name__)

# ".breadcrumb a, .breadcrumbs a, nav a"
_BREADCRUMB_LINK = within(
    any_of(has_class("breadcrumb", "breadcrumbs"), tag_named("nav")),
    tag_named("a"),
)


def _parent_title(soup: Union[BeautifulSoup, Tag], parent_path: str) -> str:
    title = PARENT_TITLE_PLACEHOLDER
    for link in soup.find_all(_BREADCRUMB_LINK):
        href = link.get("href") or ""
        if parent_path in href:
            title = link.get_text().strip() or title
    return title


def discover_context_pages(
    soup: Union[BeautifulSoup, Tag],
    base_url: str,
    max_pages: int = MAX_CONTEXT_PAGES,
) -> list[ContextPage]:
    """Infer the parent page and up to three child pages of *base_url*.

    Must run before noise removal so breadcrumbs and navigation still exist.
    """
    base = urlsplit(base_url)
    segments = [s for s in base.path.split("/") if s]
    pages: list[ContextPage] = []

    if len(segments) > 1:
        parent_path = "/" + "/".join(segments[:-1]) + "/"
        pages.append(
            ContextPage(
                url=f"{base.scheme}://{base.hostname}{parent_path}",
                title=_parent_title(soup, parent_path),
                relationship=ContextRelationship.PARENT,
                confidence=PARENT_CONFIDENCE,
            )
        )

    children: dict[str, str] = {}
    for link in soup.find_all("a", href=True):
        text = link.get_text().strip()
        if not text:
            continue
        try:
            absolute = urljoin(base_url, link["href"].strip())
            parsed = urlsplit(absolute)
        except ValueError:
            continue

        if (
            parsed.hostname == base.hostname
            and parsed.path.startswith(base.path)
            and parsed.path != base.path
            and len(parsed.path) < MAX_CHILD_PATH_LENGTH
        ):
            children.setdefault(absolute, text)

    for url, title in list(children.items())[:MAX_CHILD_PAGES]:
        pages.append(
            ContextPage(
                url=url,
                title=title,
                relationship=ContextRelationship.CHILD,
                confidence=CHILD_CONFIDENCE,
            )
        )

    unique: dict[str, ContextPage] = {}
    for page in pages:
        unique.setdefault(page.url, page)

    result = list(unique.values())[: min(max_pages, MAX_CONTEXT_PAGES)]
    for page in result:
        logger.info(f"Context page ({page.relationship.value}): {page.title} - {page.url}")
    return result
