"""Noise stripping and main-content selection over a BeautifulSoup tree.

Node selection is expressed as composable predicates (``Tag -> bool``) rather
than selector strings, so each rule is a small testable value.
"""

import logging
import re
from collections.abc import Callable
from typing import Union

from bs4 import BeautifulSoup, Tag

from app.services.ingestion.constants import MIN_MAIN_CONTENT_CHARS

logger = logging.getLogger(__name__)

NodePredicate = Callable[[Tag], bool]


# =====================================================================
# Predicate building blocks
# =====================================================================


def tag_named(*names: str) -> NodePredicate:
    wanted = {n.lower() for n in names}
    return lambda tag: tag.name in wanted


def has_class(*classes: str) -> NodePredicate:
    wanted = set(classes)

    def _match(tag: Tag) -> bool:
        return bool(wanted.intersection(class_tokens(tag)))

    return _match


def has_id(*ids: str) -> NodePredicate:
    wanted = set(ids)
    return lambda tag: tag.get("id") in wanted


def has_role(*roles: str) -> NodePredicate:
    wanted = set(roles)
    return lambda tag: tag.get("role") in wanted


def attr_equals(name: str, attr: str, value: str) -> NodePredicate:
    """``<name attr="value">`` (attribute compared case-insensitively)."""

    def _match(tag: Tag) -> bool:
        actual = tag.get(attr)
        if isinstance(actual, list):
            actual = " ".join(actual)
        return tag.name == name and (actual or "").lower() == value

    return _match


_HIDDEN_STYLE = re.compile(r"display\s*:\s*none|visibility\s*:\s*hidden", re.IGNORECASE)


def hidden_by_style(tag: Tag) -> bool:
    return bool(_HIDDEN_STYLE.search(tag.get("style") or ""))


def any_of(*predicates: NodePredicate) -> NodePredicate:
    return lambda tag: any(p(tag) for p in predicates)


def within(ancestor: NodePredicate, node: NodePredicate) -> NodePredicate:
    """*node* matches and some ancestor matches *ancestor*."""

    def _match(tag: Tag) -> bool:
        return node(tag) and any(
            isinstance(parent, Tag) and ancestor(parent) for parent in tag.parents
        )

    return _match


def class_tokens(tag: Tag) -> list[str]:
    classes = tag.get("class") or []
    if isinstance(classes, str):
        classes = classes.split()
    return [c.lower() for c in classes]


# =====================================================================
# Noise allow-list (applied in this order)
# =====================================================================

NOISE_RULES: list[tuple[str, NodePredicate]] = [
    ("scripts-and-styles", any_of(
        tag_named("script", "style", "noscript"),
        attr_equals("link", "rel", "stylesheet"),
    )),
    ("chrome", any_of(
        tag_named("nav", "header", "footer", "aside"),
        has_role("navigation", "banner", "contentinfo"),
        has_class(
            "site-header", "site-footer", "site-navigation", "navigation",
            "breadcrumb", "breadcrumbs", "edit-link", "post-navigation",
            "comments-area", "wp-block-wporg-sidebar-container",
            "wp-block-social-links", "wp-block-navigation",
        ),
        has_id("secondary", "wporg-header", "wporg-footer", "wporg-sidebar"),
    )),
    ("ads-and-widgets", has_class(
        "advertisement", "ad", "ads", "sidebar", "comments",
        "cookie-notice", "gdpr-notice", "privacy-notice",
        "social-share", "share-buttons", "related-posts",
        "author-bio", "post-meta", "entry-meta",
        "widget", "wp-widget", "sidebar-widget",
    )),
    ("forms", any_of(
        tag_named("form", "input", "textarea"),
        attr_equals("button", "type", "submit"),
    )),
    ("hidden", any_of(
        hidden_by_style,
        has_class("hidden", "sr-only", "screen-reader-text"),
    )),
    ("embeds", tag_named("iframe", "embed", "object", "video", "audio")),
    ("helpers", any_of(
        has_class("skip-link", "skip-to-content", "edit-post-link", "admin-bar"),
        has_id("wpadminbar"),
    )),
]


def remove_noise(
    soup: BeautifulSoup,
    rules: list[tuple[str, NodePredicate]] = NOISE_RULES,
) -> int:
    """Decompose every node matched by *rules*. Returns the number removed."""
    removed = 0
    for name, predicate in rules:
        matches = soup.find_all(predicate)
        for element in matches:
            # Descendants of an already removed node are gone with it
            if element.decomposed:
                continue
            element.decompose()
            removed += 1
        if matches:
            logger.debug(f"Noise rule {name} matched {len(matches)} nodes")
    return removed


# =====================================================================
# Main content selection
# =====================================================================

MAIN_CONTENT_STRATEGIES: list[tuple[str, NodePredicate]] = [
    # Site-specific containers
    (".entry-content", has_class("entry-content")),
    (".post-content", has_class("post-content")),
    ("main .entry-content", within(tag_named("main"), has_class("entry-content"))),
    ("article .entry-content", within(tag_named("article"), has_class("entry-content"))),
    (".content-area main", within(has_class("content-area"), tag_named("main"))),
    # Generic containers
    ("main", tag_named("main")),
    ("article", tag_named("article")),
    ("[role=main]", has_role("main")),
    ("#content", has_id("content")),
]


def select_main_content(
    soup: BeautifulSoup,
    strategies: list[tuple[str, NodePredicate]] = MAIN_CONTENT_STRATEGIES,
    min_chars: int = MIN_MAIN_CONTENT_CHARS,
) -> Union[Tag, BeautifulSoup]:
    """First strategy whose first match holds more than *min_chars* of text, else body."""
    for label, predicate in strategies:
        element = soup.find(predicate)
        if element is not None and len(element.get_text().strip()) > min_chars:
            logger.info(f"Found main content using: {label}")
            return element

    logger.info("Fallback to document body")
    return soup.body or soup
