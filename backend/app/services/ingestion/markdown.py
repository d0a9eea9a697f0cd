"""HTML subtree → Markdown with documentation-specific rules.

Callout containers become typed blockquotes and ``<pre><code>`` blocks become
fenced code with an inferred language tag.
"""

import re
from enum import Enum
from typing import Optional, Union

from bs4 import BeautifulSoup, Tag
from markdownify import MarkdownConverter

from app.services.ingestion.noise import class_tokens

_LANG_CLASS = re.compile(r"(?:lang-|language-)([a-zA-Z0-9]+)")
_CALLOUT_CLASS = re.compile(r"notice|warning|info|tip|alert")


class CalloutType(str, Enum):
    WARNING = "Warning"
    NOTE = "Note"
    TIP = "Tip"
    ERROR = "Error"


# Evaluated in order; the last matching rule decides the type
_CALLOUT_RULES: list[tuple[re.Pattern, CalloutType]] = [
    (re.compile(r"warning|caution"), CalloutType.WARNING),
    (re.compile(r"info|note"), CalloutType.NOTE),
    (re.compile(r"tip|hint"), CalloutType.TIP),
    (re.compile(r"error|danger"), CalloutType.ERROR),
]


def callout_type(el: Tag) -> Optional[CalloutType]:
    """Callout severity for a ``<div>`` whose class marks it as an admonition."""
    if el.name != "div":
        return None
    class_name = " ".join(class_tokens(el))
    if not _CALLOUT_CLASS.search(class_name):
        return None

    kind = CalloutType.NOTE
    for pattern, candidate in _CALLOUT_RULES:
        if pattern.search(class_name):
            kind = candidate
    return kind


def detect_language_from_class(class_name: str) -> str:
    """Language named by a code element's class attribute, or ``""``."""
    match = _LANG_CLASS.search(class_name)
    if match:
        return match.group(1).lower()

    lowered = class_name.lower()
    if "php" in lowered:
        return "php"
    if "js" in lowered or "javascript" in lowered:
        return "javascript"
    if "css" in lowered:
        return "css"
    if "html" in lowered:
        return "html"
    if "bash" in lowered or "shell" in lowered:
        return "bash"
    return ""


def detect_language_from_content(code: str) -> str:
    if "<?php" in code or "->" in code:
        return "php"
    if "function" in code or "const " in code or "=>" in code:
        return "javascript"
    if "{" in code and ":" in code and ";" in code:
        return "css"
    if "<" in code and ">" in code:
        return "html"
    return "text"


def code_language(code_el: Tag) -> str:
    class_name = " ".join(class_tokens(code_el))
    return detect_language_from_class(class_name) or detect_language_from_content(
        code_el.get_text()
    )


class DocMarkdownConverter(MarkdownConverter):
    """Markdown converter for documentation pages."""

    def convert_pre(self, el, text, *args, **kwargs):
        """Fenced code block with an inferred language tag."""
        code = el.find("code")
        if code is None:
            return f"\n```\n{el.get_text()}\n```\n"
        return f"\n```{code_language(code)}\n{code.get_text()}\n```\n"

    def convert_div(self, el, text, *args, **kwargs):
        """Admonition divs become ``> **Type:** text`` blockquotes."""
        kind = callout_type(el)
        if kind is None:
            parent = getattr(super(), "convert_div", None)
            return parent(el, text, *args, **kwargs) if parent else text
        return f"\n> **{kind.value}:** {(text or '').strip()}\n"


_CONVERTER = DocMarkdownConverter(heading_style="ATX", bullets="-")


def html_to_markdown(node: Union[Tag, BeautifulSoup, str]) -> str:
    """Convert an HTML string or parsed subtree to Markdown."""
    if isinstance(node, str):
        markdown = _CONVERTER.convert(node)
    else:
        markdown = _CONVERTER.convert_soup(node)
    return re.sub(r"\n{3,}", "\n\n", markdown).strip()
