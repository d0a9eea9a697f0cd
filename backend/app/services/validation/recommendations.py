"""Remediation text for a validated issue.

The model is asked for two detailed, code-heavy recommendations. Replies cut
off at the token limit are continued in the same conversation up to a fixed
number of attempts, and the concatenated text is split into items by a small
line-oriented parser that never breaks a fenced code block.
"""

import logging
import re
from collections.abc import Sequence
from typing import Any, Optional

import anthropic
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.models.validation import Evidence, Issue
from app.services.llm.llm_utils import response_text
from app.services.page_fetcher import PageFetcher
from app.services.validation.classification import select_best_evidence
from app.services.validation.constants import (
    CONTINUE_PROMPT,
    MAX_CONTINUATION_ATTEMPTS,
    MAX_RECOMMENDATIONS,
    PROMPT_CODE_SNIPPET_CHARS,
    PROMPT_CODE_SNIPPETS,
    RECOMMENDATION_MAX_TOKENS,
    RECOMMENDATION_MIN_SCORE,
    RECOMMENDATION_TEMPERATURE,
)
from app.services.validation.evidence import PageCodeSnippet, extract_page_code_snippets
from app.services.validation.semantic_search import page_url

logger = logging.getLogger(__name__)

_ITEM_START = re.compile(r"^\d+\.\s")
_FENCE = "```"


# =====================================================================
# Fixed recommendation sets
# =====================================================================


def generic_recommendations(issue: Issue) -> list[str]:
    """No page matches the issue well enough to improve."""
    return [
        f"Create new documentation page addressing: {issue.title}",
        f"Include code examples for {issue.category}",
        "Add troubleshooting section for common errors",
        f"Reference: {issue.primary_source}",
    ]


def unreachable_page_recommendations(issue: Issue, url: str) -> list[str]:
    return [
        f"Update {url} to address: {issue.title}",
        f"Add code examples for {issue.category}",
        "Include troubleshooting section for common errors",
        f"Reference: {issue.primary_source}",
    ]


def fallback_recommendations(issue: Issue) -> list[str]:
    """Used whenever generation fails."""
    return [
        f'Add troubleshooting section for "{issue.title}" with specific error handling',
        f"Include code examples addressing {issue.category} issues",
        f"Add production deployment guidance for common {issue.category} problems",
        f"Reference developer issue: {issue.primary_source}",
    ]


# =====================================================================
# Reply parsing
# =====================================================================


def parse_recommendations(text: str, limit: int = MAX_RECOMMENDATIONS) -> list[str]:
    """Split model output into recommendations.

    A line starting with ``<n>. `` opens a new recommendation (the number is
    dropped); every other line continues the current one. Lines inside a
    fenced code block are always continuations. Blank lines before the first
    item are ignored.
    """
    items: list[str] = []
    current: Optional[list[str]] = None
    in_fence = False

    def flush() -> None:
        if current is not None:
            item = "\n".join(current).strip()
            if item:
                items.append(item)

    for line in text.split("\n"):
        if not in_fence and _ITEM_START.match(line):
            flush()
            current = [_ITEM_START.sub("", line, count=1)]
        elif current is not None:
            current.append(line)
        elif line.strip():
            current = [line]

        if line.strip().startswith(_FENCE):
            in_fence = not in_fence

    flush()
    return items[:limit]


# =====================================================================
# Prompt
# =====================================================================


def _existing_code(snippets: Sequence[PageCodeSnippet]) -> str:
    if not snippets:
        return "No code examples found"
    blocks = [
        f"Example {i}:\n```{s.language or 'typescript'}\n"
        f"{s.code[:PROMPT_CODE_SNIPPET_CHARS]}\n```"
        for i, s in enumerate(snippets[:PROMPT_CODE_SNIPPETS], start=1)
    ]
    return "\n\n".join(blocks)


def build_recommendation_prompt(
    issue: Issue, evidence: Evidence, snippets: Sequence[PageCodeSnippet]
) -> str:
    first_error = issue.error_messages[0] if issue.error_messages else "N/A"
    return f"""You are a technical documentation expert analyzing a developer issue.

DEVELOPER ISSUE:
- Title: {issue.title}
- Description: {issue.description}
- Error: {first_error}
- Source: {issue.primary_source}

DOCUMENTATION PAGE: {evidence.page_url}
EXISTING CODE ON PAGE:
{_existing_code(snippets)}

YOUR TASK: Generate TWO detailed recommendations with COMPLETE code examples.

CRITICAL REQUIREMENTS:
- Each recommendation MUST include a COMPLETE code block (40-60 lines)
- Code must be COPY-PASTE READY: no placeholders, no "// ... rest of code"
- Include all imports, error handling and edge cases
- Show BEFORE (existing documentation code) and AFTER (improved code)

OUTPUT FORMAT (follow exactly, start each recommendation with its number):

1. **[Descriptive Title]**

**Problem:** [2-3 sentences explaining what is missing in the current docs]

**Current Documentation Code (BEFORE):**
```typescript
// The existing code from the documentation that needs improvement
```

**Improved Code (AFTER) - Add this to documentation:**
```typescript
// COMPLETE 40-60 line code example: imports, types, input validation,
// try/catch with specific error messages, comments for each section
```

**Why This Helps Developers:** [2-3 sentences]

2. **[Descriptive Title]**

**Problem:** [2-3 sentences]

**Current Documentation Code (BEFORE):**
```typescript
// Existing code
```

**Improved Code (AFTER) - Add this to documentation:**
```typescript
// Another COMPLETE 40-60 line example covering a different aspect of the issue
```

**Why This Helps Developers:** [2-3 sentences]

Do NOT be brief. Include full, working code that developers can copy directly."""


# =====================================================================
# Generator
# =====================================================================


class RecommendationGenerator:
    """Produces remediation text for one issue from its best evidence page."""

    def __init__(
        self,
        client: anthropic.AsyncAnthropic,
        model: str,
        fetcher: PageFetcher,
        *,
        min_score: float = RECOMMENDATION_MIN_SCORE,
        max_attempts: int = MAX_CONTINUATION_ATTEMPTS,
        max_tokens: int = RECOMMENDATION_MAX_TOKENS,
    ) -> None:
        self.client = client
        self.model = model
        self.fetcher = fetcher
        self.min_score = min_score
        self.max_attempts = max_attempts
        self.max_tokens = max_tokens

    async def generate(
        self, issue: Issue, evidence: Sequence[Evidence], domain: str
    ) -> list[str]:
        """Recommendations for *issue*. Never raises."""
        try:
            best = select_best_evidence(evidence)
            if best is None or not best.semantic_score or best.score < self.min_score:
                return generic_recommendations(issue)

            html = await self.fetcher.fetch_or_empty(page_url(domain, best.page_url))
            if not html:
                return unreachable_page_recommendations(issue, best.page_url)

            snippets = extract_page_code_snippets(html)
            logger.info(
                f"Generating recommendations for issue {issue.id} from {best.page_url} "
                f"({len(snippets)} existing code snippets)"
            )
            text = await self.complete(build_recommendation_prompt(issue, best, snippets))
            recommendations = parse_recommendations(text)
            if not recommendations:
                raise ValueError("Model reply contained no recommendations")
            return recommendations

        except Exception as e:
            logger.error(f"Failed to generate recommendations for issue {issue.id}: {e}")
            return fallback_recommendations(issue)

    async def complete(self, prompt: str) -> str:
        """Run the prompt, continuing truncated replies up to ``max_attempts`` calls.

        Returns:
            Concatenation of every partial reply, in call order.
        """
        messages: list[dict[str, Any]] = [{"role": "user", "content": prompt}]
        text = ""

        for attempt in range(1, self.max_attempts + 1):
            response = await self._send(list(messages))
            partial = response_text(response)
            text += partial

            if response.stop_reason != "max_tokens":
                break

            logger.warning(f"Response {attempt} was truncated (stop_reason: max_tokens)")
            messages.append({"role": "assistant", "content": partial})
            messages.append({"role": "user", "content": CONTINUE_PROMPT})
        else:
            logger.warning(
                f"Reached maximum continuation attempts ({self.max_attempts}). "
                "Response may still be incomplete."
            )

        return text

    @retry(
        retry=retry_if_exception_type(
            (anthropic.RateLimitError, anthropic.APITimeoutError)
        ),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        reraise=True,
    )
    async def _send(self, messages: list[dict[str, Any]]) -> Any:
        return await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=RECOMMENDATION_TEMPERATURE,
            messages=messages,
        )
