"""Tests for app.services.validation.recommendations."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from app.models.validation import Evidence, Issue
from app.services.validation.constants import CONTINUE_PROMPT
from app.services.validation.evidence import PageCodeSnippet
from app.services.validation.recommendations import (
    RecommendationGenerator,
    build_recommendation_prompt,
    fallback_recommendations,
    generic_recommendations,
    parse_recommendations,
    unreachable_page_recommendations,
)

ISSUE = Issue(
    id="issue-1",
    title="Webhook signature fails",
    description="Verification rejects valid events",
    category="api-usage",
    sources=["https://github.com/example/sdk/issues/42"],
    error_messages=["Invalid signature"],
)

PAGE_HTML = (
    "<html><body><pre><code class=\"language-ts\">"
    "const event = resend.webhooks.verify(payload);"
    "</code></pre></body></html>"
)

REPLY = """1. **Show raw body handling**

**Problem:** The page parses JSON before verifying.

```typescript
// 2. this line is inside a fence
const raw = await req.text();
```

2. **Document signature errors**

Explain each error code."""


def _message(text: str, stop_reason: str = "end_turn") -> MagicMock:
    msg = MagicMock()
    msg.content = [MagicMock(text=text)]
    msg.stop_reason = stop_reason
    return msg


def _mock_client(*messages) -> MagicMock:
    client = MagicMock()
    client.messages = MagicMock()
    client.messages.create = AsyncMock(side_effect=list(messages))
    return client


def _fetcher(html: str = PAGE_HTML) -> MagicMock:
    fetcher = MagicMock()
    fetcher.fetch_or_empty = AsyncMock(return_value=html)
    return fetcher


def _evidence(url="/docs/webhooks", score=0.8) -> Evidence:
    return Evidence(
        page_url=url,
        page_title="Webhooks",
        has_relevant_content=True,
        semantic_score=score,
    )


class TestParseRecommendations:
    def test_numbered_items_with_fenced_code(self):
        items = parse_recommendations(REPLY)

        assert len(items) == 2
        assert items[0].startswith("**Show raw body handling**")
        assert "// 2. this line is inside a fence" in items[0]
        assert items[0].endswith("```")
        assert items[1] == "**Document signature errors**\n\nExplain each error code."

    def test_fenced_numbered_line_does_not_split(self):
        text = "1. First\n```\n2. not an item\n```\n2. Second"
        assert parse_recommendations(text) == ["First\n```\n2. not an item\n```", "Second"]

    def test_leading_blank_lines_ignored(self):
        assert parse_recommendations("\n\n1. Only one") == ["Only one"]

    def test_text_before_first_number_is_an_item(self):
        assert parse_recommendations("Intro line\n1. Numbered") == ["Intro line", "Numbered"]

    def test_limit(self):
        text = "\n".join(f"{i}. item {i}" for i in range(1, 9))
        assert parse_recommendations(text, limit=5) == [f"item {i}" for i in range(1, 6)]

    def test_empty(self):
        assert parse_recommendations("   \n") == []


class TestPrompt:
    def test_prompt_includes_issue_and_existing_code(self):
        prompt = build_recommendation_prompt(
            ISSUE, _evidence(), [PageCodeSnippet("verify(payload)", "ts")]
        )

        assert "- Title: Webhook signature fails" in prompt
        assert "- Error: Invalid signature" in prompt
        assert "- Source: https://github.com/example/sdk/issues/42" in prompt
        assert "DOCUMENTATION PAGE: /docs/webhooks" in prompt
        assert "Example 1:\n```ts\nverify(payload)\n```" in prompt

    def test_prompt_without_code(self):
        prompt = build_recommendation_prompt(ISSUE, _evidence(), [])
        assert "No code examples found" in prompt


@pytest.mark.asyncio
class TestRecommendationGenerator:
    async def test_generates_from_best_page(self):
        client = _mock_client(_message(REPLY))
        fetcher = _fetcher()
        generator = RecommendationGenerator(client, "test-model", fetcher)

        items = await generator.generate(
            ISSUE, [_evidence("/docs/a", 0.55), _evidence("/docs/webhooks", 0.8)], "resend.com"
        )

        assert len(items) == 2
        fetcher.fetch_or_empty.assert_awaited_once_with("https://resend.com/docs/webhooks")
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["temperature"] == 0.3
        assert "resend.webhooks.verify(payload)" in kwargs["messages"][0]["content"]

    async def test_truncated_reply_is_continued(self):
        client = _mock_client(
            _message("1. Part one ", "max_tokens"),
            _message("continues here"),
        )
        generator = RecommendationGenerator(client, "test-model", _fetcher())

        text = await generator.complete("prompt")

        assert text == "1. Part one continues here"
        assert client.messages.create.await_count == 2
        second = client.messages.create.call_args_list[1].kwargs["messages"]
        assert second == [
            {"role": "user", "content": "prompt"},
            {"role": "assistant", "content": "1. Part one "},
            {"role": "user", "content": CONTINUE_PROMPT},
        ]
        first = client.messages.create.call_args_list[0].kwargs["messages"]
        assert len(first) == 1

    async def test_continuation_capped_at_max_attempts(self):
        client = _mock_client(
            *[_message(f"part{i} ", "max_tokens") for i in range(1, 6)],
            _message("never requested"),
        )
        generator = RecommendationGenerator(client, "test-model", _fetcher())

        text = await generator.complete("prompt")

        assert client.messages.create.await_count == 5
        assert text == "part1 part2 part3 part4 part5 "

    async def test_low_score_gives_generic_set(self):
        client = _mock_client()
        generator = RecommendationGenerator(client, "test-model", _fetcher())

        items = await generator.generate(ISSUE, [_evidence(score=0.49)], "resend.com")

        assert items == generic_recommendations(ISSUE)
        assert items[0] == "Create new documentation page addressing: Webhook signature fails"
        client.messages.create.assert_not_awaited()

    async def test_no_semantic_score_gives_generic_set(self):
        generator = RecommendationGenerator(_mock_client(), "test-model", _fetcher())

        items = await generator.generate(ISSUE, [_evidence(score=None)], "resend.com")

        assert items == generic_recommendations(ISSUE)

    async def test_no_evidence_gives_generic_set(self):
        generator = RecommendationGenerator(_mock_client(), "test-model", _fetcher())

        assert await generator.generate(ISSUE, [], "resend.com") == generic_recommendations(ISSUE)

    async def test_unreachable_page(self):
        generator = RecommendationGenerator(_mock_client(), "test-model", _fetcher(html=""))

        items = await generator.generate(ISSUE, [_evidence()], "resend.com")

        assert items == unreachable_page_recommendations(ISSUE, "/docs/webhooks")
        assert items[0] == "Update /docs/webhooks to address: Webhook signature fails"

    async def test_model_failure_gives_fallback_set(self):
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=RuntimeError("overloaded"))
        generator = RecommendationGenerator(client, "test-model", _fetcher())

        items = await generator.generate(ISSUE, [_evidence()], "resend.com")

        assert items == fallback_recommendations(ISSUE)
        assert items[-1] == "Reference developer issue: https://github.com/example/sdk/issues/42"

    async def test_empty_reply_gives_fallback_set(self):
        generator = RecommendationGenerator(_mock_client(_message("  ")), "test-model", _fetcher())

        items = await generator.generate(ISSUE, [_evidence()], "resend.com")

        assert items == fallback_recommendations(ISSUE)
