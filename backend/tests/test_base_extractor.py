"""Tests for app.services.llm.base_extractor."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from app.services.llm.base_extractor import BaseLLMExtractor


class ConcreteExtractor(BaseLLMExtractor):
    """Minimal concrete implementation for testing."""

    SYSTEM_PROMPT = "You are a test extractor."

    def _prepare_content(self, source: str, **kwargs: Any) -> str:
        return f"Analyze: {source}"

    def _parse_result(self, data: Any, source: str, **kwargs: Any) -> dict:
        return {"parsed": True, "data": data}

    def _empty_result(self) -> dict:
        return {"parsed": False, "data": None}


class PlainExtractor(BaseLLMExtractor):
    """Extractor without a system prompt that keeps the raw reply."""

    def _prepare_content(self, source: str, **kwargs: Any) -> str:
        return source

    def _decode(self, raw_text: str) -> str:
        return raw_text.strip()

    def _parse_result(self, data: str, source: str, **kwargs: Any) -> str:
        return data

    def _empty_result(self) -> str:
        return ""

    def _max_tokens(self) -> int:
        return 50


def _mock_client(response_text: str) -> MagicMock:
    """Create a mock Anthropic client that returns *response_text*."""
    mock_msg = MagicMock()
    mock_msg.content = [MagicMock(text=response_text)]
    client = MagicMock()
    client.messages = MagicMock()
    client.messages.create = AsyncMock(return_value=mock_msg)
    return client


@pytest.mark.asyncio
class TestBaseLLMExtractor:
    async def test_empty_source_returns_empty_result(self):
        client = _mock_client("{}")
        ext = ConcreteExtractor(client, "test-model")
        result = await ext.extract("")
        assert result == {"parsed": False, "data": None}
        client.messages.create.assert_not_called()

    async def test_successful_extraction(self):
        client = _mock_client('```json\n{"key": "value"}\n```')
        ext = ConcreteExtractor(client, "test-model")
        result = await ext.extract("snippet")
        assert result["parsed"] is True
        assert result["data"] == {"key": "value"}

    async def test_api_error_returns_empty_result(self):
        client = MagicMock()
        client.messages = MagicMock()
        client.messages.create = AsyncMock(side_effect=RuntimeError("API down"))
        ext = ConcreteExtractor(client, "test-model")
        result = await ext.extract("snippet")
        assert result == {"parsed": False, "data": None}

    async def test_unparsable_reply_returns_empty_result(self):
        client = _mock_client("not json")
        ext = ConcreteExtractor(client, "test-model")
        assert await ext.extract("snippet") == {"parsed": False, "data": None}

    async def test_request_params(self):
        client = _mock_client("{}")
        ext = ConcreteExtractor(client, "test-model")
        await ext.extract("snippet")
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "test-model"
        assert kwargs["max_tokens"] == 2000
        assert kwargs["temperature"] == 0.1
        assert kwargs["system"] == "You are a test extractor."
        assert kwargs["messages"] == [{"role": "user", "content": "Analyze: snippet"}]

    async def test_no_system_prompt_and_custom_decode(self):
        client = _mock_client("  tutorial \n")
        ext = PlainExtractor(client, "test-model")
        assert await ext.extract("page") == "tutorial"
        kwargs = client.messages.create.call_args.kwargs
        assert "system" not in kwargs
        assert kwargs["max_tokens"] == 50

    async def test_rate_limit_is_retried(self):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        rate_limited = anthropic.RateLimitError(
            "slow down", response=httpx.Response(429, request=request), body=None
        )
        ok = MagicMock()
        ok.content = [MagicMock(text='{"ok": true}')]
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=[rate_limited, ok])

        result = await ConcreteExtractor(client, "test-model").extract("snippet")
        assert result["data"] == {"ok": True}
        assert client.messages.create.await_count == 2
