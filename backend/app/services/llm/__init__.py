"""Anthropic client factory and shared LLM helpers."""

from typing import Optional

import anthropic

from app.config import get_settings
from app.errors import ConfigurationError

_client: Optional[anthropic.AsyncAnthropic] = None


def get_anthropic_client() -> anthropic.AsyncAnthropic:
    """Get the process-wide async Anthropic client."""
    global _client
    if _client is None:
        settings = get_settings()
        if not settings.anthropic_api_key:
            raise ConfigurationError("ANTHROPIC_API_KEY is required")
        _client = anthropic.AsyncAnthropic(api_key=settings.anthropic_api_key)
    return _client


def reset_anthropic_client() -> None:
    """Reset client for testing."""
    global _client
    _client = None
