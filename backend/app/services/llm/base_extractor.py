"""Single-shot Anthropic analyzers (content-type fallback, code snippet review).

Subclasses supply the prompt and turn the decoded reply into a model; the
base owns the API call, retries, reply decoding and the failure fallback.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import anthropic
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.services.llm.llm_utils import extract_json_from_response, response_text

logger = logging.getLogger(__name__)


class BaseLLMExtractor(ABC):
    """One prompt in, one parsed result out, never raising.

    Required hooks: ``_prepare_content``, ``_parse_result``, ``_empty_result``.
    ``SYSTEM_PROMPT`` is optional and ``_decode`` defaults to JSON extraction.
    """

    SYSTEM_PROMPT: Optional[str] = None

    def __init__(self, client: anthropic.AsyncAnthropic, model: str) -> None:
        self.client = client
        self.model = model

    # ------------------------------------------------------------------
    # Template method
    # ------------------------------------------------------------------

    async def extract(self, source: Any, **kwargs: Any) -> Any:
        """Prompt the model about *source* and parse the reply.

        Empty input, API failures and unparseable replies all yield
        ``_empty_result()``. Extra kwargs reach both prompt and parse hooks.
        """
        if not source:
            return self._empty_result()

        content = self._prepare_content(source, **kwargs)

        try:
            data = await self._call_llm(content)
        except Exception as e:
            logger.error(f"{self.__class__.__name__} LLM call failed: {e}")
            return self._empty_result()

        try:
            return self._parse_result(data, source, **kwargs)
        except Exception as e:
            logger.error(f"{self.__class__.__name__} parse failed: {e}")
            return self._empty_result()

    # ------------------------------------------------------------------
    # LLM interaction (shared)
    # ------------------------------------------------------------------

    @retry(
        retry=retry_if_exception_type(
            (anthropic.RateLimitError, anthropic.APITimeoutError)
        ),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        reraise=True,
    )
    async def _call_llm(self, user_content: str) -> Any:
        """Send one user message; rate limits and timeouts are retried."""
        params: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self._max_tokens(),
            "temperature": self._temperature(),
            "messages": [{"role": "user", "content": user_content}],
        }
        if self.SYSTEM_PROMPT:
            params["system"] = self.SYSTEM_PROMPT

        response = await self.client.messages.create(**params)
        return self._decode(response_text(response))

    # ------------------------------------------------------------------
    # Hooks for subclasses
    # ------------------------------------------------------------------

    @abstractmethod
    def _prepare_content(self, source: Any, **kwargs: Any) -> str:
        """Build the user-message string."""

    @abstractmethod
    def _parse_result(self, data: Any, source: Any, **kwargs: Any) -> Any:
        """Convert the decoded reply into the domain model."""

    @abstractmethod
    def _empty_result(self) -> Any:
        """Return a safe default when extraction cannot proceed."""

    def _decode(self, raw_text: str) -> Any:
        """Reply text to structured data. Label classifiers override this."""
        return extract_json_from_response(raw_text, expect_array=self._expect_array())

    def _max_tokens(self) -> int:
        return 2000

    def _temperature(self) -> float:
        return 0.1

    def _expect_array(self) -> bool:
        return False
