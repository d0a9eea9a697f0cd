"""Embedding service using OpenAI text-embedding-3-small."""

import logging
from typing import Optional

import tiktoken
from openai import APIConnectionError, APITimeoutError, AsyncOpenAI, RateLimitError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.config import get_settings
from app.errors import ConfigurationError

logger = logging.getLogger(__name__)

MAX_EMBEDDING_TOKENS = 8_000  # Model input limit is 8191


class EmbeddingService:
    """Service for generating text embeddings using OpenAI."""

    def __init__(
        self,
        client: Optional[AsyncOpenAI] = None,
        *,
        model: Optional[str] = None,
        dimensions: Optional[int] = None,
    ) -> None:
        settings = get_settings()
        if client is None and settings.openai_api_key:
            client = AsyncOpenAI(api_key=settings.openai_api_key)
        if client is None:
            logger.warning("OpenAI API key not configured - embeddings disabled")
        self._client = client

        self._model = model or settings.embedding_model
        self._dimensions = dimensions or settings.embedding_dimensions
        self._encoding: Optional[tiktoken.Encoding] = None

    @property
    def is_available(self) -> bool:
        """Check if embedding service is configured and available."""
        return self._client is not None

    @property
    def encoding(self) -> tiktoken.Encoding:
        # Loaded on first use; the BPE file is fetched once and cached by tiktoken
        if self._encoding is None:
            self._encoding = tiktoken.encoding_for_model("gpt-4")
        return self._encoding

    def truncate(self, text: str, max_tokens: int = MAX_EMBEDDING_TOKENS) -> str:
        """Cut *text* to at most *max_tokens* tokens."""
        # A token spans at least one character
        if len(text) <= max_tokens:
            return text
        tokens = self.encoding.encode(text)
        if len(tokens) <= max_tokens:
            return text
        logger.debug(f"Truncating embedding input from {len(tokens)} tokens")
        return self.encoding.decode(tokens[:max_tokens])

    def _prepare(self, text: str) -> str:
        if not self._client:
            raise ConfigurationError("OpenAI API key not configured")
        cleaned = text.replace("\n", " ").strip()
        if not cleaned:
            raise ValueError("Cannot embed empty text")
        return self.truncate(cleaned)

    @retry(
        retry=retry_if_exception_type((RateLimitError, APITimeoutError, APIConnectionError)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        reraise=True,
    )
    async def _create(self, inputs):
        return await self._client.embeddings.create(
            model=self._model,
            input=inputs,
            dimensions=self._dimensions,
        )

    async def embed_text(self, text: str) -> list[float]:
        """
        Generate embedding for a single text.

        Returns embedding vector of configured dimensions.

        Raises:
            ConfigurationError: If the service has no client.
            ValueError: If *text* is blank.
        """
        response = await self._create(self._prepare(text))
        return response.data[0].embedding


# Singleton pattern
_embedding_service: Optional[EmbeddingService] = None


def get_embedding_service() -> EmbeddingService:
    """Get cached embedding service instance."""
    global _embedding_service
    if _embedding_service is None:
        _embedding_service = EmbeddingService()
    return _embedding_service


def reset_embedding_service() -> None:
    """Reset service for testing."""
    global _embedding_service
    _embedding_service = None
