"""Application configuration using pydantic-settings."""

from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Supabase (index store, object store, progress channel)
    supabase_url: Optional[str] = None
    supabase_service_key: Optional[str] = None
    storage_bucket: str = "doc-audit-artifacts"
    cache_index_table: str = "processed_content_cache"
    progress_table: str = "analysis_progress"

    # Content cache
    cache_ttl_days: int = 7

    # Anthropic (recommendations, code analysis, content-type fallback)
    anthropic_api_key: Optional[str] = None
    claude_model: str = "claude-sonnet-4-20250514"
    # Content-type classification only needs a label back; a smaller model is fine here
    classifier_model: Optional[str] = None  # Defaults to claude_model if not set

    # OpenAI (embeddings for semantic search)
    openai_api_key: Optional[str] = None
    embedding_model: str = "text-embedding-3-small"
    embedding_dimensions: int = 1536

    # Outbound HTTP
    user_agent: str = "DocAudit Documentation Quality Auditor/1.0"
    page_fetch_timeout: float = 30.0
    validation_fetch_timeout: float = 10.0

    # Ingestion features
    code_analysis_enabled: bool = True

    # CORS
    cors_origins: str = "http://localhost:3001"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings for testing."""
    global _settings
    _settings = None
