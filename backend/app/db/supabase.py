"""Supabase client connections."""

from supabase import AsyncClient, create_async_client

from app.config import get_settings
from app.errors import ConfigurationError

# Singleton instance
_async_client: AsyncClient | None = None


async def get_async_supabase_client_async() -> AsyncClient:
    """Get async Supabase client in async context.

    Raises:
        ConfigurationError: If the Supabase URL or service key is missing.
    """
    global _async_client
    if _async_client is None:
        settings = get_settings()
        if not settings.supabase_url or not settings.supabase_service_key:
            raise ConfigurationError("SUPABASE_URL and SUPABASE_SERVICE_KEY are required")
        _async_client = await create_async_client(
            settings.supabase_url,
            settings.supabase_service_key,
        )
    return _async_client


def reset_clients() -> None:
    """Reset clients for testing."""
    global _async_client
    _async_client = None
