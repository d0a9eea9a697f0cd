"""Ingestion package: fetch, strip, extract, classify and cache documentation pages.

Re-exports the public API so consumers can use::

    from app.services.ingestion import UrlProcessor, get_url_processor
"""

from app.services.ingestion.processor import (
    UrlProcessor,
    get_url_processor,
    require_url,
    reset_url_processor,
)
from app.services.ingestion.url_utils import derive_session_key, normalize_url

__all__ = [
    "UrlProcessor",
    "derive_session_key",
    "get_url_processor",
    "normalize_url",
    "require_url",
    "reset_url_processor",
]
