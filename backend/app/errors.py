"""Error taxonomy for the documentation audit pipeline.

Only ``ConfigurationError`` and ``InputValidationError`` ever reach an entry
point; the others are recovered close to where they are raised.
"""

from typing import Optional


class DocAuditError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(DocAuditError):
    """A required setting or endpoint is missing."""


class NetworkError(DocAuditError):
    """A page fetch failed (non-2xx status, timeout, or transport error)."""

    def __init__(
        self,
        message: str,
        *,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ModelError(DocAuditError):
    """A language-model call failed or returned unusable output."""


class CacheError(DocAuditError):
    """An index-store or object-store read/write failed."""


class InputValidationError(DocAuditError):
    """Required request fields are missing."""
