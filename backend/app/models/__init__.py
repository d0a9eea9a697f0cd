from app.models.ingestion import (
    CacheIndexEntry,
    ContentType,
    ContextPage,
    ContextualSetting,
    IngestionRequest,
    IngestionResponse,
    LinkIssue,
    ProcessedContent,
)
from app.models.progress import ProgressEvent, ProgressType
from app.models.validation import (
    Evidence,
    GapStatus,
    Issue,
    RichContentEmbedding,
    SitemapHealthSummary,
    ValidationRequest,
    ValidationResponse,
    ValidationResult,
)

__all__ = [
    # Ingestion models
    "CacheIndexEntry",
    "ContentType",
    "ContextPage",
    "ContextualSetting",
    "IngestionRequest",
    "IngestionResponse",
    "LinkIssue",
    "ProcessedContent",
    # Progress models
    "ProgressEvent",
    "ProgressType",
    # Validation models
    "Evidence",
    "GapStatus",
    "Issue",
    "RichContentEmbedding",
    "SitemapHealthSummary",
    "ValidationRequest",
    "ValidationResponse",
    "ValidationResult",
]
