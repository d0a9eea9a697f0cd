"""Ingestion pipeline data models (page processing, link checks, cache index)."""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from pydantic import Field

from app.models.base import CamelModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ContentType(str, Enum):
    """Closed set of documentation page types."""

    API_REFERENCE = "api-reference"
    TUTORIAL = "tutorial"
    CONCEPTUAL = "conceptual"
    HOW_TO = "how-to"
    OVERVIEW = "overview"
    REFERENCE = "reference"
    TROUBLESHOOTING = "troubleshooting"
    CHANGELOG = "changelog"
    MIXED = "mixed"


class ContextualSetting(str, Enum):
    """Partition of the content cache by whether context pages were discovered."""

    WITH_CONTEXT = "with-context"
    WITHOUT_CONTEXT = "without-context"


class LinkIssueType(str, Enum):
    BROKEN = "404"
    ACCESS_DENIED = "access-denied"
    TIMEOUT = "timeout"
    ERROR = "error"


class ContextRelationship(str, Enum):
    PARENT = "parent"
    CHILD = "child"


class MediaType(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    INTERACTIVE = "interactive"


# =============================================================================
# Request / Response
# =============================================================================


class AnalysisContext(CamelModel):
    """Context-page discovery options."""

    enabled: bool = Field(default=False, description="Discover parent/child pages")
    max_context_pages: Optional[int] = Field(
        default=None, ge=0, le=5, description="Cap on discovered context pages"
    )


class CacheControl(CamelModel):
    """Content cache options."""

    enabled: bool = Field(default=True, description="Read and write the content cache")


class IngestionRequest(CamelModel):
    """Request to ingest and normalize a documentation page."""

    url: Optional[str] = Field(None, description="Page URL to ingest")
    session_id: Optional[str] = Field(
        None, description="Caller session; defaults to the derived session key"
    )
    analysis_context: Optional[AnalysisContext] = None
    cache_control: Optional[CacheControl] = None


class IngestionResponse(CamelModel):
    """Outcome of an ingestion request. Same shape on success and failure."""

    success: bool
    session_key: str = ""
    message: str


# =============================================================================
# Processed content parts
# =============================================================================


class MediaElement(CamelModel):
    type: MediaType
    src: str = ""
    alt: Optional[str] = None
    caption: Optional[str] = None
    analysis_note: str = ""


class CodeSnippet(CamelModel):
    language: str = "text"
    code: str
    line_number: int = Field(..., description="1-based position among code elements")
    has_version_info: bool = False


class LinkCandidate(CamelModel):
    """A harvested link scheduled for a health check."""

    url: str
    anchor_text: str = ""


class LinkIssue(CamelModel):
    url: str
    status: Union[int, str]
    anchor_text: Optional[str] = None
    source_location: Optional[str] = None
    error_message: str
    issue_type: LinkIssueType


class LinkValidationSummary(CamelModel):
    checked_links: int = 0
    link_issue_findings: list[LinkIssue] = Field(default_factory=list)
    healthy_links: int = 0
    broken_links: int = 0
    access_denied_links: int = 0
    timeout_links: int = 0
    other_errors: int = 0


class LinkAnalysis(CamelModel):
    total_links: int = 0
    internal_links: int = 0
    external_links: int = 0
    sub_pages_identified: list[str] = Field(default_factory=list)
    link_context: str = "single-page"
    analysis_scope: str = "current-page-only"
    link_validation: Optional[LinkValidationSummary] = None
    broken_links: int = 0
    total_link_issues: int = 0


class ContextPage(CamelModel):
    url: str
    title: str
    relationship: ContextRelationship
    confidence: float


class ContextAnalysis(CamelModel):
    context_pages: list[ContextPage] = Field(default_factory=list)
    analysis_scope: str = "single-page"
    total_pages_analyzed: int = 1


class NoiseReductionMetrics(CamelModel):
    original_size: int
    cleaned_size: int
    reduction_percent: int

    @classmethod
    def from_sizes(cls, original_size: int, cleaned_size: int) -> "NoiseReductionMetrics":
        percent = round((1 - cleaned_size / original_size) * 100) if original_size else 0
        return cls(
            original_size=original_size,
            cleaned_size=cleaned_size,
            reduction_percent=percent,
        )


class DeprecatedCodeFinding(CamelModel):
    language: str = "unknown"
    method: str = "unknown"
    location: str = ""
    deprecated_in: str = "unknown version"
    removed_in: Optional[str] = None
    replacement: str = "see documentation"
    confidence: str = "medium"
    code_fragment: str = ""


class SyntaxErrorFinding(CamelModel):
    language: str = "unknown"
    location: str = ""
    error_type: str = "SyntaxError"
    description: str = "syntax error detected"
    code_fragment: str = ""
    confidence: str = "medium"


class EnhancedCodeAnalysis(CamelModel):
    deprecated_code_findings: list[DeprecatedCodeFinding] = Field(default_factory=list)
    syntax_error_findings: list[SyntaxErrorFinding] = Field(default_factory=list)
    analyzed_snippets: int = 0
    confidence_distribution: dict[str, int] = Field(
        default_factory=lambda: {"high": 0, "medium": 0, "low": 0}
    )


class ProcessedContent(CamelModel):
    """Normalized page artifact. Immutable once written."""

    url: str
    cleaned_html: str
    structured_text: str
    media_elements: list[MediaElement] = Field(default_factory=list)
    code_snippets: list[CodeSnippet] = Field(default_factory=list)
    content_type: ContentType = ContentType.MIXED
    link_analysis: LinkAnalysis = Field(default_factory=LinkAnalysis)
    enhanced_code_analysis: Optional[EnhancedCodeAnalysis] = None
    context_analysis: Optional[ContextAnalysis] = None
    noise_reduction_metrics: NoiseReductionMetrics
    timestamp: datetime = Field(default_factory=_utcnow)


# =============================================================================
# Cache index
# =============================================================================


class CacheIndexEntry(CamelModel):
    """Index row pointing at a cached ``ProcessedContent`` object."""

    url: str = Field(..., description="Normalized URL")
    contextual_setting: ContextualSetting
    object_location: str
    content_hash: str
    ttl: int = Field(..., description="Expiry as epoch seconds")
    content_type: ContentType = ContentType.MIXED
    processed_at: datetime = Field(default_factory=_utcnow)
    noise_reduction_metrics: Optional[NoiseReductionMetrics] = None
