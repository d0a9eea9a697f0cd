"""Issue validation data models (issues, evidence, gap classification)."""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from app.models.base import CamelModel
from app.models.ingestion import LinkIssue


class GapStatus(str, Enum):
    """Classification of how well documentation addresses an issue."""

    RESOLVED = "resolved"
    POTENTIAL_GAP = "potential-gap"
    CONFIRMED = "confirmed"
    CRITICAL_GAP = "critical-gap"


class Issue(CamelModel):
    """A developer-reported documentation problem, discovered upstream."""

    id: str
    title: str
    description: str = ""
    category: str = ""
    frequency: int = 0
    sources: list[str] = Field(default_factory=list)
    last_seen: str = ""
    severity: str = "medium"
    related_pages: list[str] = Field(default_factory=list)

    # Rich signals (optional)
    full_content: Optional[str] = None
    code_snippets: list[str] = Field(default_factory=list)
    error_messages: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    stack_trace: Optional[str] = None

    @property
    def primary_source(self) -> str:
        return self.sources[0] if self.sources else "N/A"


class RichContentEmbedding(CamelModel):
    """Cached embedding of one documentation page."""

    url: str
    title: str = ""
    description: str = ""
    content: str = ""
    embedding: list[float]


class SemanticMatch(CamelModel):
    url: str
    title: str
    similarity: float


class CandidatePage(CamelModel):
    """A page selected for evidence collection."""

    url: str
    title: str
    similarity: Optional[float] = None


class Evidence(CamelModel):
    page_url: str
    page_title: str
    has_relevant_content: bool
    content_gaps: list[str] = Field(default_factory=list)
    code_examples: int = 0
    production_guidance: bool = False
    semantic_score: Optional[float] = None

    @property
    def score(self) -> float:
        return self.semantic_score or 0.0


class PotentialGap(CamelModel):
    gap_type: GapStatus
    page_url: Optional[str] = None
    page_title: Optional[str] = None
    missing_content: list[str] = Field(default_factory=list)
    reasoning: str = ""
    developer_impact: str = ""


class ValidationResult(CamelModel):
    """Per-issue gap analysis."""

    issue_id: str
    issue_title: str
    status: GapStatus
    evidence: list[Evidence] = Field(default_factory=list)
    missing_elements: list[str] = Field(default_factory=list)
    potential_gaps: list[PotentialGap] = Field(default_factory=list)
    critical_gaps: list[str] = Field(default_factory=list)
    confidence: int
    recommendations: list[str] = Field(default_factory=list)


class ValidationSummary(CamelModel):
    total_issues: int = 0
    confirmed: int = 0
    resolved: int = 0
    potential_gaps: int = 0
    critical_gaps: int = 0

    @classmethod
    def from_results(cls, results: list[ValidationResult]) -> "ValidationSummary":
        statuses = [r.status for r in results]
        return cls(
            total_issues=len(results),
            confirmed=statuses.count(GapStatus.CONFIRMED),
            resolved=statuses.count(GapStatus.RESOLVED),
            potential_gaps=statuses.count(GapStatus.POTENTIAL_GAP),
            critical_gaps=statuses.count(GapStatus.CRITICAL_GAP),
        )


class SitemapHealthSummary(CamelModel):
    total_urls: int = 0
    healthy_urls: int = 0
    health_percentage: int = 100
    link_issues: list[LinkIssue] = Field(default_factory=list)
    broken_urls: int = 0
    access_denied_urls: int = 0
    timeout_urls: int = 0
    other_error_urls: int = 0
    processing_time_ms: int = 0
    timestamp: Optional[datetime] = None


class ValidationRequest(CamelModel):
    """Request to validate issues against live documentation."""

    issues: Optional[list[Issue]] = None
    domain: Optional[str] = None
    session_key: Optional[str] = None


class ValidationResponse(CamelModel):
    """Validation output. Same shape on success and failure."""

    success: bool = True
    message: str = ""
    validation_results: list[ValidationResult] = Field(default_factory=list)
    summary: ValidationSummary = Field(default_factory=ValidationSummary)
    processing_time_ms: int = 0
    sitemap_health: Optional[SitemapHealthSummary] = None
