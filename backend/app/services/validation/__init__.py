"""Validation package: match developer issues to documentation and classify gaps.

Re-exports the public API so consumers can use::

    from app.services.validation import IssueValidator, get_issue_validator
"""

from app.services.validation.classification import (
    GapThresholds,
    classify_gap,
    select_best_evidence,
)
from app.services.validation.semantic_search import cosine_similarity
from app.services.validation.validator import (
    IssueValidator,
    get_issue_validator,
    require_parameters,
    reset_issue_validator,
)

__all__ = [
    "GapThresholds",
    "IssueValidator",
    "classify_gap",
    "cosine_similarity",
    "get_issue_validator",
    "require_parameters",
    "reset_issue_validator",
    "select_best_evidence",
]
