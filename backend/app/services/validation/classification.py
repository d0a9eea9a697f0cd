"""Gap classification over collected evidence.

Kept separate from ``IssueValidator`` so the priority chain can be
unit-tested independently.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Optional

from app.models.validation import Evidence, GapStatus
from app.services.validation.constants import (
    CONFIDENCE_CONFIRMED,
    CONFIDENCE_CRITICAL_GAP,
    CONFIDENCE_POTENTIAL_GAP,
    CONFIDENCE_RESOLVED,
    POTENTIAL_GAP_THRESHOLD,
    RESOLVED_THRESHOLD,
)


@dataclass(frozen=True)
class GapThresholds:
    resolved: float = RESOLVED_THRESHOLD
    potential_gap: float = POTENTIAL_GAP_THRESHOLD


def classify_gap(
    evidence: Sequence[Evidence], thresholds: GapThresholds = GapThresholds()
) -> tuple[GapStatus, int]:
    """Status and confidence for an issue's evidence set.

    Conditions are checked in strict priority order (resolved, potential-gap,
    confirmed, critical-gap) across the whole set, so the result does not
    depend on evidence order.
    """
    if any(
        e.has_relevant_content and not e.content_gaps and e.score > thresholds.resolved
        for e in evidence
    ):
        return GapStatus.RESOLVED, CONFIDENCE_RESOLVED
    if any(e.score > thresholds.potential_gap for e in evidence):
        return GapStatus.POTENTIAL_GAP, CONFIDENCE_POTENTIAL_GAP
    if any(e.has_relevant_content for e in evidence):
        return GapStatus.CONFIRMED, CONFIDENCE_CONFIRMED
    return GapStatus.CRITICAL_GAP, CONFIDENCE_CRITICAL_GAP


def select_best_evidence(evidence: Sequence[Evidence]) -> Optional[Evidence]:
    """Evidence with the highest semantic score; the first one wins ties."""
    best: Optional[Evidence] = None
    for e in evidence:
        if best is None or e.score > best.score:
            best = e
    return best
