"""Pairwise contradiction detection."""

from evidence_ledger.analysis.contradictions.contradiction_detector import (
    ComparisonContext,
    ContradictionDetectionEngine,
)

__all__ = ["ComparisonContext", "ContradictionDetectionEngine"]
