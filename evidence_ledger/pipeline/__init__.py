"""Orchestration over the stores and analysis components.

- EvidenceService: evidence lifecycle, scoring, facts and contradictions
- ContradictionSweep: batched case-wide contradiction detection
"""

from evidence_ledger.pipeline.contradiction_sweep import ContradictionSweep, SweepStats
from evidence_ledger.pipeline.evidence_service import EvidenceService

__all__ = ["EvidenceService", "ContradictionSweep", "SweepStats"]
