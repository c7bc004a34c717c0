"""Schema package for evidence, custody, fact, contradiction and assessment records.

All models are Pydantic v2 models with camelCase aliases for the route layer:
- Python code uses snake_case attributes and float scores
- ``model_dump(mode="json", by_alias=True)`` yields camelCase keys and
  two-decimal score strings

Usage:
    from evidence_ledger.data_management.schemas import Evidence, EvidenceTier
    evidence = Evidence(
        evidence_tier=EvidenceTier.GOVERNMENT,
        trust_score=0.95,
        original_trust_score=0.95,
    )
"""

from evidence_ledger.data_management.schemas.evidence_schema import (
    Evidence,
    EvidenceStatus,
    EvidenceTier,
)
from evidence_ledger.data_management.schemas.custody_schema import (
    ChainOfCustodyEntry,
    CustodyAction,
)
from evidence_ledger.data_management.schemas.fact_schema import (
    AtomicFact,
    ExtractionConfig,
    FactType,
)
from evidence_ledger.data_management.schemas.contradiction_schema import (
    Contradiction,
    ContradictionResult,
    ContradictionSeverity,
    ContradictionStatus,
    ContradictionType,
)
from evidence_ledger.data_management.schemas.assessment_schema import (
    FAIL_MARK,
    PASS_MARK,
    AxisScore,
    HashVerification,
    MintingEligibility,
    QualityMetrics,
    ScientificTrustAssessment,
)

__all__ = [
    # Evidence
    "Evidence",
    "EvidenceStatus",
    "EvidenceTier",
    # Custody
    "ChainOfCustodyEntry",
    "CustodyAction",
    # Facts
    "AtomicFact",
    "ExtractionConfig",
    "FactType",
    # Contradictions
    "Contradiction",
    "ContradictionResult",
    "ContradictionSeverity",
    "ContradictionStatus",
    "ContradictionType",
    # Assessments
    "AxisScore",
    "HashVerification",
    "MintingEligibility",
    "QualityMetrics",
    "ScientificTrustAssessment",
    "PASS_MARK",
    "FAIL_MARK",
]
