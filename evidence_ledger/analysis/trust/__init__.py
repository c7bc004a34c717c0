"""Trust scoring: tier decay, 6-axis minting gate and Bayesian assessment."""

from evidence_ledger.analysis.trust.minting_scorer import MintingEligibilityScorer
from evidence_ledger.analysis.trust.scientific_trust import (
    BayesianEvidenceAssessor,
    EvidenceQualityCalculator,
    ScientificTrustEngine,
)
from evidence_ledger.analysis.trust.trust_calculator import (
    TrustScoreCalculator,
    base_score,
    calculate_trust_score,
    current_trust_score,
    current_trust_value,
)

__all__ = [
    "MintingEligibilityScorer",
    "BayesianEvidenceAssessor",
    "EvidenceQualityCalculator",
    "ScientificTrustEngine",
    "TrustScoreCalculator",
    "base_score",
    "calculate_trust_score",
    "current_trust_score",
    "current_trust_value",
]
