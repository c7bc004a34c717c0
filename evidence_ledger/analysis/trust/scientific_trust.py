"""Scientific (Bayesian) trust assessment.

Two stages:

1. EvidenceQualityCalculator derives six quality metrics in [0, 1]:
   integrity, authenticity, reliability, completeness, admissibility and
   temporal relevance.
2. BayesianEvidenceAssessor combines a tier prior with a likelihood equal
   to the weighted sum of those metrics:

       posterior = L * prior / (L * prior + (1 - L) * (1 - prior))

ScientificTrustEngine runs both stages and adds methodology disclosure,
recommendations, limitations and the expert review flag. The output is a
probabilistic estimate and always says so in its limitations.
"""

import math
from datetime import datetime
from typing import Any, Dict, Optional, Sequence, Tuple

from evidence_ledger.config.logging import get_logger
from evidence_ledger.config.tier_profiles import profile_for
from evidence_ledger.data_management.schemas import (
    ChainOfCustodyEntry,
    Evidence,
    EvidenceStatus,
    EvidenceTier,
    HashVerification,
    QualityMetrics,
    ScientificTrustAssessment,
)
from evidence_ledger.utils.timeutils import days_between

# Likelihood weights per quality metric (sum to 1.0).
# Admissibility carries expert validation (0.10) plus chain of custody (0.18).
LIKELIHOOD_WEIGHTS: Dict[str, float] = {
    "integrity": 0.20,
    "authenticity": 0.16,
    "reliability": 0.12,
    "completeness": 0.10,
    "admissibility": 0.28,
    "temporal_relevance": 0.14,
}

REQUIRED_METADATA_FIELDS = ("filename", "file_type", "description", "uploaded_at", "uploaded_by")

BAYESIAN_METHODOLOGY = "Bayesian Evidence Assessment with Empirical Priors"
ENGINE_METHODOLOGY = "Bayesian Evidence Assessment with ISO/NIST Quality Metrics"

LIMITATIONS = [
    "Trust scores are probabilistic assessments, not a legal determination",
    "Assessment based on available metadata and documentation",
    "External validation by qualified experts recommended",
    "Scores may change with additional evidence or analysis",
    "Legal admissibility requires court determination",
]

# Sample size assumed by the normal approximation of the error band
ERROR_BAND_SAMPLE_SIZE = 100
Z_95 = 1.96


class EvidenceQualityCalculator:
    """Computes the six quality metrics for one evidence item."""

    def __init__(self, logger: Optional[Any] = None):
        self._logger = logger or get_logger("EvidenceQualityCalculator")

    def calculate(
        self,
        evidence: Evidence,
        custody: Sequence[ChainOfCustodyEntry],
        hash_verification: Optional[HashVerification] = None,
        now: Optional[datetime] = None,
    ) -> QualityMetrics:
        metrics = QualityMetrics(
            integrity=self.integrity(evidence, hash_verification),
            authenticity=self.authenticity(evidence),
            reliability=self.reliability(evidence),
            completeness=self.completeness(evidence),
            admissibility=self.admissibility(evidence, custody),
            temporal_relevance=self.temporal_relevance(evidence, now),
        )
        self._logger.debug(
            "Evidence quality metrics calculated",
            evidence_id=evidence.id,
            **metrics.model_dump(),
        )
        return metrics

    @staticmethod
    def integrity(evidence: Evidence, hash_verification: Optional[HashVerification]) -> float:
        score = 0.0
        if hash_verification is not None and hash_verification.valid:
            score += 0.5 if hash_verification.is_sha256 else 0.3
        if evidence.is_minted and evidence.block_number and evidence.hash_value:
            score += 0.3
        if evidence.file_size and evidence.file_type:
            score += 0.2
        return round(min(1.0, score), 4)

    @staticmethod
    def authenticity(evidence: Evidence) -> float:
        return profile_for(evidence.evidence_tier).authenticity

    @staticmethod
    def reliability(evidence: Evidence) -> float:
        score = 0.4
        corroboration = evidence.corroboration_count
        if corroboration >= 3:
            score += 0.3
        elif corroboration >= 2:
            score += 0.2
        elif corroboration >= 1:
            score += 0.1

        score -= 0.15 * evidence.conflict_count

        if evidence.status == EvidenceStatus.MINTED:
            score += 0.2
        elif evidence.status == EvidenceStatus.VERIFIED:
            score += 0.1
        return round(max(0.0, min(1.0, score)), 4)

    @staticmethod
    def completeness(evidence: Evidence) -> float:
        present = sum(1 for name in REQUIRED_METADATA_FIELDS if getattr(evidence, name))
        score = present / len(REQUIRED_METADATA_FIELDS) * 0.6
        for optional in (evidence.file_size, evidence.case_id, evidence.verified_at, evidence.hash_value):
            if optional:
                score += 0.1
        return round(min(1.0, score), 4)

    @staticmethod
    def admissibility(evidence: Evidence, custody: Sequence[ChainOfCustodyEntry]) -> float:
        score = 0.3
        if len(custody) >= 2:
            score += 0.3
        score += profile_for(evidence.evidence_tier).admissibility_bonus
        if evidence.hash_value and evidence.file_type:
            score += 0.2
        return round(min(1.0, score), 4)

    @staticmethod
    def temporal_relevance(evidence: Evidence, now: Optional[datetime] = None) -> float:
        age_days = days_between(evidence.uploaded_at, now)
        if age_days <= 30:
            return 1.0
        if age_days <= 90:
            return 0.9
        if age_days <= 365:
            return 0.8
        if age_days <= 1825:
            return 0.7
        return 0.6


class BayesianEvidenceAssessor:
    """Tier prior updated by the weighted quality likelihood."""

    def __init__(self, weights: Optional[Dict[str, float]] = None):
        self.weights = dict(weights or LIKELIHOOD_WEIGHTS)

    @staticmethod
    def prior(tier: EvidenceTier) -> float:
        return profile_for(tier).prior

    def likelihood(self, metrics: QualityMetrics) -> float:
        return sum(getattr(metrics, name) * weight for name, weight in self.weights.items())

    @staticmethod
    def posterior(prior: float, likelihood: float) -> float:
        marginal = likelihood * prior + (1 - likelihood) * (1 - prior)
        if marginal == 0:
            return 0.0
        return (likelihood * prior) / marginal

    @staticmethod
    def confidence(evidence: Evidence, metrics: QualityMetrics) -> float:
        confidence = 0.5
        confidence += 0.1 * min(evidence.corroboration_count, 3)
        if metrics.integrity > 0.9:
            confidence += 0.1
        if metrics.authenticity > 0.9:
            confidence += 0.1
        return min(1.0, confidence)

    @staticmethod
    def error_bounds(score: float, confidence: float) -> Tuple[float, float]:
        """95% band from a normal approximation, narrowed by confidence."""
        standard_error = math.sqrt(score * (1 - score) / ERROR_BAND_SAMPLE_SIZE)
        margin = Z_95 * standard_error * (1 - confidence)
        return max(0.0, score - margin), min(1.0, score + margin)

    def assess(self, evidence: Evidence, metrics: QualityMetrics) -> Dict[str, Any]:
        prior = self.prior(evidence.evidence_tier)
        likelihood = self.likelihood(metrics)
        score = self.posterior(prior, likelihood)
        confidence = self.confidence(evidence, metrics)

        components = {"prior": prior, "likelihood": likelihood}
        for name, weight in self.weights.items():
            components[name] = getattr(metrics, name) * weight

        return {
            "score": score,
            "confidence": confidence,
            "components": components,
            "methodology": BAYESIAN_METHODOLOGY,
            "error_bounds": self.error_bounds(score, confidence),
        }


class ScientificTrustEngine:
    """
    Full scientific trust assessment with methodology disclosure.

    Usage:
        engine = ScientificTrustEngine()
        assessment = engine.generate(evidence, custody_entries)
        assessment.model_dump(mode="json", by_alias=True)["finalScore"]  # "0.87"
    """

    def __init__(
        self,
        quality_calculator: Optional[EvidenceQualityCalculator] = None,
        assessor: Optional[BayesianEvidenceAssessor] = None,
        logger: Optional[Any] = None,
    ):
        self._logger = logger or get_logger("ScientificTrustEngine")
        self.quality_calculator = quality_calculator or EvidenceQualityCalculator(self._logger)
        self.assessor = assessor or BayesianEvidenceAssessor()

    def generate(
        self,
        evidence: Evidence,
        custody: Sequence[ChainOfCustodyEntry],
        hash_verification: Optional[HashVerification] = None,
        now: Optional[datetime] = None,
    ) -> ScientificTrustAssessment:
        metrics = self.quality_calculator.calculate(evidence, custody, hash_verification, now)
        result = self.assessor.assess(evidence, metrics)

        expert_review = self.requires_expert_review(evidence, metrics, result["confidence"])
        assessment = ScientificTrustAssessment(
            evidence_id=evidence.id,
            final_score=min(1.0, max(0.0, result["score"])),
            confidence=result["confidence"],
            methodology=ENGINE_METHODOLOGY,
            components=result["components"],
            quality_metrics=metrics,
            error_bounds=result["error_bounds"],
            recommendations=self.recommendations(evidence, metrics),
            limitations=list(LIMITATIONS),
            expert_review_required=expert_review,
        )

        self._logger.info(
            "Scientific trust score generated",
            evidence_id=evidence.id,
            final_score=round(assessment.final_score, 4),
            confidence=round(assessment.confidence, 4),
            expert_review_required=expert_review,
        )
        return assessment

    @staticmethod
    def requires_expert_review(evidence: Evidence, metrics: QualityMetrics, confidence: float) -> bool:
        return (
            confidence < 0.7
            or metrics.integrity < 0.8
            or evidence.conflict_count > 0
            or evidence.evidence_tier == EvidenceTier.UNCORROBORATED_PERSON
        )

    @staticmethod
    def recommendations(evidence: Evidence, metrics: QualityMetrics) -> list:
        recommendations = []
        if metrics.integrity < 0.8:
            recommendations.append("Implement stronger cryptographic verification methods")
        if metrics.reliability < 0.7:
            recommendations.append("Seek additional corroborating evidence")
        if metrics.admissibility < 0.8:
            recommendations.append("Strengthen chain of custody documentation")
        if evidence.verified_at is None:
            recommendations.append("Obtain expert verification before court submission")
        return recommendations
