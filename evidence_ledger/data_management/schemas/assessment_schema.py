"""Assessment schemas for the two independent trust models.

- MintingEligibility: deterministic, explainable 6-axis score gating minting.
- ScientificTrustAssessment: probabilistic Bayesian posterior with quality
  metrics, error band and mandatory limitations.

The models share input data only. On the wire every numeric score is a
fixed two-decimal string.
"""

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

PASS_MARK = "✓"
FAIL_MARK = "✗"


def _fmt(value: float) -> str:
    return f"{value:.2f}"


class AxisScore(BaseModel):
    """Structured result of one minting axis.

    The rendered ``reason`` keeps the ✓/✗ prefix contract that presentation
    consumers use for color-coding.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    axis: str
    points: int = Field(..., ge=0)
    max_points: int = Field(..., ge=0)
    passed: bool
    text: str

    @property
    def reason(self) -> str:
        return f"{PASS_MARK if self.passed else FAIL_MARK} {self.text}"


class MintingEligibility(BaseModel):
    """6-axis minting eligibility result.

    Attributes:
        eligible: composite >= minting threshold.
        score: composite in [0,1] as a two-decimal string.
        reasons: one ✓/✗-prefixed line per axis.
        six_d_scores: axis name -> points.
        axes: structured axis results backing ``reasons``.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    evidence_id: Optional[str] = None
    eligible: bool
    score: str
    reasons: List[str] = Field(default_factory=list)
    six_d_scores: Dict[str, int] = Field(default_factory=dict)
    axes: List[AxisScore] = Field(default_factory=list)

    @property
    def total_points(self) -> int:
        return sum(self.six_d_scores.values())

    @classmethod
    def not_found(cls, evidence_id: Optional[str] = None) -> "MintingEligibility":
        """Advisory result for a missing evidence item."""
        return cls(
            evidence_id=evidence_id,
            eligible=False,
            score="0.00",
            reasons=[f"{FAIL_MARK} Evidence not found"],
            six_d_scores={},
        )


class HashVerification(BaseModel):
    """Outcome of an external hash check fed to the integrity metric."""

    valid: bool
    method: str = "SHA-256"

    @property
    def is_sha256(self) -> bool:
        return self.method.upper().replace("_", "-").startswith("SHA-256")


class QualityMetrics(BaseModel):
    """Six evidence quality dimensions, each in [0, 1]."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    integrity: float = Field(..., ge=0.0, le=1.0)
    authenticity: float = Field(..., ge=0.0, le=1.0)
    reliability: float = Field(..., ge=0.0, le=1.0)
    completeness: float = Field(..., ge=0.0, le=1.0)
    admissibility: float = Field(..., ge=0.0, le=1.0)
    temporal_relevance: float = Field(..., ge=0.0, le=1.0)

    @field_serializer(
        "integrity",
        "authenticity",
        "reliability",
        "completeness",
        "admissibility",
        "temporal_relevance",
        when_used="json",
    )
    def serialize_metric(self, value: float) -> str:
        return _fmt(value)


class ScientificTrustAssessment(BaseModel):
    """Bayesian trust assessment with full methodology disclosure."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    evidence_id: Optional[str] = None
    final_score: float = Field(..., ge=0.0, le=1.0)
    confidence: float = Field(..., ge=0.0, le=1.0)
    methodology: str
    components: Dict[str, float] = Field(default_factory=dict)
    quality_metrics: QualityMetrics
    error_bounds: Tuple[float, float]
    recommendations: List[str] = Field(default_factory=list)
    limitations: List[str] = Field(default_factory=list)
    expert_review_required: bool

    @field_serializer("final_score", "confidence", when_used="json")
    def serialize_score(self, value: float) -> str:
        return _fmt(value)

    @field_serializer("components", when_used="json")
    def serialize_components(self, value: Dict[str, float]) -> Dict[str, str]:
        return {name: _fmt(score) for name, score in value.items()}

    @field_serializer("error_bounds", when_used="json")
    def serialize_bounds(self, value: Tuple[float, float]) -> List[str]:
        return [_fmt(value[0]), _fmt(value[1])]
