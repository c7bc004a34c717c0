"""6-axis minting eligibility scoring.

Six independently capped axes sum to a 0-100 composite:

| Axis     | Max | Rule                                                  |
|----------|-----|-------------------------------------------------------|
| Source   | 20  | tier lookup (20, 18, 16, 12, 8, 4, 2, 0)              |
| Time     | 15  | <24h 15, <1 week 12, <30 days 8, else 0               |
| Chain    | 15  | >=3 custody entries 15, >=1 10, else 0                |
| Network  | 20  | corroboration >=3 20, >=2 15, >=1 8, else 0           |
| Outcomes | 15  | VERIFIED/MINTED 15, REQUIRES_CORROBORATION 5, else 0  |
| Justice  | 15  | conflicts 0 15, 1 8, else 0                           |

The composite divided by 100 is the score; evidence is eligible when the
score reaches the minting threshold (0.70 by default). Each axis produces a
structured AxisScore whose rendered reason keeps the "✓ "/"✗ " prefix.

This model is deliberately independent of the Bayesian assessor: the two
share input data only.
"""

from datetime import datetime
from typing import Any, Optional, Sequence, Union

from evidence_ledger.config.logging import get_logger
from evidence_ledger.config.settings import settings
from evidence_ledger.config.tier_profiles import profile_for
from evidence_ledger.data_management.schemas import (
    AxisScore,
    ChainOfCustodyEntry,
    Evidence,
    EvidenceStatus,
    MintingEligibility,
)
from evidence_ledger.utils.timeutils import hours_between

HOURS_PER_DAY = 24
HOURS_PER_WEEK = 168
HOURS_PER_30_DAYS = 720

AXIS_ORDER = ("source", "time", "chain", "network", "outcomes", "justice")

CustodyInput = Union[Sequence[ChainOfCustodyEntry], int]


def score_source(evidence: Evidence) -> AxisScore:
    points = profile_for(evidence.evidence_tier).source_points
    tier = evidence.evidence_tier.value
    if points >= 16:
        text, passed = f"Source: High-tier evidence ({tier})", True
    elif points >= 8:
        text, passed = f"Source: Acceptable tier ({tier})", True
    else:
        text, passed = f"Source: Low-tier evidence ({tier})", False
    return AxisScore(axis="source", points=points, max_points=20, passed=passed, text=text)


def score_time(evidence: Evidence, now: Optional[datetime] = None) -> AxisScore:
    age_hours = max(0.0, hours_between(evidence.uploaded_at, now))
    if age_hours < HOURS_PER_DAY:
        points, text = 15, "Time: Very recent evidence (<24h)"
    elif age_hours < HOURS_PER_WEEK:
        points, text = 12, "Time: Recent evidence (<1 week)"
    elif age_hours < HOURS_PER_30_DAYS:
        points, text = 8, "Time: Moderately recent (<30 days)"
    else:
        points, text = 0, "Time: Evidence is old (>30 days)"
    return AxisScore(axis="time", points=points, max_points=15, passed=points > 0, text=text)


def score_chain(custody_count: int) -> AxisScore:
    if custody_count >= 3:
        points, text = 15, "Chain: Complete custody tracking"
    elif custody_count >= 1:
        points, text = 10, "Chain: Basic custody tracking"
    else:
        points, text = 0, "Chain: No custody tracking"
    return AxisScore(axis="chain", points=points, max_points=15, passed=points > 0, text=text)


def score_network(evidence: Evidence) -> AxisScore:
    count = evidence.corroboration_count
    if count >= 3:
        points, text = 20, f"Network: Strong corroboration ({count} sources)"
    elif count >= 2:
        points, text = 15, f"Network: Good corroboration ({count} sources)"
    elif count >= 1:
        points, text = 8, f"Network: Some corroboration ({count} sources)"
    else:
        points, text = 0, "Network: No corroboration"
    return AxisScore(axis="network", points=points, max_points=20, passed=points > 0, text=text)


def score_outcomes(evidence: Evidence) -> AxisScore:
    if evidence.status in (EvidenceStatus.VERIFIED, EvidenceStatus.MINTED):
        return AxisScore(
            axis="outcomes", points=15, max_points=15, passed=True,
            text="Outcomes: Evidence verified",
        )
    if evidence.status == EvidenceStatus.REQUIRES_CORROBORATION:
        return AxisScore(
            axis="outcomes", points=5, max_points=15, passed=False,
            text="Outcomes: Requires corroboration",
        )
    return AxisScore(
        axis="outcomes", points=0, max_points=15, passed=False,
        text="Outcomes: Not verified",
    )


def score_justice(evidence: Evidence) -> AxisScore:
    count = evidence.conflict_count
    if count == 0:
        return AxisScore(
            axis="justice", points=15, max_points=15, passed=True,
            text="Justice: No conflicts detected",
        )
    if count == 1:
        return AxisScore(
            axis="justice", points=8, max_points=15, passed=False,
            text="Justice: Minor conflicts present",
        )
    return AxisScore(
        axis="justice", points=0, max_points=15, passed=False,
        text=f"Justice: Multiple conflicts ({count})",
    )


class MintingEligibilityScorer:
    """Deterministic, explainable minting gate."""

    def __init__(self, threshold: Optional[float] = None, logger: Optional[Any] = None):
        self.threshold = settings.minting_threshold if threshold is None else threshold
        self._logger = logger or get_logger("MintingEligibilityScorer")

    def score(
        self,
        evidence: Evidence,
        custody: CustodyInput,
        now: Optional[datetime] = None,
    ) -> MintingEligibility:
        """
        Score one evidence item on all six axes.

        Args:
            evidence: Evidence to score.
            custody: Custody entries for the item, or their count.
            now: Evaluation instant (defaults to the current UTC time).

        Returns:
            MintingEligibility with per-axis points and ✓/✗ reasons.
        """
        custody_count = custody if isinstance(custody, int) else len(custody)

        axes = [
            score_source(evidence),
            score_time(evidence, now),
            score_chain(custody_count),
            score_network(evidence),
            score_outcomes(evidence),
            score_justice(evidence),
        ]

        total = sum(axis.points for axis in axes)
        eligible = total / 100 >= self.threshold

        result = MintingEligibility(
            evidence_id=evidence.id,
            eligible=eligible,
            score=f"{total / 100:.2f}",
            reasons=[axis.reason for axis in axes],
            six_d_scores={axis.axis: axis.points for axis in axes},
            axes=axes,
        )

        self._logger.info(
            "Minting eligibility calculated",
            evidence_id=evidence.id,
            score=result.score,
            eligible=eligible,
        )
        return result

    def not_found(self, evidence_id: Optional[str] = None) -> MintingEligibility:
        self._logger.warning("Minting eligibility requested for unknown evidence", evidence_id=evidence_id)
        return MintingEligibility.not_found(evidence_id)
