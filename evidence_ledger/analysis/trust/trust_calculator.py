"""Tier-based trust scoring with linear time decay.

A new evidence item starts at its tier's base trust. Until it is minted the
score decays linearly from ``original_trust_score`` at
``trust_degradation_rate`` per hour since ``last_trust_update``, floored at
zero. Minting freezes the stored score.

The functions here are pure: callers persist any recomputed value.
"""

import math
from datetime import datetime
from typing import Any, Optional, Union

from evidence_ledger.config.logging import get_logger
from evidence_ledger.config.tier_profiles import profile_for
from evidence_ledger.data_management.schemas import Evidence, EvidenceTier
from evidence_ledger.exceptions import TrustScoreError
from evidence_ledger.utils.timeutils import hours_between


def base_score(tier: Union[EvidenceTier, str]) -> float:
    """Initial trust for a tier. Unknown tiers raise ConfigurationError."""
    return profile_for(tier).base_trust


def calculate_trust_score(tier: Union[EvidenceTier, str]) -> str:
    """Base trust for a tier as a two-decimal string."""
    return f"{base_score(tier):.2f}"


def current_trust_value(evidence: Evidence, now: Optional[datetime] = None) -> float:
    """
    Current trust of an evidence item as a float.

    Args:
        evidence: Evidence whose trust is evaluated.
        now: Evaluation instant (defaults to the current UTC time).

    Returns:
        Stored trust for minted evidence, decayed trust otherwise.

    Raises:
        TrustScoreError: On a negative degradation rate or a NaN result.
        ConfigurationError: If the evidence tier has no profile.
    """
    profile_for(evidence.evidence_tier)

    if evidence.is_minted:
        return evidence.trust_score

    rate = evidence.trust_degradation_rate
    if rate < 0 or math.isnan(rate):
        raise TrustScoreError(
            f"Invalid trust degradation rate: {rate}",
            evidence_id=evidence.id,
        )

    # Clock skew must never raise the score
    elapsed = max(0.0, hours_between(evidence.last_trust_update, now))
    value = evidence.original_trust_score - rate * elapsed
    if math.isnan(value):
        raise TrustScoreError("Trust decay produced NaN", evidence_id=evidence.id)
    return max(0.0, value)


def current_trust_score(evidence: Evidence, now: Optional[datetime] = None) -> str:
    """Current trust as a two-decimal string."""
    return f"{current_trust_value(evidence, now):.2f}"


class TrustScoreCalculator:
    """
    Trust score calculator with an injected logger.

    Wraps the module functions for callers that hold a component instance
    (the evidence service) and want decay events in their log stream.
    """

    def __init__(self, logger: Optional[Any] = None):
        self._logger = logger or get_logger("TrustScoreCalculator")

    def base_score(self, tier: Union[EvidenceTier, str]) -> float:
        return base_score(tier)

    def calculate_trust_score(self, tier: Union[EvidenceTier, str]) -> str:
        return calculate_trust_score(tier)

    def current_value(self, evidence: Evidence, now: Optional[datetime] = None) -> float:
        value = current_trust_value(evidence, now)
        self._logger.debug(
            "Trust score computed",
            evidence_id=evidence.id,
            minted=evidence.is_minted,
            trust_score=round(value, 4),
        )
        return value

    def current_trust_score(self, evidence: Evidence, now: Optional[datetime] = None) -> str:
        return f"{self.current_value(evidence, now):.2f}"
