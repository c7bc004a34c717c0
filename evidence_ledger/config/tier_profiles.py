"""Tier-indexed scoring constants.

Every numeric constant that depends on the evidence tier lives in one
TierProfile per tier, so adding a tier means filling in one row rather than
hunting through several lookup dicts. The mapping is checked at import time:
a tier without a profile raises ConfigurationError before any scoring runs.

Tier hierarchy (most to least inherently reliable):
1. SELF_AUTHENTICATING: FRE 902 documents
2. GOVERNMENT: official records
3. FINANCIAL_INSTITUTION: certified bank records
4. INDEPENDENT_THIRD_PARTY: external verification
5. BUSINESS_RECORDS: internal business records
6. FIRST_PARTY_ADVERSE: party statement against interest
7. FIRST_PARTY_FRIENDLY: party statement in its favor
8. UNCORROBORATED_PERSON: single uncorroborated source
"""

from dataclasses import dataclass
from typing import Dict, Union

from evidence_ledger.data_management.schemas.evidence_schema import EvidenceTier
from evidence_ledger.exceptions import ConfigurationError


@dataclass(frozen=True)
class TierProfile:
    """Constants attached to one tier.

    Attributes:
        base_trust: Initial trust score (0.20-0.99).
        source_points: Minting Source axis points (0-20).
        prior: Bayesian prior probability of reliability.
        authenticity: Authenticity quality metric.
        admissibility_bonus: Added to admissibility for easily authenticated tiers.
    """

    base_trust: float
    source_points: int
    prior: float
    authenticity: float
    admissibility_bonus: float


TIER_PROFILES: Dict[EvidenceTier, TierProfile] = {
    EvidenceTier.SELF_AUTHENTICATING: TierProfile(0.99, 20, 0.95, 1.00, 0.2),
    EvidenceTier.GOVERNMENT: TierProfile(0.95, 18, 0.92, 0.95, 0.2),
    EvidenceTier.FINANCIAL_INSTITUTION: TierProfile(0.90, 16, 0.88, 0.85, 0.2),
    EvidenceTier.INDEPENDENT_THIRD_PARTY: TierProfile(0.80, 12, 0.75, 0.75, 0.0),
    EvidenceTier.BUSINESS_RECORDS: TierProfile(0.70, 8, 0.70, 0.65, 0.0),
    EvidenceTier.FIRST_PARTY_ADVERSE: TierProfile(0.60, 4, 0.60, 0.55, 0.0),
    EvidenceTier.FIRST_PARTY_FRIENDLY: TierProfile(0.40, 2, 0.45, 0.35, 0.0),
    EvidenceTier.UNCORROBORATED_PERSON: TierProfile(0.20, 0, 0.25, 0.25, 0.0),
}

# Maximum Source axis points (SELF_AUTHENTICATING)
MAX_SOURCE_POINTS = 20


def validate_tier_profiles(profiles: Dict[EvidenceTier, TierProfile]) -> None:
    """
    Check that a profile mapping covers every tier with in-range values.

    Raises:
        ConfigurationError: On a missing tier or an out-of-range constant.
    """
    missing = [tier.value for tier in EvidenceTier if tier not in profiles]
    if missing:
        raise ConfigurationError(
            f"Tier profiles missing for: {', '.join(missing)}",
            metadata={"missing": missing},
        )

    for tier, profile in profiles.items():
        if not 0.20 <= profile.base_trust <= 0.99:
            raise ConfigurationError(f"base_trust out of range for {tier.value}")
        if not 0 <= profile.source_points <= MAX_SOURCE_POINTS:
            raise ConfigurationError(f"source_points out of range for {tier.value}")
        for name in ("prior", "authenticity", "admissibility_bonus"):
            value = getattr(profile, name)
            if not 0.0 <= value <= 1.0:
                raise ConfigurationError(f"{name} out of range for {tier.value}")


def coerce_tier(tier: Union[EvidenceTier, str]) -> EvidenceTier:
    """Convert a tier value to the enum, failing loudly on unknown tiers."""
    if isinstance(tier, EvidenceTier):
        return tier
    try:
        return EvidenceTier(tier)
    except ValueError as exc:
        raise ConfigurationError(
            f"Unknown evidence tier: {tier!r}",
            metadata={"tier": str(tier)},
        ) from exc


def profile_for(tier: Union[EvidenceTier, str]) -> TierProfile:
    """
    Look up the profile for a tier.

    Raises:
        ConfigurationError: If the tier is unknown or has no profile.
    """
    resolved = coerce_tier(tier)
    try:
        return TIER_PROFILES[resolved]
    except KeyError as exc:
        raise ConfigurationError(
            f"No tier profile configured for {resolved.value}",
            metadata={"tier": resolved.value},
        ) from exc


validate_tier_profiles(TIER_PROFILES)
