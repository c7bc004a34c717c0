"""Evidence schema - the forensic artifact record.

An Evidence record carries its provenance tier, a trust score that decays
over time until minting freezes it, lifecycle timestamps, and the cached
results of the two independent scoring models (6-axis minting score and the
Bayesian "chittytrust" score).

Invariants enforced at validation time:
- trust_score <= original_trust_score while the item is not minted
- minted evidence has trust_degradation_rate == 0
- minted_at implies verified_at, and verified_at <= minted_at

Numeric score fields are floats in Python and two-decimal strings on the wire.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, model_validator
from pydantic.alias_generators import to_camel

from evidence_ledger.utils.timeutils import as_utc, utc_now


class EvidenceTier(str, Enum):
    """Provenance tier, declared in decreasing order of inherent reliability."""

    SELF_AUTHENTICATING = "SELF_AUTHENTICATING"
    GOVERNMENT = "GOVERNMENT"
    FINANCIAL_INSTITUTION = "FINANCIAL_INSTITUTION"
    INDEPENDENT_THIRD_PARTY = "INDEPENDENT_THIRD_PARTY"
    BUSINESS_RECORDS = "BUSINESS_RECORDS"
    FIRST_PARTY_ADVERSE = "FIRST_PARTY_ADVERSE"
    FIRST_PARTY_FRIENDLY = "FIRST_PARTY_FRIENDLY"
    UNCORROBORATED_PERSON = "UNCORROBORATED_PERSON"

    @classmethod
    def ordered(cls) -> list["EvidenceTier"]:
        """Tiers from most to least reliable."""
        return list(cls)


class EvidenceStatus(str, Enum):
    """Lifecycle status. Transitions are driven by the service layer."""

    PENDING = "PENDING"
    VERIFIED = "VERIFIED"
    REQUIRES_CORROBORATION = "REQUIRES_CORROBORATION"
    MINTED = "MINTED"


class Evidence(BaseModel):
    """A forensic artifact with trust lifecycle state.

    Attributes:
        id: Stable identifier (UUID).
        artifact_id: Human-readable sequential code (ART-000001), store-assigned.
        evidence_tier: Provenance tier.
        trust_score: Current (decaying) trust, frozen once minted.
        original_trust_score: Trust at creation, derived from tier, immutable.
        trust_degradation_rate: Decay per hour; 0 once minted.
        last_trust_update: Reference instant for decay.
        corroboration_count: Independent sources agreeing with this item.
        conflict_count: Active contradictions referencing this item.
        minting_eligible / minting_score: Cached 6-axis result.
        chittytrust_score: Cached Bayesian posterior.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=False,
    )

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    artifact_id: Optional[str] = None

    filename: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[str] = None
    description: Optional[str] = None
    case_id: Optional[str] = None
    uploaded_by: Optional[str] = None

    evidence_tier: EvidenceTier
    status: EvidenceStatus = EvidenceStatus.PENDING

    trust_score: float = Field(..., ge=0.0, le=1.0)
    original_trust_score: float = Field(..., ge=0.0, le=1.0)
    trust_degradation_rate: float = Field(0.0001, ge=0.0)
    last_trust_update: datetime = Field(default_factory=utc_now)

    uploaded_at: datetime = Field(default_factory=utc_now)
    verified_at: Optional[datetime] = None
    minted_at: Optional[datetime] = None
    block_number: Optional[str] = None
    hash_value: Optional[str] = None

    corroboration_count: int = Field(0, ge=0)
    conflict_count: int = Field(0, ge=0)

    minting_eligible: bool = False
    minting_score: float = Field(0.0, ge=0.0, le=1.0)
    chittytrust_score: float = Field(0.0, ge=0.0, le=1.0)

    @property
    def is_minted(self) -> bool:
        return self.status == EvidenceStatus.MINTED

    @model_validator(mode="after")
    def check_trust_lifecycle(self) -> "Evidence":
        """Enforce the trust and minting invariants."""
        if not self.is_minted and self.trust_score > self.original_trust_score + 1e-9:
            raise ValueError(
                "trust_score cannot exceed original_trust_score for non-minted evidence"
            )
        if self.is_minted and self.trust_degradation_rate != 0:
            raise ValueError("minted evidence must have trust_degradation_rate == 0")
        if self.minted_at is not None:
            if self.verified_at is None:
                raise ValueError("minted_at requires verified_at")
            if as_utc(self.verified_at) > as_utc(self.minted_at):
                raise ValueError("verified_at must not be later than minted_at")
        return self

    @field_serializer(
        "trust_score",
        "original_trust_score",
        "minting_score",
        "chittytrust_score",
        when_used="json",
    )
    def serialize_score(self, value: float) -> str:
        return f"{value:.2f}"

    @field_serializer("trust_degradation_rate", when_used="json")
    def serialize_rate(self, value: float) -> str:
        return f"{value:.4f}"
