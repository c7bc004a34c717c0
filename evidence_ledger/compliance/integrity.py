"""Forensic handling checks backing the quality metrics.

- validate_digital_integrity: SHA-256 over canonical JSON, compared with a
  recorded hash (FRE 901(b)(9) process evidence). The result converts to a
  HashVerification for the integrity metric.
- validate_custody_handling: NIJ-style custody review (documentation depth,
  gaps longer than a day, unnamed handlers).
- classify_authenticity: FRE 902 self-authentication versus FRE 901
  authentication requirements per tier.
"""

import hashlib
import json
from datetime import datetime
from enum import Enum
from typing import Any, List, Mapping, Optional, Sequence, Union

from pydantic import BaseModel, Field

from evidence_ledger.config.logging import get_logger
from evidence_ledger.config.tier_profiles import coerce_tier
from evidence_ledger.data_management.persistence import json_default
from evidence_ledger.data_management.schemas import (
    ChainOfCustodyEntry,
    EvidenceTier,
    HashVerification,
)
from evidence_ledger.utils.timeutils import as_utc, hours_between, utc_now

logger = get_logger("compliance.integrity")

MAX_CUSTODY_GAP_HOURS = 24.0
HASH_METHOD = "SHA-256 Cryptographic Hash"


class EvidenceRule(str, Enum):
    FRE_901 = "FRE_901"
    FRE_902 = "FRE_902"
    FRE_1003 = "FRE_1003"


class IntegrityCheck(BaseModel):
    valid: bool
    current_hash: str
    method: str = HASH_METHOD
    checked_at: datetime = Field(default_factory=utc_now)
    compliance: List[EvidenceRule] = Field(default_factory=list)

    def to_hash_verification(self) -> HashVerification:
        return HashVerification(valid=self.valid, method="SHA-256")


class CustodyCompliance(BaseModel):
    compliant: bool
    violations: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class AuthenticityClassification(BaseModel):
    category: str
    rule: EvidenceRule
    requirements: List[str]
    sufficient: bool


def canonical_json(payload: Any) -> str:
    """Key-sorted compact JSON used as hash input."""
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(mode="json", by_alias=True)
    return json.dumps(
        payload,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=json_default,
    )


def sha256_hex(payload: Any) -> str:
    return hashlib.sha256(canonical_json(payload).encode("utf-8")).hexdigest()


def validate_digital_integrity(payload: Any, original_hash: str) -> IntegrityCheck:
    """
    Recompute the payload hash and compare it with the recorded one.

    Args:
        payload: Mapping or pydantic model describing the artifact.
        original_hash: Hex digest recorded at collection time (case-insensitive).

    Returns:
        IntegrityCheck; FRE 901 and 1003 are cited only when the hashes match.
    """
    current = sha256_hex(payload)
    valid = current == (original_hash or "").strip().lower()

    logger.info(
        "Digital integrity validation",
        valid=valid,
        method="SHA-256",
        original_hash=(original_hash or "")[:16] + "...",
        current_hash=current[:16] + "...",
    )
    return IntegrityCheck(
        valid=valid,
        current_hash=current,
        compliance=[EvidenceRule.FRE_901, EvidenceRule.FRE_1003] if valid else [],
    )


def validate_custody_handling(
    entries: Sequence[Union[ChainOfCustodyEntry, Mapping[str, Any]]],
) -> CustodyCompliance:
    """Review a custody log for documentation depth, gaps and unnamed handlers."""
    records = sorted(
        (e if isinstance(e, ChainOfCustodyEntry) else ChainOfCustodyEntry.model_validate(e) for e in entries),
        key=lambda e: as_utc(e.timestamp),
    )
    violations = []

    if len(records) < 2:
        violations.append("Insufficient chain of custody documentation")

    for previous, current in zip(records, records[1:]):
        gap = hours_between(previous.timestamp, current.timestamp)
        if gap > MAX_CUSTODY_GAP_HOURS:
            violations.append(f"Custody gap detected: {gap:.1f} hours between transfers")

    for record in records:
        if not record.performed_by:
            violations.append(f"Missing handler for custody action: {record.action.value}")

    recommendations = []
    if not violations:
        recommendations.append("Regular audit trails should be maintained for all access")

    return CustodyCompliance(
        compliant=not violations,
        violations=violations,
        recommendations=recommendations,
    )


def classify_authenticity(tier: Optional[Union[EvidenceTier, str]]) -> AuthenticityClassification:
    """Classify a tier as self-authenticating (FRE 902) or needing authentication (FRE 901)."""
    tier = coerce_tier(tier) if tier else None

    if tier in (EvidenceTier.SELF_AUTHENTICATING, EvidenceTier.GOVERNMENT):
        # FRE 902(1)-(5): sealed and official public records
        return AuthenticityClassification(
            category="Official Government Records",
            rule=EvidenceRule.FRE_902,
            requirements=[
                "Document must be from public office",
                "Must be available to public inspection",
                "Proper government seal or certification",
            ],
            sufficient=True,
        )

    if tier in (EvidenceTier.FINANCIAL_INSTITUTION, EvidenceTier.BUSINESS_RECORDS):
        # FRE 902(11): still needs the 803(6) foundation
        return AuthenticityClassification(
            category="Certified Business Records",
            rule=EvidenceRule.FRE_902,
            requirements=[
                "Records kept in regular course of business",
                "Proper certification by custodian",
                "Foundation requirements under FRE 803(6)",
            ],
            sufficient=False,
        )

    return AuthenticityClassification(
        category="General Evidence Requiring Authentication",
        rule=EvidenceRule.FRE_901,
        requirements=[
            "Witness testimony for authentication",
            "Chain of custody documentation",
            "Expert testimony if technical evidence",
        ],
        sufficient=False,
    )
