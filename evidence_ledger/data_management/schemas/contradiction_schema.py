"""Contradiction schemas.

ContradictionResult is what the detection engine returns: a typed,
severity-ranked conflict between two evidence items. Contradiction is the
stored record, which adds identity, status and timestamps. Results are
created only by the detection engine or by manual override; resolving a
record flips its status and the service re-derives conflict counts.
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from evidence_ledger.utils.timeutils import utc_now


class ContradictionType(str, Enum):
    TEMPORAL = "TEMPORAL"  # Time-based conflicts
    FACTUAL = "FACTUAL"  # Direct factual conflicts
    NUMERICAL = "NUMERICAL"  # Number discrepancies
    IDENTITY = "IDENTITY"  # Person/entity conflicts
    LOCATION = "LOCATION"  # Location conflicts
    LOGICAL = "LOGICAL"  # Physical impossibilities
    CAUSAL = "CAUSAL"  # Cause-effect conflicts
    METADATA = "METADATA"  # File/upload metadata conflicts


class ContradictionSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ContradictionStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"


class ContradictionResult(BaseModel):
    """A conflict surfaced by one detector for an evidence pair."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    type: ContradictionType
    severity: ContradictionSeverity
    description: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    evidence1_id: str = Field(..., alias="evidence1Id")
    evidence2_id: str = Field(..., alias="evidence2Id")
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def pair(self) -> frozenset:
        """Unordered evidence pair."""
        return frozenset((self.evidence1_id, self.evidence2_id))

    @field_serializer("confidence", when_used="json")
    def serialize_confidence(self, value: float) -> str:
        return f"{value:.2f}"


class Contradiction(BaseModel):
    """Stored contradiction record.

    Attributes:
        conflict_id: Human-readable sequential code (CONFLICT-0001).
        status: active until resolved.
        resolution_notes: Reviewer notes captured at resolution.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    conflict_id: Optional[str] = None
    contradiction_type: ContradictionType
    severity: ContradictionSeverity
    description: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    evidence_id1: str
    evidence_id2: str
    status: ContradictionStatus = ContradictionStatus.ACTIVE
    detected_at: datetime = Field(default_factory=utc_now)
    resolved_at: Optional[datetime] = None
    resolution_notes: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.status == ContradictionStatus.ACTIVE

    def references(self, evidence_id: str) -> bool:
        return evidence_id in (self.evidence_id1, self.evidence_id2)

    @classmethod
    def from_result(cls, result: ContradictionResult) -> "Contradiction":
        """Build a stored record from detector output."""
        return cls(
            contradiction_type=result.type,
            severity=result.severity,
            description=result.description,
            confidence=result.confidence,
            evidence_id1=result.evidence1_id,
            evidence_id2=result.evidence2_id,
            metadata=dict(result.metadata),
        )

    @field_serializer("confidence", when_used="json")
    def serialize_confidence(self, value: float) -> str:
        return f"{value:.2f}"
