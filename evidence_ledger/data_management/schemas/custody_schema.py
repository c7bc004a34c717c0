"""Chain-of-custody schema.

Entries are append-only audit records. Per evidence item they are totally
ordered by timestamp, and once written they are never modified (the model
is frozen).
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from evidence_ledger.utils.timeutils import utc_now


class CustodyAction(str, Enum):
    """Actions recorded in the custody log."""

    COLLECTED = "COLLECTED"
    UPLOADED = "UPLOADED"
    TRANSFERRED = "TRANSFERRED"
    ANALYZED = "ANALYZED"
    VERIFIED = "VERIFIED"
    STORED = "STORED"
    ACCESSED = "ACCESSED"
    DUPLICATED = "DUPLICATED"
    RETURNED = "RETURNED"
    MINTED = "MINTED"
    UPDATED = "UPDATED"


class ChainOfCustodyEntry(BaseModel):
    """One immutable custody record.

    Attributes:
        evidence_id: Evidence this entry belongs to.
        action: What happened.
        performed_by: Handler identifier.
        timestamp: When it happened (UTC).
        location: Where it happened.
        notes: Free-form notes.
        hash_before: Artifact hash before the action, if known.
        hash_after: Artifact hash after the action, if known.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    evidence_id: str
    action: CustodyAction
    performed_by: Optional[str] = None
    timestamp: datetime = Field(default_factory=utc_now)
    location: Optional[str] = None
    notes: Optional[str] = None
    hash_before: Optional[str] = None
    hash_after: Optional[str] = None
