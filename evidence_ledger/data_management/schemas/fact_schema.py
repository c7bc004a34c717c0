"""Atomic fact schema - primary output of fact extraction.

An AtomicFact is one typed assertion pulled from evidentiary text by a
pattern rule. Facts are owned by exactly one evidence item. After extraction
the only permitted change is a reviewer's verified_at stamp.

Storage fields (id, fact_code, extracted_at) are assigned by FactStore, so
extraction output is deterministic for identical input.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from evidence_ledger.config.settings import settings


class FactType(str, Enum):
    """Kinds of atomic facts the extraction engine produces."""

    AMOUNT = "AMOUNT"
    PERCENTAGE = "PERCENTAGE"
    DATE = "DATE"
    PERSON = "PERSON"
    LOCATION = "LOCATION"
    STATEMENT = "STATEMENT"
    ACCOUNT = "ACCOUNT"
    TRANSACTION = "TRANSACTION"
    CASE_NUMBER = "CASE_NUMBER"
    CONTRACT_TERM = "CONTRACT_TERM"


class AtomicFact(BaseModel):
    """One extracted assertion.

    Attributes:
        fact_type: Category of the assertion.
        content: Normalized text ("Amount: 1,000", "Date: 01/12/2024").
        confidence_score: Heuristic confidence 0.0-1.0.
        context: Surrounding text window.
        source: Extraction rule that produced the fact.
        evidence_id: Owning evidence item.
        metadata: Rule-specific details (raw match, position, ...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    fact_type: FactType
    content: str
    confidence_score: float = Field(..., ge=0.0, le=1.0)
    context: Optional[str] = None
    source: Optional[str] = None
    evidence_id: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    # Assigned by FactStore
    id: Optional[str] = None
    fact_code: Optional[str] = None
    extracted_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None

    @field_serializer("confidence_score", when_used="json")
    def serialize_confidence(self, value: float) -> str:
        return f"{value:.2f}"


class ExtractionConfig(BaseModel):
    """Toggleable extractor families plus the final confidence cutoff.

    Partial dicts are accepted; unspecified keys keep their defaults:
        ExtractionConfig.model_validate({"enable_person_extraction": False})
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    enable_amount_extraction: bool = True
    enable_date_extraction: bool = True
    enable_person_extraction: bool = True
    enable_location_extraction: bool = True
    enable_statement_extraction: bool = True
    minimum_confidence: float = Field(
        default_factory=lambda: settings.extraction_minimum_confidence,
        ge=0.0,
        le=1.0,
    )
