"""Atomic fact storage, organized by owning evidence item.

Features:
- In-memory storage with optional JSON persistence
- Sequential fact codes (FACT-0001)
- O(1) lookup by fact id, creation-ordered listing per evidence item
- Re-storing a fact with the same (fact_type, content) for the same evidence
  returns the existing record, so repeated extraction is idempotent
- Thread-safe operations with asyncio locks
"""

import asyncio
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import structlog

from evidence_ledger.data_management.persistence import read_json, write_json
from evidence_ledger.data_management.schemas import AtomicFact, FactType
from evidence_ledger.exceptions import ValidationError
from evidence_ledger.utils.timeutils import utc_now

FactKey = Tuple[str, FactType, str]


class FactStore:
    """
    Storage adapter for extracted facts.

    Indexes:
    - _facts: fact_id -> AtomicFact
    - _by_evidence: evidence_id -> [fact_id, ...] in creation order
    - _content_index: (evidence_id, fact_type, content) -> fact_id
    """

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        self._facts: Dict[str, AtomicFact] = {}
        self._by_evidence: Dict[str, List[str]] = {}
        self._content_index: Dict[FactKey, str] = {}
        self._counter = 0
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = structlog.get_logger().bind(component="FactStore")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def create_fact(self, fact: AtomicFact) -> AtomicFact:
        """
        Store a fact and assign its storage fields.

        Args:
            fact: Extracted fact; ``evidence_id`` is required.

        Returns:
            Stored copy with id, fact_code and extracted_at set, or the
            existing record for a duplicate.

        Raises:
            ValidationError: If the fact has no evidence_id.
        """
        if not fact.evidence_id:
            raise ValidationError("Fact is missing evidence_id", field="evidence_id")

        key = (fact.evidence_id, fact.fact_type, fact.content)
        async with self._lock:
            existing_id = self._content_index.get(key)
            if existing_id is not None:
                return self._facts[existing_id]

            self._counter += 1
            stored = fact.model_copy(
                update={
                    "id": str(uuid.uuid4()),
                    "fact_code": f"FACT-{self._counter:04d}",
                    "extracted_at": utc_now(),
                },
                deep=True,
            )
            self._index(stored)

            self._logger.debug(
                "fact_created",
                fact_id=stored.id,
                fact_code=stored.fact_code,
                evidence_id=stored.evidence_id,
                fact_type=stored.fact_type.value,
            )
            self._save_to_file()
            return stored

    async def get_fact(self, fact_id: str) -> Optional[AtomicFact]:
        async with self._lock:
            return self._facts.get(fact_id)

    async def get_facts_by_evidence(self, evidence_id: str) -> List[AtomicFact]:
        async with self._lock:
            return [self._facts[fid] for fid in self._by_evidence.get(evidence_id, [])]

    async def mark_fact_verified(self, fact_id: str) -> Optional[AtomicFact]:
        """
        Stamp a fact as reviewer-verified.

        The stamp is set once; later calls return the fact unchanged.

        Returns:
            The fact, or None if the id is unknown.
        """
        async with self._lock:
            fact = self._facts.get(fact_id)
            if fact is None:
                return None
            if fact.verified_at is not None:
                return fact

            verified = fact.model_copy(update={"verified_at": utc_now()})
            self._facts[fact_id] = verified
            self._logger.info("fact_verified", fact_id=fact_id, evidence_id=fact.evidence_id)
            self._save_to_file()
            return verified

    async def count(self, evidence_id: Optional[str] = None) -> int:
        async with self._lock:
            if evidence_id is None:
                return len(self._facts)
            return len(self._by_evidence.get(evidence_id, []))

    def _index(self, fact: AtomicFact) -> None:
        self._facts[fact.id] = fact
        self._by_evidence.setdefault(fact.evidence_id, []).append(fact.id)
        self._content_index[(fact.evidence_id, fact.fact_type, fact.content)] = fact.id

    def _save_to_file(self) -> None:
        """Save to JSON file (synchronous)."""
        if not self._persistence_path:
            return
        try:
            write_json(
                self._persistence_path,
                {
                    "counter": self._counter,
                    "facts": [self._facts[fid].model_dump() for fid in self._facts],
                },
            )
        except OSError as e:
            self._logger.error("persistence_failed", error=str(e))

    def _load_from_file(self) -> None:
        """Load from JSON file (synchronous)."""
        try:
            data = read_json(self._persistence_path)
            self._counter = int(data.get("counter", 0))
            for raw in data.get("facts", []):
                self._index(AtomicFact.model_validate(raw))
            self._logger.info("facts_loaded", count=len(self._facts))
        except (OSError, ValueError) as e:
            self._logger.error("load_failed", error=str(e))
