"""Contradiction record storage.

Follows the same patterns as EvidenceStore and FactStore:
- In-memory storage with optional JSON persistence
- Sequential conflict codes (CONFLICT-0001)
- Thread-safe operations with asyncio locks

Recording is idempotent: a contradiction with the same type, evidence pair
and description is returned instead of duplicated. Resolved records count,
so a resolution survives later sweeps of the same case.
"""

import asyncio
from pathlib import Path
from typing import Dict, List, Optional, Union

import structlog

from evidence_ledger.data_management.persistence import read_json, write_json
from evidence_ledger.data_management.schemas import (
    Contradiction,
    ContradictionResult,
    ContradictionStatus,
    ContradictionType,
)
from evidence_ledger.utils.timeutils import utc_now


class ContradictionStore:
    """Storage for detected contradictions, listed in detection order."""

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        self._records: Dict[str, Contradiction] = {}
        self._counter = 0
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = structlog.get_logger().bind(component="ContradictionStore")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def record(self, item: Union[ContradictionResult, Contradiction]) -> tuple[Contradiction, bool]:
        """
        Store a contradiction unless an equivalent one was already recorded.

        Args:
            item: Detector output or a manually built record.

        Returns:
            (record, created) where created is False for an existing match.
        """
        record = Contradiction.from_result(item) if isinstance(item, ContradictionResult) else item
        async with self._lock:
            existing = self._find(
                record.contradiction_type,
                frozenset((record.evidence_id1, record.evidence_id2)),
                record.description,
                active_only=False,
            )
            if existing is not None:
                return existing, False

            self._counter += 1
            record = record.model_copy(update={"conflict_id": f"CONFLICT-{self._counter:04d}"})
            self._records[record.id] = record

            self._logger.info(
                "contradiction_stored",
                contradiction_id=record.id,
                conflict_id=record.conflict_id,
                type=record.contradiction_type.value,
                severity=record.severity.value,
                evidence_id1=record.evidence_id1,
                evidence_id2=record.evidence_id2,
            )
            self._save_to_file()
            return record, True

    async def get(self, contradiction_id: str) -> Optional[Contradiction]:
        async with self._lock:
            return self._records.get(contradiction_id)

    async def list_contradictions(
        self,
        active_only: bool = False,
        evidence_id: Optional[str] = None,
    ) -> List[Contradiction]:
        async with self._lock:
            return [
                r for r in self._records.values()
                if (not active_only or r.is_active)
                and (evidence_id is None or r.references(evidence_id))
            ]

    async def resolve(self, contradiction_id: str, notes: Optional[str] = None) -> Optional[Contradiction]:
        """
        Mark a contradiction resolved.

        Resolving an already resolved record returns it unchanged.

        Returns:
            The record, or None if the id is unknown.
        """
        async with self._lock:
            record = self._records.get(contradiction_id)
            if record is None:
                return None
            if not record.is_active:
                return record

            resolved = record.model_copy(
                update={
                    "status": ContradictionStatus.RESOLVED,
                    "resolved_at": utc_now(),
                    "resolution_notes": notes,
                }
            )
            self._records[contradiction_id] = resolved
            self._logger.info(
                "contradiction_resolved",
                contradiction_id=contradiction_id,
                conflict_id=resolved.conflict_id,
            )
            self._save_to_file()
            return resolved

    async def count_active_for(self, evidence_id: str) -> int:
        async with self._lock:
            return sum(1 for r in self._records.values() if r.is_active and r.references(evidence_id))

    async def find_active(
        self,
        contradiction_type: ContradictionType,
        pair: frozenset,
        description: Optional[str] = None,
    ) -> Optional[Contradiction]:
        async with self._lock:
            return self._find(contradiction_type, pair, description)

    def _find(
        self,
        contradiction_type: ContradictionType,
        pair: frozenset,
        description: Optional[str],
        active_only: bool = True,
    ) -> Optional[Contradiction]:
        for record in self._records.values():
            if (
                (record.is_active or not active_only)
                and record.contradiction_type == contradiction_type
                and frozenset((record.evidence_id1, record.evidence_id2)) == pair
                and (description is None or record.description == description)
            ):
                return record
        return None

    def _save_to_file(self) -> None:
        """Save to JSON file (synchronous)."""
        if not self._persistence_path:
            return
        try:
            write_json(
                self._persistence_path,
                {
                    "counter": self._counter,
                    "contradictions": [r.model_dump() for r in self._records.values()],
                },
            )
        except OSError as e:
            self._logger.error("persistence_failed", error=str(e))

    def _load_from_file(self) -> None:
        """Load from JSON file (synchronous)."""
        try:
            data = read_json(self._persistence_path)
            self._counter = int(data.get("counter", 0))
            for raw in data.get("contradictions", []):
                record = Contradiction.model_validate(raw)
                self._records[record.id] = record
            self._logger.info("contradictions_loaded", count=len(self._records))
        except (OSError, ValueError) as e:
            self._logger.error("load_failed", error=str(e))
