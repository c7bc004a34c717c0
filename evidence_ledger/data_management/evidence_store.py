"""Evidence and chain-of-custody storage.

Features:
- In-memory storage with optional JSON persistence
- Sequential artifact codes (ART-000001)
- Trust initialized from the evidence tier at creation
- Append-only custody log, totally ordered by timestamp per evidence item
- Thread-safe operations with asyncio locks

Usage:
    store = EvidenceStore()
    evidence = await store.create_evidence(
        {"evidence_tier": "GOVERNMENT", "filename": "deed.pdf", "case_id": "case-1"}
    )
    await store.append_custody_entry(entry)
    chain = await store.get_chain_of_custody(evidence.id)
"""

import asyncio
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pydantic
import structlog

from evidence_ledger.config.settings import settings
from evidence_ledger.config.tier_profiles import coerce_tier, profile_for
from evidence_ledger.data_management.persistence import read_json, write_json
from evidence_ledger.data_management.schemas import ChainOfCustodyEntry, Evidence
from evidence_ledger.exceptions import NotFoundError, ValidationError
from evidence_ledger.utils.timeutils import as_utc, utc_now

IMMUTABLE_FIELDS = ("id", "artifact_id", "original_trust_score", "evidence_tier", "uploaded_at")

# Fields the store always assigns itself
_ASSIGNED_FIELDS = frozenset({
    "artifact_id",
    "evidence_tier",
    "status",
    "trust_score",
    "original_trust_score",
    "trust_degradation_rate",
    "last_trust_update",
    "uploaded_at",
    "verified_at",
    "minted_at",
    "block_number",
    "hash_value",
    "corroboration_count",
    "conflict_count",
    "minting_eligible",
    "minting_score",
    "chittytrust_score",
})


class EvidenceStore:
    """
    Storage adapter for evidence records and their custody logs.

    Data structure:
    {
        "counter": 3,
        "evidence": {evidence_id: Evidence, ...},
        "custody": {evidence_id: [ChainOfCustodyEntry, ...], ...}
    }

    Evidence is listed in creation order.
    """

    def __init__(self, persistence_path: Optional[str] = None) -> None:
        """
        Initialize evidence store.

        Args:
            persistence_path: Optional path to JSON file for persistence.
                            If None, storage is memory-only.
        """
        self._evidence: Dict[str, Evidence] = {}
        self._custody: Dict[str, List[ChainOfCustodyEntry]] = {}
        self._counter = 0
        self._lock = asyncio.Lock()
        self._persistence_path = Path(persistence_path) if persistence_path else None
        self._logger = structlog.get_logger().bind(component="EvidenceStore")

        if self._persistence_path and self._persistence_path.exists():
            self._load_from_file()

    async def create_evidence(self, data: Mapping[str, Any]) -> Evidence:
        """
        Create an evidence record with tier-derived trust.

        Args:
            data: Evidence fields; ``evidence_tier`` is required. Trust,
                status, codes and counters are always assigned here.

        Returns:
            The stored Evidence.

        Raises:
            ValidationError: If the tier is missing or a field is invalid.
            ConfigurationError: If the tier is unknown.
        """
        if not data.get("evidence_tier"):
            raise ValidationError("evidence_tier is required", field="evidence_tier")

        tier = coerce_tier(data["evidence_tier"])
        trust = profile_for(tier).base_trust

        async with self._lock:
            now = utc_now()
            fields = {
                k: v for k, v in data.items()
                if k in Evidence.model_fields and k not in _ASSIGNED_FIELDS
            }
            try:
                evidence = Evidence(
                    **fields,
                    artifact_id=f"ART-{self._counter + 1:06d}",
                    evidence_tier=tier,
                    trust_score=trust,
                    original_trust_score=trust,
                    trust_degradation_rate=settings.default_degradation_rate,
                    last_trust_update=now,
                    uploaded_at=now,
                )
            except pydantic.ValidationError as e:
                raise ValidationError(f"Invalid evidence data: {e}") from e

            self._counter += 1
            self._evidence[evidence.id] = evidence
            self._custody.setdefault(evidence.id, [])

            self._logger.info(
                "evidence_created",
                evidence_id=evidence.id,
                artifact_id=evidence.artifact_id,
                tier=tier.value,
                case_id=evidence.case_id,
            )
            self._save_to_file()
            return evidence

    async def restore_evidence(
        self,
        evidence: Evidence,
        custody: Sequence[ChainOfCustodyEntry] = (),
    ) -> Evidence:
        """
        Load an already-built record and its custody log as-is (bundle import).

        Raises:
            ValidationError: If the id already exists or a custody entry
                belongs to another evidence item.
        """
        async with self._lock:
            if evidence.id in self._evidence:
                raise ValidationError("Evidence already exists", field="id", evidence_id=evidence.id)
            for entry in custody:
                if entry.evidence_id != evidence.id:
                    raise ValidationError(
                        "Custody entry belongs to another evidence item",
                        field="evidence_id",
                        evidence_id=entry.evidence_id,
                    )

            self._counter += 1
            if evidence.artifact_id is None:
                evidence = evidence.model_copy(update={"artifact_id": f"ART-{self._counter:06d}"})
            self._evidence[evidence.id] = evidence
            self._custody[evidence.id] = sorted(custody, key=lambda e: as_utc(e.timestamp))

            self._logger.info(
                "evidence_restored",
                evidence_id=evidence.id,
                artifact_id=evidence.artifact_id,
                custody_entries=len(custody),
            )
            self._save_to_file()
            return evidence

    async def get_evidence(self, evidence_id: str) -> Optional[Evidence]:
        async with self._lock:
            return self._evidence.get(evidence_id)

    async def list_evidence(self, case_id: Optional[str] = None) -> List[Evidence]:
        """All evidence in creation order, optionally limited to one case."""
        async with self._lock:
            return [
                e for e in self._evidence.values()
                if case_id is None or e.case_id == case_id
            ]

    async def update_evidence(self, evidence_id: str, updates: Mapping[str, Any]) -> Optional[Evidence]:
        """
        Apply a partial update and re-validate the record.

        Returns:
            Updated Evidence, or None if the id is unknown.

        Raises:
            ValidationError: On an attempt to change an immutable field or
                when the result violates an Evidence invariant.
        """
        async with self._lock:
            current = self._evidence.get(evidence_id)
            if current is None:
                return None

            for name in IMMUTABLE_FIELDS:
                if name in updates and updates[name] != getattr(current, name):
                    raise ValidationError(f"{name} is immutable", field=name)

            try:
                updated = Evidence.model_validate({**current.model_dump(), **updates})
            except pydantic.ValidationError as e:
                raise ValidationError(f"Invalid evidence update: {e}") from e

            self._evidence[evidence_id] = updated
            self._logger.debug(
                "evidence_updated",
                evidence_id=evidence_id,
                fields=sorted(updates.keys()),
            )
            self._save_to_file()
            return updated

    async def get_chain_of_custody(self, evidence_id: str) -> List[ChainOfCustodyEntry]:
        """Custody entries for one evidence item, oldest first."""
        async with self._lock:
            entries = self._custody.get(evidence_id, [])
            return sorted(entries, key=lambda e: as_utc(e.timestamp))

    async def append_custody_entry(self, entry: ChainOfCustodyEntry) -> ChainOfCustodyEntry:
        """
        Append a custody entry.

        Raises:
            NotFoundError: If the evidence does not exist.
            ValidationError: If the entry is older than the latest entry
                for the same evidence.
        """
        async with self._lock:
            if entry.evidence_id not in self._evidence:
                raise NotFoundError("Evidence", entry.evidence_id)

            entries = self._custody.setdefault(entry.evidence_id, [])
            if entries and as_utc(entry.timestamp) < as_utc(entries[-1].timestamp):
                raise ValidationError(
                    "Custody entry is older than the latest entry",
                    field="timestamp",
                    evidence_id=entry.evidence_id,
                )

            entries.append(entry)
            self._logger.debug(
                "custody_entry_appended",
                evidence_id=entry.evidence_id,
                action=entry.action.value,
                performed_by=entry.performed_by,
            )
            self._save_to_file()
            return entry

    async def count(self) -> int:
        async with self._lock:
            return len(self._evidence)

    def _save_to_file(self) -> None:
        """Save to JSON file (synchronous)."""
        if not self._persistence_path:
            return
        try:
            write_json(
                self._persistence_path,
                {
                    "counter": self._counter,
                    "evidence": {
                        eid: ev.model_dump() for eid, ev in self._evidence.items()
                    },
                    "custody": {
                        eid: [entry.model_dump() for entry in entries]
                        for eid, entries in self._custody.items()
                    },
                },
            )
        except OSError as e:
            self._logger.error("persistence_failed", error=str(e))

    def _load_from_file(self) -> None:
        """Load from JSON file (synchronous)."""
        try:
            data = read_json(self._persistence_path)
            self._counter = int(data.get("counter", 0))
            self._evidence = {
                eid: Evidence.model_validate(raw)
                for eid, raw in data.get("evidence", {}).items()
            }
            self._custody = {
                eid: [ChainOfCustodyEntry.model_validate(raw) for raw in entries]
                for eid, entries in data.get("custody", {}).items()
            }
            self._logger.info("evidence_loaded", count=len(self._evidence))
        except (OSError, ValueError) as e:
            self._logger.error("load_failed", error=str(e))
