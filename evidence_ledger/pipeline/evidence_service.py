"""Evidence lifecycle orchestration.

EvidenceService is the seam the route layer talks to. It wires the pure
analysis components to the stores and owns every side effect: custody
entries, cached scores, conflict counts and audit events.

Error policy:
- Read-only scoring of a missing item (minting eligibility, current trust)
  returns an advisory zero result.
- Mutations of a missing item (verify, mint, refresh, resolve, ...) raise
  NotFoundError.
- Minting is refused, never just logged, when the item is not VERIFIED or
  not eligible.

Usage:
    service = EvidenceService()
    evidence = await service.register_evidence({"evidence_tier": "GOVERNMENT", "case_id": "c-1"})
    await service.verify_evidence(evidence.id, performed_by="clerk-7")
    eligibility = await service.calculate_minting_eligibility(evidence.id)
    if eligibility.eligible:
        await service.mint_evidence(evidence.id, block_number="1042", hash_value="0xabc")
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from evidence_ledger.analysis.contradictions.contradiction_detector import (
    ContradictionDetectionEngine,
)
from evidence_ledger.analysis.extraction.fact_extractor import FactExtractionEngine
from evidence_ledger.analysis.trust.minting_scorer import MintingEligibilityScorer
from evidence_ledger.analysis.trust.scientific_trust import ScientificTrustEngine
from evidence_ledger.analysis.trust.trust_calculator import TrustScoreCalculator
from evidence_ledger.compliance.forensics import (
    MethodologyValidation,
    validate_trust_score_methodology,
)
from evidence_ledger.config.settings import settings
from evidence_ledger.data_management.contradiction_store import ContradictionStore
from evidence_ledger.data_management.evidence_store import EvidenceStore
from evidence_ledger.data_management.fact_store import FactStore
from evidence_ledger.data_management.schemas import (
    AtomicFact,
    ChainOfCustodyEntry,
    Contradiction,
    ContradictionResult,
    CustodyAction,
    Evidence,
    EvidenceStatus,
    EvidenceTier,
    ExtractionConfig,
    HashVerification,
    MintingEligibility,
    ScientificTrustAssessment,
)
from evidence_ledger.exceptions import MintingRefusedError, NotFoundError, ValidationError
from evidence_ledger.utils.logging import get_correlation_id, get_structured_logger
from evidence_ledger.utils.timeutils import utc_now


def _store_path(filename: str) -> Optional[str]:
    if not settings.persistence_dir:
        return None
    return str(Path(settings.persistence_dir) / filename)


class EvidenceService:
    """Route-layer operations over evidence, facts and contradictions."""

    def __init__(
        self,
        evidence_store: Optional[EvidenceStore] = None,
        fact_store: Optional[FactStore] = None,
        contradiction_store: Optional[ContradictionStore] = None,
        trust_calculator: Optional[TrustScoreCalculator] = None,
        minting_scorer: Optional[MintingEligibilityScorer] = None,
        scientific_engine: Optional[ScientificTrustEngine] = None,
        fact_extractor: Optional[FactExtractionEngine] = None,
        contradiction_detector: Optional[ContradictionDetectionEngine] = None,
    ) -> None:
        """Initialize EvidenceService.

        Args:
            evidence_store: Shared evidence store. Created if None, persisted
                under settings.persistence_dir when that is set.
            fact_store: Shared fact store.
            contradiction_store: Shared contradiction store.
            trust_calculator, minting_scorer, scientific_engine,
            fact_extractor, contradiction_detector: Analysis components;
                defaults use their own component loggers.
        """
        self.evidence_store = evidence_store or EvidenceStore(_store_path("evidence.json"))
        self.fact_store = fact_store or FactStore(_store_path("facts.json"))
        self.contradiction_store = contradiction_store or ContradictionStore(
            _store_path("contradictions.json")
        )
        self.trust_calculator = trust_calculator or TrustScoreCalculator()
        self.minting_scorer = minting_scorer or MintingEligibilityScorer()
        self.scientific_engine = scientific_engine or ScientificTrustEngine()
        self.fact_extractor = fact_extractor or FactExtractionEngine()
        self.contradiction_detector = contradiction_detector or ContradictionDetectionEngine()
        self._logger = get_structured_logger(__name__, component="EvidenceService")

    async def _require(self, evidence_id: str) -> Evidence:
        evidence = await self.evidence_store.get_evidence(evidence_id)
        if evidence is None:
            raise NotFoundError("Evidence", evidence_id)
        return evidence

    async def _custody(
        self,
        evidence: Evidence,
        action: CustodyAction,
        performed_by: Optional[str],
        location: str,
        notes: str,
        hash_before: Optional[str] = None,
        hash_after: Optional[str] = None,
    ) -> ChainOfCustodyEntry:
        return await self.evidence_store.append_custody_entry(
            ChainOfCustodyEntry(
                evidence_id=evidence.id,
                action=action,
                performed_by=performed_by or evidence.uploaded_by,
                timestamp=utc_now(),
                location=location,
                notes=notes,
                hash_before=hash_before,
                hash_after=hash_after,
            )
        )

    # Lifecycle

    async def register_evidence(
        self,
        data: Mapping[str, Any],
        performed_by: Optional[str] = None,
    ) -> Evidence:
        """Create evidence with tier-derived trust and an UPLOADED custody entry."""
        evidence = await self.evidence_store.create_evidence(data)
        await self._custody(
            evidence,
            CustodyAction.UPLOADED,
            performed_by,
            location="Evidence Ledger",
            notes="Evidence uploaded",
        )
        self._logger.info(
            "evidence_registered",
            evidence_id=evidence.id,
            artifact_id=evidence.artifact_id,
            tier=evidence.evidence_tier.value,
            case_id=evidence.case_id,
            trust_score=f"{evidence.trust_score:.2f}",
        )
        return evidence

    async def verify_evidence(self, evidence_id: str, performed_by: Optional[str] = None) -> Evidence:
        """
        Mark evidence VERIFIED and restart its decay clock.

        Raises:
            NotFoundError: If the evidence does not exist.
            ValidationError: If the evidence is already minted.
        """
        evidence = await self._require(evidence_id)
        if evidence.is_minted:
            raise ValidationError("Minted evidence cannot be re-verified", field="status")

        now = utc_now()
        updated = await self.evidence_store.update_evidence(
            evidence_id,
            {
                "status": EvidenceStatus.VERIFIED,
                "verified_at": now,
                "last_trust_update": now,
                "trust_score": evidence.original_trust_score,
            },
        )
        await self._custody(
            updated,
            CustodyAction.VERIFIED,
            performed_by,
            location="Evidence Ledger",
            notes="Evidence verified - trust decay restarted",
            hash_before=updated.hash_value,
            hash_after=updated.hash_value,
        )
        self._logger.info("evidence_verified", evidence_id=evidence_id, performed_by=performed_by)
        return updated

    async def mint_evidence(
        self,
        evidence_id: str,
        block_number: Optional[str],
        hash_value: Optional[str],
        performed_by: Optional[str] = None,
    ) -> Evidence:
        """
        Anchor evidence to an externally supplied block and hash.

        Freezes trust at its current decayed value and zeroes the
        degradation rate.

        Raises:
            ValidationError: If block_number or hash_value is missing, or the
                evidence is already minted.
            NotFoundError: If the evidence does not exist.
            MintingRefusedError: If the evidence is not VERIFIED or not eligible.
        """
        if not block_number:
            raise ValidationError("Block number is required for minting", field="block_number")
        if not hash_value:
            raise ValidationError("Hash value is required for minting", field="hash_value")

        correlation_id = get_correlation_id()
        evidence = await self._require(evidence_id)
        if evidence.is_minted:
            raise ValidationError("Evidence is already minted", field="status")
        if evidence.status != EvidenceStatus.VERIFIED:
            raise MintingRefusedError(
                f"Evidence must be VERIFIED before minting (status {evidence.status.value})",
                evidence_id=evidence_id,
            )

        custody = await self.evidence_store.get_chain_of_custody(evidence_id)
        eligibility = self.minting_scorer.score(evidence, custody)
        if not eligibility.eligible:
            self._logger.warning(
                "minting_refused",
                evidence_id=evidence_id,
                score=eligibility.score,
                correlation_id=correlation_id,
            )
            raise MintingRefusedError(
                f"Evidence is not eligible for minting (score {eligibility.score})",
                evidence_id=evidence_id,
                score=eligibility.score,
            )

        now = utc_now()
        frozen_trust = self.trust_calculator.current_value(evidence, now)
        previous_hash = evidence.hash_value
        updated = await self.evidence_store.update_evidence(
            evidence_id,
            {
                "status": EvidenceStatus.MINTED,
                "block_number": block_number,
                "hash_value": hash_value,
                "minted_at": now,
                "trust_score": frozen_trust,
                "trust_degradation_rate": 0.0,
                "last_trust_update": now,
                "minting_eligible": True,
                "minting_score": 1.0,
            },
        )
        await self._custody(
            updated,
            CustodyAction.MINTED,
            performed_by,
            location="Blockchain",
            notes=f"Minted at block {block_number}",
            hash_before=previous_hash,
            hash_after=hash_value,
        )
        self._logger.info(
            "evidence_minted",
            evidence_id=evidence_id,
            block_number=block_number,
            trust_score=f"{frozen_trust:.2f}",
            correlation_id=correlation_id,
        )
        return updated

    async def record_corroboration(self, evidence_id: str, sources: int = 1) -> Evidence:
        """Add independent corroborating sources to an evidence item."""
        if sources < 1:
            raise ValidationError("sources must be at least 1", field="sources")
        evidence = await self._require(evidence_id)
        updated = await self.evidence_store.update_evidence(
            evidence_id,
            {"corroboration_count": evidence.corroboration_count + sources},
        )
        self._logger.info(
            "corroboration_recorded",
            evidence_id=evidence_id,
            corroboration_count=updated.corroboration_count,
        )
        return updated

    # Trust

    def calculate_trust_score(self, tier: Union[EvidenceTier, str]) -> str:
        return self.trust_calculator.calculate_trust_score(tier)

    async def current_trust_score(self, evidence_id: str, now: Optional[datetime] = None) -> str:
        """Current trust as a two-decimal string; "0.00" for unknown evidence."""
        evidence = await self.evidence_store.get_evidence(evidence_id)
        if evidence is None:
            return "0.00"
        return self.trust_calculator.current_trust_score(evidence, now)

    async def refresh_trust_score(self, evidence_id: str, now: Optional[datetime] = None) -> Evidence:
        """
        Persist the current decayed trust.

        The decay reference (last_trust_update) is left untouched, so
        refreshing twice at the same instant stores the same value.
        """
        evidence = await self._require(evidence_id)
        if evidence.is_minted:
            return evidence
        value = self.trust_calculator.current_value(evidence, now)
        return await self.evidence_store.update_evidence(evidence_id, {"trust_score": value})

    # Minting eligibility

    async def calculate_minting_eligibility(
        self, evidence_id: str, now: Optional[datetime] = None
    ) -> MintingEligibility:
        evidence = await self.evidence_store.get_evidence(evidence_id)
        if evidence is None:
            return self.minting_scorer.not_found(evidence_id)
        custody = await self.evidence_store.get_chain_of_custody(evidence_id)
        return self.minting_scorer.score(evidence, custody, now)

    async def update_minting_eligibility(
        self, evidence_id: str, now: Optional[datetime] = None
    ) -> MintingEligibility:
        """Recompute eligibility and cache it on the evidence (minted items keep their cache)."""
        evidence = await self._require(evidence_id)
        custody = await self.evidence_store.get_chain_of_custody(evidence_id)
        eligibility = self.minting_scorer.score(evidence, custody, now)
        if not evidence.is_minted:
            await self.evidence_store.update_evidence(
                evidence_id,
                {
                    "minting_eligible": eligibility.eligible,
                    "minting_score": float(eligibility.score),
                },
            )
        return eligibility

    # Scientific assessment

    async def generate_scientific_trust_score(
        self,
        evidence_id: str,
        hash_verification: Optional[HashVerification] = None,
        now: Optional[datetime] = None,
    ) -> ScientificTrustAssessment:
        evidence = await self._require(evidence_id)
        custody = await self.evidence_store.get_chain_of_custody(evidence_id)
        return self.scientific_engine.generate(evidence, custody, hash_verification, now)

    async def update_chittytrust_score(
        self,
        evidence_id: str,
        hash_verification: Optional[HashVerification] = None,
        now: Optional[datetime] = None,
    ) -> ScientificTrustAssessment:
        """Generate the Bayesian assessment and cache its final score."""
        assessment = await self.generate_scientific_trust_score(evidence_id, hash_verification, now)
        await self.evidence_store.update_evidence(
            evidence_id, {"chittytrust_score": assessment.final_score}
        )
        return assessment

    # Facts

    def extract_facts(
        self,
        evidence: Evidence,
        text: Any,
        config: Optional[Union[ExtractionConfig, Dict[str, Any]]] = None,
    ) -> List[AtomicFact]:
        return self.fact_extractor.extract(evidence, text, config)

    async def extract_and_store_facts(
        self,
        evidence_id: str,
        text: Any,
        config: Optional[Union[ExtractionConfig, Dict[str, Any]]] = None,
    ) -> List[AtomicFact]:
        """Extract facts for stored evidence and persist them (duplicates are skipped)."""
        evidence = await self._require(evidence_id)
        stored = []
        for fact in self.extract_facts(evidence, text, config):
            stored.append(await self.fact_store.create_fact(fact))
        self._logger.info("facts_stored", evidence_id=evidence_id, count=len(stored))
        return stored

    async def get_facts(self, evidence_id: str) -> List[AtomicFact]:
        return await self.fact_store.get_facts_by_evidence(evidence_id)

    # Contradictions

    def detect_contradictions(
        self,
        evidence_a: Evidence,
        evidence_b: Evidence,
        facts_a: Sequence[AtomicFact],
        facts_b: Sequence[AtomicFact],
    ) -> List[ContradictionResult]:
        return self.contradiction_detector.detect(evidence_a, evidence_b, facts_a, facts_b)

    async def record_contradictions(
        self, results: Iterable[ContradictionResult]
    ) -> Tuple[List[Contradiction], int]:
        """Store detector results. Returns (records, newly created count)."""
        records = []
        created_count = 0
        for result in results:
            record, created = await self.contradiction_store.record(result)
            records.append(record)
            if created:
                created_count += 1
                self._logger.info(
                    "contradiction_recorded",
                    conflict_id=record.conflict_id,
                    type=record.contradiction_type.value,
                    severity=record.severity.value,
                    evidence_id1=record.evidence_id1,
                    evidence_id2=record.evidence_id2,
                )
        return records, created_count

    async def detect_and_record_contradictions(
        self, evidence_id_a: str, evidence_id_b: str
    ) -> List[Contradiction]:
        """Detect contradictions between two stored items, record them and resync conflict counts."""
        if evidence_id_a == evidence_id_b:
            raise ValidationError("Cannot compare evidence with itself", field="evidence_id")
        evidence_a = await self._require(evidence_id_a)
        evidence_b = await self._require(evidence_id_b)
        facts_a = await self.fact_store.get_facts_by_evidence(evidence_id_a)
        facts_b = await self.fact_store.get_facts_by_evidence(evidence_id_b)

        results = self.detect_contradictions(evidence_a, evidence_b, facts_a, facts_b)
        records, _ = await self.record_contradictions(results)
        await self.sync_conflict_counts([evidence_id_a, evidence_id_b])
        return records

    async def resolve_contradiction(self, contradiction_id: str, notes: Optional[str] = None) -> Contradiction:
        """Resolve a contradiction and resync both items' conflict counts."""
        record = await self.contradiction_store.resolve(contradiction_id, notes)
        if record is None:
            raise NotFoundError("Contradiction", contradiction_id)
        await self.sync_conflict_counts([record.evidence_id1, record.evidence_id2])
        self._logger.info(
            "contradiction_resolved",
            contradiction_id=contradiction_id,
            conflict_id=record.conflict_id,
        )
        return record

    async def sync_conflict_counts(self, evidence_ids: Optional[Iterable[str]] = None) -> Dict[str, int]:
        """
        Set conflict_count to the number of active contradictions referencing each item.

        Args:
            evidence_ids: Items to resync; all evidence when None.

        Returns:
            evidence_id -> conflict_count for the items that exist.
        """
        if evidence_ids is None:
            evidence_ids = [e.id for e in await self.evidence_store.list_evidence()]

        counts: Dict[str, int] = {}
        for evidence_id in dict.fromkeys(evidence_ids):
            evidence = await self.evidence_store.get_evidence(evidence_id)
            if evidence is None:
                continue
            active = await self.contradiction_store.count_active_for(evidence_id)
            if evidence.conflict_count != active:
                await self.evidence_store.update_evidence(evidence_id, {"conflict_count": active})
            counts[evidence_id] = active
        return counts

    # Compliance

    async def validate_trust_methodology(
        self, case_id: Optional[str] = None, now: Optional[datetime] = None
    ) -> MethodologyValidation:
        """Check current trust scores of a case (or the whole ledger) against their tiers."""
        evidence = await self.evidence_store.list_evidence(case_id)
        scores = [self.trust_calculator.current_value(item, now) for item in evidence]
        validation = validate_trust_score_methodology(scores, [item.evidence_tier for item in evidence])
        self._logger.info(
            "trust_methodology_validated",
            case_id=case_id,
            sample_size=validation.sample_size,
            error_rate=validation.error_rate,
        )
        return validation

    # Dashboard

    async def dashboard_stats(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Aggregate counts for the dashboard."""
        evidence = await self.evidence_store.list_evidence()
        active = await self.contradiction_store.list_contradictions(active_only=True)
        by_status = {status.value: 0 for status in EvidenceStatus}
        trust_values = []
        for item in evidence:
            by_status[item.status.value] += 1
            trust_values.append(self.trust_calculator.current_value(item, now))

        return {
            "total_evidence": len(evidence),
            "by_status": by_status,
            "minted": by_status[EvidenceStatus.MINTED.value],
            "total_facts": await self.fact_store.count(),
            "active_contradictions": len(active),
            "average_trust_score": (
                f"{sum(trust_values) / len(trust_values):.2f}" if trust_values else "0.00"
            ),
        }
