"""Tests for EvidenceService lifecycle operations.

Tests cover:
1. Registration and verification custody entries
2. Minting gate, trust freeze and refusals
3. Advisory results for unknown evidence
4. Fact storage and contradiction bookkeeping
5. Dashboard aggregates
"""

from datetime import timedelta

import pytest

from evidence_ledger.data_management.schemas import (
    CustodyAction,
    EvidenceStatus,
    FactType,
    HashVerification,
)
from evidence_ledger.exceptions import MintingRefusedError, NotFoundError, ValidationError
from evidence_ledger.pipeline.evidence_service import EvidenceService
from evidence_ledger.utils.timeutils import utc_now


@pytest.fixture
def service():
    """Memory-only service with default components."""
    return EvidenceService()


async def verified_government(service, **data):
    evidence = await service.register_evidence(
        {"evidence_tier": "GOVERNMENT", "uploaded_by": "clerk", **data}
    )
    return await service.verify_evidence(evidence.id, performed_by="reviewer")


class TestRegisterAndVerify:
    @pytest.mark.asyncio
    async def test_register_adds_uploaded_entry(self, service):
        evidence = await service.register_evidence(
            {"evidence_tier": "FINANCIAL_INSTITUTION", "uploaded_by": "analyst", "case_id": "c1"}
        )

        assert evidence.trust_score == 0.90
        chain = await service.evidence_store.get_chain_of_custody(evidence.id)
        assert len(chain) == 1
        assert chain[0].action == CustodyAction.UPLOADED
        assert chain[0].performed_by == "analyst"
        assert chain[0].notes == "Evidence uploaded"

    @pytest.mark.asyncio
    async def test_verify_restarts_decay(self, service):
        evidence = await service.register_evidence({"evidence_tier": "GOVERNMENT"})
        await service.refresh_trust_score(evidence.id, now=utc_now() + timedelta(hours=1000))

        verified = await service.verify_evidence(evidence.id, performed_by="reviewer")

        assert verified.status == EvidenceStatus.VERIFIED
        assert verified.verified_at is not None
        assert verified.trust_score == verified.original_trust_score
        assert verified.last_trust_update == verified.verified_at
        chain = await service.evidence_store.get_chain_of_custody(evidence.id)
        assert [e.action for e in chain] == [CustodyAction.UPLOADED, CustodyAction.VERIFIED]
        assert chain[1].performed_by == "reviewer"

    @pytest.mark.asyncio
    async def test_verify_unknown(self, service):
        with pytest.raises(NotFoundError):
            await service.verify_evidence("missing")

    @pytest.mark.asyncio
    async def test_corroboration(self, service):
        evidence = await service.register_evidence({"evidence_tier": "GOVERNMENT"})
        updated = await service.record_corroboration(evidence.id, sources=2)
        assert updated.corroboration_count == 2

        with pytest.raises(ValidationError):
            await service.record_corroboration(evidence.id, sources=0)


class TestMinting:
    """Minting gate and trust freeze."""

    @pytest.mark.asyncio
    async def test_mint_round_trip(self, service):
        """GOVERNMENT, verified, 2 custody entries: 18+15+10+0+15+15 = 73."""
        evidence = await verified_government(service)

        eligibility = await service.calculate_minting_eligibility(evidence.id)
        assert eligibility.score == "0.73"
        assert eligibility.eligible is True

        minted = await service.mint_evidence(evidence.id, block_number="1042", hash_value="0xabc")

        assert minted.status == EvidenceStatus.MINTED
        assert minted.trust_degradation_rate == 0.0
        assert minted.block_number == "1042"
        assert minted.hash_value == "0xabc"
        assert minted.minting_eligible is True
        assert minted.minted_at >= minted.verified_at

        frozen = f"{minted.trust_score:.2f}"
        for years in (0, 1, 10):
            later = utc_now() + timedelta(days=365 * years)
            assert await service.current_trust_score(evidence.id, later) == frozen

        chain = await service.evidence_store.get_chain_of_custody(evidence.id)
        assert chain[-1].action == CustodyAction.MINTED
        assert chain[-1].location == "Blockchain"
        assert chain[-1].hash_after == "0xabc"

    @pytest.mark.asyncio
    async def test_mint_twice_rejected(self, service):
        evidence = await verified_government(service)
        await service.mint_evidence(evidence.id, block_number="1", hash_value="0x1")

        with pytest.raises(ValidationError):
            await service.mint_evidence(evidence.id, block_number="2", hash_value="0x2")
        with pytest.raises(ValidationError):
            await service.verify_evidence(evidence.id)

    @pytest.mark.asyncio
    async def test_pending_evidence_refused(self, service):
        evidence = await service.register_evidence({"evidence_tier": "SELF_AUTHENTICATING"})

        with pytest.raises(MintingRefusedError):
            await service.mint_evidence(evidence.id, block_number="1", hash_value="0x1")
        assert (await service.evidence_store.get_evidence(evidence.id)).status == EvidenceStatus.PENDING

    @pytest.mark.asyncio
    async def test_ineligible_evidence_refused_with_score(self, service):
        """UNCORROBORATED_PERSON, verified: 0+15+10+0+15+15 = 55."""
        evidence = await service.register_evidence({"evidence_tier": "UNCORROBORATED_PERSON"})
        await service.verify_evidence(evidence.id)

        with pytest.raises(MintingRefusedError) as exc_info:
            await service.mint_evidence(evidence.id, block_number="1", hash_value="0x1")

        assert exc_info.value.score == "0.55"
        assert exc_info.value.code == "MINTING_REFUSED"
        stored = await service.evidence_store.get_evidence(evidence.id)
        assert stored.status == EvidenceStatus.VERIFIED
        assert stored.block_number is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("block,hash_value,field", [(None, "0x1", "block_number"), ("1", "", "hash_value")])
    async def test_missing_anchor_rejected(self, service, block, hash_value, field):
        evidence = await verified_government(service)
        with pytest.raises(ValidationError) as exc_info:
            await service.mint_evidence(evidence.id, block_number=block, hash_value=hash_value)
        assert exc_info.value.metadata["field"] == field

    @pytest.mark.asyncio
    async def test_mint_unknown(self, service):
        with pytest.raises(NotFoundError):
            await service.mint_evidence("missing", block_number="1", hash_value="0x1")


class TestTrustAndScores:
    @pytest.mark.asyncio
    async def test_unknown_evidence_is_advisory(self, service):
        assert await service.current_trust_score("missing") == "0.00"

        eligibility = await service.calculate_minting_eligibility("missing")
        assert eligibility.eligible is False
        assert eligibility.reasons == ["✗ Evidence not found"]

    @pytest.mark.asyncio
    async def test_unknown_evidence_raises_for_mutations(self, service):
        for call in (
            service.refresh_trust_score("missing"),
            service.update_minting_eligibility("missing"),
            service.generate_scientific_trust_score("missing"),
        ):
            with pytest.raises(NotFoundError):
                await call

    @pytest.mark.asyncio
    async def test_refresh_is_idempotent(self, service):
        evidence = await service.register_evidence({"evidence_tier": "GOVERNMENT"})
        later = evidence.last_trust_update + timedelta(hours=1000)

        first = await service.refresh_trust_score(evidence.id, now=later)
        second = await service.refresh_trust_score(evidence.id, now=later)

        assert first.trust_score == pytest.approx(0.85)
        assert second.trust_score == first.trust_score
        assert second.last_trust_update == evidence.last_trust_update

    @pytest.mark.asyncio
    async def test_calculate_trust_score(self, service):
        assert service.calculate_trust_score("FIRST_PARTY_FRIENDLY") == "0.40"

    @pytest.mark.asyncio
    async def test_update_minting_eligibility_caches(self, service):
        evidence = await verified_government(service)
        eligibility = await service.update_minting_eligibility(evidence.id)

        stored = await service.evidence_store.get_evidence(evidence.id)
        assert stored.minting_eligible is eligibility.eligible
        assert stored.minting_score == pytest.approx(0.73)

    @pytest.mark.asyncio
    async def test_update_chittytrust_score(self, service):
        evidence = await verified_government(service, filename="deed.pdf", file_type="pdf")
        assessment = await service.update_chittytrust_score(
            evidence.id, HashVerification(valid=True)
        )

        stored = await service.evidence_store.get_evidence(evidence.id)
        assert stored.chittytrust_score == pytest.approx(assessment.final_score)
        assert 0.0 <= assessment.final_score <= 1.0


class TestFactsAndContradictions:
    async def _invoice_pair(self, service):
        a = await service.register_evidence({"evidence_tier": "BUSINESS_RECORDS", "case_id": "c1"})
        b = await service.register_evidence({"evidence_tier": "BUSINESS_RECORDS", "case_id": "c1"})
        await service.extract_and_store_facts(a.id, "Invoice total $1,000.00 for services.")
        await service.extract_and_store_facts(b.id, "Invoice total $1,600.00 for services.")
        return a, b

    @pytest.mark.asyncio
    async def test_extract_and_store_is_idempotent(self, service):
        evidence = await service.register_evidence({"evidence_tier": "BUSINESS_RECORDS"})
        first = await service.extract_and_store_facts(evidence.id, "Payment of $1,250.00 was received on 03/04/2024.")
        second = await service.extract_and_store_facts(evidence.id, "Payment of $1,250.00 was received on 03/04/2024.")

        assert [f.id for f in first] == [f.id for f in second]
        facts = await service.get_facts(evidence.id)
        assert [f.fact_type for f in facts] == [FactType.AMOUNT, FactType.DATE, FactType.STATEMENT]
        assert facts[0].fact_code == "FACT-0001"

    @pytest.mark.asyncio
    async def test_extract_for_unknown_evidence(self, service):
        with pytest.raises(NotFoundError):
            await service.extract_and_store_facts("missing", "Payment of $5.00")

    @pytest.mark.asyncio
    async def test_detect_and_record_syncs_counts(self, service):
        a, b = await self._invoice_pair(service)

        records = await service.detect_and_record_contradictions(a.id, b.id)

        assert len(records) == 1
        assert records[0].conflict_id == "CONFLICT-0001"
        assert (await service.evidence_store.get_evidence(a.id)).conflict_count == 1
        assert (await service.evidence_store.get_evidence(b.id)).conflict_count == 1

        again = await service.detect_and_record_contradictions(b.id, a.id)
        assert [r.id for r in again] == [records[0].id]
        assert len(await service.contradiction_store.list_contradictions()) == 1

    @pytest.mark.asyncio
    async def test_resolve_clears_counts(self, service):
        a, b = await self._invoice_pair(service)
        records = await service.detect_and_record_contradictions(a.id, b.id)

        resolved = await service.resolve_contradiction(records[0].id, notes="credit memo issued")

        assert resolved.resolution_notes == "credit memo issued"
        assert (await service.evidence_store.get_evidence(a.id)).conflict_count == 0
        assert (await service.evidence_store.get_evidence(b.id)).conflict_count == 0

    @pytest.mark.asyncio
    async def test_resolve_unknown(self, service):
        with pytest.raises(NotFoundError):
            await service.resolve_contradiction("missing")

    @pytest.mark.asyncio
    async def test_compare_with_self_rejected(self, service):
        evidence = await service.register_evidence({"evidence_tier": "GOVERNMENT"})
        with pytest.raises(ValidationError):
            await service.detect_and_record_contradictions(evidence.id, evidence.id)

    @pytest.mark.asyncio
    async def test_sync_skips_unknown_ids(self, service):
        evidence = await service.register_evidence({"evidence_tier": "GOVERNMENT"})
        counts = await service.sync_conflict_counts([evidence.id, "missing"])
        assert counts == {evidence.id: 0}


class TestDashboard:
    @pytest.mark.asyncio
    async def test_empty(self, service):
        stats = await service.dashboard_stats()
        assert stats["total_evidence"] == 0
        assert stats["average_trust_score"] == "0.00"

    @pytest.mark.asyncio
    async def test_aggregates(self, service):
        evidence = await verified_government(service)
        await service.register_evidence({"evidence_tier": "GOVERNMENT"})
        await service.extract_and_store_facts(evidence.id, "Payment of $1,250.00 was received on 03/04/2024.")

        stats = await service.dashboard_stats()

        assert stats["total_evidence"] == 2
        assert stats["by_status"]["VERIFIED"] == 1
        assert stats["by_status"]["PENDING"] == 1
        assert stats["minted"] == 0
        assert stats["total_facts"] == 3
        assert stats["active_contradictions"] == 0
        assert stats["average_trust_score"] == "0.95"


class TestTrustMethodology:
    @pytest.mark.asyncio
    async def test_case_scores_match_tiers(self, service):
        await service.register_evidence({"evidence_tier": "GOVERNMENT", "case_id": "c1"})
        await service.register_evidence({"evidence_tier": "UNCORROBORATED_PERSON", "case_id": "c1"})
        await service.register_evidence({"evidence_tier": "BUSINESS_RECORDS", "case_id": "c2"})

        validation = await service.validate_trust_methodology("c1")

        assert validation.sample_size == 2
        assert validation.error_rate == 0.0
        assert validation.validation_status.relevant_reliability is True
        low, high = validation.confidence_interval
        assert low < validation.mean < high

    @pytest.mark.asyncio
    async def test_empty_case_rejected(self, service):
        with pytest.raises(ValidationError):
            await service.validate_trust_methodology("no-such-case")
