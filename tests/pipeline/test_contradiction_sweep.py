"""Tests for the case-wide contradiction sweep."""

import asyncio

import pytest

from evidence_ledger.exceptions import ValidationError
from evidence_ledger.pipeline.contradiction_sweep import ContradictionSweep
from evidence_ledger.pipeline.evidence_service import EvidenceService


async def seed_case(service, amounts, case_id="c1"):
    ids = []
    for amount in amounts:
        evidence = await service.register_evidence({"evidence_tier": "BUSINESS_RECORDS", "case_id": case_id})
        await service.extract_and_store_facts(evidence.id, f"Invoice total ${amount} for services.")
        ids.append(evidence.id)
    return ids


@pytest.fixture
def service():
    return EvidenceService()


class TestSweep:
    @pytest.mark.asyncio
    async def test_batched_sweep(self, service):
        a, b, c = await seed_case(service, ["1,000.00", "1,600.00", "1,000.00"])
        await seed_case(service, ["9,999.00"], case_id="other")

        stats = await ContradictionSweep(service, batch_size=2).run("c1")

        assert stats.evidence_count == 3
        assert stats.pairs_total == 3
        assert stats.pairs_compared == 3
        assert stats.batches == 2
        assert stats.contradictions_found == 2
        assert stats.contradictions_recorded == 2
        assert stats.cancelled is False
        assert stats.capped is False

        counts = {eid: (await service.evidence_store.get_evidence(eid)).conflict_count for eid in (a, b, c)}
        assert counts == {a: 1, b: 2, c: 1}

    @pytest.mark.asyncio
    async def test_rerun_records_nothing_new(self, service):
        await seed_case(service, ["1,000.00", "1,600.00"])
        sweep = ContradictionSweep(service)

        first = await sweep.run("c1")
        second = await sweep.run("c1")

        assert first.contradictions_recorded == 1
        assert second.contradictions_found == 1
        assert second.contradictions_recorded == 0
        assert len(await service.contradiction_store.list_contradictions()) == 1

    @pytest.mark.asyncio
    async def test_resolution_survives_rerun(self, service):
        a, b = await seed_case(service, ["1,000.00", "1,600.00"])
        sweep = ContradictionSweep(service)
        await sweep.run("c1")

        for record in await service.contradiction_store.list_contradictions(active_only=True):
            await service.resolve_contradiction(record.id, notes="credit memo issued")
        stats = await sweep.run("c1")

        assert stats.contradictions_found == 1
        assert stats.contradictions_recorded == 0
        assert await service.contradiction_store.list_contradictions(active_only=True) == []
        for evidence_id in (a, b):
            assert (await service.evidence_store.get_evidence(evidence_id)).conflict_count == 0

    @pytest.mark.asyncio
    async def test_max_pairs_caps_work(self, service):
        await seed_case(service, ["1,000.00", "1,600.00", "2,500.00"])

        stats = await ContradictionSweep(service).run("c1", max_pairs=1)

        assert stats.capped is True
        assert stats.pairs_compared == 1
        assert stats.pairs_total == 3

    @pytest.mark.asyncio
    async def test_negative_max_pairs_rejected(self, service):
        with pytest.raises(ValidationError):
            await ContradictionSweep(service).run("c1", max_pairs=-1)

    @pytest.mark.asyncio
    async def test_cancel_before_start(self, service):
        await seed_case(service, ["1,000.00", "1,600.00"])
        cancel = asyncio.Event()
        cancel.set()

        stats = await ContradictionSweep(service).run("c1", cancel_event=cancel)

        assert stats.cancelled is True
        assert stats.pairs_compared == 0
        assert await service.contradiction_store.list_contradictions() == []

    @pytest.mark.asyncio
    async def test_cancel_between_batches_keeps_recorded(self, service):
        await seed_case(service, ["1,000.00", "1,600.00", "2,500.00"])
        cancel = asyncio.Event()
        record = service.record_contradictions

        async def record_then_cancel(results):
            outcome = await record(results)
            cancel.set()
            return outcome

        service.record_contradictions = record_then_cancel
        stats = await ContradictionSweep(service, batch_size=1).run("c1", cancel_event=cancel)

        assert stats.cancelled is True
        assert stats.batches == 1
        assert stats.pairs_compared == 1
        assert len(await service.contradiction_store.list_contradictions()) == stats.contradictions_recorded

    @pytest.mark.asyncio
    async def test_single_item_case(self, service):
        await seed_case(service, ["1,000.00"])
        stats = await ContradictionSweep(service).run("c1")

        assert stats.pairs_total == 0
        assert stats.batches == 0
        assert stats.to_dict()["case_id"] == "c1"
