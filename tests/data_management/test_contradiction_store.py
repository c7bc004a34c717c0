"""Tests for ContradictionStore."""

import pytest

from evidence_ledger.data_management.contradiction_store import ContradictionStore
from evidence_ledger.data_management.schemas import (
    ContradictionResult,
    ContradictionSeverity,
    ContradictionStatus,
    ContradictionType,
)


def make_result(ev1="ev-a", ev2="ev-b", description="Numerical discrepancy", ctype=ContradictionType.NUMERICAL):
    return ContradictionResult(
        type=ctype,
        severity=ContradictionSeverity.HIGH,
        description=description,
        confidence=0.9,
        evidence1_id=ev1,
        evidence2_id=ev2,
        metadata={"amounts": [1000.0, 1600.0]},
    )


class TestRecord:
    """Tests for idempotent recording."""

    @pytest.fixture
    def store(self):
        return ContradictionStore()

    @pytest.mark.asyncio
    async def test_record_assigns_conflict_code(self, store):
        record, created = await store.record(make_result())

        assert created is True
        assert record.conflict_id == "CONFLICT-0001"
        assert record.status == ContradictionStatus.ACTIVE
        assert record.metadata == {"amounts": [1000.0, 1600.0]}

    @pytest.mark.asyncio
    async def test_rerecord_returns_existing(self, store):
        first, _ = await store.record(make_result())
        again, created = await store.record(make_result())

        assert created is False
        assert again.id == first.id
        assert len(await store.list_contradictions()) == 1

    @pytest.mark.asyncio
    async def test_swapped_pair_is_same_contradiction(self, store):
        await store.record(make_result())
        _, created = await store.record(make_result(ev1="ev-b", ev2="ev-a"))
        assert created is False

    @pytest.mark.asyncio
    async def test_distinct_description_is_new(self, store):
        await store.record(make_result())
        record, created = await store.record(make_result(description="Another discrepancy"))

        assert created is True
        assert record.conflict_id == "CONFLICT-0002"

    @pytest.mark.asyncio
    async def test_resolved_record_is_not_recorded_again(self, store):
        first, _ = await store.record(make_result())
        await store.resolve(first.id)

        second, created = await store.record(make_result())
        assert created is False
        assert second.id == first.id
        assert second.is_active is False
        assert await store.count_active_for("ev-a") == 0


class TestQueries:
    @pytest.fixture
    def store(self):
        return ContradictionStore()

    @pytest.mark.asyncio
    async def test_filters(self, store):
        ab, _ = await store.record(make_result())
        bc, _ = await store.record(make_result(ev1="ev-b", ev2="ev-c"))
        await store.resolve(bc.id, notes="duplicate invoice")

        assert [r.id for r in await store.list_contradictions()] == [ab.id, bc.id]
        assert [r.id for r in await store.list_contradictions(active_only=True)] == [ab.id]
        assert [r.id for r in await store.list_contradictions(evidence_id="ev-c")] == [bc.id]

    @pytest.mark.asyncio
    async def test_count_active_for(self, store):
        await store.record(make_result())
        await store.record(make_result(ev1="ev-b", ev2="ev-c"))

        assert await store.count_active_for("ev-b") == 2
        assert await store.count_active_for("ev-a") == 1
        assert await store.count_active_for("ev-z") == 0

    @pytest.mark.asyncio
    async def test_find_active_any_description(self, store):
        record, _ = await store.record(make_result())
        found = await store.find_active(ContradictionType.NUMERICAL, frozenset({"ev-a", "ev-b"}))

        assert found.id == record.id
        assert await store.find_active(ContradictionType.TEMPORAL, frozenset({"ev-a", "ev-b"})) is None


class TestResolve:
    @pytest.fixture
    def store(self):
        return ContradictionStore()

    @pytest.mark.asyncio
    async def test_resolve_sets_fields(self, store):
        record, _ = await store.record(make_result())
        resolved = await store.resolve(record.id, notes="corrected invoice on file")

        assert resolved.status == ContradictionStatus.RESOLVED
        assert resolved.resolved_at is not None
        assert resolved.resolution_notes == "corrected invoice on file"
        assert resolved.is_active is False

    @pytest.mark.asyncio
    async def test_resolve_twice_is_stable(self, store):
        record, _ = await store.record(make_result())
        first = await store.resolve(record.id, notes="first")
        second = await store.resolve(record.id, notes="second")

        assert second.resolution_notes == "first"
        assert second.resolved_at == first.resolved_at

    @pytest.mark.asyncio
    async def test_unknown_id(self, store):
        assert await store.resolve("missing") is None


class TestContradictionStorePersistence:
    @pytest.mark.asyncio
    async def test_save_and_load_cycle(self, tmp_path):
        path = tmp_path / "contradictions.json"

        store1 = ContradictionStore(persistence_path=str(path))
        record, _ = await store1.record(make_result())

        store2 = ContradictionStore(persistence_path=str(path))
        assert await store2.get(record.id) == record

        _, created = await store2.record(make_result())
        assert created is False
        other, _ = await store2.record(make_result(description="Different"))
        assert other.conflict_id == "CONFLICT-0002"
