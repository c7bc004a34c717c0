"""Tests for the bounded log buffer."""

import pytest

from evidence_ledger.config.logging import logger
from evidence_ledger.utils.log_buffer import LogBuffer


@pytest.fixture
def buffer():
    buf = LogBuffer(max_entries=3)
    yield buf
    buf.detach()


class TestLogBuffer:
    def test_record_and_order(self, buffer):
        buffer.record("info", "first")
        buffer.record("warning", "second")

        assert [e.message for e in buffer.entries()] == ["second", "first"]
        assert buffer.entries()[0].level == "WARNING"

    def test_bounded(self, buffer):
        for i in range(5):
            buffer.record("INFO", f"m{i}")

        assert len(buffer) == 3
        assert [e.message for e in buffer.entries()] == ["m4", "m3", "m2"]

    def test_filters(self, buffer):
        buffer.record("INFO", "stored", {"evidence_id": "ev-1", "case_id": "c1"})
        buffer.record("ERROR", "failed", {"evidence_id": "ev-2", "case_id": "c1"})

        assert [e.message for e in buffer.by_evidence("ev-1")] == ["stored"]
        assert [e.message for e in buffer.by_case("c1")] == ["failed", "stored"]
        assert [e.message for e in buffer.errors()] == ["failed"]
        assert [e.message for e in buffer.entries(limit=1)] == ["failed"]

    def test_clear(self, buffer):
        buffer.record("INFO", "x")
        buffer.clear()
        assert buffer.entries() == []

    def test_attach_captures_loguru_records(self, buffer):
        buffer.attach(logger)
        logger.bind(evidence_id="ev-9", case_id="c9").warning("Trust refreshed")

        entries = buffer.by_evidence("ev-9")
        assert len(entries) == 1
        assert entries[0].level == "WARNING"
        assert entries[0].message == "Trust refreshed"
        assert entries[0].case_id == "c9"

    def test_detach_stops_capture(self, buffer):
        buffer.attach(logger)
        buffer.detach()
        logger.info("after detach")
        assert len(buffer) == 0

    def test_attach_twice_is_single_sink(self, buffer):
        first = buffer.attach(logger)
        assert buffer.attach(logger) == first
        logger.info("once")
        assert [e.message for e in buffer.entries()] == ["once"]
