"""Tests for pattern-based fact extraction.

Tests cover:
1. Each extraction family (amount, date, person, location, statement)
2. Tier-specific and contract passes
3. Deduplication, confidence cutoff and family toggles
4. Input coercion and determinism
"""

import time

import pytest

from evidence_ledger.analysis.extraction.fact_extractor import FactExtractionEngine
from evidence_ledger.data_management.schemas import (
    Evidence,
    EvidenceTier,
    ExtractionConfig,
    FactType,
)
from evidence_ledger.exceptions import ValidationError

ALL = {"minimum_confidence": 0.0}


def evidence_ref(tier=EvidenceTier.BUSINESS_RECORDS, evidence_id="ev-1"):
    return {"id": evidence_id, "evidence_tier": tier}


def contents(facts, fact_type):
    return [f.content for f in facts if f.fact_type == fact_type]


@pytest.fixture
def engine():
    return FactExtractionEngine()


class TestAmountExtraction:
    """Tests for currency and percentage facts."""

    def test_payment_amount_and_date(self, engine):
        facts = engine.extract(evidence_ref(), "Payment of $1,250.00 was received on 03/04/2024.")

        assert [f.fact_type for f in facts] == [FactType.AMOUNT, FactType.DATE, FactType.STATEMENT]
        amount = facts[0]
        assert amount.content == "Amount: 1,250.00"
        assert amount.confidence_score == 0.9
        assert amount.source == "currency_pattern"
        assert amount.metadata["raw_match"] == "$1,250.00"

    def test_round_figure_penalized(self, engine):
        facts = engine.extract(evidence_ref(), "Invoice total $10,000 due.", ALL)
        amount = [f for f in facts if f.fact_type == FactType.AMOUNT][0]

        assert amount.content == "Amount: 10,000"
        assert amount.confidence_score == 0.8

    def test_amount_without_context_keyword(self, engine):
        facts = engine.extract(evidence_ref(), "Total $12.34 recorded", ALL)
        amount = [f for f in facts if f.fact_type == FactType.AMOUNT][0]
        assert amount.confidence_score == 0.7

    def test_written_currency_forms(self, engine):
        facts = engine.extract(evidence_ref(), "Fee USD 300 plus 45 dollars and €20", ALL)
        amounts = contents(facts, FactType.AMOUNT)

        assert "Amount: 300" in amounts
        assert "Amount: 45 dollars" in amounts
        assert "Amount: 20" in amounts

    def test_overlapping_currency_forms_yield_one_amount(self, engine):
        facts = engine.extract(evidence_ref(), "Invoice total $1,000 USD due.", ALL)
        assert contents(facts, FactType.AMOUNT) == ["Amount: 1,000"]

    def test_percentage(self, engine):
        facts = engine.extract(evidence_ref(), "Interest rate of 5.5% applies", ALL)
        percentages = [f for f in facts if f.fact_type == FactType.PERCENTAGE]

        assert [f.content for f in percentages] == ["Percentage: 5.5%"]
        assert percentages[0].confidence_score == 0.85


class TestDateExtraction:
    def test_date_context_boosts_confidence(self, engine):
        facts = engine.extract(evidence_ref(), "Deed dated March 5, 2024", ALL)
        dates = [f for f in facts if f.fact_type == FactType.DATE]

        assert [f.content for f in dates] == ["Date: March 5, 2024"]
        assert dates[0].confidence_score == 0.9

    def test_iso_date_without_context(self, engine):
        facts = engine.extract(evidence_ref(), "Deadline 2024-03-15 passed", ALL)
        dates = [f for f in facts if f.fact_type == FactType.DATE]

        assert [f.content for f in dates] == ["Date: 2024-03-15"]
        assert dates[0].confidence_score == 0.75
        assert dates[0].source == "date_pattern_3"

    def test_short_month(self, engine):
        facts = engine.extract(evidence_ref(), "Meeting held Jan. 9, 2023", ALL)
        assert "Date: Jan. 9, 2023" in contents(facts, FactType.DATE)


class TestPersonExtraction:
    def test_witness_name(self, engine):
        facts = engine.extract(evidence_ref(), "The witness Mary Jones signed the affidavit.", ALL)
        persons = [f for f in facts if f.fact_type == FactType.PERSON]

        assert [f.content for f in persons] == ["Person: Mary Jones"]
        assert persons[0].confidence_score == 1.0

    def test_titled_role(self, engine):
        facts = engine.extract(evidence_ref(), "Attorney John Smith filed the motion.", ALL)
        assert "Person: Attorney John Smith" in contents(facts, FactType.PERSON)

    def test_honorific(self, engine):
        facts = engine.extract(evidence_ref(), "Records show Dr. Alan Reed examined it.", ALL)
        assert "Person: Dr. Alan Reed" in contents(facts, FactType.PERSON)

    def test_place_names_rejected(self, engine):
        facts = engine.extract(evidence_ref(), "Offices in New York remained closed.", ALL)
        assert contents(facts, FactType.PERSON) == []

    def test_sentence_openers_rejected(self, engine):
        facts = engine.extract(evidence_ref(), "The Court granted the motion.", ALL)
        assert contents(facts, FactType.PERSON) == []


class TestLocationExtraction:
    def test_address_and_city(self, engine):
        facts = engine.extract(
            evidence_ref(), "The meeting was held at 123 Main Street in Springfield, IL.", ALL
        )
        locations = [f for f in facts if f.fact_type == FactType.LOCATION]

        assert [f.content for f in locations] == [
            "Address: 123 Main Street",
            "Location: Springfield, IL",
        ]
        assert locations[0].confidence_score == 0.9
        assert locations[0].metadata["street_number"] == "123"
        assert locations[1].confidence_score == 0.85
        assert locations[1].metadata["state"] == "IL"


class TestStatementExtraction:
    def test_factual_statement(self, engine):
        text = "The incident occurred at 10:30 near the gate. Nothing else."
        facts = engine.extract(evidence_ref(), text, ALL)
        statements = [f for f in facts if f.fact_type == FactType.STATEMENT]

        assert [f.content for f in statements] == ["The incident occurred at 10:30 near the gate"]
        # 0.5 + occurred + time of day
        assert statements[0].confidence_score == 0.7
        assert statements[0].context == text

    def test_questions_and_opinions_skipped(self, engine):
        text = "Was the payment received by the bank? I think the payment was late."
        facts = engine.extract(evidence_ref(), text, ALL)
        assert contents(facts, FactType.STATEMENT) == []

    def test_page_markers_skipped(self, engine):
        facts = engine.extract(evidence_ref(), "Page 4 of the report was missing entirely.", ALL)
        assert contents(facts, FactType.STATEMENT) == []


class TestSpecializedPasses:
    def test_financial_tier(self, engine):
        text = "Account number: 12345678. Wire transfer of $5,000.00 completed."
        facts = engine.extract(evidence_ref(EvidenceTier.FINANCIAL_INSTITUTION), text, ALL)

        assert contents(facts, FactType.ACCOUNT) == ["Account Number: 12345678"]
        assert contents(facts, FactType.TRANSACTION) == ["Transaction Amount: $5,000.00"]

    def test_financial_facts_need_financial_tier(self, engine):
        text = "Account number: 12345678. Wire transfer of $5,000.00 completed."
        facts = engine.extract(evidence_ref(EvidenceTier.BUSINESS_RECORDS), text, ALL)

        assert contents(facts, FactType.ACCOUNT) == []
        assert contents(facts, FactType.TRANSACTION) == []

    def test_government_case_number(self, engine):
        facts = engine.extract(evidence_ref(EvidenceTier.GOVERNMENT), "Case No. 2024-CV-001 was filed.", ALL)
        case_numbers = [f for f in facts if f.fact_type == FactType.CASE_NUMBER]

        assert [f.content for f in case_numbers] == ["Case Number: 2024-CV-001"]
        assert case_numbers[0].confidence_score == 0.95

    def test_contract_term(self, engine):
        facts = engine.extract(evidence_ref(), "This agreement has a term of 12 months.", ALL)
        terms = [f for f in facts if f.fact_type == FactType.CONTRACT_TERM]

        assert [f.content for f in terms] == ["Contract Term: 12 months"]
        assert terms[0].metadata["unit"] == "months"


class TestExtractionContract:
    """Tests for dedup, cutoff, toggles and input handling."""

    def test_duplicates_collapse_to_first(self, engine):
        facts = engine.extract(evidence_ref(), "Paid $512. Later paid $512 again.", ALL)
        amounts = [f for f in facts if f.fact_type == FactType.AMOUNT]

        assert len(amounts) == 1
        assert amounts[0].metadata["position"] == 5

    def test_minimum_confidence_enforced(self, engine):
        text = "Payment of $1,250.00 was received on 03/04/2024. Mary Jones paid $40 in cash."
        facts = engine.extract(evidence_ref(), text, {"minimum_confidence": 0.85})

        assert facts
        assert all(f.confidence_score >= 0.85 for f in facts)

    def test_default_cutoff_from_settings(self, engine):
        facts = engine.extract(evidence_ref(), "Total $12.34 recorded and nothing more to say")
        assert all(f.confidence_score >= ExtractionConfig().minimum_confidence for f in facts)

    def test_family_toggle(self, engine):
        config = ExtractionConfig(enable_statement_extraction=False, enable_date_extraction=False)
        facts = engine.extract(evidence_ref(), "Payment of $1,250.00 was received on 03/04/2024.", config)
        assert [f.fact_type for f in facts] == [FactType.AMOUNT]

    def test_evidence_id_assigned(self, engine):
        facts = engine.extract(evidence_ref(evidence_id="ev-42"), "Payment of $1,250.00 was received on 03/04/2024.")
        assert facts
        assert {f.evidence_id for f in facts} == {"ev-42"}
        assert all(f.id is None for f in facts)

    def test_deterministic(self, engine):
        text = "Attorney John Smith paid $1,250.00 on 03/04/2024 at 123 Main Street in Springfield, IL."
        first = engine.extract(evidence_ref(), text, ALL)
        second = engine.extract(evidence_ref(), text, ALL)
        assert first == second

    def test_accepts_evidence_model(self, engine):
        evidence = Evidence(
            id="ev-9",
            evidence_tier=EvidenceTier.GOVERNMENT,
            trust_score=0.95,
            original_trust_score=0.95,
        )
        facts = engine.extract(evidence, "Case No. 2024-CV-001 was filed.", ALL)
        assert "Case Number: 2024-CV-001" in contents(facts, FactType.CASE_NUMBER)

    def test_missing_evidence_id_raises(self, engine):
        with pytest.raises(ValidationError):
            engine.extract({"evidence_tier": "GOVERNMENT"}, "Payment of $5.00")

    def test_none_text_yields_nothing(self, engine):
        assert engine.extract(evidence_ref(), None) == []

    def test_bytes_decoded(self, engine):
        facts = engine.extract(evidence_ref(), "Payment of $1,250.00 was received \xff".encode("latin-1"), ALL)
        assert "Amount: 1,250.00" in contents(facts, FactType.AMOUNT)

    def test_unknown_tier_skips_specialized_pass(self, engine):
        facts = engine.extract({"id": "ev-1", "evidence_tier": "RUMOR"}, "Case No. 2024-CV-001 was filed.", ALL)
        assert contents(facts, FactType.CASE_NUMBER) == []

    def test_long_title_case_run_stays_linear(self, engine):
        text = " ".join(["Alpha"] * 20000)

        started = time.perf_counter()
        facts = engine.extract(evidence_ref(), text, ALL)
        elapsed = time.perf_counter() - started

        assert elapsed < 5.0
        assert contents(facts, FactType.LOCATION) == []


class TestExtractionLogging:
    """Completion record carries counts and mean confidence."""

    class RecordingLogger:
        def __init__(self):
            self.calls = []

        def info(self, message, **kwargs):
            self.calls.append((message, kwargs))

        def debug(self, message, **kwargs):
            self.calls.append((message, kwargs))

        def completed(self):
            return [kw for message, kw in self.calls if message == "Fact extraction completed"]

    def test_completion_record(self):
        recorder = self.RecordingLogger()
        engine = FactExtractionEngine(logger=recorder)

        facts = engine.extract(
            evidence_ref(),
            "Payment of $1,250.00 was received on 03/04/2024.",
            {"minimum_confidence": 0.85},
        )

        assert len(facts) == 2
        record = recorder.completed()[0]
        assert record["evidence_id"] == "ev-1"
        assert record["total_facts"] == 3
        assert record["filtered_facts"] == 2
        assert record["average_confidence"] == 0.8

    def test_empty_text_logs_zero_average(self):
        recorder = self.RecordingLogger()
        FactExtractionEngine(logger=recorder).extract(evidence_ref(), "")

        record = recorder.completed()[0]
        assert record["total_facts"] == 0
        assert record["filtered_facts"] == 0
        assert record["average_confidence"] == 0.0
