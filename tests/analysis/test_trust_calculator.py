"""Tests for tier-based trust scoring and linear decay."""

from datetime import datetime, timedelta, timezone

import pytest

from evidence_ledger.analysis.trust.trust_calculator import (
    TrustScoreCalculator,
    base_score,
    calculate_trust_score,
    current_trust_score,
    current_trust_value,
)
from evidence_ledger.data_management.schemas import Evidence, EvidenceStatus, EvidenceTier
from evidence_ledger.exceptions import ConfigurationError, TrustScoreError

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def make_evidence(**overrides) -> Evidence:
    data = {
        "id": "ev-1",
        "evidence_tier": EvidenceTier.GOVERNMENT,
        "trust_score": 0.95,
        "original_trust_score": 0.95,
        "trust_degradation_rate": 0.0001,
        "last_trust_update": NOW,
        "uploaded_at": NOW,
    }
    data.update(overrides)
    return Evidence(**data)


def minted_evidence(trust: float = 0.9) -> Evidence:
    return make_evidence(
        status=EvidenceStatus.MINTED,
        trust_score=trust,
        trust_degradation_rate=0.0,
        verified_at=NOW,
        minted_at=NOW,
        block_number="1042",
        hash_value="0xabc",
    )


class TestBaseScore:
    """Tests for tier base scores."""

    def test_calculate_trust_score_is_two_decimal_string(self):
        assert calculate_trust_score(EvidenceTier.GOVERNMENT) == "0.95"
        assert calculate_trust_score("UNCORROBORATED_PERSON") == "0.20"

    def test_base_score_monotonic(self):
        scores = [base_score(t) for t in EvidenceTier.ordered()]
        assert all(a >= b for a, b in zip(scores, scores[1:]))

    def test_unknown_tier(self):
        with pytest.raises(ConfigurationError):
            calculate_trust_score("RUMOR")


class TestCurrentTrust:
    """Tests for decay of non-minted evidence."""

    def test_no_elapsed_time_returns_original(self):
        evidence = make_evidence()
        assert current_trust_score(evidence, NOW) == "0.95"

    def test_linear_decay(self):
        """1000 hours at 0.0001/h removes 0.1."""
        evidence = make_evidence()
        value = current_trust_value(evidence, NOW + timedelta(hours=1000))
        assert value == pytest.approx(0.85)
        assert current_trust_score(evidence, NOW + timedelta(hours=1000)) == "0.85"

    def test_floored_at_zero(self):
        evidence = make_evidence(trust_score=0.2, original_trust_score=0.2)
        assert current_trust_value(evidence, NOW + timedelta(days=5000)) == 0.0
        assert current_trust_score(evidence, NOW + timedelta(days=5000)) == "0.00"

    def test_idempotent_at_same_instant(self):
        evidence = make_evidence()
        later = NOW + timedelta(hours=37)
        assert current_trust_value(evidence, later) == current_trust_value(evidence, later)

    def test_monotonically_non_increasing(self):
        evidence = make_evidence()
        values = [current_trust_value(evidence, NOW + timedelta(hours=h)) for h in (0, 10, 100, 1000, 10000)]
        assert values == sorted(values, reverse=True)

    def test_clock_skew_never_raises_score(self):
        """A query instant before last_trust_update does not exceed original."""
        evidence = make_evidence()
        assert current_trust_value(evidence, NOW - timedelta(hours=50)) == 0.95

    def test_decay_starts_from_original_not_stored(self):
        evidence = make_evidence(trust_score=0.5)
        assert current_trust_value(evidence, NOW + timedelta(hours=100)) == pytest.approx(0.94)

    def test_custom_rate(self):
        evidence = make_evidence(trust_degradation_rate=0.001)
        assert current_trust_value(evidence, NOW + timedelta(hours=100)) == pytest.approx(0.85)

    def test_negative_rate_raises(self):
        evidence = make_evidence().model_copy(update={"trust_degradation_rate": -0.1})
        with pytest.raises(TrustScoreError) as exc_info:
            current_trust_value(evidence, NOW)
        assert exc_info.value.evidence_id == "ev-1"

    def test_nan_rate_raises(self):
        evidence = make_evidence().model_copy(update={"trust_degradation_rate": float("nan")})
        with pytest.raises(TrustScoreError):
            current_trust_value(evidence, NOW)

    def test_naive_now_treated_as_utc(self):
        evidence = make_evidence()
        naive = datetime(2024, 6, 1, 22, 0)
        assert current_trust_value(evidence, naive) == pytest.approx(0.949)


class TestMintedTrust:
    """Minting freezes the stored score."""

    def test_minted_returns_stored_score(self):
        evidence = minted_evidence(trust=0.9)
        assert current_trust_value(evidence, NOW + timedelta(days=3650)) == 0.9

    def test_minted_ignores_last_update(self):
        evidence = minted_evidence(trust=0.91)
        for days in (0, 1, 365, 10000):
            assert current_trust_score(evidence, NOW + timedelta(days=days)) == "0.91"


class TestTrustScoreCalculator:
    """Tests for the component wrapper."""

    def test_wraps_module_functions(self):
        calculator = TrustScoreCalculator()
        evidence = make_evidence()

        assert calculator.base_score("GOVERNMENT") == 0.95
        assert calculator.calculate_trust_score("GOVERNMENT") == "0.95"
        assert calculator.current_trust_score(evidence, NOW + timedelta(hours=1000)) == "0.85"

    def test_uses_injected_logger(self):
        class RecordingLogger:
            def __init__(self):
                self.calls = []

            def debug(self, message, **kwargs):
                self.calls.append((message, kwargs))

        recorder = RecordingLogger()
        TrustScoreCalculator(logger=recorder).current_value(make_evidence(), NOW)

        assert recorder.calls
        assert recorder.calls[0][1]["evidence_id"] == "ev-1"
