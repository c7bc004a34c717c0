"""Pairwise contradiction detection between two evidence items.

Seven independent detectors compare the extracted facts and metadata of an
evidence pair:

- Temporal: DATE facts about the same event more than an hour apart
- Factual: opposite-polarity statements about the same subject
- Numerical: amounts for the same transaction differing by more than 5%
- Identity: role conflicts among PERSON facts (extension hook)
- Location: the same event placed at dissimilar locations
- Logical: physical and causal impossibilities (extension hooks)
- Metadata: trust discrepancies within a case, rapid uploads by one user

The engine is pure. It never mutates evidence; the caller records results
and re-derives conflict counts. Detection is symmetric: (A, B) and (B, A)
yield the same results apart from the swapped evidence ids, because
descriptions and metadata are built from sorted values and the result list
is sorted before return.
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from evidence_ledger.config.logging import get_logger
from evidence_ledger.config.settings import settings
from evidence_ledger.data_management.schemas import (
    AtomicFact,
    ContradictionResult,
    ContradictionSeverity,
    ContradictionType,
    Evidence,
    FactType,
)
from evidence_ledger.utils.timeutils import hours_between

# Keywords marking facts that should describe the same event
EVENT_KEYWORDS = ("payment", "signature", "signed", "meeting", "incident", "accident")

# Keywords marking amounts that should describe the same transaction
AMOUNT_KEYWORDS = ("payment", "invoice", "amount")

NEGATION_PAIRS: List[Tuple[str, str]] = [
    ("did", "did not"),
    ("was", "was not"),
    ("will", "will not"),
    ("can", "cannot"),
    ("present", "absent"),
    ("guilty", "innocent"),
    ("true", "false"),
]

OPPOSITE_PAIRS: List[Tuple[str, str]] = [
    ("present", "absent"),
    ("alive", "dead"),
    ("guilty", "innocent"),
    ("before", "after"),
    ("inside", "outside"),
]

STOP_WORDS = frozenset({
    "the", "a", "an", "is", "are", "was", "were", "be", "been", "in", "on",
    "at", "to", "for", "of", "and", "or", "but", "has", "have", "had", "that",
    "this", "with", "by", "from", "it", "he", "she", "they", "his", "her",
    "their", "not", "did", "will", "can", "cannot", "no",
})

MIN_SHARED_CONTENT_WORDS = 2
SEMANTIC_SIMILARITY_THRESHOLD = 0.7

TRUST_DISCREPANCY_THRESHOLD = 0.30
RAPID_UPLOAD_HOURS = 1.0

NUMERIC_MEDIUM_PERCENT = 5.0
NUMERIC_HIGH_PERCENT = 50.0

HOURS_PER_DAY = 24
HOURS_PER_MONTH = 24 * 30
HOURS_PER_YEAR = 24 * 365

_MONTHS = {
    name: index
    for index, name in enumerate(
        ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"],
        start=1,
    )
}
_MONTH_NAMES = (
    "january", "february", "march", "april", "may", "june", "july",
    "august", "september", "october", "november", "december",
)

_NUMERIC_DATE = re.compile(r"\b([0-9]{1,2})[/\-]([0-9]{1,2})[/\-]([0-9]{4})\b")
_ISO_DATE = re.compile(r"\b([0-9]{4})-([0-9]{2})-([0-9]{2})\b")
_NAMED_DATE = re.compile(r"\b([A-Za-z]{3,9})\.?\s+([0-9]{1,2}),?\s+([0-9]{4})\b")
_NUMBER = re.compile(r"[0-9][0-9,]*(?:\.[0-9]+)?")
_AMOUNT_LABEL = re.compile(r"^\s*(?:transaction\s+)?amount:\s*", re.IGNORECASE)
_LOCATION_LABEL = re.compile(r"^\s*(?:address|location):\s*", re.IGNORECASE)
_STREET_TYPES = re.compile(
    r"\b(?:street|st|avenue|ave|road|rd|drive|dr|lane|ln|boulevard|blvd)\b\.?",
    re.IGNORECASE,
)
_WORD = re.compile(r"[a-z0-9']+")

_TYPE_ORDER = {member: index for index, member in enumerate(ContradictionType)}
_SEVERITY_ORDER = {member: index for index, member in enumerate(ContradictionSeverity)}


@dataclass
class ComparisonContext:
    """The two evidence items and their facts under comparison."""

    evidence_a: Evidence
    evidence_b: Evidence
    facts_a: Sequence[AtomicFact]
    facts_b: Sequence[AtomicFact]

    def facts_of(self, *fact_types: FactType) -> Tuple[List[AtomicFact], List[AtomicFact]]:
        return (
            [f for f in self.facts_a if f.fact_type in fact_types],
            [f for f in self.facts_b if f.fact_type in fact_types],
        )


def parse_date(content: str) -> Optional[datetime]:
    """Parse the first numeric, ISO or month-name date in a fact's content."""
    try:
        match = _NUMERIC_DATE.search(content)
        if match:
            return datetime(int(match.group(3)), int(match.group(1)), int(match.group(2)))

        match = _ISO_DATE.search(content)
        if match:
            return datetime(int(match.group(1)), int(match.group(2)), int(match.group(3)))

        for match in _NAMED_DATE.finditer(content):
            word = match.group(1).lower()
            month = _MONTHS.get(word[:3])
            if month and _MONTH_NAMES[month - 1].startswith(word):
                return datetime(int(match.group(3)), month, int(match.group(2)))
    except ValueError:
        # Out-of-range month or day
        return None
    return None


def extract_number(content: str) -> Optional[float]:
    match = _NUMBER.search(content)
    if not match:
        return None
    try:
        return float(match.group(0).replace(",", ""))
    except ValueError:
        return None


def normalize_location(content: str) -> str:
    text = _LOCATION_LABEL.sub("", content).lower()
    text = _STREET_TYPES.sub(" ", text)
    text = re.sub(r"[^a-z0-9\s]", " ", text)
    return " ".join(text.split())


def content_words(text: str) -> set:
    return {w for w in _WORD.findall(text.lower()) if w not in STOP_WORDS}


def _phrase(word: str) -> "re.Pattern[str]":
    return re.compile(r"\b" + r"\s+".join(re.escape(part) for part in word.split()) + r"\b")


def polarity(text: str, positive: str, negative: str) -> Optional[bool]:
    """
    Polarity of a statement for one marker pair.

    A statement carrying the negative marker is negative and never also
    positive ("did not" does not count as "did").

    Returns:
        False for negative, True for positive, None when neither appears.
    """
    lowered = text.lower()
    negative_re = _phrase(negative)
    if negative_re.search(lowered):
        return False
    if _phrase(positive).search(lowered):
        return True
    return None


def _event_text(fact: AtomicFact) -> str:
    return f"{fact.content} {fact.context or ''}".lower()


def shared_keywords(fact_a: AtomicFact, fact_b: AtomicFact, keywords: Sequence[str]) -> List[str]:
    text_a = _event_text(fact_a)
    text_b = _event_text(fact_b)
    return [k for k in keywords if k in text_a and k in text_b]


def temporal_severity(hours: float) -> ContradictionSeverity:
    if hours > HOURS_PER_YEAR:
        return ContradictionSeverity.CRITICAL
    if hours > HOURS_PER_MONTH:
        return ContradictionSeverity.HIGH
    if hours > HOURS_PER_DAY:
        return ContradictionSeverity.MEDIUM
    return ContradictionSeverity.LOW


class ContradictionDetectionEngine:
    """
    Pairwise contradiction detector.

    Subclasses extend the identity and logical hooks by overriding
    ``detect_role_conflicts``, ``detect_impossible_sequences``,
    ``detect_physical_impossibilities`` or ``detect_causal_impossibilities``.

    Usage:
        engine = ContradictionDetectionEngine()
        results = engine.detect(evidence_a, evidence_b, facts_a, facts_b)
    """

    def __init__(
        self,
        minimum_confidence: Optional[float] = None,
        temporal_tolerance_hours: Optional[float] = None,
        logger: Optional[Any] = None,
    ):
        self.minimum_confidence = (
            settings.contradiction_minimum_confidence
            if minimum_confidence is None
            else minimum_confidence
        )
        self.temporal_tolerance_hours = (
            settings.temporal_tolerance_hours
            if temporal_tolerance_hours is None
            else temporal_tolerance_hours
        )
        self._logger = logger or get_logger("ContradictionDetectionEngine")

    def detect(
        self,
        evidence_a: Evidence,
        evidence_b: Evidence,
        facts_a: Sequence[AtomicFact],
        facts_b: Sequence[AtomicFact],
    ) -> List[ContradictionResult]:
        """
        Compare two evidence items and their facts.

        Returns:
            Contradictions with confidence >= minimum_confidence, sorted by
            type, severity and description.
        """
        context = ComparisonContext(evidence_a, evidence_b, list(facts_a), list(facts_b))

        self._logger.info(
            "Starting contradiction detection",
            evidence1_id=evidence_a.id,
            evidence2_id=evidence_b.id,
            facts1_count=len(context.facts_a),
            facts2_count=len(context.facts_b),
        )

        found: List[ContradictionResult] = []
        found.extend(self.detect_temporal(context))
        found.extend(self.detect_factual(context))
        found.extend(self.detect_numerical(context))
        found.extend(self.detect_identity(context))
        found.extend(self.detect_location(context))
        found.extend(self.detect_logical(context))
        found.extend(self.detect_metadata(context))

        significant = [c for c in found if c.confidence >= self.minimum_confidence]
        significant.sort(
            key=lambda c: (
                _TYPE_ORDER[c.type],
                -_SEVERITY_ORDER[c.severity],
                c.description,
                -c.confidence,
            )
        )

        average = sum(c.confidence for c in found) / len(found) if found else 0.0
        self._logger.info(
            "Contradiction detection completed",
            evidence1_id=evidence_a.id,
            evidence2_id=evidence_b.id,
            total_contradictions=len(found),
            significant_contradictions=len(significant),
            average_confidence=round(average, 2),
        )
        return significant

    # Detectors

    def detect_temporal(self, context: ComparisonContext) -> List[ContradictionResult]:
        results = []
        dates_a, dates_b = context.facts_of(FactType.DATE)
        for fact_a in dates_a:
            for fact_b in dates_b:
                result = self._compare_dates(fact_a, fact_b, context)
                if result:
                    results.append(result)
        results.extend(self.detect_impossible_sequences(context))
        return results

    def detect_factual(self, context: ComparisonContext) -> List[ContradictionResult]:
        results = []
        statements_a, statements_b = context.facts_of(FactType.STATEMENT)
        for stmt_a in statements_a:
            for stmt_b in statements_b:
                result = self._compare_statements(stmt_a, stmt_b, context)
                if result:
                    results.append(result)
        return results

    def detect_numerical(self, context: ComparisonContext) -> List[ContradictionResult]:
        results = []
        amounts_a, amounts_b = context.facts_of(FactType.AMOUNT, FactType.TRANSACTION)
        for fact_a in amounts_a:
            for fact_b in amounts_b:
                result = self._compare_amounts(fact_a, fact_b, context)
                if result:
                    results.append(result)
        return results

    def detect_identity(self, context: ComparisonContext) -> List[ContradictionResult]:
        persons_a, persons_b = context.facts_of(FactType.PERSON)
        return self.detect_role_conflicts(persons_a, persons_b, context)

    def detect_location(self, context: ComparisonContext) -> List[ContradictionResult]:
        results = []
        locations_a, locations_b = context.facts_of(FactType.LOCATION)
        for fact_a in locations_a:
            for fact_b in locations_b:
                result = self._compare_locations(fact_a, fact_b, context)
                if result:
                    results.append(result)
        return results

    def detect_logical(self, context: ComparisonContext) -> List[ContradictionResult]:
        return [
            *self.detect_physical_impossibilities(context),
            *self.detect_causal_impossibilities(context),
        ]

    def detect_metadata(self, context: ComparisonContext) -> List[ContradictionResult]:
        results = []
        ev_a, ev_b = context.evidence_a, context.evidence_b

        if (
            ev_a.evidence_tier == ev_b.evidence_tier
            and ev_a.case_id is not None
            and ev_a.case_id == ev_b.case_id
        ):
            difference = abs(ev_a.trust_score - ev_b.trust_score)
            if difference > TRUST_DISCREPANCY_THRESHOLD:
                low, high = sorted((ev_a.trust_score, ev_b.trust_score))
                results.append(
                    self._result(
                        ContradictionType.METADATA,
                        ContradictionSeverity.MEDIUM,
                        f"Significant trust score discrepancy: {low:.2f} vs {high:.2f}",
                        0.8,
                        context,
                        trust_scores=[round(low, 2), round(high, 2)],
                        difference=round(difference, 4),
                    )
                )

        if ev_a.uploaded_by is not None and ev_a.uploaded_by == ev_b.uploaded_by:
            hours_apart = abs(hours_between(ev_a.uploaded_at, ev_b.uploaded_at))
            if hours_apart < RAPID_UPLOAD_HOURS:
                results.append(
                    self._result(
                        ContradictionType.METADATA,
                        ContradictionSeverity.HIGH,
                        "Same user uploaded potentially conflicting evidence within one hour",
                        0.75,
                        context,
                        upload_time_diff_hours=round(hours_apart, 4),
                        uploaded_by=ev_a.uploaded_by,
                    )
                )
        return results

    # Extension hooks

    def detect_impossible_sequences(self, context: ComparisonContext) -> List[ContradictionResult]:
        return []

    def detect_role_conflicts(
        self,
        persons_a: List[AtomicFact],
        persons_b: List[AtomicFact],
        context: ComparisonContext,
    ) -> List[ContradictionResult]:
        return []

    def detect_physical_impossibilities(self, context: ComparisonContext) -> List[ContradictionResult]:
        return []

    def detect_causal_impossibilities(self, context: ComparisonContext) -> List[ContradictionResult]:
        return []

    # Pair comparisons

    def _compare_dates(
        self, fact_a: AtomicFact, fact_b: AtomicFact, context: ComparisonContext
    ) -> Optional[ContradictionResult]:
        date_a = parse_date(fact_a.content)
        date_b = parse_date(fact_b.content)
        if date_a is None or date_b is None:
            return None

        keywords = shared_keywords(fact_a, fact_b, EVENT_KEYWORDS)
        if not keywords:
            return None

        hours = abs((date_a - date_b).total_seconds()) / 3600.0
        if hours <= self.temporal_tolerance_hours:
            return None

        first, second = sorted((fact_a.content, fact_b.content))
        return self._result(
            ContradictionType.TEMPORAL,
            temporal_severity(hours),
            f"Temporal impossibility: events cannot occur at different times - {first} vs {second}",
            0.9,
            context,
            facts=[first, second],
            event_keywords=keywords,
            time_difference_hours=hours,
        )

    def _compare_statements(
        self, stmt_a: AtomicFact, stmt_b: AtomicFact, context: ComparisonContext
    ) -> Optional[ContradictionResult]:
        first, second = sorted((stmt_a.content, stmt_b.content))
        shared = content_words(stmt_a.content) & content_words(stmt_b.content)

        if len(shared) >= MIN_SHARED_CONTENT_WORDS:
            for positive, negative in NEGATION_PAIRS:
                pol_a = polarity(stmt_a.content, positive, negative)
                pol_b = polarity(stmt_b.content, positive, negative)
                if pol_a is None or pol_b is None or pol_a == pol_b:
                    continue
                return self._result(
                    ContradictionType.FACTUAL,
                    ContradictionSeverity.HIGH,
                    f'Direct factual contradiction detected: "{first}" vs "{second}"',
                    0.85,
                    context,
                    statements=[first, second],
                    marker_pair=[positive, negative],
                    shared_words=sorted(shared),
                    contradiction_kind="negation",
                )

        similarity = self._jaccard(stmt_a.content, stmt_b.content)
        if similarity >= SEMANTIC_SIMILARITY_THRESHOLD and self._has_opposite_implication(
            stmt_a.content, stmt_b.content
        ):
            return self._result(
                ContradictionType.FACTUAL,
                ContradictionSeverity.MEDIUM,
                f'Semantic contradiction detected: "{first}" vs "{second}"',
                0.75,
                context,
                statements=[first, second],
                similarity=round(similarity, 4),
                contradiction_kind="semantic",
            )
        return None

    def _compare_amounts(
        self, fact_a: AtomicFact, fact_b: AtomicFact, context: ComparisonContext
    ) -> Optional[ContradictionResult]:
        amount_a = extract_number(fact_a.content)
        amount_b = extract_number(fact_b.content)
        if amount_a is None or amount_b is None:
            return None

        text_a = self._amount_text(fact_a)
        text_b = self._amount_text(fact_b)
        keywords = [k for k in AMOUNT_KEYWORDS if k in text_a and k in text_b]
        if not keywords:
            return None

        low, high = sorted((amount_a, amount_b))
        difference = high - low
        if difference == 0:
            return None
        percent = float("inf") if low == 0 else difference / low * 100
        if percent <= NUMERIC_MEDIUM_PERCENT:
            return None

        severity = (
            ContradictionSeverity.HIGH if percent > NUMERIC_HIGH_PERCENT else ContradictionSeverity.MEDIUM
        )
        first, second = sorted(
            (fact_a.content, fact_b.content),
            key=lambda c: (extract_number(c), c),
        )
        return self._result(
            ContradictionType.NUMERICAL,
            severity,
            f"Numerical discrepancy: {first} vs {second} ({percent:.1f}% difference)",
            0.9,
            context,
            amounts=[low, high],
            difference=difference,
            percent_difference=None if percent == float("inf") else round(percent, 2),
            keywords=keywords,
        )

    def _compare_locations(
        self, fact_a: AtomicFact, fact_b: AtomicFact, context: ComparisonContext
    ) -> Optional[ContradictionResult]:
        keywords = shared_keywords(fact_a, fact_b, EVENT_KEYWORDS)
        if not keywords:
            return None

        loc_a = normalize_location(fact_a.content)
        loc_b = normalize_location(fact_b.content)
        if not loc_a or not loc_b or loc_a in loc_b or loc_b in loc_a:
            return None

        first, second = sorted((fact_a.content, fact_b.content))
        return self._result(
            ContradictionType.LOCATION,
            ContradictionSeverity.HIGH,
            f"Location contradiction: same event reported at different locations - {first} vs {second}",
            0.8,
            context,
            locations=[first, second],
            event_keywords=keywords,
        )

    # Helpers

    @staticmethod
    def _amount_text(fact: AtomicFact) -> str:
        text = fact.context if fact.context else fact.content
        return _AMOUNT_LABEL.sub("", text).lower()

    @staticmethod
    def _jaccard(text_a: str, text_b: str) -> float:
        words_a = set(text_a.lower().split())
        words_b = set(text_b.lower().split())
        union = words_a | words_b
        if not union:
            return 0.0
        return len(words_a & words_b) / len(union)

    @staticmethod
    def _has_opposite_implication(text_a: str, text_b: str) -> bool:
        lowered_a = text_a.lower()
        lowered_b = text_b.lower()
        for word_a, word_b in OPPOSITE_PAIRS:
            re_a, re_b = _phrase(word_a), _phrase(word_b)
            if (re_a.search(lowered_a) and re_b.search(lowered_b)) or (
                re_b.search(lowered_a) and re_a.search(lowered_b)
            ):
                return True
        return False

    @staticmethod
    def _result(
        contradiction_type: ContradictionType,
        severity: ContradictionSeverity,
        description: str,
        confidence: float,
        context: ComparisonContext,
        **metadata: Any,
    ) -> ContradictionResult:
        return ContradictionResult(
            type=contradiction_type,
            severity=severity,
            description=description,
            confidence=confidence,
            evidence1_id=context.evidence_a.id,
            evidence2_id=context.evidence_b.id,
            metadata=metadata,
        )
