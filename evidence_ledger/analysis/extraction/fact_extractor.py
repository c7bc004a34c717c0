"""Pattern-based fact extraction from evidentiary text.

The engine is a pure transformer: ``extract(evidence, text, config)`` returns
typed AtomicFact candidates and never touches storage. Five toggleable
families run in a fixed order (amount, date, person, location, statement),
followed by a specialized pass keyed on the evidence tier and on contract
vocabulary. Candidates with identical (fact_type, content) collapse to the
first occurrence, then the minimum-confidence cutoff is applied.

Malformed text never raises; it simply yields fewer facts. An evidence
reference without an id is a caller error and raises ValidationError.

Usage:
    engine = FactExtractionEngine()
    facts = engine.extract(evidence, "Payment of $1,250.00 was received on 03/04/2024.")
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from evidence_ledger.config import extraction_patterns as patterns
from evidence_ledger.config.logging import get_logger
from evidence_ledger.data_management.schemas import (
    AtomicFact,
    Evidence,
    EvidenceTier,
    ExtractionConfig,
    FactType,
)
from evidence_ledger.exceptions import ValidationError

EvidenceRef = Union[Evidence, Mapping[str, Any]]


def _field(evidence: EvidenceRef, name: str) -> Any:
    if isinstance(evidence, Mapping):
        return evidence.get(name)
    return getattr(evidence, name, None)


def _coerce_text(text: Any) -> str:
    if text is None:
        return ""
    if isinstance(text, bytes):
        return text.decode("utf-8", errors="replace")
    if not isinstance(text, str):
        return str(text)
    return text


def _coerce_tier(value: Any) -> Optional[EvidenceTier]:
    if isinstance(value, EvidenceTier) or value is None:
        return value
    try:
        return EvidenceTier(value)
    except ValueError:
        return None


class FactExtractionEngine:
    """
    Turns raw document text into typed atomic facts.

    Confidence heuristics:
    - Amounts: 0.7, +0.2 near payment/invoice/bill, -0.1 for round figures
    - Percentages: 0.85
    - Dates: 0.75, +0.15 near on/date/dated/signed/occurred
    - Persons: 0.6, +0.3 near a legal role, +0.1 for a plain "First Last" name
    - Addresses: 0.9; City, ST: 0.85
    - Statements: 0.5, +0.1 per factual indicator, +0.1 for a time, +0.1 for money
    - Accounts and case numbers: 0.95; transactions: 0.9; contract terms: 0.85

    All confidences are rounded to two decimals.
    """

    def __init__(self, logger: Optional[Any] = None):
        self._logger = logger or get_logger("FactExtractionEngine")

    def extract(
        self,
        evidence: EvidenceRef,
        text: Any,
        config: Optional[Union[ExtractionConfig, Dict[str, Any]]] = None,
    ) -> List[AtomicFact]:
        """
        Extract facts from text belonging to one evidence item.

        Args:
            evidence: Evidence model or mapping; must carry an ``id``.
            text: Raw text. None becomes "", bytes are decoded with replacement.
            config: ExtractionConfig or a partial dict merged over defaults.

        Returns:
            Facts in deterministic order, all at or above minimum_confidence.

        Raises:
            ValidationError: If the evidence reference has no id.
        """
        evidence_id = _field(evidence, "id")
        if not evidence_id:
            raise ValidationError("Evidence reference is missing an id", field="id")

        cfg = self._resolve_config(config)
        content = _coerce_text(text)

        self._logger.info(
            "Starting fact extraction",
            evidence_id=evidence_id,
            content_length=len(content),
            file_type=_field(evidence, "file_type"),
        )

        candidates: List[AtomicFact] = []
        if cfg.enable_amount_extraction:
            candidates.extend(self._extract_amounts(content))
        if cfg.enable_date_extraction:
            candidates.extend(self._extract_dates(content))
        if cfg.enable_person_extraction:
            candidates.extend(self._extract_persons(content))
        if cfg.enable_location_extraction:
            candidates.extend(self._extract_locations(content))
        if cfg.enable_statement_extraction:
            candidates.extend(self._extract_statements(content))
        candidates.extend(self._extract_specialized(evidence, content))

        unique = self._deduplicate(candidates)
        for fact in unique:
            fact.evidence_id = evidence_id

        filtered = [f for f in unique if f.confidence_score >= cfg.minimum_confidence]
        average = (
            sum(f.confidence_score for f in unique) / len(unique) if unique else 0.0
        )

        self._logger.info(
            "Fact extraction completed",
            evidence_id=evidence_id,
            total_facts=len(unique),
            filtered_facts=len(filtered),
            average_confidence=round(average, 2),
        )
        return filtered

    def _resolve_config(
        self, config: Optional[Union[ExtractionConfig, Dict[str, Any]]]
    ) -> ExtractionConfig:
        if config is None:
            return ExtractionConfig()
        if isinstance(config, ExtractionConfig):
            return config
        return ExtractionConfig.model_validate(config)

    @staticmethod
    def _deduplicate(facts: Iterable[AtomicFact]) -> List[AtomicFact]:
        seen = set()
        unique = []
        for fact in facts:
            key = (fact.fact_type, fact.content)
            if key in seen:
                continue
            seen.add(key)
            unique.append(fact)
        return unique

    # Families

    def _extract_amounts(self, content: str) -> List[AtomicFact]:
        facts = []
        claimed: List[tuple] = []
        for source, pattern in patterns.CURRENCY_PATTERNS:
            for match in pattern.finditer(content):
                start, end = match.span()
                # One amount per span: "$1,000 USD" is a single figure
                if any(start < taken_end and taken_start < end for taken_start, taken_end in claimed):
                    continue
                claimed.append((start, end))
                amount = match.group(1) or match.group(0)
                context = self._context(content, match.start())
                facts.append(
                    self._fact(
                        FactType.AMOUNT,
                        f"Amount: {amount}",
                        self._amount_confidence(amount, context),
                        context,
                        source,
                        raw_match=match.group(0),
                        position=match.start(),
                    )
                )

        for match in patterns.PERCENTAGE_PATTERN.finditer(content):
            facts.append(
                self._fact(
                    FactType.PERCENTAGE,
                    f"Percentage: {match.group(1)}",
                    0.85,
                    self._context(content, match.start()),
                    "percentage_pattern",
                    raw_match=match.group(0),
                    position=match.start(),
                )
            )
        return facts

    def _extract_dates(self, content: str) -> List[AtomicFact]:
        facts = []
        for index, (source, pattern) in enumerate(patterns.DATE_PATTERNS):
            for match in pattern.finditer(content):
                context = self._context(content, match.start())
                facts.append(
                    self._fact(
                        FactType.DATE,
                        f"Date: {match.group(0)}",
                        self._date_confidence(context),
                        context,
                        source,
                        raw_match=match.group(0),
                        position=match.start(),
                        pattern_type=index,
                    )
                )
        return facts

    def _extract_persons(self, content: str) -> List[AtomicFact]:
        facts = []
        for index, (source, pattern) in enumerate(patterns.PERSON_PATTERNS):
            for match in pattern.finditer(content):
                person = match.group(0)
                if not self._is_likely_person_name(person, match.group("name")):
                    continue
                context = self._context(content, match.start())
                facts.append(
                    self._fact(
                        FactType.PERSON,
                        f"Person: {person}",
                        self._person_confidence(person, context),
                        context,
                        source,
                        raw_match=person,
                        position=match.start(),
                        pattern_type=index,
                    )
                )
        return facts

    def _extract_locations(self, content: str) -> List[AtomicFact]:
        facts = []
        for match in patterns.ADDRESS_PATTERN.finditer(content):
            facts.append(
                self._fact(
                    FactType.LOCATION,
                    f"Address: {match.group(0)}",
                    0.9,
                    self._context(content, match.start()),
                    "address_pattern",
                    raw_match=match.group(0),
                    position=match.start(),
                    street_number=match.group("number"),
                    street_name=match.group("street"),
                    street_type=match.group("type"),
                )
            )

        for match in patterns.CITY_STATE_PATTERN.finditer(content):
            facts.append(
                self._fact(
                    FactType.LOCATION,
                    f"Location: {match.group(0)}",
                    0.85,
                    self._context(content, match.start()),
                    "city_state_pattern",
                    raw_match=match.group(0),
                    position=match.start(),
                    city=match.group("city"),
                    state=match.group("state"),
                )
            )
        return facts

    def _extract_statements(self, content: str) -> List[AtomicFact]:
        sentences = [
            s.strip()
            for s in patterns.SENTENCE_SPLIT_PATTERN.split(content)
            if len(s.strip()) > patterns.MIN_SENTENCE_LENGTH
        ]

        facts = []
        for index, sentence in enumerate(sentences):
            if not self._is_factual_statement(sentence):
                continue
            statement = sentence.rstrip(".!").strip()
            facts.append(
                self._fact(
                    FactType.STATEMENT,
                    statement,
                    self._statement_confidence(statement),
                    " ".join(sentences[max(0, index - 1):index + 2]),
                    "statement_analysis",
                    sentence_index=index,
                    length=len(statement),
                )
            )
        return facts

    def _extract_specialized(self, evidence: EvidenceRef, content: str) -> List[AtomicFact]:
        facts = []
        tier = _coerce_tier(_field(evidence, "evidence_tier"))

        if tier == EvidenceTier.FINANCIAL_INSTITUTION:
            facts.extend(self._extract_financial(content))
        if tier == EvidenceTier.GOVERNMENT:
            facts.extend(self._extract_government(content))

        lowered = content.lower()
        if any(keyword in lowered for keyword in patterns.CONTRACT_KEYWORDS):
            facts.extend(self._extract_contract_terms(content))
        return facts

    def _extract_financial(self, content: str) -> List[AtomicFact]:
        facts = []
        for match in patterns.ACCOUNT_PATTERN.finditer(content):
            facts.append(
                self._fact(
                    FactType.ACCOUNT,
                    f"Account Number: {match.group(1)}",
                    0.95,
                    self._context(content, match.start()),
                    "financial_account",
                    raw_match=match.group(0),
                    position=match.start(),
                )
            )

        for match in patterns.TRANSACTION_PATTERN.finditer(content):
            facts.append(
                self._fact(
                    FactType.TRANSACTION,
                    f"Transaction Amount: ${match.group(1)}",
                    0.9,
                    self._context(content, match.start()),
                    "financial_transaction",
                    raw_match=match.group(0),
                    position=match.start(),
                )
            )
        return facts

    def _extract_government(self, content: str) -> List[AtomicFact]:
        return [
            self._fact(
                FactType.CASE_NUMBER,
                f"Case Number: {match.group(1)}",
                0.95,
                self._context(content, match.start()),
                "government_case",
                raw_match=match.group(0),
                position=match.start(),
            )
            for match in patterns.CASE_NUMBER_PATTERN.finditer(content)
        ]

    def _extract_contract_terms(self, content: str) -> List[AtomicFact]:
        return [
            self._fact(
                FactType.CONTRACT_TERM,
                f"Contract Term: {match.group(1)} {match.group(2)}",
                0.85,
                self._context(content, match.start()),
                "contract_term",
                raw_match=match.group(0),
                position=match.start(),
                duration=match.group(1),
                unit=match.group(2),
            )
            for match in patterns.CONTRACT_TERM_PATTERN.finditer(content)
        ]

    # Helpers

    @staticmethod
    def _fact(
        fact_type: FactType,
        content: str,
        confidence: float,
        context: str,
        source: str,
        **metadata: Any,
    ) -> AtomicFact:
        return AtomicFact(
            fact_type=fact_type,
            content=content,
            confidence_score=round(min(1.0, max(0.0, confidence)), 2),
            context=context,
            source=source,
            metadata=metadata,
        )

    @staticmethod
    def _context(content: str, position: int, length: int = patterns.CONTEXT_WINDOW) -> str:
        start = max(0, position - length)
        end = min(len(content), position + length)
        return content[start:end].strip()

    @staticmethod
    def _amount_confidence(amount: str, context: str) -> float:
        confidence = 0.7
        lowered = context.lower()
        if any(keyword in lowered for keyword in patterns.AMOUNT_CONTEXT_KEYWORDS):
            confidence += 0.2
        # Round figures are more often estimates
        if amount.endswith("00.00") or amount.endswith("000"):
            confidence -= 0.1
        return min(1.0, max(0.1, confidence))

    @staticmethod
    def _date_confidence(context: str) -> float:
        confidence = 0.75
        if patterns.DATE_CONTEXT_PATTERN.search(context):
            confidence += 0.15
        return min(1.0, confidence)

    @staticmethod
    def _person_confidence(name: str, context: str) -> float:
        confidence = 0.6
        lowered = context.lower()
        if any(keyword in lowered for keyword in patterns.PERSON_CONTEXT_KEYWORDS):
            confidence += 0.3
        if patterns.PROPER_NAME_PATTERN.match(name.strip()):
            confidence += 0.1
        return min(1.0, confidence)

    @staticmethod
    def _statement_confidence(statement: str) -> float:
        confidence = 0.5
        lowered = statement.lower()
        for indicator in patterns.STATEMENT_CONFIDENCE_INDICATORS:
            if indicator in lowered:
                confidence += 0.1
        if patterns.TIME_OF_DAY_PATTERN.search(statement):
            confidence += 0.1
        if patterns.MONEY_PATTERN.search(statement):
            confidence += 0.1
        return min(1.0, confidence)

    @staticmethod
    def _is_likely_person_name(match_text: str, name: str) -> bool:
        if any(fp in match_text for fp in patterns.PERSON_FALSE_POSITIVES):
            return False
        return not any(token in patterns.NON_NAME_WORDS for token in name.split())

    @staticmethod
    def _is_factual_statement(sentence: str) -> bool:
        lowered = sentence.lower()
        if sentence.endswith("?"):
            return False
        if lowered.startswith(patterns.OPINION_PREFIXES):
            return False
        if patterns.PAGE_MARKER_PATTERN.search(sentence):
            return False
        if len(sentence) < patterns.MIN_STATEMENT_LENGTH:
            return False
        return patterns.FACTUAL_INDICATOR_PATTERN.search(sentence) is not None
