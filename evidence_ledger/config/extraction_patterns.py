"""Regex tables and keyword lists for fact extraction.

Patterns are compiled once at import. Only keyword parts are matched
case-insensitively (scoped ``(?i:...)`` groups); capitalization inside
names, streets and state codes stays significant so that ordinary prose
is not mistaken for a proper noun.

Each table is an ordered list of ``(source_name, pattern)`` pairs. Order
matters: extraction output follows table order, then match position.
"""

import re
from typing import List, Tuple

PatternTable = List[Tuple[str, "re.Pattern[str]"]]

_NUMBER = r"[0-9][0-9,]*(?:\.[0-9]{2})?"

# Amount family
CURRENCY_PATTERNS: PatternTable = [
    ("currency_pattern", re.compile(r"\$(" + _NUMBER + r")")),
    ("currency_pattern", re.compile(r"\b(?i:usd)\s*(" + _NUMBER + r")")),
    ("currency_pattern", re.compile(r"\b(" + _NUMBER + r"\s*(?i:dollars?|usd))\b")),
    ("currency_pattern", re.compile(r"€(" + _NUMBER + r")")),
    ("currency_pattern", re.compile(r"£(" + _NUMBER + r")")),
]

PERCENTAGE_PATTERN = re.compile(r"\b([0-9]+(?:\.[0-9]+)?\s*%)")

AMOUNT_CONTEXT_KEYWORDS = ("payment", "invoice", "bill")

# Date family: numeric, long month name, short month name, ISO
_MONTHS = (
    "January|February|March|April|May|June|July|August|"
    "September|October|November|December"
)
_MONTHS_SHORT = "Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec"

DATE_PATTERNS: PatternTable = [
    ("date_pattern_0", re.compile(r"\b([0-1]?[0-9])[/\-]([0-3]?[0-9])[/\-]([0-9]{4})\b")),
    ("date_pattern_1", re.compile(r"\b(?i:(" + _MONTHS + r"))\s+([0-3]?[0-9]),?\s+([0-9]{4})\b")),
    ("date_pattern_2", re.compile(r"\b(?i:(" + _MONTHS_SHORT + r"))\.?\s+([0-3]?[0-9]),?\s+([0-9]{4})\b")),
    ("date_pattern_3", re.compile(r"\b([0-9]{4})-([0-1][0-9])-([0-3][0-9])\b")),
]

DATE_CONTEXT_PATTERN = re.compile(r"\b(?:on|date|dated|signed|occurred)\b", re.IGNORECASE)

# Person family. The ``name`` group is what false-positive filtering inspects.
# Bounded so long Title-Case runs cannot backtrack quadratically.
_NAME = r"[A-Z][a-z]+(?:\s+[A-Z][a-z]+){0,3}"

PERSON_PATTERNS: PatternTable = [
    ("person_pattern_0", re.compile(r"\b(?:Mr|Mrs|Ms|Dr|Prof)\.?\s+(?P<name>" + _NAME + r")")),
    ("person_pattern_1", re.compile(r"\b(?P<name>[A-Z][a-z]+\s+(?:[A-Z]\.?\s+)?[A-Z][a-z]+)\b")),
    (
        "person_pattern_2",
        re.compile(
            r"\b(?i:attorney|lawyer|judge|clerk|officer|detective|agent)\s+(?P<name>" + _NAME + r")"
        ),
    ),
]

PERSON_CONTEXT_KEYWORDS = ("attorney", "judge", "witness", "defendant", "plaintiff")

PROPER_NAME_PATTERN = re.compile(r"^[A-Z][a-z]+\s+[A-Z][a-z]+$")

PERSON_FALSE_POSITIVES = ("United States", "New York", "Los Angeles", "Social Security")

# Capitalized words that start sentences or label documents, never names
NON_NAME_WORDS = frozenset({
    "The", "This", "That", "These", "Those", "A", "An", "On", "In", "At", "By",
    "For", "From", "To", "And", "But", "Or", "If", "When", "After", "Before",
    "During", "Per", "Payment", "Invoice", "Account", "Transaction", "Amount",
    "Case", "Docket", "File", "Contract", "Agreement", "Page", "Exhibit",
    "Section", "Court", "County", "State", "Street", "Avenue", "Road", "Drive",
    "Lane", "Boulevard", "Attorney", "Lawyer", "Judge", "Clerk", "Officer",
    "Detective", "Agent", "Witness", "Defendant", "Plaintiff",
    "January", "February", "March", "April", "May", "June", "July", "August",
    "September", "October", "November", "December",
    "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday",
})

# Location family
ADDRESS_PATTERN = re.compile(
    r"\b(?P<number>[0-9]+)\s+(?P<street>" + _NAME + r")\s+"
    r"(?P<type>(?i:Street|St\.?|Avenue|Ave\.?|Road|Rd\.?|Drive|Dr\.?|Lane|Ln\.?|Boulevard|Blvd\.?))"
    r"(?![A-Za-z])"
)

CITY_STATE_PATTERN = re.compile(r"\b(?P<city>" + _NAME + r"),\s+(?P<state>[A-Z]{2})\b")

# Statement family
SENTENCE_SPLIT_PATTERN = re.compile(r"(?<=[.!?])\s+")

FACTUAL_INDICATOR_PATTERN = re.compile(
    r"\b(?:occurred|happened|was|were|did|stated|said|received|paid|signed)\b",
    re.IGNORECASE,
)

STATEMENT_CONFIDENCE_INDICATORS = (
    "occurred", "happened", "stated", "testified", "witnessed", "observed", "documented",
)

OPINION_PREFIXES = ("i think", "in my opinion")

PAGE_MARKER_PATTERN = re.compile(r"\bpage\s+[0-9]+", re.IGNORECASE)

TIME_OF_DAY_PATTERN = re.compile(r"\b[0-9]{1,2}:[0-9]{2}\b")

MONEY_PATTERN = re.compile(r"\$[0-9][0-9,]*")

MIN_SENTENCE_LENGTH = 10
MIN_STATEMENT_LENGTH = 20

# Specialized passes
ACCOUNT_PATTERN = re.compile(
    r"\b(?i:account|acct)\.?\s*(?i:number|no\.?|#)?\s*:?\s*([0-9][0-9\-]{7,19})\b"
)

TRANSACTION_PATTERN = re.compile(
    r"\b(?i:payment|transaction|transfer|deposit|withdrawal)\s*(?i:of|for)?\s*\$(" + _NUMBER + r")"
)

CASE_NUMBER_PATTERN = re.compile(
    r"\b(?i:case|docket|file)\s*(?i:number|no\.?|#)?\s*:?\s*((?=[A-Z0-9\-]*[0-9])[A-Z0-9][A-Z0-9\-]*)\b"
)

CONTRACT_KEYWORDS = ("contract", "agreement")

CONTRACT_TERM_PATTERN = re.compile(
    r"\b(?i:term|duration|period)\s*(?i:of|is)?\s*([0-9]+)\s*(?i:(days?|months?|years?))\b"
)

CONTEXT_WINDOW = 50
