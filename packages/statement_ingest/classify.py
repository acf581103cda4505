"""Keyword-driven category assignment and payee extraction.

``classify`` is pure and total: every (description, direction) pair maps to
exactly one category string. Rules form an ordered, immutable table and the
first match wins. Payee names match as whole tokens, so "MOBIL" never fires
inside "MOBILE DEPOSIT" or "T-MOBILE". The generic expense words match as
plain substrings, so "FEES" and "SURCHARGE" still count. When no payee rule
matches, income falls back to :data:`BUSINESS_INCOME` and expenses go through
a small ladder of generic keywords before landing on the
:data:`UNCATEGORIZED` sentinel, which is what flags a candidate for review.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .models import Direction

UNCATEGORIZED = "Uncategorized"
BUSINESS_INCOME = "Business Income"

CONFIDENCE_HIGH = 0.8
CONFIDENCE_LOW = 0.3


@dataclass(frozen=True, slots=True)
class KeywordRule:
    keywords: tuple[str, ...]
    category: str
    whole_word: bool = True
    _pattern: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        alternatives = "|".join(re.escape(k) for k in self.keywords)
        if self.whole_word:
            # Neighbouring letters or digits mean the keyword is part of another word.
            pattern = rf"(?<![A-Z0-9])(?:{alternatives})(?![A-Z0-9])"
        else:
            pattern = alternatives
        object.__setattr__(self, "_pattern", re.compile(pattern))

    def matches(self, text_upper: str) -> bool:
        return self._pattern.search(text_upper) is not None


# Known payees. Order matters where a description could hit two rules.
PAYEE_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(
        ("HOME DEPOT", "LOWE'S", "LOWES", "STAPLES", "OFFICE DEPOT", "BEST BUY", "AMAZON", "MICROSOFT", "ADOBE"),
        "Office Expenses",
    ),
    KeywordRule(
        ("CHEVRON", "EXXONMOBIL", "EXXON", "SHELL", "MOBIL", "SUNSHINE", "PETROLEUM", "GOLDENROD", "LIPTON TOYOTA"),
        "Car and Truck Expenses",
    ),
    KeywordRule(
        ("UBER", "LYFT", "MARRIOTT", "HILTON", "AMERICAN AIRLINES", "SOUTHWEST", "DELTA AIR"),
        "Travel",
    ),
    KeywordRule(("MCDONALD", "STARBUCKS"), "Meals and Entertainment"),
    KeywordRule(("T-MOBILE", "VERIZON", "AT&T", "COMCAST"), "Phone and Internet"),
    KeywordRule(("WESTAR", "GAS COMPANY"), "Utilities"),
    KeywordRule(("GEICO",), "Insurance"),
    KeywordRule(("SUNBIZ", "LAW FIRM", "ACCOUNTING"), "Legal and Professional Services"),
    KeywordRule(("OVERDRAFT", "MAINTENANCE FEE", "ATM FEE", "SERVICE FEE"), "Bank Service Charges"),
    KeywordRule(
        ("REMOTE ONLINE DEPOSIT", "MOBILE DEPOSIT", "DEPOSIT", "TRANSFER FROM", "PAYMENT RECEIVED"),
        BUSINESS_INCOME,
    ),
)

# Generic expense words, consulted only after PAYEE_RULES miss.
EXPENSE_KEYWORD_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(("GAS", "FUEL"), "Car and Truck Expenses", whole_word=False),
    KeywordRule(("RESTAURANT", "CAFE", "FOOD", "COFFEE"), "Meals and Entertainment", whole_word=False),
    KeywordRule(("HOTEL", "AIRBNB", "FLIGHT"), "Travel", whole_word=False),
    KeywordRule(("OFFICE", "SUPPLY"), "Office Expenses", whole_word=False),
    KeywordRule(("FEE", "CHARGE"), "Bank Service Charges", whole_word=False),
)


def _fold(text: str | None) -> str:
    return " ".join((text or "").upper().split())


def classify(description: str | None, direction: Direction | str) -> str:
    """Return the category for a transaction description."""

    text = _fold(description)
    for rule in PAYEE_RULES:
        if rule.matches(text):
            return rule.category
    if direction == Direction.INCOME:
        return BUSINESS_INCOME
    for rule in EXPENSE_KEYWORD_RULES:
        if rule.matches(text):
            return rule.category
    return UNCATEGORIZED


def tag_confidence(category: str) -> tuple[float, bool]:
    """(confidence, needs_review) for a classified category."""

    if category == UNCATEGORIZED:
        return CONFIDENCE_LOW, True
    return CONFIDENCE_HIGH, False


_PAYEE_PREFIX_RE = re.compile(
    r"^(?:Card Purchase(?:\s+With Pin)?|Electronic Payment:|Recurring Card Purchase|"
    r"Orig CO Name:|ACH (?:Debit|Credit)|POS (?:Debit|Purchase))\s*",
    re.IGNORECASE,
)
_PAYEE_NOISE_RE = re.compile(
    r"\s+(?:\d{1,2}/\d{1,2}\b.*|Card\s+\d{4}.*|#?\d{5,}.*|Orig ID.*|(?-i:[A-Z]{2})\s*$)",
    re.IGNORECASE,
)
UNKNOWN_PAYEE = "Unknown Payee"
PAYEE_MAX_WORDS = 3
PAYEE_MAX_LEN = 50


def extract_payee(description: str | None) -> str:
    """Best-effort counterparty name from a bank description.

    Drops the channel prefix ("Card Purchase", "Electronic Payment:") and
    trailing noise (card suffixes, long reference ids, a trailing state code).
    """

    text = " ".join((description or "").split())
    if not text:
        return UNKNOWN_PAYEE
    if text.upper().startswith("CHECK #"):
        return text
    text = _PAYEE_PREFIX_RE.sub("", text)
    text = _PAYEE_NOISE_RE.sub("", text).strip(" -*:")
    text = " ".join(text.split()[:PAYEE_MAX_WORDS])[:PAYEE_MAX_LEN].rstrip()
    return text or UNKNOWN_PAYEE


__all__ = [
    "BUSINESS_INCOME",
    "CONFIDENCE_HIGH",
    "CONFIDENCE_LOW",
    "EXPENSE_KEYWORD_RULES",
    "KeywordRule",
    "PAYEE_RULES",
    "UNCATEGORIZED",
    "UNKNOWN_PAYEE",
    "classify",
    "extract_payee",
    "tag_confidence",
]
