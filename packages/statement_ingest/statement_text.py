"""Extract transactions from the plain text of a bank statement.

Statement text (already pulled out of the PDF by the caller) is scanned line
by line. Transaction lines start with ``MM/DD`` and carry no year, so the year
comes from the statement period, the caller, or the current date, in that
order of preference when the caller passes none.

Recognized line shapes, tried in order:

1. Deposit: ``01/08Remote Online Deposit 1$3,640.00``. Income, paid by
   check deposit.
2. Card purchase: ``01/02Card Purchase 12/29 Chevron 0202648 Plantation FL
   Card 1819$38.80``. Expense, debit card.
3. Electronic payment: ``01/11Orig CO Name:Westar Energy Orig ID:...``. The
   amount is read from the rest of that line, else from one of the next two
   lines; the block becomes a single
   "Electronic Payment: <originator>" expense by bank transfer.
4. Check: ``01/19 CHECK #538 $2,500.00`` or the checks-paid table row
   ``538 * ^ 01/19 2,500.00``. Expense, paid by check.

A line that starts a transaction but cannot be completed (no amount found,
impossible date, amount outside (0, 1,000,000]) becomes a
:class:`~statement_ingest.models.DroppedBlock` instead of a candidate.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal

from .amounts import parse_amount
from .classify import classify, extract_payee, tag_confidence
from .company_info import extract_company_info
from .dates import parse_date
from .logging_setup import get_logger
from .models import (
    SOURCE_STATEMENT_TEXT,
    AccountInfo,
    Direction,
    DroppedBlock,
    PaymentMethod,
    StatementPeriod,
    TextExtractionResult,
    TransactionCandidate,
)
from .summary import summarize

_log = get_logger("statement_ingest.statement_text")

AMOUNT_CEILING = Decimal("1000000")
ELECTRONIC_LOOKAHEAD = 2

_DATE = r"(?P<date>\d{1,2}/\d{1,2})"
_AMOUNT = r"\$?(?P<amount>\d{1,3}(?:,\d{3})+\.\d{2}|\d+\.\d{2})"

DEPOSIT_RE = re.compile(
    r"^" + _DATE + r"\s*(?P<marker>(?:Remote Online |Mobile )?Deposit)\s*(?P<seq>\d+)\s*" + _AMOUNT + r"$",
    re.IGNORECASE,
)
CARD_PURCHASE_RE = re.compile(
    r"^" + _DATE + r"\s*Card Purchase(?:\s+With Pin)?"
    r"(?:\s+(?P<sub_date>\d{1,2}/\d{1,2}))?\s+(?P<merchant>.+?)\s+Card\s+(?P<card>\d{4})\s*" + _AMOUNT + r"$",
    re.IGNORECASE,
)
ELECTRONIC_RE = re.compile(
    r"^" + _DATE + r"\s*Orig CO Name:\s*(?P<originator>.+?)(?:\s*Orig ID.*|\s*\$?\d[\d,]*\.\d{2})?$",
    re.IGNORECASE,
)
CHECK_RE = re.compile(
    r"^" + _DATE + r"\s*.*?\bCHECK\b\s*#?\s*(?P<number>\d+)\b.*?" + _AMOUNT + r"$",
    re.IGNORECASE,
)
CHECK_TABLE_RE = re.compile(
    r"^(?P<number>\d{3,})\s*\*?\s*\^?\s*" + _DATE + r"(?:\s+(?P<paid_date>\d{1,2}/\d{1,2}))?\s*" + _AMOUNT + r"$"
)
_AMOUNT_ANYWHERE_RE = re.compile(_AMOUNT + r"(?!\d)")
_LEADING_DATE_RE = re.compile(r"^\d{1,2}/\d{1,2}")
_LONG_ID_RE = re.compile(r"\s*\b\d{7,}\b")

_ACCOUNT_NUMBER_RE = re.compile(r"Account\s+(?:Number|No\.?|#)[:\s]*(?P<number>\d[\d -]*\d)", re.IGNORECASE)
_PERIOD_NUMERIC_RE = re.compile(
    r"(?P<start>\d{1,2}/\d{1,2}/\d{2,4})\s*(?:-|to|through)\s*(?P<end>\d{1,2}/\d{1,2}/\d{2,4})",
    re.IGNORECASE,
)
_PERIOD_WORDS_RE = re.compile(
    r"(?P<start>[A-Z][a-z]+\s+\d{1,2},\s*\d{4})\s*(?:-|to|through)\s*(?P<end>[A-Z][a-z]+\s+\d{1,2},\s*\d{4})"
)
_BEGINNING_RE = re.compile(r"Beginning\s+Balance\s*\$?(?P<amount>-?[\d,]+\.\d{2})", re.IGNORECASE)
_ENDING_RE = re.compile(r"Ending\s+Balance\s*\$?(?P<amount>-?[\d,]+\.\d{2})", re.IGNORECASE)

_PERIOD_LAYOUTS = ("%m/%d/%Y", "%m/%d/%y", "%B %d, %Y", "%b %d, %Y", "%B %d,%Y")


# ---------------------------------------------------------------------------
# Account header
# ---------------------------------------------------------------------------


def extract_account_info(text: str | None) -> AccountInfo:
    """Account number, statement period and balances; each independently optional."""

    text = text or ""

    number = None
    if m := _ACCOUNT_NUMBER_RE.search(text):
        number = m.group("number").replace(" ", "")

    period = None
    m = _PERIOD_NUMERIC_RE.search(text) or _PERIOD_WORDS_RE.search(text)
    if m:
        start = " ".join(m.group("start").split())
        end = " ".join(m.group("end").split())
        period = StatementPeriod(
            start=start,
            end=end,
            start_date=parse_date(start, _PERIOD_LAYOUTS),
            end_date=parse_date(end, _PERIOD_LAYOUTS),
        )

    beginning = ending = None
    if m := _BEGINNING_RE.search(text):
        beginning = parse_amount(m.group("amount"))
    if m := _ENDING_RE.search(text):
        ending = parse_amount(m.group("amount"))

    return AccountInfo(
        account_number=number,
        statement_period=period,
        beginning_balance=beginning,
        ending_balance=ending,
    )


def resolve_statement_year(account_info: AccountInfo, year: int | None = None) -> int:
    if year is not None:
        return year
    period = account_info.statement_period
    if period and period.end_date:
        return int(period.end_date[:4])
    return date.today().year


def _year_for_month(month: int, year: int, period: StatementPeriod | None) -> int:
    # A December line in a Dec-Jan statement belongs to the start year.
    if period and period.start_date and period.end_date:
        start_year, end_year = int(period.start_date[:4]), int(period.end_date[:4])
        end_month = int(period.end_date[5:7])
        if start_year < end_year and year == end_year and month > end_month:
            return start_year
    return year


# ---------------------------------------------------------------------------
# Transaction lines
# ---------------------------------------------------------------------------


class _Builder:
    """Accumulates candidates and dropped blocks for one statement."""

    def __init__(self, year: int, period: StatementPeriod | None) -> None:
        self.year = year
        self.period = period
        self.candidates: list[TransactionCandidate] = []
        self.dropped: list[DroppedBlock] = []

    def drop(self, line_index: int, line: str, reason: str) -> None:
        _log.debug("line %d dropped (%s): %r", line_index, reason, line)
        self.dropped.append(DroppedBlock(line_index, line, reason))

    def add(
        self,
        *,
        line_index: int,
        line: str,
        date_token: str,
        amount_token: str,
        description: str,
        direction: Direction,
        payment_method: PaymentMethod,
        check_number: str = "",
    ) -> None:
        month_s, day_s = date_token.split("/")
        month = int(month_s)
        if not 1 <= month <= 12:
            self.drop(line_index, line, f"invalid date {date_token}")
            return
        year = _year_for_month(month, self.year, self.period)
        iso = parse_date(f"{month:02d}/{int(day_s):02d}/{year}", ("%m/%d/%Y",))
        if iso is None:
            self.drop(line_index, line, f"invalid date {date_token}")
            return

        amount = parse_amount(amount_token)
        if amount is None or amount <= 0 or amount > AMOUNT_CEILING:
            self.drop(line_index, line, f"amount out of range: {amount_token}")
            return

        category = classify(description, direction)
        confidence, needs_review = tag_confidence(category)
        self.candidates.append(
            TransactionCandidate(
                date=iso,
                description=description,
                amount=amount if direction is Direction.INCOME else -amount,
                direction=direction,
                category=category,
                payment_method=payment_method,
                confidence=confidence,
                needs_review=needs_review,
                source_row_index=line_index,
                check_number=check_number,
                payee=extract_payee(description),
                source=SOURCE_STATEMENT_TEXT,
            )
        )


def _clean_merchant(raw: str) -> str:
    return " ".join(_LONG_ID_RE.sub("", raw).split())


def _find_electronic_amount(entries: list[tuple[int, str]], i: int, tail: str) -> tuple[int, str] | None:
    """(index of the line holding the amount, amount token) for the block at ``i``.

    ``tail`` is the part of line ``i`` after the originator name.
    """

    if m := _AMOUNT_ANYWHERE_RE.search(tail):
        return i, m.group("amount")
    for j in range(i + 1, min(i + 1 + ELECTRONIC_LOOKAHEAD, len(entries))):
        line = entries[j][1]
        if _LEADING_DATE_RE.match(line) or CHECK_TABLE_RE.match(line):
            return None
        if m := _AMOUNT_ANYWHERE_RE.search(line):
            return j, m.group("amount")
    return None


def _scan_lines(entries: list[tuple[int, str]], builder: _Builder) -> None:
    i = 0
    while i < len(entries):
        line_index, line = entries[i]

        if m := DEPOSIT_RE.match(line):
            builder.add(
                line_index=line_index,
                line=line,
                date_token=m.group("date"),
                amount_token=m.group("amount"),
                description=" ".join(m.group("marker").split()),
                direction=Direction.INCOME,
                payment_method=PaymentMethod.CHECK_DEPOSIT,
            )
        elif m := CARD_PURCHASE_RE.match(line):
            merchant = _clean_merchant(m.group("merchant"))
            builder.add(
                line_index=line_index,
                line=line,
                date_token=m.group("date"),
                amount_token=m.group("amount"),
                description=f"Card Purchase {merchant}",
                direction=Direction.EXPENSE,
                payment_method=PaymentMethod.DEBIT_CARD,
            )
        elif m := ELECTRONIC_RE.match(line):
            found = _find_electronic_amount(entries, i, line[m.end("originator") :])
            if found is None:
                builder.drop(line_index, line, "no amount for electronic payment")
            else:
                j, amount_token = found
                builder.add(
                    line_index=line_index,
                    line=line,
                    date_token=m.group("date"),
                    amount_token=amount_token,
                    description=f"Electronic Payment: {m.group('originator').strip()}",
                    direction=Direction.EXPENSE,
                    payment_method=PaymentMethod.BANK_TRANSFER,
                )
                i = j
        elif m := CHECK_RE.match(line) or CHECK_TABLE_RE.match(line):
            number = m.group("number")
            date_token = m.groupdict().get("paid_date") or m.group("date")
            builder.add(
                line_index=line_index,
                line=line,
                date_token=date_token,
                amount_token=m.group("amount"),
                description=f"Check #{number}",
                direction=Direction.EXPENSE,
                payment_method=PaymentMethod.CHECK,
                check_number=number,
            )
        i += 1


def extract_from_text(text: str | None, *, year: int | None = None) -> TextExtractionResult:
    """Extract account info, holder details and transactions from statement text.

    Parameters
    ----------
    text:
        Full statement text, one printed line per text line.
    year:
        Year for the ``MM/DD`` transaction dates. When omitted, the statement
        period's end year is used, then the current year.
    """

    if not text or not text.strip():
        return TextExtractionResult(success=False, error="Statement text is empty")

    entries = [(n, " ".join(ln.split())) for n, ln in enumerate(text.splitlines())]
    entries = [(n, ln) for n, ln in entries if ln]

    account_info = extract_account_info(text)
    resolved_year = resolve_statement_year(account_info, year)
    builder = _Builder(resolved_year, account_info.statement_period)
    _scan_lines(entries, builder)

    candidates = sorted(builder.candidates, key=lambda c: c.date)
    _log.info(
        "extracted %d transactions from %d lines (%d dropped), year %d",
        len(candidates),
        len(entries),
        len(builder.dropped),
        resolved_year,
    )
    return TextExtractionResult(
        success=True,
        account_info=account_info,
        company_info=extract_company_info(text),
        candidates=tuple(candidates),
        dropped=tuple(builder.dropped),
        summary=summarize(candidates),
        statement_year=resolved_year,
    )


__all__ = [
    "AMOUNT_CEILING",
    "extract_account_info",
    "extract_from_text",
    "resolve_statement_year",
]
