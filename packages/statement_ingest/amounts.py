"""Monetary amount parsing for bank exports and statement text.

Two encodings are supported:

- ``signed``: one text field whose sign encodes direction. Currency symbols,
  thousands separators and whitespace are ignored. Surrounding parentheses, a
  leading (or trailing) minus, or a trailing ``DR`` make the value negative;
  a trailing ``CR`` forces it non-negative.
- ``split``: separate debit and credit fields. A nonzero debit is an outflow
  (negative) and wins when both slots are filled; otherwise a nonzero credit
  is an inflow; otherwise the amount is zero.

Parsing never raises on bad text. ``None`` means "not an amount" and the
caller decides how to report it. Results are ``Decimal`` quantized to cents.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from .models import AmountConvention

CENTS = Decimal("0.01")

_CURRENCY_SYMBOLS = "$£€¥"
_DR_CR_SUFFIX_RE = re.compile(r"\s*(CR|DR)\.?$", re.IGNORECASE)
_NUMBER_RE = re.compile(r"^(?:\d+(?:\.\d*)?|\.\d+)$")


@dataclass(frozen=True, slots=True)
class _Token:
    magnitude: Decimal
    negative: bool = False  # minus sign or parentheses
    debit_marker: bool = False
    credit_marker: bool = False

    def signed(self, *, default_negative: bool = False) -> Decimal:
        if self.credit_marker:
            return self.magnitude
        if self.negative or self.debit_marker or default_negative:
            return -self.magnitude
        return self.magnitude


def _is_blank(raw: str | None) -> bool:
    return raw is None or not str(raw).strip()


def _parse_token(raw: str | None) -> _Token | None:
    if _is_blank(raw):
        return None
    s = str(raw).strip()

    debit_marker = credit_marker = False
    m = _DR_CR_SUFFIX_RE.search(s)
    if m:
        if m.group(1).upper() == "CR":
            credit_marker = True
        else:
            debit_marker = True
        s = s[: m.start()].rstrip()

    negative = False
    # Strip sign, currency symbol and parentheses in any order until stable,
    # so "-($1,234.56)" and "$(1,234.56)" both work.
    while s:
        changed = False
        if s.startswith("+"):
            s = s[1:].lstrip()
            changed = True
        elif s.startswith("-"):
            negative = True
            s = s[1:].lstrip()
            changed = True
        elif s.endswith("-"):
            negative = True
            s = s[:-1].rstrip()
            changed = True
        if s[:1] and s[0] in _CURRENCY_SYMBOLS:
            s = s[1:].lstrip()
            changed = True
        if len(s) >= 2 and s.startswith("(") and s.endswith(")"):
            negative = True
            s = s[1:-1].strip()
            changed = True
        if not changed:
            break

    for sym in _CURRENCY_SYMBOLS:
        s = s.replace(sym, "")
    s = s.replace(",", "")
    s = "".join(s.split())
    if not _NUMBER_RE.match(s):
        return None

    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    if not d.is_finite():
        return None
    return _Token(abs(d), negative, debit_marker, credit_marker)


def quantize(d: Decimal) -> Decimal:
    q = d.quantize(CENTS, rounding=ROUND_HALF_UP)
    # Avoid "-0.00" leaking out of sign flips on zero.
    return q if q != 0 else Decimal("0.00")


def parse_amount(
    primary: str | None,
    secondary: str | None = None,
    convention: AmountConvention | str = AmountConvention.SIGNED,
) -> Decimal | None:
    """Parse a monetary amount into a signed ``Decimal``.

    Parameters
    ----------
    primary:
        The signed amount text, or the debit slot for ``split``.
    secondary:
        The credit slot for ``split``; ignored for ``signed``.
    convention:
        ``"signed"`` or ``"split"``. Anything else is a programming error and
        raises ``ValueError``.

    Returns ``None`` when the (non-empty) input is not a number. For ``split``,
    an empty slot counts as absent and two absent or zero slots give ``0``.
    """

    conv = AmountConvention(convention)

    if conv is AmountConvention.SIGNED:
        tok = _parse_token(primary)
        return None if tok is None else quantize(tok.signed())

    debit = _parse_token(primary)
    if debit is None and not _is_blank(primary):
        return None
    credit = _parse_token(secondary)
    if credit is None and not _is_blank(secondary):
        return None

    if debit is not None and debit.magnitude != 0:
        return quantize(debit.signed(default_negative=True))
    if credit is not None and credit.magnitude != 0:
        return quantize(credit.signed())
    return Decimal("0.00")


def format_amount(d: Decimal) -> str:
    """Render as a plain two-decimal string (``"-12.50"``)."""

    return f"{quantize(d):.2f}"


__all__ = ["CENTS", "format_amount", "parse_amount", "quantize"]
