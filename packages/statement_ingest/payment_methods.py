"""Map a bank's free-form transaction type token to a payment method.

Bank type tokens look like ``DEBIT_CARD``, ``ACH_CREDIT``, ``CHECK_PAID``,
``DSLIP`` or ``QUICKPAY_DEBIT``. The mapping is an ordered ladder of rules and
the first match wins. Deposits are tested before plain checks because
``CHECK_DEPOSIT`` contains ``CHECK``; short markers (``POS``, ``ATM``,
``ACH``) are matched as whole tokens so ``DEPOSIT`` does not read as a
point-of-sale purchase.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from .models import PaymentMethod

_TOKEN_SPLIT_RE = re.compile(r"[^A-Z0-9]+")

_Rule = Callable[[str, frozenset[str]], bool]


def _is_check_deposit(t: str, tokens: frozenset[str]) -> bool:
    if "DSLIP" in t:
        return True
    return "DEPOSIT" in t and ("CHECK" in t or "CHK" in tokens or "SLIP" in t)


def _is_check(t: str, tokens: frozenset[str]) -> bool:
    return "CHECK" in t or "CHK" in tokens


def _is_debit_card(t: str, tokens: frozenset[str]) -> bool:
    if "POS" in tokens or "POINT_OF_SALE" in t or "POINT OF SALE" in t:
        return True
    # ACH_DEBIT is an electronic transfer, not a card swipe.
    return "DEBIT" in t and "ACH" not in tokens


def _is_credit_card(t: str, tokens: frozenset[str]) -> bool:
    return "CREDIT_CARD" in t or "CREDIT CARD" in t or "VISA" in t or "MASTERCARD" in t


def _is_bank_transfer(t: str, tokens: frozenset[str]) -> bool:
    return bool({"ACH", "EFT", "WIRE", "XFER"} & tokens) or "TRANSFER" in t


def _is_cash(t: str, tokens: frozenset[str]) -> bool:
    return "ATM" in tokens


_LADDER: tuple[tuple[_Rule, PaymentMethod], ...] = (
    (_is_check_deposit, PaymentMethod.CHECK_DEPOSIT),
    (_is_check, PaymentMethod.CHECK),
    (_is_debit_card, PaymentMethod.DEBIT_CARD),
    (_is_credit_card, PaymentMethod.CREDIT_CARD),
    (_is_bank_transfer, PaymentMethod.BANK_TRANSFER),
    (_is_cash, PaymentMethod.CASH),
    (lambda t, _: "ZELLE" in t or "QUICKPAY" in t, PaymentMethod.ZELLE),
    (lambda t, _: "PAYPAL" in t, PaymentMethod.PAYPAL),
    (lambda t, _: "VENMO" in t, PaymentMethod.VENMO),
)


def _normalize_token(type_token: str | None) -> str:
    return " ".join((type_token or "").upper().split())


def infer_payment_method(type_token: str | None) -> PaymentMethod:
    """Return the payment method for a bank type token (``other`` if unknown)."""

    t = _normalize_token(type_token)
    if not t:
        return PaymentMethod.OTHER
    tokens = frozenset(x for x in _TOKEN_SPLIT_RE.split(t) if x)
    for rule, method in _LADDER:
        if rule(t, tokens):
            return method
    return PaymentMethod.OTHER


def is_deposit_slip(type_token: str | None, payment_method: PaymentMethod | None = None) -> bool:
    """True when a row describes a deposit, whose slip number is not a check number."""

    if payment_method is PaymentMethod.CHECK_DEPOSIT:
        return True
    t = _normalize_token(type_token)
    return "DEPOSIT" in t or "DSLIP" in t


__all__ = ["infer_payment_method", "is_deposit_slip"]
