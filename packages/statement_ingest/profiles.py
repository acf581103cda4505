"""Catalog of known bank export layouts.

A :class:`FormatProfile` pairs a header predicate with a :class:`FieldMap`.
Detection walks :data:`FORMAT_PROFILES` in order and the first profile whose
predicate accepts the header set wins, so the order is significant: the more
specific layouts (Chase's "Posting Date", Capital One's Debit/Credit pair)
come before the generic ``Date``/``Description``/``Amount`` shapes that many
banks share. Headers are compared case-sensitively after trimming.

The catalog is built once at import time and never mutated.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from .models import AmountConvention, FieldMap

HeaderPredicate = Callable[[frozenset[str]], bool]


@dataclass(frozen=True, slots=True)
class FormatProfile:
    key: str
    display_name: str
    detect: HeaderPredicate
    field_map: FieldMap
    date_layouts: tuple[str, ...]
    amount_convention: AmountConvention

    def __post_init__(self) -> None:
        if self.amount_convention is AmountConvention.SPLIT and not (
            self.field_map.debit and self.field_map.credit
        ):
            raise ValueError(f"profile {self.key!r}: split convention needs debit and credit")

    def matches(self, headers: Iterable[str]) -> bool:
        return self.detect(frozenset(h.strip() for h in headers))


def _has_all(*cols: str) -> HeaderPredicate:
    needed = frozenset(cols)
    return lambda headers: needed <= headers


def _has_any(*cols: str) -> HeaderPredicate:
    wanted = frozenset(cols)
    return lambda headers: bool(wanted & headers)


def _all_of(*preds: HeaderPredicate) -> HeaderPredicate:
    return lambda headers: all(p(headers) for p in preds)


def _any_of(*preds: HeaderPredicate) -> HeaderPredicate:
    return lambda headers: any(p(headers) for p in preds)


def _header_contains(fragment: str) -> HeaderPredicate:
    return lambda headers: any(fragment in h for h in headers)


_US_DATES = ("%m/%d/%Y",)
_SIGNED = AmountConvention.SIGNED
_SPLIT = AmountConvention.SPLIT


FORMAT_PROFILES: tuple[FormatProfile, ...] = (
    FormatProfile(
        key="chase",
        display_name="Chase Bank",
        detect=_has_all("Posting Date", "Description"),
        field_map=FieldMap(
            date=("Posting Date", "Transaction Date"),
            description=("Description",),
            amount=("Amount",),
            check_number=("Check or Slip #", "Check Number"),
            type=("Type",),
        ),
        date_layouts=_US_DATES,
        amount_convention=_SIGNED,
    ),
    FormatProfile(
        key="capital_one",
        display_name="Capital One",
        detect=_has_all("Transaction Date", "Debit", "Credit"),
        field_map=FieldMap(
            date=("Transaction Date", "Posted Date"),
            description=("Description",),
            debit=("Debit",),
            credit=("Credit",),
        ),
        date_layouts=("%Y-%m-%d", "%m/%d/%Y"),
        amount_convention=_SPLIT,
    ),
    FormatProfile(
        key="pnc",
        display_name="PNC Bank",
        detect=_has_all("Date", "Description", "Withdrawals"),
        field_map=FieldMap(
            date=("Date",),
            description=("Description",),
            debit=("Withdrawals",),
            credit=("Deposits",),
        ),
        date_layouts=_US_DATES,
        amount_convention=_SPLIT,
    ),
    FormatProfile(
        key="citi",
        display_name="Citibank",
        detect=_all_of(_has_all("Date", "Description"), _has_any("Debit", "Credit")),
        field_map=FieldMap(
            date=("Date",),
            description=("Description",),
            debit=("Debit",),
            credit=("Credit",),
        ),
        date_layouts=_US_DATES,
        amount_convention=_SPLIT,
    ),
    FormatProfile(
        key="discover",
        display_name="Discover",
        detect=_has_all("Trans. Date", "Amount"),
        field_map=FieldMap(
            date=("Trans. Date", "Post Date"),
            description=("Description",),
            amount=("Amount",),
            category=("Category",),
        ),
        date_layouts=_US_DATES,
        amount_convention=_SIGNED,
    ),
    FormatProfile(
        key="amex",
        display_name="American Express",
        detect=_has_all("Date", "Description", "Amount", "Reference"),
        field_map=FieldMap(
            date=("Date",),
            description=("Description",),
            amount=("Amount",),
            reference_number=("Reference",),
        ),
        date_layouts=_US_DATES,
        amount_convention=_SIGNED,
    ),
    FormatProfile(
        key="us_bank",
        display_name="US Bank",
        detect=_has_all("Date", "Name", "Amount"),
        field_map=FieldMap(
            date=("Date",),
            description=("Name", "Memo"),
            amount=("Amount",),
            type=("Transaction",),
        ),
        date_layouts=("%Y-%m-%d", "%m/%d/%Y"),
        amount_convention=_SIGNED,
    ),
    FormatProfile(
        key="bank_of_america",
        display_name="Bank of America",
        detect=_has_all("Date", "Description", "Amount"),
        field_map=FieldMap(
            date=("Date", "Posted Date"),
            description=("Description", "Payee"),
            amount=("Amount",),
            reference_number=("Reference Number",),
        ),
        date_layouts=_US_DATES,
        amount_convention=_SIGNED,
    ),
    FormatProfile(
        key="wells_fargo",
        display_name="Wells Fargo",
        detect=_any_of(_header_contains("Wells Fargo"), _has_all("Date", "Amount")),
        field_map=FieldMap(
            date=("Date",),
            description=("Description", "Memo"),
            amount=("Amount",),
        ),
        date_layouts=_US_DATES,
        amount_convention=_SIGNED,
    ),
)

_BY_KEY: dict[str, FormatProfile] = {p.key: p for p in FORMAT_PROFILES}


def detect_profile(headers: Iterable[str]) -> FormatProfile | None:
    """Return the first catalog profile accepting ``headers`` or ``None``."""

    header_set = frozenset(h.strip() for h in headers)
    if not header_set:
        return None
    for profile in FORMAT_PROFILES:
        if profile.detect(header_set):
            return profile
    return None


def get_profile(key: str) -> FormatProfile:
    try:
        return _BY_KEY[key]
    except KeyError:
        raise ValueError(f"unknown format profile: {key!r}") from None


def list_profiles() -> list[tuple[str, str]]:
    """(key, display name) pairs in detection order."""

    return [(p.key, p.display_name) for p in FORMAT_PROFILES]


__all__ = [
    "FormatProfile",
    "FORMAT_PROFILES",
    "detect_profile",
    "get_profile",
    "list_profiles",
]
