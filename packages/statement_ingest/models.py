"""Data models for the statement ingestion engine.

Everything here is created fresh per engine invocation and handed to the
caller on return. Records are frozen ``dataclass`` instances (immutable once
built); the only pydantic model is :class:`FieldMap`, because field maps are
the one input that arrives from outside (a web client or the CLI) and needs
validation with readable errors.

Amounts are ``decimal.Decimal`` quantized to cents: positive is an inflow,
negative an outflow. Dates are ISO ``YYYY-MM-DD`` strings without a time
component.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class Direction(StrEnum):
    INCOME = "income"
    EXPENSE = "expense"


class AmountConvention(StrEnum):
    """How a tabular export encodes the sign of an amount."""

    SIGNED = "signed"  # one column, sign encodes direction
    SPLIT = "split"  # separate debit/credit columns, debit is an outflow


class PaymentMethod(StrEnum):
    CHECK = "check"
    CHECK_DEPOSIT = "check_deposit"
    DEBIT_CARD = "debit_card"
    CREDIT_CARD = "credit_card"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
    ZELLE = "zelle"
    PAYPAL = "paypal"
    VENMO = "venmo"
    OTHER = "other"


SOURCE_CSV = "csv_import"
SOURCE_STATEMENT_TEXT = "statement_text"


def direction_for(amount: Decimal) -> Direction:
    """Derive the direction from the sign of ``amount`` (zero is income)."""

    return Direction.INCOME if amount >= 0 else Direction.EXPENSE


# ---------------------------------------------------------------------------
# Field maps (profile column aliases and caller-supplied custom mappings)
# ---------------------------------------------------------------------------


class FieldMap(BaseModel):
    """Canonical field name -> ordered source column names (first present wins).

    Accepts a bare string for a single column and camelCase keys
    (``checkNumber``, ``referenceNumber``) so mappings produced by a web client
    validate unchanged. Instances are frozen.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    date: tuple[str, ...] = ()
    description: tuple[str, ...] = ()
    amount: tuple[str, ...] = ()
    debit: tuple[str, ...] = ()
    credit: tuple[str, ...] = ()
    check_number: tuple[str, ...] = ()
    reference_number: tuple[str, ...] = ()
    category: tuple[str, ...] = ()
    type: tuple[str, ...] = ()

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_columns(cls, v: Any) -> tuple[str, ...]:
        if v is None:
            return ()
        if isinstance(v, str):
            v = [v]
        if not isinstance(v, list | tuple):
            raise ValueError("column mapping must be a string or a list of strings")
        cols: list[str] = []
        for item in v:
            if not isinstance(item, str):
                raise ValueError("column names must be strings")
            name = item.strip()
            if name:
                cols.append(name)
        return tuple(cols)

    @property
    def convention(self) -> AmountConvention:
        """``split`` when both debit and credit columns are mapped."""

        if self.debit and self.credit:
            return AmountConvention.SPLIT
        return AmountConvention.SIGNED


@dataclass(frozen=True, slots=True)
class MappingValidation:
    ok: bool
    errors: tuple[str, ...] = ()


def validate_field_map(mapping: FieldMap | Mapping[str, Any]) -> MappingValidation:
    """Check that a custom mapping can drive the delimited normalizer.

    Rules
    -----
    - ``date`` and ``description`` columns are required.
    - Either an ``amount`` column or both ``debit`` and ``credit`` columns.
    - Unknown keys or non-string column names are reported as errors.
    """

    if isinstance(mapping, FieldMap):
        fm = mapping
    else:
        try:
            fm = FieldMap.model_validate(mapping)
        except ValidationError as e:
            return MappingValidation(
                False,
                tuple(
                    f"{'.'.join(str(p) for p in err['loc']) or 'mapping'}: {err['msg']}"
                    for err in e.errors()
                ),
            )

    errors: list[str] = []
    if not fm.date:
        errors.append("Date column is required")
    if not fm.description:
        errors.append("Description column is required")
    if not fm.amount and not (fm.debit and fm.credit):
        errors.append("Amount column (or both Debit and Credit columns) is required")
    return MappingValidation(not errors, tuple(errors))


# ---------------------------------------------------------------------------
# Engine outputs
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TransactionCandidate:
    """A provisionally extracted transaction, not yet persisted.

    ``source_row_index`` is the 0-based position in the original input (data
    row for tabular input, text line for statements) and exists only for error
    reporting. ``check_number`` is empty for deposit-slip records because slip
    numbers and issued-check numbers are different namespaces.
    """

    date: str
    description: str
    amount: Decimal
    direction: Direction
    category: str
    payment_method: PaymentMethod
    confidence: float
    needs_review: bool
    source_row_index: int
    check_number: str = ""
    reference_number: str = ""
    payee: str = ""
    original_type: str = ""
    source: str = SOURCE_CSV


@dataclass(frozen=True, slots=True)
class UnmappedRow:
    """A data row with no matched format; kept raw for manual column mapping."""

    row_index: int
    raw: Mapping[str, str]


@dataclass(frozen=True, slots=True)
class RowError:
    row_index: int
    reason: str


@dataclass(frozen=True, slots=True)
class DroppedBlock:
    """A statement line that started a transaction but produced no candidate."""

    line_index: int
    line: str
    reason: str


@dataclass(frozen=True, slots=True)
class CategoryTotal:
    count: int
    total: Decimal
    direction: Direction


@dataclass(frozen=True, slots=True)
class Summary:
    count: int = 0
    total_income: Decimal = Decimal("0.00")
    total_expense: Decimal = Decimal("0.00")
    net: Decimal = Decimal("0.00")
    needs_review: int = 0
    by_category: Mapping[str, CategoryTotal] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class DelimitedResult:
    """Outcome of normalizing one tabular export.

    ``success`` is ``False`` only for hard batch failures (no header, no data
    rows, unreadable text); ``error`` then carries the reason and every other
    collection is empty. An unrecognized layout is not a failure: rows come
    back in ``unmapped`` with ``requires_mapping`` set.
    """

    success: bool
    candidates: tuple[TransactionCandidate, ...] = ()
    unmapped: tuple[UnmappedRow, ...] = ()
    errors: tuple[RowError, ...] = ()
    detected_profile: str | None = None
    detected_profile_name: str | None = None
    requires_mapping: bool = False
    headers: tuple[str, ...] = ()
    sample_rows: tuple[Mapping[str, str], ...] = ()
    total_rows: int = 0
    summary: Summary = field(default_factory=Summary)
    error: str | None = None


@dataclass(frozen=True, slots=True)
class HeaderPreview:
    success: bool
    headers: tuple[str, ...] = ()
    sample_rows: tuple[Mapping[str, str], ...] = ()
    error: str | None = None


@dataclass(frozen=True, slots=True)
class StatementPeriod:
    start: str
    end: str
    start_date: str | None = None
    end_date: str | None = None


@dataclass(frozen=True, slots=True)
class AccountInfo:
    account_number: str | None = None
    statement_period: StatementPeriod | None = None
    beginning_balance: Decimal | None = None
    ending_balance: Decimal | None = None


@dataclass(frozen=True, slots=True)
class CompanyInfo:
    """Best-effort account holder block found near the top of a statement."""

    name: str | None = None
    street: str | None = None
    city: str | None = None
    region: str | None = None
    postal_code: str | None = None
    confidence: float = 0.0


@dataclass(frozen=True, slots=True)
class TextExtractionResult:
    success: bool
    account_info: AccountInfo = field(default_factory=AccountInfo)
    company_info: CompanyInfo = field(default_factory=CompanyInfo)
    candidates: tuple[TransactionCandidate, ...] = ()
    dropped: tuple[DroppedBlock, ...] = ()
    summary: Summary = field(default_factory=Summary)
    statement_year: int | None = None
    error: str | None = None


__all__ = [
    "AccountInfo",
    "AmountConvention",
    "CategoryTotal",
    "CompanyInfo",
    "DelimitedResult",
    "Direction",
    "DroppedBlock",
    "FieldMap",
    "HeaderPreview",
    "MappingValidation",
    "PaymentMethod",
    "RowError",
    "SOURCE_CSV",
    "SOURCE_STATEMENT_TEXT",
    "StatementPeriod",
    "Summary",
    "TextExtractionResult",
    "TransactionCandidate",
    "UnmappedRow",
    "direction_for",
    "validate_field_map",
]
