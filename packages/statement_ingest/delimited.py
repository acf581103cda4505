"""Normalize tabular bank exports into transaction candidates.

Input is a header row plus data rows (already split into cells). Parsing the
raw text is :func:`read_delimited`'s job: stdlib :mod:`csv`, UTF-8 with an
optional BOM, quoted fields with embedded delimiters and newlines, blank lines
skipped, ragged rows tolerated, and the delimiter sniffed among ``, ; TAB |``.

Selection rules for :func:`normalize_delimited`:

- ``mode="auto"``: detect a catalog profile from the headers. When none
  matches, fall back to ``custom_mapping`` if one was given; otherwise every
  row comes back unmapped and ``requires_mapping`` is set.
- ``mode="custom"``: use ``custom_mapping`` (required and validated).
- any other value: a catalog profile key.

Every data row yields exactly one outcome: a candidate, an unmapped row or a
row error. Row problems never abort the batch; only an empty header or an
empty body is a whole-batch failure. Malformed invocations (unknown profile
key, missing or invalid custom mapping) raise ``ValueError``.
"""

from __future__ import annotations

import csv
from collections.abc import Mapping, Sequence
from dataclasses import replace
from io import StringIO
from typing import Any

from .amounts import parse_amount
from .classify import UNCATEGORIZED, classify, extract_payee
from .dates import DEFAULT_DATE_LAYOUTS, parse_date
from .logging_setup import get_logger
from .models import (
    SOURCE_CSV,
    AmountConvention,
    DelimitedResult,
    FieldMap,
    HeaderPreview,
    RowError,
    TransactionCandidate,
    UnmappedRow,
    direction_for,
    validate_field_map,
)
from .payment_methods import infer_payment_method, is_deposit_slip
from .profiles import FormatProfile, detect_profile, get_profile
from .summary import summarize

_log = get_logger("statement_ingest.delimited")

AUTO = "auto"
CUSTOM = "custom"
SAMPLE_ROWS = 5
DELIMITER_CANDIDATES = ",;\t|"

DELIMITED_CONFIDENCE = 1.0


# ---------------------------------------------------------------------------
# Reading text
# ---------------------------------------------------------------------------


def _sniff_delimiter(text: str) -> str:
    first_line = next((ln for ln in text.splitlines() if ln.strip()), "")
    if "," in first_line:
        return ","
    try:
        return csv.Sniffer().sniff(text[:4096], delimiters=DELIMITER_CANDIDATES).delimiter
    except csv.Error:
        return ","


def read_delimited(text: str, *, delimiter: str | None = None) -> tuple[list[str], list[list[str]]]:
    """Split delimited text into (headers, rows); cells are trimmed.

    Raises ``csv.Error`` for structurally unreadable text.
    """

    if text.startswith("\ufeff"):
        text = text[1:]
    if delimiter is None:
        delimiter = _sniff_delimiter(text)

    with StringIO(text, newline="") as f:
        reader = csv.reader(f, delimiter=delimiter)
        rows = [[cell.strip() for cell in row] for row in reader]
    rows = [r for r in rows if any(r)]
    if not rows:
        return [], []
    return rows[0], rows[1:]


def _cell(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _row_to_mapping(headers: Sequence[str], row: Sequence[str] | Mapping[str, Any]) -> dict[str, str]:
    if isinstance(row, Mapping):
        stripped = {str(k).strip(): v for k, v in row.items()}
        return {name: _cell(stripped.get(name)) for name in headers if name}
    if isinstance(row, str) or not isinstance(row, Sequence):
        raise TypeError(f"rows must be sequences or mappings, got {type(row).__name__}")
    # Short rows pad with empty cells; extra cells past the header are ignored.
    out: dict[str, str] = {}
    for i, name in enumerate(headers):
        if not name or name in out:
            continue
        out[name] = _cell(row[i]) if i < len(row) else ""
    return out


# ---------------------------------------------------------------------------
# Profile selection
# ---------------------------------------------------------------------------


def _coerce_field_map(mapping: FieldMap | Mapping[str, Any]) -> FieldMap:
    check = validate_field_map(mapping)
    if not check.ok:
        raise ValueError("invalid custom mapping: " + "; ".join(check.errors))
    return mapping if isinstance(mapping, FieldMap) else FieldMap.model_validate(mapping)


def _custom_profile(mapping: FieldMap | Mapping[str, Any]) -> FormatProfile:
    fm = _coerce_field_map(mapping)
    return FormatProfile(
        key=CUSTOM,
        display_name="Custom Mapping",
        detect=lambda _headers: True,
        field_map=fm,
        date_layouts=DEFAULT_DATE_LAYOUTS,
        amount_convention=fm.convention,
    )


def _with_date_hint(profile: FormatProfile, date_layout: str | None) -> FormatProfile:
    if not date_layout:
        return profile
    return replace(profile, date_layouts=(date_layout, *profile.date_layouts))


def _explicit_profile(
    mode: str,
    custom_mapping: FieldMap | Mapping[str, Any] | None,
    date_layout: str | None,
) -> FormatProfile | None:
    """Resolve non-auto modes; raise ``ValueError`` on a malformed invocation."""

    if mode == AUTO:
        if custom_mapping is not None:
            _coerce_field_map(custom_mapping)
        return None
    if mode == CUSTOM:
        if custom_mapping is None:
            raise ValueError("custom mode requires a custom_mapping")
        return _with_date_hint(_custom_profile(custom_mapping), date_layout)
    return _with_date_hint(get_profile(mode), date_layout)


# ---------------------------------------------------------------------------
# Row normalization
# ---------------------------------------------------------------------------


def _first_present(record: Mapping[str, str], columns: Sequence[str]) -> str:
    for col in columns:
        value = record.get(col)
        if value is not None and value.strip():
            return value.strip()
    return ""


def _normalize_row(
    record: Mapping[str, str], profile: FormatProfile, row_index: int
) -> TransactionCandidate | RowError:
    fm = profile.field_map

    date_raw = _first_present(record, fm.date)
    if not date_raw:
        return RowError(row_index, "Missing date")
    date_iso = parse_date(date_raw, profile.date_layouts)
    if date_iso is None:
        return RowError(row_index, f"Invalid date: {date_raw!r}")

    description = " ".join(_first_present(record, fm.description).split())
    if not description:
        return RowError(row_index, "Missing description")

    if profile.amount_convention is AmountConvention.SPLIT:
        debit_raw = _first_present(record, fm.debit)
        credit_raw = _first_present(record, fm.credit)
        amount = parse_amount(debit_raw, credit_raw, AmountConvention.SPLIT)
        if amount is None:
            return RowError(row_index, f"Invalid amount: debit={debit_raw!r} credit={credit_raw!r}")
    else:
        amount_raw = _first_present(record, fm.amount)
        if not amount_raw:
            return RowError(row_index, "Missing amount")
        amount = parse_amount(amount_raw)
        if amount is None:
            return RowError(row_index, f"Invalid amount: {amount_raw!r}")

    direction = direction_for(amount)
    type_token = _first_present(record, fm.type)
    payment_method = infer_payment_method(type_token)
    check_number = _first_present(record, fm.check_number)
    if check_number and is_deposit_slip(type_token, payment_method):
        check_number = ""

    category = _first_present(record, fm.category) or classify(description, direction)

    return TransactionCandidate(
        date=date_iso,
        description=description,
        amount=amount,
        direction=direction,
        category=category,
        payment_method=payment_method,
        confidence=DELIMITED_CONFIDENCE,
        needs_review=category == UNCATEGORIZED,
        source_row_index=row_index,
        check_number=check_number,
        reference_number=_first_present(record, fm.reference_number),
        payee=extract_payee(description),
        original_type=type_token,
        source=SOURCE_CSV,
    )


def normalize_delimited(
    headers: Sequence[str],
    rows: Sequence[Sequence[str]],
    *,
    mode: str = AUTO,
    custom_mapping: FieldMap | Mapping[str, Any] | None = None,
    date_layout: str | None = None,
) -> DelimitedResult:
    """Normalize tabular rows into candidates, unmapped rows and row errors.

    Parameters
    ----------
    headers:
        Header cells, trimmed before matching.
    rows:
        Data rows; ``row_index`` in outputs is the 0-based position here.
    mode:
        ``"auto"``, ``"custom"`` or a catalog profile key.
    custom_mapping:
        A :class:`FieldMap` or a plain mapping of field -> column name(s).
    date_layout:
        Optional ``strptime`` layout tried before the profile's own.
    """

    explicit = _explicit_profile(mode, custom_mapping, date_layout)

    header_t = tuple(h.strip() for h in headers)
    if not any(header_t):
        return DelimitedResult(success=False, error="No header row found")
    records = [_row_to_mapping(header_t, r) for r in rows]
    if not records:
        return DelimitedResult(success=False, headers=header_t, error="No data rows found")

    profile = explicit
    if profile is None:
        detected = detect_profile(header_t)
        if detected is not None:
            profile = _with_date_hint(detected, date_layout)
        elif custom_mapping is not None:
            profile = _with_date_hint(_custom_profile(custom_mapping), date_layout)

    sample = tuple(records[:SAMPLE_ROWS])

    if profile is None:
        _log.info("no format profile matched headers %s; %d rows need mapping", list(header_t), len(records))
        return DelimitedResult(
            success=True,
            unmapped=tuple(UnmappedRow(i, rec) for i, rec in enumerate(records)),
            requires_mapping=True,
            headers=header_t,
            sample_rows=sample,
            total_rows=len(records),
        )

    candidates: list[TransactionCandidate] = []
    errors: list[RowError] = []
    for i, rec in enumerate(records):
        outcome = _normalize_row(rec, profile, i)
        if isinstance(outcome, RowError):
            _log.debug("row %d rejected: %s", i, outcome.reason)
            errors.append(outcome)
        else:
            candidates.append(outcome)

    _log.info(
        "normalized %d rows with profile %s: %d candidates, %d errors",
        len(records),
        profile.key,
        len(candidates),
        len(errors),
    )
    return DelimitedResult(
        success=True,
        candidates=tuple(candidates),
        errors=tuple(errors),
        detected_profile=profile.key,
        detected_profile_name=profile.display_name,
        headers=header_t,
        sample_rows=sample,
        total_rows=len(records),
        summary=summarize(candidates),
    )


def normalize_csv_text(
    text: str,
    *,
    delimiter: str | None = None,
    mode: str = AUTO,
    custom_mapping: FieldMap | Mapping[str, Any] | None = None,
    date_layout: str | None = None,
) -> DelimitedResult:
    """Read delimited text and normalize it in one step.

    Unreadable text is reported as a failed result rather than raised.
    """

    _explicit_profile(mode, custom_mapping, date_layout)
    try:
        headers, rows = read_delimited(text, delimiter=delimiter)
    except csv.Error as e:
        return DelimitedResult(success=False, error=f"Failed to parse delimited text: {e}")
    if not headers:
        return DelimitedResult(success=False, error="File is empty")
    return normalize_delimited(
        headers, rows, mode=mode, custom_mapping=custom_mapping, date_layout=date_layout
    )


def preview_delimited(
    text: str, *, delimiter: str | None = None, max_rows: int = SAMPLE_ROWS
) -> HeaderPreview:
    """Headers plus the first ``max_rows`` rows, for building a manual mapping."""

    try:
        headers, rows = read_delimited(text, delimiter=delimiter)
    except csv.Error as e:
        return HeaderPreview(success=False, error=f"Failed to parse delimited text: {e}")
    if not headers:
        return HeaderPreview(success=False, error="File is empty")
    header_t = tuple(headers)
    return HeaderPreview(
        success=True,
        headers=header_t,
        sample_rows=tuple(_row_to_mapping(header_t, r) for r in rows[: max(0, max_rows)]),
    )


__all__ = [
    "AUTO",
    "CUSTOM",
    "normalize_csv_text",
    "normalize_delimited",
    "preview_delimited",
    "read_delimited",
]
