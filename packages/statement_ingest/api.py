"""Public API for the ``statement_ingest`` package.

Mostly a stable import surface over the engine modules. The one addition is
:func:`ingest_path`, which reads a file from disk and dispatches to the
tabular or free-text path by extension. The engine functions themselves never
touch the filesystem.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .company_info import extract_company_info
from .delimited import normalize_csv_text, normalize_delimited, preview_delimited, read_delimited
from .logging_setup import get_logger
from .models import DelimitedResult, FieldMap, TextExtractionResult, validate_field_map
from .payment_methods import infer_payment_method
from .profiles import detect_profile, list_profiles
from .statement_text import extract_account_info, extract_from_text

_log = get_logger("statement_ingest.api")

DELIMITED_SUFFIXES = frozenset({".csv", ".tsv"})


def read_text_file(path: str | Path) -> str:
    """Read a UTF-8 file; a leading BOM is dropped."""

    return Path(path).read_text(encoding="utf-8-sig")


def is_delimited_path(path: str | Path) -> bool:
    """``.csv`` and ``.tsv`` files are exports; anything else is statement text."""

    return Path(path).suffix.lower() in DELIMITED_SUFFIXES


def ingest_path(
    path: str | Path,
    *,
    mode: str = "auto",
    custom_mapping: FieldMap | Mapping[str, Any] | None = None,
    date_layout: str | None = None,
    year: int | None = None,
    force_text: bool = False,
) -> DelimitedResult | TextExtractionResult:
    """Read ``path`` and run the matching engine path over its contents."""

    p = Path(path)
    text = read_text_file(p)
    if not force_text and is_delimited_path(p):
        _log.info("ingesting %s as delimited export", p.name)
        return normalize_csv_text(
            text,
            delimiter="\t" if p.suffix.lower() == ".tsv" else None,
            mode=mode,
            custom_mapping=custom_mapping,
            date_layout=date_layout,
        )
    _log.info("ingesting %s as statement text", p.name)
    return extract_from_text(text, year=year)


__all__ = [
    "detect_profile",
    "extract_account_info",
    "extract_company_info",
    "extract_from_text",
    "infer_payment_method",
    "ingest_path",
    "is_delimited_path",
    "list_profiles",
    "normalize_csv_text",
    "normalize_delimited",
    "preview_delimited",
    "read_delimited",
    "read_text_file",
    "validate_field_map",
]
