"""Bank statement ingestion and normalization.

Turns bank CSV exports and plain statement text into normalized transaction
candidates for review before they are booked. See :mod:`statement_ingest.api`
for the entry points.
"""

from .api import (
    extract_account_info,
    extract_company_info,
    extract_from_text,
    ingest_path,
    list_profiles,
    normalize_csv_text,
    normalize_delimited,
    preview_delimited,
    validate_field_map,
)
from .amounts import parse_amount
from .classify import classify
from .dates import parse_date
from .models import (
    DelimitedResult,
    FieldMap,
    TextExtractionResult,
    TransactionCandidate,
)
from .payment_methods import infer_payment_method

__all__ = [
    "DelimitedResult",
    "FieldMap",
    "TextExtractionResult",
    "TransactionCandidate",
    "classify",
    "extract_account_info",
    "extract_company_info",
    "extract_from_text",
    "infer_payment_method",
    "ingest_path",
    "list_profiles",
    "normalize_csv_text",
    "normalize_delimited",
    "parse_amount",
    "parse_date",
    "preview_delimited",
    "validate_field_map",
]
