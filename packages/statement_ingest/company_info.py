"""Locate the account holder's business name and mailing address.

Statements print the holder block in the first few lines: a name, a street
line and a "City, ST 12345" line. The scan looks at the first
:data:`HEADER_SCAN_LINES` non-blank lines, skips bank boilerplate, and takes
the first line that reads like a business name (an entity suffix such as LLC
or INC, or a mostly upper-case line of plausible length). Up to three lines
after it are checked for the street and city lines.
"""

from __future__ import annotations

import re

from .classify import CONFIDENCE_HIGH
from .models import CompanyInfo

HEADER_SCAN_LINES = 20
ADDRESS_LOOKAHEAD = 3
NAME_MIN_LEN = 10
NAME_MAX_LEN = 50
UPPERCASE_RATIO = 0.8
CONFIDENCE_NONE = 0.1

SKIP_KEYWORDS: tuple[str, ...] = ("CHASE", "STATEMENT", "ACCOUNT", "PERIOD", "BALANCE", "PAGE")

_ENTITY_RE = re.compile(
    r"\b(?:INC|LLC|LLP|PLLC|LP|CORP|CORPORATION|COMPANY|CO|LTD|LIMITED|PARTNERSHIP|"
    r"ENTERPRISES?|GROUP|HOLDINGS|SERVICES|SOLUTIONS|CONSTRUCTION|CONTRACTING)\b\.?",
)
_STREET_RE = re.compile(
    r"^\d+\s+[A-Za-z0-9 .'#-]+?\s(?:Street|St|Avenue|Ave|Road|Rd|Drive|Dr|Lane|Ln|"
    r"Boulevard|Blvd|Circle|Cir|Court|Ct|Way|Place|Pl|Parkway|Pkwy|Highway|Hwy|Terrace|Ter|Trail|Trl)"
    r"\b\.?(?:,?\s+(?:Suite|Ste|Apt|Unit|#)\s*[A-Za-z0-9-]+)?$",
    re.IGNORECASE,
)
_CITY_RE = re.compile(
    r"^(?P<city>[A-Za-z][A-Za-z .'-]*?),?\s+(?P<region>[A-Z]{2})\s+(?P<postal>\d{5}(?:-\d{4})?)$"
)


def _is_boilerplate(line: str) -> bool:
    upper = line.upper()
    return any(k in upper for k in SKIP_KEYWORDS)


def _looks_like_business_name(line: str) -> bool:
    if _is_boilerplate(line) or len(line) > 80:
        return False
    if _ENTITY_RE.search(line.upper()):
        return True
    if not (NAME_MIN_LEN <= len(line) <= NAME_MAX_LEN) or any(ch.isdigit() for ch in line):
        return False
    letters = [ch for ch in line if ch.isalpha()]
    if not letters:
        return False
    upper = sum(1 for ch in letters if ch.isupper())
    return upper / len(letters) >= UPPERCASE_RATIO


def _scan_address(lines: list[str]) -> tuple[str | None, re.Match[str] | None]:
    street: str | None = None
    city: re.Match[str] | None = None
    for line in lines:
        if street is None and _STREET_RE.match(line):
            street = line
            continue
        if city is None:
            city = _CITY_RE.match(line)
    return street, city


def extract_company_info(text: str | None) -> CompanyInfo:
    """Best-effort holder name and address; fields not found are ``None``."""

    lines = [" ".join(ln.split()) for ln in (text or "").splitlines()]
    header = [ln for ln in lines if ln][:HEADER_SCAN_LINES]

    for i, line in enumerate(header):
        if not _looks_like_business_name(line):
            continue
        street, city = _scan_address(header[i + 1 : i + 1 + ADDRESS_LOOKAHEAD])
        return CompanyInfo(
            name=line.rstrip(","),
            street=street,
            city=city.group("city").strip() if city else None,
            region=city.group("region") if city else None,
            postal_code=city.group("postal") if city else None,
            confidence=CONFIDENCE_HIGH,
        )

    street, city = _scan_address([ln for ln in header if not _is_boilerplate(ln)])
    return CompanyInfo(
        street=street,
        city=city.group("city").strip() if city else None,
        region=city.group("region") if city else None,
        postal_code=city.group("postal") if city else None,
        confidence=CONFIDENCE_NONE,
    )


__all__ = ["HEADER_SCAN_LINES", "SKIP_KEYWORDS", "extract_company_info"]
