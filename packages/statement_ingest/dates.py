"""Calendar date parsing to ISO ``YYYY-MM-DD``.

Explicit layouts are tried first (the caller's, then the defaults). Only when
none match does the parser fall back to :func:`dateutil.parser.parse`, which
accepts most human-written dates ("Jan 5, 2024", ISO timestamps) as long as
they name a year, a month and a day. Nothing here raises on bad text: an
unparseable or partial value is ``None``.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from dateutil import parser as dateutil_parser

from .logging_setup import get_logger

_log = get_logger("statement_ingest.dates")

DEFAULT_DATE_LAYOUTS: tuple[str, ...] = (
    "%m/%d/%Y",
    "%Y-%m-%d",
    "%m-%d-%Y",
    "%m/%d/%y",
)

_FILL_A = datetime(2000, 1, 1)
_FILL_B = datetime(2001, 2, 2)


def parse_date(text: str | None, candidate_layouts: Sequence[str] = ()) -> str | None:
    """Return ``text`` as an ISO calendar date, or ``None``.

    ``candidate_layouts`` are ``strptime`` formats tried, in order, before
    :data:`DEFAULT_DATE_LAYOUTS`. Any time component is dropped.
    """

    if text is None:
        return None
    s = " ".join(str(text).split())
    if not s:
        return None

    for layout in (*candidate_layouts, *DEFAULT_DATE_LAYOUTS):
        try:
            return datetime.strptime(s, layout).date().isoformat()
        except ValueError:
            continue

    # The generic parser fills missing fields from a default date. Parsing
    # against two unrelated defaults exposes any field the text left out.
    if not any(ch.isdigit() for ch in s):
        return None
    try:
        parsed = dateutil_parser.parse(s, default=_FILL_A)
        if parsed.date() != dateutil_parser.parse(s, default=_FILL_B).date():
            _log.debug("date %r is missing a year, month or day", s)
            return None
    except (ValueError, OverflowError):
        return None
    _log.debug("date %r parsed by generic fallback", s)
    return parsed.date().isoformat()


__all__ = ["DEFAULT_DATE_LAYOUTS", "parse_date"]
