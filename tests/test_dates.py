from datetime import date, timedelta

import pytest

from statement_ingest.dates import DEFAULT_DATE_LAYOUTS, parse_date


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("01/15/2024", "2024-01-15"),
        ("1/5/2024", "2024-01-05"),
        ("2024-01-15", "2024-01-15"),
        ("01-15-2024", "2024-01-15"),
        ("01/15/24", "2024-01-15"),
        ("  01/15/2024  ", "2024-01-15"),
        ("Jan 5, 2024", "2024-01-05"),
        ("2024-01-15T10:30:00", "2024-01-15"),
    ],
)
def test_parse_date_defaults_and_fallback(raw, expected):
    assert parse_date(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", None, "not a date", "pending", "13/45/2024", "02/30/2024"])
def test_parse_date_unparseable_is_none(raw):
    assert parse_date(raw) is None


def test_candidate_layouts_take_precedence():
    # Day-first layout wins over the month-first default for an ambiguous value.
    assert parse_date("03/04/2024") == "2024-03-04"
    assert parse_date("03/04/2024", ["%d/%m/%Y"]) == "2024-04-03"


def test_layout_then_default_fallback():
    assert parse_date("2024-02-29", ["%d.%m.%Y"]) == "2024-02-29"


def test_reformatting_is_idempotent():
    day = date(2023, 11, 30)
    for _ in range(40):
        for layout in DEFAULT_DATE_LAYOUTS:
            iso = parse_date(day.strftime(layout))
            assert iso == day.isoformat()
            assert parse_date(iso) == iso
        day += timedelta(days=17)


@pytest.mark.parametrize("raw", ["7", "March 2024", "Jan 5", "2024"])
def test_partial_dates_are_rejected(raw):
    # Nothing may be filled in from today's date.
    assert parse_date(raw) is None
