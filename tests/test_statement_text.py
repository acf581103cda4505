from decimal import Decimal
import textwrap

from statement_ingest.models import SOURCE_STATEMENT_TEXT, Direction, PaymentMethod
from statement_ingest.statement_text import (
    extract_account_info,
    extract_from_text,
    resolve_statement_year,
)


def test_deposit_line():
    result = extract_from_text("01/08Remote Online Deposit 1$3,640.00", year=2024)

    (c,) = result.candidates
    assert c.date == "2024-01-08"
    assert c.amount == Decimal("3640.00")
    assert c.direction is Direction.INCOME
    assert c.category == "Business Income"
    assert c.payment_method is PaymentMethod.CHECK_DEPOSIT
    assert c.source == SOURCE_STATEMENT_TEXT
    assert c.confidence == 0.8
    assert not c.needs_review


def test_electronic_payment_merges_lookahead_amount():
    text = textwrap.dedent(
        """\
        01/11Orig CO Name:Home Depot
        Desc Date:011124 CO Entry Descr:Payment
        $85.50
        """
    )
    result = extract_from_text(text, year=2024)

    (c,) = result.candidates
    assert c.description == "Electronic Payment: Home Depot"
    assert c.amount == Decimal("-85.50")
    assert c.direction is Direction.EXPENSE
    assert c.category == "Office Expenses"
    assert c.payment_method is PaymentMethod.BANK_TRANSFER
    assert not c.needs_review
    assert result.dropped == ()


def test_electronic_payment_amount_on_same_line():
    text = (
        "01/11Orig CO Name:Home Depot Orig ID:9000000001 Desc Date:011124 $389.20\n"
        "01/16Card Purchase 01/15 Joes Diner Card 1819$22.15\n"
    )
    result = extract_from_text(text, year=2024)

    assert result.dropped == ()
    electronic, card = result.candidates
    assert electronic.description == "Electronic Payment: Home Depot"
    assert electronic.amount == Decimal("-389.20")
    assert electronic.category == "Office Expenses"
    assert card.amount == Decimal("-22.15")


def test_electronic_payment_amount_right_after_originator():
    result = extract_from_text("01/11Orig CO Name:Westar Energy $120.00", year=2024)

    (c,) = result.candidates
    assert c.description == "Electronic Payment: Westar Energy"
    assert c.amount == Decimal("-120.00")
    assert c.category == "Utilities"


def test_mobile_deposit_is_income():
    result = extract_from_text("01/08 Mobile Deposit 1 $500.00", year=2024)

    (c,) = result.candidates
    assert c.description == "Mobile Deposit"
    assert c.direction is Direction.INCOME
    assert c.category == "Business Income"
    assert not c.needs_review


def test_electronic_payment_without_amount_is_reported():
    text = "01/15Orig CO Name:Mystery Vendor\nnothing here\nor here\n$10.00\n"
    result = extract_from_text(text, year=2024)

    assert result.candidates == ()
    (d,) = result.dropped
    assert d.line_index == 0
    assert d.line == "01/15Orig CO Name:Mystery Vendor"
    assert "no amount" in d.reason


def test_statement_fixture(data_dir):
    text = (data_dir / "chase_statement.txt").read_text(encoding="utf-8")
    result = extract_from_text(text)

    assert result.success
    assert result.statement_year == 2024

    info = result.account_info
    assert info.account_number == "000000123456789"
    assert info.statement_period.start == "December 30, 2023"
    assert info.statement_period.start_date == "2023-12-30"
    assert info.statement_period.end_date == "2024-01-31"
    assert info.beginning_balance == Decimal("5000.00")
    assert info.ending_balance == Decimal("7350.70")

    company = result.company_info
    assert company.name == "ACME PLUMBING SERVICES LLC"
    assert company.street == "1234 Main Street"
    assert (company.city, company.region, company.postal_code) == ("Plantation", "FL", "33324")

    rows = [(c.date, c.amount, c.category) for c in result.candidates]
    assert rows == [
        ("2023-12-31", Decimal("-40.00"), "Car and Truck Expenses"),
        ("2024-01-02", Decimal("-38.80"), "Car and Truck Expenses"),
        ("2024-01-08", Decimal("3640.00"), "Business Income"),
        ("2024-01-11", Decimal("-85.50"), "Office Expenses"),
        ("2024-01-16", Decimal("-22.15"), "Uncategorized"),
        ("2024-01-19", Decimal("-2500.00"), "Uncategorized"),
    ]

    chevron = result.candidates[1]
    assert chevron.description == "Card Purchase Chevron Plantation FL"
    assert chevron.payee == "Chevron Plantation"
    assert chevron.payment_method is PaymentMethod.DEBIT_CARD

    diner = result.candidates[4]
    assert diner.description == "Card Purchase Joes Diner"
    assert diner.confidence == 0.3
    assert diner.needs_review

    check = result.candidates[5]
    assert check.description == "Check #538"
    assert check.check_number == "538"
    assert check.payment_method is PaymentMethod.CHECK

    assert [d.line for d in result.dropped] == ["01/15Orig CO Name:Mystery Vendor"]

    s = result.summary
    assert s.count == 6
    assert s.total_income == Decimal("3640.00")
    assert s.total_expense == Decimal("2686.45")
    assert s.net == Decimal("953.55")
    assert s.needs_review == 2


def test_explicit_year_overrides_period():
    text = "Statement period 01/01/2023 - 01/31/2023\n01/08Mobile Deposit 2$100.00\n"
    assert extract_from_text(text).candidates[0].date == "2023-01-08"
    assert extract_from_text(text, year=2021).candidates[0].date == "2021-01-08"


def test_check_line_forms():
    text = textwrap.dedent(
        """\
        01/19 CHECK #1001 $250.00
        1002 * ^ 01/20 75.00
        """
    )
    result = extract_from_text(text, year=2024)
    assert [(c.check_number, c.date, c.amount) for c in result.candidates] == [
        ("1001", "2024-01-19", Decimal("-250.00")),
        ("1002", "2024-01-20", Decimal("-75.00")),
    ]


def test_impossible_dates_and_amounts_are_dropped():
    text = textwrap.dedent(
        """\
        13/08Remote Online Deposit 1$10.00
        02/30Remote Online Deposit 2$10.00
        01/08Remote Online Deposit 3$2,000,000.00
        01/09Remote Online Deposit 4$0.00
        01/10Remote Online Deposit 5$1,000,000.00
        """
    )
    result = extract_from_text(text, year=2024)

    assert [c.amount for c in result.candidates] == [Decimal("1000000.00")]
    assert [d.line_index for d in result.dropped] == [0, 1, 2, 3]
    assert result.dropped[0].reason.startswith("invalid date")
    assert result.dropped[2].reason.startswith("amount out of range")


def test_unrecognized_lines_are_ignored():
    result = extract_from_text("Thank you for banking with us\nPage 1 of 3\n", year=2024)
    assert result.success
    assert result.candidates == ()
    assert result.dropped == ()
    assert result.summary.count == 0


def test_empty_text_is_a_failure():
    for text in ("", "   \n  ", None):
        result = extract_from_text(text)
        assert not result.success
        assert result.error == "Statement text is empty"


def test_account_info_numeric_period_and_missing_fields():
    info = extract_account_info("Account No. 1234-5678\nStatement Period: 02/01/24 to 02/29/24\n")
    assert info.account_number == "1234-5678"
    assert info.statement_period.start_date == "2024-02-01"
    assert info.statement_period.end_date == "2024-02-29"
    assert info.beginning_balance is None
    assert info.ending_balance is None

    empty = extract_account_info("")
    assert empty.account_number is None
    assert empty.statement_period is None


def test_resolve_statement_year():
    info = extract_account_info("December 1, 2022 through December 31, 2022")
    assert resolve_statement_year(info) == 2022
    assert resolve_statement_year(info, 2019) == 2019
