from pathlib import Path

import statement_ingest
from statement_ingest.api import ingest_path, is_delimited_path, read_text_file
from statement_ingest.models import DelimitedResult, TextExtractionResult


def test_dispatch_by_extension(data_dir):
    csv_result = ingest_path(data_dir / "chase_checking.csv")
    assert isinstance(csv_result, DelimitedResult)
    assert csv_result.detected_profile == "chase"

    text_result = ingest_path(data_dir / "chase_statement.txt")
    assert isinstance(text_result, TextExtractionResult)
    assert text_result.summary.count == 6


def test_tsv_uses_tab_delimiter(tmp_path: Path):
    path = tmp_path / "export.TSV"
    path.write_text("Date\tDescription\tAmount\n01/02/2024\tACME, INC\t-5.00\n", encoding="utf-8")
    result = ingest_path(path)
    assert result.candidates[0].description == "ACME, INC"


def test_force_text_and_year(data_dir):
    result = ingest_path(data_dir / "chase_statement.txt", year=2025, force_text=True)
    (check,) = [c for c in result.candidates if c.check_number == "538"]
    assert check.date == "2025-01-19"


def test_read_text_file_drops_bom(tmp_path: Path):
    path = tmp_path / "bom.csv"
    path.write_bytes("\ufeffDate,Amount\n".encode())
    assert read_text_file(path) == "Date,Amount\n"
    assert is_delimited_path(path)
    assert not is_delimited_path(tmp_path / "statement.txt")


def test_package_exports():
    assert statement_ingest.parse_amount("(1.00)") < 0
    assert statement_ingest.parse_date("2024-01-02") == "2024-01-02"
    assert statement_ingest.list_profiles()[0][0] == "chase"
