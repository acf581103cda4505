from __future__ import annotations

import shutil
from pathlib import Path

import pytest
from db.client import dispose_engines, session_scope
from typer.testing import CliRunner

from statement_ingest import cli
from statement_ingest.models import FieldMap
from statement_ingest.persistence import query_transactions

runner = CliRunner()


@pytest.fixture
def chase_csv(data_dir: Path, tmp_path: Path) -> Path:
    return Path(shutil.copy(data_dir / "chase_checking.csv", tmp_path / "chase.csv"))


@pytest.fixture
def db_url(tmp_path: Path):
    yield f"sqlite+pysqlite:///{tmp_path / 'cli.db'}"
    dispose_engines()


def test_formats_lists_catalog():
    result = runner.invoke(cli.app, ["formats"])
    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert lines[0] == "chase\tChase Bank"
    assert len(lines) == 9


def test_preview(data_dir):
    result = runner.invoke(cli.app, ["preview", "--csv-path", str(data_dir / "unknown_layout.csv"), "--rows", "1"])
    assert result.exit_code == 0
    assert result.stdout.splitlines() == ["When\tWhat\tHow Much", "2024-03-01\tCorner Coffee\t-4.50"]


def test_import_csv_prints_candidates_and_summary(chase_csv):
    result = runner.invoke(cli.app, ["import-csv", "--csv-path", str(chase_csv)])
    assert result.exit_code == 0
    out = result.stdout
    assert "# format: Chase Bank (chase)" in out
    assert "2024-01-02\t-125.40\texpense\tOffice Expenses\tdebit_card\tHOME DEPOT #6310 PLANTATION FL" in out
    assert "# 4 transactions: income 3640.00, expense 2935.40, net 704.60, 2 need review" in out
    assert "row 4: Invalid date" in result.output


def test_import_csv_unknown_layout_reports_mapping_needed(data_dir):
    result = runner.invoke(cli.app, ["import-csv", "--csv-path", str(data_dir / "unknown_layout.csv")])
    assert result.exit_code == 0
    assert "# unrecognized format: 2 rows need a column mapping" in result.stdout


def test_import_csv_with_map_options(data_dir):
    args = [
        "import-csv",
        "--csv-path",
        str(data_dir / "unknown_layout.csv"),
        "--map",
        "date=When",
        "--map",
        "description=What",
        "--map",
        "amount=How Much",
    ]
    result = runner.invoke(cli.app, args)
    assert result.exit_code == 0
    assert "# format: Custom Mapping (custom)" in result.stdout
    assert "2024-03-02\t250.00\tincome\tBusiness Income\tother\tClient payment" in result.stdout


def test_import_csv_interactive_mapping(data_dir, monkeypatch):
    seen = {}

    def fake_prompt(headers):
        seen["headers"] = headers
        return FieldMap(date="When", description="What", amount="How Much")

    monkeypatch.setattr("statement_ingest.term_ui.prompt_field_map", fake_prompt)
    result = runner.invoke(
        cli.app, ["import-csv", "--csv-path", str(data_dir / "unknown_layout.csv"), "--interactive"]
    )
    assert result.exit_code == 0
    assert seen["headers"] == ("When", "What", "How Much")
    assert "# 2 transactions" in result.stdout


def test_import_csv_interactive_cancel(data_dir, monkeypatch):
    monkeypatch.setattr("statement_ingest.term_ui.prompt_field_map", lambda headers: None)
    result = runner.invoke(
        cli.app, ["import-csv", "--csv-path", str(data_dir / "unknown_layout.csv"), "--interactive"]
    )
    assert result.exit_code == 1
    assert "column mapping cancelled" in result.output


@pytest.mark.parametrize(
    "extra",
    [
        ["--format", "bank_of_nowhere"],
        ["--map", "date"],
        ["--format", "custom"],
    ],
)
def test_import_csv_bad_invocations_exit_1(chase_csv, extra):
    result = runner.invoke(cli.app, ["import-csv", "--csv-path", str(chase_csv), *extra])
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_missing_file_exits_1(tmp_path):
    result = runner.invoke(cli.app, ["import-csv", "--csv-path", str(tmp_path / "nope.csv")])
    assert result.exit_code == 1
    assert "failed to import" in result.output


def test_import_and_persist(chase_csv, db_url):
    assert runner.invoke(cli.app, ["init-db", "--database-url", db_url]).exit_code == 0

    args = ["import-csv", "--csv-path", str(chase_csv), "--persist", "--owner-id", "acme", "--database-url", db_url]
    result = runner.invoke(cli.app, args)
    assert result.exit_code == 0
    assert "# saved 4 transactions (batch " in result.stdout

    with session_scope(database_url=db_url) as s:
        rows = query_transactions(s, "acme")
        assert len(rows) == 4
        assert {r.format_profile for r in rows} == {"chase"}
        assert len(query_transactions(s, "acme", needs_review=True)) == 2


def test_persist_requires_owner(chase_csv, db_url):
    result = runner.invoke(cli.app, ["import-csv", "--csv-path", str(chase_csv), "--persist", "--database-url", db_url])
    assert result.exit_code == 1
    assert "--owner-id is required" in result.output


def test_persist_uses_database_url_from_env(chase_csv, db_url, monkeypatch):
    monkeypatch.setenv("DATABASE_URL", db_url)
    assert runner.invoke(cli.app, ["init-db"]).exit_code == 0
    result = runner.invoke(cli.app, ["import-csv", "--csv-path", str(chase_csv), "--persist", "--owner-id", "acme"])
    assert result.exit_code == 0
    with session_scope() as s:
        assert len(query_transactions(s, "acme")) == 4


def test_init_db_without_url_fails():
    result = runner.invoke(cli.app, ["init-db"])
    assert result.exit_code == 1
    assert "DATABASE_URL is not set" in result.output


def test_import_statement(data_dir):
    result = runner.invoke(cli.app, ["import-statement", "--text-path", str(data_dir / "chase_statement.txt")])
    assert result.exit_code == 0
    out = result.stdout
    assert "# account: 000000123456789" in out
    assert "# period: December 30, 2023 - January 31, 2024" in out
    assert "# holder: ACME PLUMBING SERVICES LLC (1234 Main Street, Plantation, FL)" in out
    assert "2024-01-19\t-2500.00\texpense\tUncategorized\tcheck\tCheck #538" in out
    assert "# 6 transactions: income 3640.00, expense 2686.45, net 953.55, 2 need review" in out
    assert "dropped (no amount for electronic payment)" in result.output


def test_import_statement_year_option(data_dir):
    args = ["import-statement", "--text-path", str(data_dir / "chase_statement.txt"), "--year", "2030"]
    result = runner.invoke(cli.app, args)
    assert result.exit_code == 0
    assert "2030-01-08\t3640.00" in result.stdout


def test_import_many(data_dir, tmp_path):
    paths = [
        str(data_dir / "chase_checking.csv"),
        str(data_dir / "unknown_layout.csv"),
        str(data_dir / "chase_statement.txt"),
    ]
    result = runner.invoke(cli.app, ["import-many", *paths, "--concurrency", "2"])
    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert [line.split("\t")[:3] for line in lines] == [
        [paths[0], "chase", "4"],
        [paths[1], "unmapped", "0"],
        [paths[2], "statement", "6"],
    ]
    assert lines[0].split("\t")[-1] == "1"
    assert lines[1].split("\t")[-1] == "2"


def test_import_many_reports_failures(data_dir, tmp_path):
    empty = tmp_path / "empty.csv"
    empty.write_text("", encoding="utf-8")
    result = runner.invoke(cli.app, ["import-many", str(data_dir / "chase_checking.csv"), str(empty)])
    assert result.exit_code == 1
    assert f"{empty}\terror\tFile is empty" in result.output


def test_import_many_keeps_going_past_unreadable_path(data_dir, tmp_path, capsys):
    good = str(data_dir / "chase_checking.csv")
    folder = tmp_path / "exports"
    folder.mkdir()

    assert cli.cmd_import_many([good, str(folder)], concurrency=1) == 1

    captured = capsys.readouterr()
    assert captured.out.startswith(f"{good}\tchase\t4\t")
    assert f"{folder}\terror\t" in captured.err


def test_import_many_rejects_directory_argument(tmp_path):
    result = runner.invoke(cli.app, ["import-many", str(tmp_path)])
    assert result.exit_code == 2


def test_parse_map_options():
    assert cli.parse_map_options(["date=Posted", "date=Date", " amount = Amt "]) == {
        "date": ["Posted", "Date"],
        "amount": ["Amt"],
    }
    with pytest.raises(ValueError):
        cli.parse_map_options(["amount="])
