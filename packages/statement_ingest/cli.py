# ruff: noqa: I001
"""CLI for the ``statement_ingest`` package.

This module exposes callable command handlers (``cmd_import_csv`` and
friends, each returning a process exit code) and a Typer-based console
interface over them. Environment variables (``DATABASE_URL``,
``STATEMENT_INGEST_LOG_LEVEL``, ``STATEMENT_INGEST_MAX_WORKERS``) are loaded
from a local ``.env`` using ``python-dotenv`` before any command runs.
Normalization logic lives in :mod:`statement_ingest.api`; this module only
reads files, prints results and optionally persists them.
"""

from __future__ import annotations

import csv
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from .amounts import format_amount
from .logging_setup import configure_logging
from .models import (
    DelimitedResult,
    FieldMap,
    Summary,
    TextExtractionResult,
    TransactionCandidate,
)

# Errors a handler reports as "Error: ..." with exit status 1.
_INPUT_ERRORS = (OSError, UnicodeDecodeError, csv.Error, ValueError)


# ---- Small module-level helpers used by CLI commands -------------------------


def _err(msg: str) -> None:
    print(f"Error: {msg}", file=sys.stderr)


def parse_map_options(pairs: Sequence[str]) -> dict[str, list[str]]:
    """Turn repeated ``field=Column`` options into a field map dict.

    Repeating a field adds a fallback column (first present wins).
    """

    out: dict[str, list[str]] = {}
    for pair in pairs:
        field, sep, column = pair.partition("=")
        if not sep or not field.strip() or not column.strip():
            raise ValueError(f"expected field=Column, got {pair!r}")
        out.setdefault(field.strip(), []).append(column.strip())
    return out


def _print_candidates(candidates: Sequence[TransactionCandidate]) -> None:
    for c in candidates:
        print(
            f"{c.date}\t{format_amount(c.amount)}\t{c.direction}\t{c.category}"
            f"\t{c.payment_method}\t{c.description}"
        )


def _print_summary(summary: Summary) -> None:
    print(
        f"# {summary.count} transactions: income {format_amount(summary.total_income)}, "
        f"expense {format_amount(summary.total_expense)}, net {format_amount(summary.net)}, "
        f"{summary.needs_review} need review"
    )
    for name, total in summary.by_category.items():
        print(f"#   {name}: {total.count} ({format_amount(total.total)})")


def _persist(
    candidates: Sequence[TransactionCandidate],
    *,
    owner_id: str,
    database_url: str | None,
    source_file: str,
    format_profile: str | None = None,
    account_number: str | None = None,
) -> str:
    """Save candidates in one transaction and return the import batch id."""

    # Local imports keep the DB stack off the path for read-only commands.
    from db.client import session_scope
    from .persistence import save_candidates

    with session_scope(database_url=database_url) as session:
        report = save_candidates(
            session,
            candidates,
            owner_id=owner_id,
            source_file=source_file,
            format_profile=format_profile,
            account_number=account_number,
        )
    return report.import_batch


def _persist_or_report(
    candidates: Sequence[TransactionCandidate],
    *,
    owner_id: str | None,
    database_url: str | None,
    source_file: str,
    format_profile: str | None = None,
    account_number: str | None = None,
) -> int:
    from sqlalchemy.exc import SQLAlchemyError

    if not owner_id:
        _err("--owner-id is required with --persist")
        return 1
    try:
        batch = _persist(
            candidates,
            owner_id=owner_id,
            database_url=database_url,
            source_file=source_file,
            format_profile=format_profile,
            account_number=account_number,
        )
    except (SQLAlchemyError, RuntimeError, ValueError) as e:
        _err(f"failed to persist transactions: {e}")
        return 1
    print(f"# saved {len(candidates)} transactions (batch {batch})")
    return 0


# ---- Command handlers --------------------------------------------------------


def cmd_formats() -> int:
    """Print ``<key>\\t<display name>`` for every known bank format."""

    from .profiles import list_profiles

    for key, name in list_profiles():
        print(f"{key}\t{name}")
    return 0


def cmd_preview(csv_path: str, *, rows: int = 5) -> int:
    """Print the header row and the first ``rows`` data rows of an export."""

    from .api import read_text_file
    from .delimited import preview_delimited

    try:
        preview = preview_delimited(read_text_file(csv_path), max_rows=rows)
    except _INPUT_ERRORS as e:
        _err(f"failed to read {csv_path}: {e}")
        return 1
    if not preview.success:
        _err(preview.error or "failed to preview file")
        return 1
    print("\t".join(preview.headers))
    for row in preview.sample_rows:
        print("\t".join(row.get(h, "") for h in preview.headers))
    return 0


def cmd_import_csv(
    csv_path: str,
    *,
    fmt: str = "auto",
    mappings: Sequence[str] = (),
    date_layout: str | None = None,
    interactive: bool = False,
    persist: bool = False,
    owner_id: str | None = None,
    database_url: str | None = None,
) -> int:
    """Normalize a bank CSV export and print one TSV line per candidate.

    Behavior
    --------
    - ``fmt`` is ``auto``, ``custom`` or a catalog key (see ``formats``).
    - ``mappings`` are ``field=Column`` pairs; with ``fmt="auto"`` they are
      the fallback when no bank format matches.
    - When the layout is unknown and ``interactive`` is set, the user maps
      columns in the terminal and the file is re-run in custom mode.
    - Row errors go to stderr; they do not change the exit status.
    """

    from .api import read_text_file
    from .delimited import normalize_csv_text

    custom: Mapping[str, list[str]] | FieldMap | None = None
    try:
        if mappings:
            custom = parse_map_options(mappings)
        text = read_text_file(csv_path)
        result = normalize_csv_text(
            text, mode=fmt, custom_mapping=custom, date_layout=date_layout
        )
        if result.success and result.requires_mapping and interactive:
            from . import term_ui

            custom = term_ui.prompt_field_map(result.headers)
            if custom is None:
                _err("column mapping cancelled")
                return 1
            result = normalize_csv_text(
                text, mode="custom", custom_mapping=custom, date_layout=date_layout
            )
    except _INPUT_ERRORS as e:
        _err(f"failed to import {csv_path}: {e}")
        return 1

    if not result.success:
        _err(result.error or "import failed")
        return 1

    return _report_delimited(
        result,
        csv_path=csv_path,
        persist=persist,
        owner_id=owner_id,
        database_url=database_url,
    )


def _report_delimited(
    result: DelimitedResult,
    *,
    csv_path: str,
    persist: bool,
    owner_id: str | None,
    database_url: str | None,
) -> int:
    if result.requires_mapping:
        print(
            f"# unrecognized format: {len(result.unmapped)} rows need a column mapping "
            f"(headers: {', '.join(result.headers)})"
        )
        return 0

    print(f"# format: {result.detected_profile_name} ({result.detected_profile})")
    _print_candidates(result.candidates)
    _print_summary(result.summary)
    for e in result.errors:
        print(f"row {e.row_index}: {e.reason}", file=sys.stderr)

    if persist:
        return _persist_or_report(
            result.candidates,
            owner_id=owner_id,
            database_url=database_url,
            source_file=csv_path,
            format_profile=result.detected_profile,
        )
    return 0


def cmd_import_statement(
    text_path: str,
    *,
    year: int | None = None,
    persist: bool = False,
    owner_id: str | None = None,
    database_url: str | None = None,
) -> int:
    """Extract transactions from statement text and print them."""

    from .api import read_text_file
    from .statement_text import extract_from_text

    try:
        result = extract_from_text(read_text_file(text_path), year=year)
    except _INPUT_ERRORS as e:
        _err(f"failed to read {text_path}: {e}")
        return 1
    if not result.success:
        _err(result.error or "extraction failed")
        return 1

    _print_statement_header(result)
    _print_candidates(result.candidates)
    _print_summary(result.summary)
    for d in result.dropped:
        print(f"line {d.line_index}: dropped ({d.reason}): {d.line}", file=sys.stderr)

    if persist:
        return _persist_or_report(
            result.candidates,
            owner_id=owner_id,
            database_url=database_url,
            source_file=text_path,
            account_number=result.account_info.account_number,
        )
    return 0


def _print_statement_header(result: TextExtractionResult) -> None:
    info = result.account_info
    if info.account_number:
        print(f"# account: {info.account_number}")
    if info.statement_period:
        print(f"# period: {info.statement_period.start} - {info.statement_period.end}")
    if info.beginning_balance is not None:
        print(f"# beginning balance: {format_amount(info.beginning_balance)}")
    if info.ending_balance is not None:
        print(f"# ending balance: {format_amount(info.ending_balance)}")
    company = result.company_info
    if company.name:
        where = ", ".join(p for p in (company.street, company.city, company.region) if p)
        print(f"# holder: {company.name}" + (f" ({where})" if where else ""))


def _summarize_file(path: str) -> tuple[bool, str]:
    from .api import ingest_path

    try:
        result = ingest_path(path)
    except _INPUT_ERRORS as e:
        return False, f"{path}\terror\t{e}"
    if not result.success:
        return False, f"{path}\terror\t{result.error}"
    s = result.summary
    if isinstance(result, DelimitedResult):
        kind = result.detected_profile or "unmapped"
        problems = len(result.errors) + len(result.unmapped)
    else:
        kind = "statement"
        problems = len(result.dropped)
    return True, (
        f"{path}\t{kind}\t{s.count}\t{format_amount(s.total_income)}"
        f"\t{format_amount(s.total_expense)}\t{s.needs_review}\t{problems}"
    )


def cmd_import_many(paths: Sequence[str], *, concurrency: int | None = None) -> int:
    """Normalize many files concurrently; print one summary line per file.

    Columns: path, format, count, income, expense, needs review, problems.
    Returns 1 when any file failed outright.
    """

    from .pmap import default_concurrency, p_map

    if not paths:
        _err("no input files")
        return 1
    workers = concurrency if concurrency and concurrency > 0 else default_concurrency(len(paths))
    outcomes = p_map(list(paths), _summarize_file, concurrency=workers)
    failed = False
    for ok, line in outcomes:
        print(line, file=sys.stdout if ok else sys.stderr)
        failed = failed or not ok
    return 1 if failed else 0


def cmd_init_db(*, database_url: str | None = None) -> int:
    """Create the ledger tables on the target database."""

    from sqlalchemy.exc import SQLAlchemyError

    from db import init_schema

    try:
        init_schema(database_url=database_url)
    except (SQLAlchemyError, RuntimeError) as e:
        _err(f"failed to initialize database: {e}")
        return 1
    print("# database schema ready")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Normalize bank CSV exports and statement text into reviewable "
        "transactions. Loads a local .env before running."
    ),
)

CsvPathOpt = Annotated[
    Path, typer.Option("--csv-path", help="Path to a bank CSV export.", dir_okay=False)
]
TextPathOpt = Annotated[
    Path, typer.Option("--text-path", help="Path to extracted statement text.", dir_okay=False)
]
PersistOpt = Annotated[bool, typer.Option("--persist", help="Save candidates to the database.")]
OwnerOpt = Annotated[
    str | None, typer.Option("--owner-id", help="Ledger owner id (required with --persist).")
]
DatabaseUrlOpt = Annotated[
    str | None, typer.Option("--database-url", help="Override DATABASE_URL (falls back to env var).")
]


@app.command("formats")
def formats_cmd() -> None:
    """List the bank formats recognized automatically."""

    raise typer.Exit(cmd_formats())


@app.command("preview")
def preview_cmd(
    csv_path: CsvPathOpt,
    rows: Annotated[int, typer.Option("--rows", min=0, help="Sample rows to show.")] = 5,
) -> None:
    """Show headers and a few rows, e.g. before building a custom mapping."""

    raise typer.Exit(cmd_preview(str(csv_path), rows=rows))


@app.command("import-csv")
def import_csv_cmd(
    csv_path: CsvPathOpt,
    fmt: Annotated[
        str, typer.Option("--format", help="auto, custom or a format key from `formats`.")
    ] = "auto",
    mapping: Annotated[
        list[str] | None,
        typer.Option("--map", help="Column mapping as field=Column; repeatable."),
    ] = None,
    date_layout: Annotated[
        str | None, typer.Option("--date-layout", help="strptime layout tried first, e.g. %d/%m/%Y.")
    ] = None,
    interactive: Annotated[
        bool, typer.Option("--interactive", help="Prompt for columns when the format is unknown.")
    ] = False,
    persist: PersistOpt = False,
    owner_id: OwnerOpt = None,
    database_url: DatabaseUrlOpt = None,
) -> None:
    """Normalize a bank CSV export."""

    raise typer.Exit(
        cmd_import_csv(
            str(csv_path),
            fmt=fmt,
            mappings=mapping or (),
            date_layout=date_layout,
            interactive=interactive,
            persist=persist,
            owner_id=owner_id,
            database_url=database_url,
        )
    )


@app.command("import-statement")
def import_statement_cmd(
    text_path: TextPathOpt,
    year: Annotated[
        int | None, typer.Option("--year", help="Year for MM/DD dates (default: statement period).")
    ] = None,
    persist: PersistOpt = False,
    owner_id: OwnerOpt = None,
    database_url: DatabaseUrlOpt = None,
) -> None:
    """Extract transactions from bank statement text."""

    raise typer.Exit(
        cmd_import_statement(
            str(text_path),
            year=year,
            persist=persist,
            owner_id=owner_id,
            database_url=database_url,
        )
    )


@app.command("import-many")
def import_many_cmd(
    paths: Annotated[list[Path], typer.Argument(dir_okay=False, help="CSV/TSV exports or statement text files.")],
    concurrency: Annotated[
        int | None,
        typer.Option("--concurrency", help="Files processed at once (default: STATEMENT_INGEST_MAX_WORKERS)."),
    ] = None,
) -> None:
    """Summarize many files at once, one line per file in input order."""

    raise typer.Exit(cmd_import_many([str(p) for p in paths], concurrency=concurrency))


@app.command("init-db")
def init_db_cmd(database_url: DatabaseUrlOpt = None) -> None:
    """Create the ledger tables."""

    raise typer.Exit(cmd_init_db(database_url=database_url))


@app.callback()
def _root() -> None:
    """Load ``.env`` from the working directory and set up logging."""

    # override=False keeps variables already set in the environment
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    app()
