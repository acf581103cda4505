"""DB helpers for tests: bootstrap a temporary SQLite ledger database."""

from __future__ import annotations

from pathlib import Path

from db import metadata
from db.client import get_engine, session_scope
from db.models.ledger import LedgerTransaction
from sqlalchemy import text as sql_text


def bootstrap_sqlite_db(db_file: Path) -> str:
    """Create a SQLite database file, initialize schema, and return the URL.

    Using a file-backed SQLite DB ensures multiple SQLAlchemy connections share
    the same state (in-memory DBs are per-connection by default).
    """

    url = f"sqlite+pysqlite:///{db_file}"
    db_file.parent.mkdir(parents=True, exist_ok=True)
    metadata.create_all(bind=get_engine(database_url=url))
    _assert_ledger_schema_in_sync(url)
    return url


def _assert_ledger_schema_in_sync(database_url: str) -> None:
    """ORM column set matches the created SQLite table column set."""

    expected = {c.name for c in LedgerTransaction.__table__.columns}
    with session_scope(database_url=database_url) as session:
        rows = session.execute(sql_text("PRAGMA table_info('ledger_transactions')")).fetchall()
        got = {row[1] for row in rows}  # (cid, name, type, notnull, dflt_value, pk)
    assert got == expected, f"ledger_transactions schema drift: {sorted(got ^ expected)}"
