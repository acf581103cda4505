"""Pytest configuration for test isolation.

The CLI loads ``.env`` from the working directory, reads a few environment
variables (``DATABASE_URL``, ``STATEMENT_INGEST_MAX_WORKERS``) and attaches a
stderr handler to the ``statement_ingest`` logger. A developer's shell, a stray
``.env`` in the checkout or a handler left behind by an earlier CLI test would
leak into later tests, so every test runs from its own temporary directory
with those variables cleared and the package logger put back afterwards.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from statement_ingest import logging_setup

DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run each test from ``tmp_path`` with ingestion/database env vars unset."""

    for var in ("DATABASE_URL", "STATEMENT_INGEST_MAX_WORKERS", "STATEMENT_INGEST_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _restore_package_logger(monkeypatch: pytest.MonkeyPatch):
    """Undo any ``configure_logging`` call a test triggers."""

    logger = logging.getLogger("statement_ingest")
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    monkeypatch.setattr(logging_setup, "_CONFIGURED", False)
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def data_dir() -> Path:
    return DATA_DIR
