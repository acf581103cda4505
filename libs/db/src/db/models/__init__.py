"""Shared SQLAlchemy models registry for the workspace database.

Currently holds the ledger table written by ``statement_ingest``.
"""

from .ledger import Base, LedgerTransaction

__all__ = [
    "Base",
    "LedgerTransaction",
]
