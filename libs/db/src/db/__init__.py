"""db: shared database library (SQLAlchemy).

Public exports
--------------
- ``Base`` and ``metadata`` for schema creation
- ORM models in ``db.models.ledger`` (re-exported for convenience)
- Engine/session helpers in ``db.client``
"""

from __future__ import annotations

from .models.ledger import Base, LedgerTransaction

metadata = Base.metadata


def init_schema(*, database_url: str | None = None) -> None:
    """Create any missing tables on the target database."""

    from .client import get_engine

    metadata.create_all(bind=get_engine(database_url=database_url))


__all__ = [
    "Base",
    "LedgerTransaction",
    "init_schema",
    "metadata",
]
