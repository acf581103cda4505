# ruff: noqa: I001
"""Persistence integration for statement_ingest.

Functions here write accepted transaction candidates to the shared database
owned by ``libs/db`` and support the review loop that follows. They take an
open SQLAlchemy ``Session`` (see ``db.client.session_scope``) and never commit
on their own.

Scope:
- Insert candidates into ``ledger_transactions`` under one import batch id.
- Query an owner's rows by date range, direction, category and review state.
- Mark rows reviewed (optionally recategorizing) and soft-delete rows.

Duplicate detection is intentionally absent: importing the same export twice
stores two batches.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import ROUND_HALF_UP, Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from db.models.ledger import LedgerTransaction
from .logging_setup import get_logger
from .models import TransactionCandidate

_log = get_logger("statement_ingest.persistence")


@dataclass(frozen=True, slots=True)
class SaveReport:
    import_batch: str
    inserted: int


def _confidence(value: float) -> Decimal:
    return Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _none_if_blank(v: str) -> str | None:
    return v or None


def save_candidates(
    session: Session,
    candidates: Iterable[TransactionCandidate],
    *,
    owner_id: str,
    source_file: str | None = None,
    format_profile: str | None = None,
    account_number: str | None = None,
    import_batch: str | None = None,
) -> SaveReport:
    """Insert ``candidates`` as new ledger rows for ``owner_id`` sharing one batch id."""

    if not owner_id or not owner_id.strip():
        raise ValueError("owner_id is required")
    batch = import_batch or str(uuid.uuid4())
    rows = [
        LedgerTransaction(
            owner_id=owner_id,
            import_batch=batch,
            source=c.source,
            source_file=source_file,
            source_row_index=c.source_row_index,
            format_profile=format_profile,
            account_number=account_number,
            date=date.fromisoformat(c.date),
            description=c.description,
            payee=_none_if_blank(c.payee),
            amount=c.amount,
            direction=str(c.direction),
            category=c.category,
            payment_method=str(c.payment_method),
            check_number=_none_if_blank(c.check_number),
            reference_number=_none_if_blank(c.reference_number),
            original_type=_none_if_blank(c.original_type),
            confidence=_confidence(c.confidence),
            needs_review=c.needs_review,
        )
        for c in candidates
    ]
    session.add_all(rows)
    session.flush()
    _log.info("saved %d transactions in batch %s", len(rows), batch)
    return SaveReport(batch, len(rows))


def query_transactions(
    session: Session,
    owner_id: str,
    *,
    direction: str | None = None,
    start: date | None = None,
    end: date | None = None,
    category: str | None = None,
    needs_review: bool | None = None,
    import_batch: str | None = None,
    include_deleted: bool = False,
    limit: int | None = None,
    offset: int = 0,
) -> list[LedgerTransaction]:
    """An owner's ledger rows ordered by date then id; other filters are optional."""

    stmt = select(LedgerTransaction).where(LedgerTransaction.owner_id == owner_id)
    if not include_deleted:
        stmt = stmt.where(LedgerTransaction.is_deleted.is_(False))
    if start is not None:
        stmt = stmt.where(LedgerTransaction.date >= start)
    if end is not None:
        stmt = stmt.where(LedgerTransaction.date <= end)
    if direction is not None:
        stmt = stmt.where(LedgerTransaction.direction == direction)
    if category is not None:
        stmt = stmt.where(LedgerTransaction.category == category)
    if needs_review is not None:
        stmt = stmt.where(LedgerTransaction.needs_review.is_(needs_review))
    if import_batch is not None:
        stmt = stmt.where(LedgerTransaction.import_batch == import_batch)
    stmt = stmt.order_by(LedgerTransaction.date, LedgerTransaction.id).offset(offset)
    if limit is not None:
        stmt = stmt.limit(limit)
    return list(session.scalars(stmt))


def mark_reviewed(
    session: Session,
    ids: Sequence[int],
    *,
    category: str | None = None,
) -> int:
    """Clear ``needs_review`` on ``ids``; when ``category`` is given, set it too.

    Returns the number of rows updated.
    """

    if not ids:
        return 0
    values: dict[str, object] = {"needs_review": False, "reviewed_at": datetime.now(UTC)}
    if category is not None:
        if not category.strip():
            raise ValueError("category must be non-empty")
        values["category"] = category.strip()
    result = session.execute(
        update(LedgerTransaction)
        .where(LedgerTransaction.id.in_(list(ids)), LedgerTransaction.is_deleted.is_(False))
        .values(**values)
    )
    return int(result.rowcount or 0)


def soft_delete(session: Session, ids: Sequence[int]) -> int:
    """Flag rows as deleted; they drop out of default queries."""

    if not ids:
        return 0
    result = session.execute(
        update(LedgerTransaction)
        .where(LedgerTransaction.id.in_(list(ids)))
        .values(is_deleted=True)
    )
    return int(result.rowcount or 0)


__all__ = [
    "SaveReport",
    "mark_reviewed",
    "query_transactions",
    "save_candidates",
    "soft_delete",
]
