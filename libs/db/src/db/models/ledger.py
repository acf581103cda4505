from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.sql import expression as sa_expr

# SQLite only auto-assigns INTEGER PRIMARY KEY columns.
_PK = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: ledger_transactions
# ---------------------------


class LedgerTransaction(Base):
    """A transaction candidate accepted into the ledger, pending or past review.

    Rows are append-only from the importer's point of view; review and removal
    only flip ``reviewed_at``/``category`` and ``is_deleted``. No duplicate
    detection happens at this layer.
    """

    __tablename__ = "ledger_transactions"

    id: Mapped[int] = mapped_column(_PK, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String, nullable=False)
    import_batch: Mapped[str] = mapped_column(String(36), nullable=False)
    source: Mapped[str] = mapped_column(String, nullable=False)
    source_file: Mapped[str | None] = mapped_column(Text, nullable=True)
    source_row_index: Mapped[int] = mapped_column(Integer, nullable=False)
    format_profile: Mapped[str | None] = mapped_column(String, nullable=True)
    account_number: Mapped[str | None] = mapped_column(String, nullable=True)

    date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    payee: Mapped[str | None] = mapped_column(Text, nullable=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    direction: Mapped[str] = mapped_column(String(7), nullable=False)
    category: Mapped[str] = mapped_column(String, nullable=False)
    payment_method: Mapped[str] = mapped_column(String, nullable=False)
    check_number: Mapped[str | None] = mapped_column(String, nullable=True)
    reference_number: Mapped[str | None] = mapped_column(String, nullable=True)
    original_type: Mapped[str | None] = mapped_column(String, nullable=True)

    confidence: Mapped[Decimal] = mapped_column(Numeric(3, 2), nullable=False)
    needs_review: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=sa_expr.false())
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=sa_expr.false())
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    __table_args__ = (
        CheckConstraint("direction in ('income','expense')", name="ck_ledger_tx_direction"),
        CheckConstraint(
            "(direction = 'income' AND amount >= 0) OR (direction = 'expense' AND amount < 0)",
            name="ck_ledger_tx_direction_sign",
        ),
        CheckConstraint("confidence >= 0 AND confidence <= 1", name="ck_ledger_tx_confidence"),
        Index("ix_ledger_tx_owner_date", "owner_id", "date"),
        Index("ix_ledger_tx_batch", "import_batch"),
    )


__all__ = [
    "Base",
    "LedgerTransaction",
]
