"""Aggregate totals over a batch of transaction candidates."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from .amounts import quantize
from .models import CategoryTotal, Direction, Summary, TransactionCandidate


def summarize(candidates: Iterable[TransactionCandidate]) -> Summary:
    """Count, income/expense totals (as magnitudes), net and per-category totals.

    A category's direction is that of the first candidate seen in it.
    """

    count = 0
    needs_review = 0
    income = Decimal("0")
    expense = Decimal("0")
    by_cat: dict[str, list] = {}

    for c in candidates:
        count += 1
        if c.needs_review:
            needs_review += 1
        if c.amount >= 0:
            income += c.amount
        else:
            expense += -c.amount
        slot = by_cat.setdefault(c.category, [0, Decimal("0"), c.direction])
        slot[0] += 1
        slot[1] += abs(c.amount)

    return Summary(
        count=count,
        total_income=quantize(income),
        total_expense=quantize(expense),
        net=quantize(income - expense),
        needs_review=needs_review,
        by_category={
            name: CategoryTotal(n, quantize(total), Direction(direction))
            for name, (n, total, direction) in sorted(by_cat.items())
        },
    )


__all__ = ["summarize"]
