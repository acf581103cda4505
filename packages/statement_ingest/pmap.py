"""Bounded, order-preserving concurrent map over a thread pool.

Used by batch entry points (``import-many``) to normalize several exports at
once. Engine calls are pure and share no state, so threads are safe here.

- ``p_map(items, fn, concurrency=n)`` keeps at most ``n`` calls in flight and
  returns results in input order.
- ``stop_on_error=True`` (default) re-raises the first failure and cancels
  work that has not started. With ``False`` every item runs and failures are
  raised together as an ``ExceptionGroup``.
- A mapper can return :data:`p_map_skip` to leave its item out of the output.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import TypeVar

InT = TypeVar("InT")
OutT = TypeVar("OutT")

_WORKERS_ENV_VAR = "STATEMENT_INGEST_MAX_WORKERS"
_MAX_WORKERS_CAP = 32


class _Skip:
    __slots__ = ()

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return "p_map_skip"


p_map_skip: object = _Skip()


def default_concurrency(n_items: int | None = None) -> int:
    """Worker count from ``STATEMENT_INGEST_MAX_WORKERS`` or ``min(8, n_items)``.

    Always at least 1 and at most 32.
    """

    raw = os.getenv(_WORKERS_ENV_VAR, "").strip()
    if raw.isdigit() and int(raw) > 0:
        value = int(raw)
    else:
        value = min(8, n_items) if n_items else 8
    return max(1, min(value, _MAX_WORKERS_CAP))


def p_map(
    iterable: Iterable[InT],
    mapper: Callable[[InT], OutT | object],
    *,
    concurrency: int,
    stop_on_error: bool = True,
) -> list[OutT]:
    """Map ``iterable`` through ``mapper`` with at most ``concurrency`` calls running."""

    if not isinstance(concurrency, int) or concurrency < 1:
        raise ValueError("concurrency must be a positive integer")

    pending = enumerate(iterable)
    results: dict[int, object] = {}
    errors: list[Exception] = []
    in_flight: dict[Future, int] = {}
    total = 0

    with ThreadPoolExecutor(max_workers=concurrency) as pool:

        def fill() -> None:
            nonlocal total
            while len(in_flight) < concurrency:
                nxt = next(pending, None)
                if nxt is None:
                    return
                idx, item = nxt
                in_flight[pool.submit(mapper, item)] = idx
                total += 1

        fill()
        while in_flight:
            done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
            for fut in done:
                idx = in_flight.pop(fut)
                exc = fut.exception()
                if exc is None:
                    results[idx] = fut.result()
                    continue
                if stop_on_error:
                    pool.shutdown(wait=False, cancel_futures=True)
                    raise exc
                if not isinstance(exc, Exception):
                    raise exc
                errors.append(exc)
            fill()

    if errors:
        raise ExceptionGroup("p_map: one or more mapper calls failed", errors)

    return [
        results[i]  # type: ignore[misc]
        for i in range(total)
        if results.get(i, p_map_skip) is not p_map_skip
    ]


__all__ = ["default_concurrency", "p_map", "p_map_skip"]
