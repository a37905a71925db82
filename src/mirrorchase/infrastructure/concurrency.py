"""Bounded, order-preserving fan-out over asyncio workers.

A fixed pool of ``min(limit, len(items))`` workers pulls the next
pending index until the input is exhausted.  Results are written by
original index, so output order follows input order regardless of
completion order.  A failing step yields ``None`` at its position and
never aborts sibling items.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

import structlog

log = structlog.get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def map_bounded(
    items: Sequence[T],
    limit: int,
    step: Callable[[T], Awaitable[R | None]],
) -> list[R | None]:
    """Apply *step* to every item with at most *limit* in flight.

    Args:
        items: Work items, processed in index order.
        limit: Worker budget (values below 1 are treated as 1).
        step: Async callable; exceptions are logged and mapped to ``None``.

    Returns:
        One result per input item, positionally aligned with *items*.
    """
    results: list[R | None] = [None] * len(items)
    if not items:
        return results

    next_index = 0

    async def _worker(worker_id: int) -> None:
        nonlocal next_index
        while next_index < len(items):
            # No await between read and increment: claim is atomic on the loop
            current = next_index
            next_index += 1
            try:
                results[current] = await step(items[current])
            except Exception:
                log.warning(
                    "bounded_step_failed",
                    index=current,
                    worker=worker_id,
                    exc_info=True,
                )
                results[current] = None

    worker_count = min(max(1, limit), len(items))
    await asyncio.gather(*(_worker(i) for i in range(worker_count)))

    log.debug(
        "bounded_map_complete",
        total=len(items),
        workers=worker_count,
        succeeded=sum(1 for r in results if r is not None),
    )
    return results
