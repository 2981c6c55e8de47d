"""Shared utility functions."""

import asyncio
import copy
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


async def run_bounded(
    items: Sequence[T],
    limit: int,
    worker: Callable[[T], Awaitable[R]],
    default: Optional[R] = None,
) -> List[Optional[R]]:
    """Run ``worker`` over ``items`` with at most ``limit`` calls in flight.

    A fixed pool of worker tasks drains a shared queue. Results keep the input
    order. An item whose worker raises gets ``default`` and does not affect
    the other items.
    """
    if not items:
        return []

    queue: asyncio.Queue = asyncio.Queue()
    for index, item in enumerate(items):
        queue.put_nowait((index, item))

    # one copy of default per slot
    results: List[Optional[R]] = [copy.copy(default) for _ in items]

    async def consume() -> None:
        while True:
            try:
                index, item = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                results[index] = await worker(item)
            except Exception as e:
                logger.warning(f"Task {index} failed: {type(e).__name__}: {e}")

    pool_size = max(1, min(limit, len(items)))
    await asyncio.gather(*(consume() for _ in range(pool_size)))
    return results
