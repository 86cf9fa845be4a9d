"""
Bounded-concurrency worker pool over a FIFO queue.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class PoolStats:
    """Statistics for one pool run."""
    submitted: int = 0
    succeeded: int = 0
    failed: int = 0


class WorkerPool:
    """
    ``concurrency`` workers draining one shared queue.

    Intake is FIFO; completion order is not guaranteed. A failing item is
    logged and counted, never propagated to the other workers.
    """

    def __init__(self, concurrency: int = 2):
        self.concurrency = max(1, int(concurrency or 1))

    async def run(
        self,
        items: Iterable[T],
        handle: Callable[[T], Awaitable[Any]],
        limit: Optional[int] = None,
    ) -> PoolStats:
        stats = PoolStats()
        queue: asyncio.Queue = asyncio.Queue()
        for item in items:
            if limit is not None and stats.submitted >= limit:
                break
            queue.put_nowait(item)
            stats.submitted += 1

        async def worker(worker_id: int) -> None:
            while True:
                try:
                    item = queue.get_nowait()
                except asyncio.QueueEmpty:
                    return
                try:
                    result = await handle(item)
                except Exception:
                    stats.failed += 1
                    logger.exception("Worker %d: item failed: %r", worker_id, item)
                else:
                    if result is None or result is False:
                        stats.failed += 1
                    else:
                        stats.succeeded += 1
                finally:
                    queue.task_done()

        workers = min(self.concurrency, stats.submitted) or 1
        await asyncio.gather(*(worker(i) for i in range(workers)))
        return stats
