"""
Bounded fan-out with a full join barrier.

A fixed pool of ``limit`` workers pulls items from the input one at a time, so
only the items in flight exist as coroutines. Each call runs under its own
deadline. Failures are returned per item instead of aborting the batch.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, Generic, Iterable, List, Optional, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class Settled(Generic[T, R]):
    """Outcome of one item: either ``value`` or ``error`` is set."""

    item: T
    value: Optional[R] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def gather_settled(
    items: Iterable[T],
    worker: Callable[[T], Awaitable[R]],
    *,
    limit: int,
    timeout: Optional[float] = None,
) -> List[Settled[T, R]]:
    """Run ``worker`` over ``items`` concurrently and wait for all of them.

    ``items`` may be any iterable, including a lazy ``range``. Results keep
    input order. Cancelling the caller cancels every in-flight call.
    """
    pending = iter(enumerate(items))
    outcomes: Dict[int, Settled[T, R]] = {}

    async def drain() -> None:
        for position, item in pending:
            try:
                if timeout is None:
                    value = await worker(item)
                else:
                    value = await asyncio.wait_for(worker(item), timeout=timeout)
            except Exception as exc:
                outcomes[position] = Settled(item=item, error=exc)
            else:
                outcomes[position] = Settled(item=item, value=value)

    await asyncio.gather(*(drain() for _ in range(max(limit, 1))))
    return [outcomes[position] for position in sorted(outcomes)]
