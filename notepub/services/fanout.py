"""Parallel map with a barrier join and index-aligned, per-item outcomes."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class Outcome(Generic[R]):
    """Result of one item in a fan-out: either a value or the error it raised."""

    value: R | None = None
    error: BaseException | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def _run_one(
    func: Callable[[T], Awaitable[R]], item: T, timeout: float | None
) -> Outcome[R]:
    try:
        if timeout is None:
            value = await func(item)
        else:
            value = await asyncio.wait_for(func(item), timeout=timeout)
    except asyncio.CancelledError:
        raise
    except Exception as exc:
        return Outcome(error=exc)
    return Outcome(value=value)


async def gather_indexed(
    func: Callable[[T], Awaitable[R]],
    items: Sequence[T],
    timeout: float | None = None,
) -> list[Outcome[R]]:
    """Run ``func`` over every item concurrently and wait for all of them.

    The returned list is aligned with *items* by position, regardless of
    completion order. One item's failure never cancels or fails the others.
    With ``timeout=None`` a stuck call stalls the whole join.
    """
    if not items:
        return []
    tasks = [asyncio.create_task(_run_one(func, item, timeout)) for item in items]
    return list(await asyncio.gather(*tasks))
