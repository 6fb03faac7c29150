"""
Iteration combinators over the bounded worker pool.

Every combinator snapshots its input, resolves an effective concurrency
limit, wires a SequenceCursor into a pool producer and awaits the single
settlement of the pool. ``None`` or empty input is a no-op and the callback
is never called.

Callbacks may be sync or async. They receive the element, plus its original
index and the tuple of still-unclaimed elements when their signature accepts
them (``reduce`` callbacks receive the accumulator first).

Any callback failure stops new work from starting, lets in-flight callbacks
finish, and surfaces as one MultiError.

Usage:
    sizes = await map(paths, stat_size, concurrency=8)
    large = await filter(paths, is_large, concurrency=8)
    total = await reduce(paths, add_size, 0)
"""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar

from async_parallel.core.context import ParallelContext, get_default_context
from async_parallel.pool import pool
from async_parallel.sequence import Claim, SequenceCursor, bind_callback, sequence_producer
from async_parallel.utils.async_utils import maybe_await

T = TypeVar("T")
R = TypeVar("R")

__all__ = ["each", "invoke", "map", "filter", "every", "some", "reduce"]


def _snapshot(items: Optional[Iterable[T]]) -> Optional[SequenceCursor[T]]:
    if items is None:
        return None
    cursor = SequenceCursor(items)
    return cursor if len(cursor) else None


async def _run(
    cursor: SequenceCursor[T],
    handle: Callable[[Claim[T]], Awaitable[Any]],
    concurrency: Optional[int],
    context: Optional[ParallelContext],
    name: str,
) -> None:
    ctx = context or get_default_context()
    size = ctx.resolve_concurrency(len(cursor), concurrency)
    await pool(size, sequence_producer(cursor, handle), name=name)


async def each(
    items: Optional[Iterable[T]],
    callback: Callable[..., Any],
    *,
    concurrency: Optional[int] = None,
    context: Optional[ParallelContext] = None,
) -> None:
    """Call ``callback`` on every element, discarding the results."""
    cursor = _snapshot(items)
    if cursor is None:
        return
    call = bind_callback(callback)

    async def handle(claim: Claim[T]) -> None:
        await call(claim)

    await _run(cursor, handle, concurrency, context, "each")


async def invoke(
    callables: Optional[Iterable[Callable[[], Any]]],
    *,
    concurrency: Optional[int] = None,
    context: Optional[ParallelContext] = None,
) -> None:
    """Call every zero-argument callable, discarding the results."""
    cursor = _snapshot(callables)
    if cursor is None:
        return

    async def handle(claim: Claim[Callable[[], Any]]) -> None:
        await maybe_await(claim.value)

    await _run(cursor, handle, concurrency, context, "invoke")


async def map(
    items: Optional[Iterable[T]],
    callback: Callable[..., Any],
    *,
    concurrency: Optional[int] = None,
    context: Optional[ParallelContext] = None,
) -> list:
    """Return the callback results in input order, whatever the completion order."""
    cursor = _snapshot(items)
    if cursor is None:
        return []
    call = bind_callback(callback)
    results: list = [None] * len(cursor)

    async def handle(claim: Claim[T]) -> None:
        results[claim.index] = await call(claim)

    await _run(cursor, handle, concurrency, context, "map")
    return results


async def filter(
    items: Optional[Iterable[T]],
    callback: Callable[..., Any],
    *,
    concurrency: Optional[int] = None,
    context: Optional[ParallelContext] = None,
) -> list[T]:
    """Return the elements whose callback result is truthy, in input order."""
    cursor = _snapshot(items)
    if cursor is None:
        return []
    call = bind_callback(callback)
    keep = [False] * len(cursor)

    async def handle(claim: Claim[T]) -> None:
        if await call(claim):
            keep[claim.index] = True

    await _run(cursor, handle, concurrency, context, "filter")
    return [item for item, kept in zip(cursor.items, keep) if kept]


async def every(
    items: Optional[Iterable[T]],
    callback: Callable[..., Any],
    *,
    concurrency: Optional[int] = None,
    context: Optional[ParallelContext] = None,
) -> bool:
    """True unless some callback result is falsy. Every element is still visited."""
    cursor = _snapshot(items)
    if cursor is None:
        return True
    call = bind_callback(callback)
    result = True

    async def handle(claim: Claim[T]) -> None:
        nonlocal result
        if not await call(claim):
            result = False

    await _run(cursor, handle, concurrency, context, "every")
    return result


async def some(
    items: Optional[Iterable[T]],
    callback: Callable[..., Any],
    *,
    concurrency: Optional[int] = None,
    context: Optional[ParallelContext] = None,
) -> bool:
    """True if any callback result is truthy. Every element is still visited."""
    cursor = _snapshot(items)
    if cursor is None:
        return False
    call = bind_callback(callback)
    result = False

    async def handle(claim: Claim[T]) -> None:
        nonlocal result
        if await call(claim):
            result = True

    await _run(cursor, handle, concurrency, context, "some")
    return result


async def reduce(
    items: Optional[Iterable[T]],
    callback: Callable[..., Any],
    initial: R,
    *,
    concurrency: Optional[int] = None,
    context: Optional[ParallelContext] = None,
) -> R:
    """
    Fold the elements into ``initial`` with ``callback(accumulator, element)``.

    Accumulator updates run one at a time in claim order, so the result does
    not depend on the concurrency limit. Other work sharing the event loop
    still interleaves with the fold.
    """
    cursor = _snapshot(items)
    if cursor is None:
        return initial
    call = bind_callback(callback, leading=1)
    accumulator = initial
    # asyncio.Lock wakes waiters FIFO and is acquired right after the claim,
    # so updates apply in claim order.
    lock = asyncio.Lock()

    async def handle(claim: Claim[T]) -> None:
        nonlocal accumulator
        async with lock:
            accumulator = await call(claim, accumulator)

    await _run(cursor, handle, concurrency, context, "reduce")
    return accumulator
