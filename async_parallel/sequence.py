"""
Adapts a finite collection into a pool producer.

Workers share one SequenceCursor over a private snapshot of the input. Each
producer call claims the next unclaimed element, runs the per-element handler
and reports whether anything is left to claim. The claim reads and advances
the cursor with no await in between, so under asyncio's cooperative
scheduling no two calls can claim the same element.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Generic, Iterable, Optional, TypeVar

from async_parallel.pool import Producer
from async_parallel.utils.async_utils import maybe_await, required_positional_count

T = TypeVar("T")


class Claim(Generic[T]):
    """One element taken from a cursor, with its original position."""

    __slots__ = ("index", "value", "_snapshot")

    def __init__(self, index: int, value: T, snapshot: tuple[T, ...]):
        self.index = index
        self.value = value
        self._snapshot = snapshot

    @property
    def remaining(self) -> tuple[T, ...]:
        """Elements still unclaimed right after this claim."""
        return self._snapshot[self.index + 1 :]

    def __repr__(self) -> str:
        return f"Claim(index={self.index}, value={self.value!r})"


class SequenceCursor(Generic[T]):
    """Monotonic claim cursor over an immutable snapshot of ``items``."""

    def __init__(self, items: Iterable[T]):
        self._items: tuple[T, ...] = tuple(items)
        self._next = 0

    def __len__(self) -> int:
        return len(self._items)

    @property
    def items(self) -> tuple[T, ...]:
        return self._items

    @property
    def claimed(self) -> int:
        return self._next

    @property
    def has_remaining(self) -> bool:
        return self._next < len(self._items)

    def remaining(self) -> tuple[T, ...]:
        return self._items[self._next :]

    def claim(self) -> Optional[Claim[T]]:
        if self._next >= len(self._items):
            return None
        index = self._next
        self._next += 1
        return Claim(index, self._items[index], self._items)


def sequence_producer(
    cursor: SequenceCursor[T],
    handle: Callable[[Claim[T]], Awaitable[Any]],
) -> Producer:
    """
    Build a reentrant producer that handles one claimed element per call.

    The producer returns False without calling ``handle`` once the cursor is
    exhausted, which happens when the pool has more slots than elements.
    """

    async def produce() -> bool:
        claim = cursor.claim()
        if claim is not None:
            await handle(claim)
        return cursor.has_remaining

    return produce


def bind_callback(callback: Callable, leading: int = 0) -> Callable[..., Awaitable[Any]]:
    """
    Adapt a user callback to be called with a Claim.

    The callback receives ``*leading`` arguments (e.g. a fold accumulator),
    then the element, then the element's index and the tuple of remaining
    elements when its signature requires them. Sync callbacks are fine.
    The signature is inspected once, not per element.
    """
    arity = required_positional_count(callback)
    extra = 0 if arity is None else max(0, min(2, arity - leading - 1))

    async def call(claim: Claim, *lead: Any) -> Any:
        args: tuple = (*lead, claim.value)
        if extra >= 1:
            args += (claim.index,)
        if extra >= 2:
            args += (claim.remaining,)
        return await maybe_await(callback, *args)

    return call
