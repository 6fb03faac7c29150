"""
ParallelContext - Carries the default concurrency limit for combinator calls.

This replaces a bare module-level global: a context is an explicit value that
can be passed to any combinator, while a process-wide default context still
serves calls that pass neither ``concurrency=`` nor ``context=``.

Usage:
    # Explicit handle, e.g. one per subsystem or per test
    ctx = ParallelContext(concurrency=8)
    results = await ctx.map(urls, fetch)

    # Process-wide default (initialised from ASYNC_PARALLEL_CONCURRENCY)
    set_concurrency(4)
    await async_parallel.each(paths, upload)
"""

from __future__ import annotations

import os
from dataclasses import asdict, dataclass, replace
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, TypeVar

from async_parallel.core.errors import ConfigurationError

T = TypeVar("T")
R = TypeVar("R")

ENV_CONCURRENCY = "ASYNC_PARALLEL_CONCURRENCY"


def validate_limit(value: Any, name: str = "concurrency") -> int:
    """Return ``value`` if it is a non-negative int, else raise ConfigurationError."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigurationError(f"{name} must be a non-negative integer", **{name: value})
    return value


@dataclass
class ParallelContext:
    """
    Default concurrency for combinator calls.

    Attributes:
        concurrency: Max concurrent callbacks per call (0 = unbounded, i.e.
            every element starts immediately)

    Example:
        ctx = ParallelContext.from_env()
        narrow = ctx.with_concurrency(1)
        await narrow.each(migrations, apply_migration)
    """

    concurrency: int = 0

    def __post_init__(self):
        validate_limit(self.concurrency)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ParallelContext":
        """Build a context from ``ASYNC_PARALLEL_CONCURRENCY`` (unset or empty = 0)."""
        env = os.environ if environ is None else environ
        raw = env.get(ENV_CONCURRENCY, "").strip()
        if not raw:
            return cls()
        try:
            value = int(raw)
        except ValueError:
            raise ConfigurationError(
                f"{ENV_CONCURRENCY} must be a non-negative integer", value=raw
            ) from None
        return cls(concurrency=value)

    def resolve_concurrency(self, count: int, concurrency: Optional[int] = None) -> int:
        """
        Effective pool size for a collection of ``count`` elements.

        An explicit ``concurrency`` wins over the context default; 0 means
        unbounded. The result is capped at ``count`` and never below 1.
        """
        limit = self.concurrency if concurrency is None else validate_limit(concurrency)
        if limit == 0 or limit > count:
            limit = count
        return max(limit, 1)

    def with_concurrency(self, concurrency: int) -> "ParallelContext":
        """Return a new context with a different default limit."""
        return replace(self, concurrency=concurrency)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    # Bound combinators: same contract as the module-level functions, with
    # this context as the default.

    async def each(self, items: Optional[Iterable[T]], callback: Callable, *, concurrency: Optional[int] = None) -> None:
        from async_parallel.combinators import each

        await each(items, callback, concurrency=concurrency, context=self)

    async def invoke(
        self, callables: Optional[Iterable[Callable[[], Awaitable[Any]]]], *, concurrency: Optional[int] = None
    ) -> None:
        from async_parallel.combinators import invoke

        await invoke(callables, concurrency=concurrency, context=self)

    async def map(self, items: Optional[Iterable[T]], callback: Callable, *, concurrency: Optional[int] = None) -> list:
        from async_parallel.combinators import map

        return await map(items, callback, concurrency=concurrency, context=self)

    async def filter(self, items: Optional[Iterable[T]], callback: Callable, *, concurrency: Optional[int] = None) -> list:
        from async_parallel.combinators import filter

        return await filter(items, callback, concurrency=concurrency, context=self)

    async def every(self, items: Optional[Iterable[T]], callback: Callable, *, concurrency: Optional[int] = None) -> bool:
        from async_parallel.combinators import every

        return await every(items, callback, concurrency=concurrency, context=self)

    async def some(self, items: Optional[Iterable[T]], callback: Callable, *, concurrency: Optional[int] = None) -> bool:
        from async_parallel.combinators import some

        return await some(items, callback, concurrency=concurrency, context=self)

    async def reduce(
        self, items: Optional[Iterable[T]], callback: Callable, initial: R, *, concurrency: Optional[int] = None
    ) -> R:
        from async_parallel.combinators import reduce

        return await reduce(items, callback, initial, concurrency=concurrency, context=self)


_default_context: Optional[ParallelContext] = None


def get_default_context() -> ParallelContext:
    """Process-wide default context, created from the environment on first use."""
    global _default_context
    if _default_context is None:
        _default_context = ParallelContext.from_env()
    return _default_context


def set_default_context(context: Optional[ParallelContext]) -> None:
    """Replace the process-wide default (None re-reads the environment lazily)."""
    global _default_context
    _default_context = context


def get_concurrency() -> int:
    return get_default_context().concurrency


def set_concurrency(concurrency: int) -> None:
    """Set the process-wide default limit without reading the environment first."""
    if _default_context is None:
        set_default_context(ParallelContext(concurrency=concurrency))
    else:
        set_default_context(_default_context.with_concurrency(concurrency))
