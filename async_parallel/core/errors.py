"""
Error hierarchy for async_parallel.

Design:
- All errors inherit from ParallelError
- Callback failures are never raised directly; a run that saw any failure
  raises exactly one MultiError carrying every captured failure
- Include context for debugging
"""

from __future__ import annotations

from typing import Any, Iterator


class ParallelError(Exception):
    """Base class for all async_parallel errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message


class ConfigurationError(ParallelError, ValueError):
    """Invalid pool size, concurrency limit or environment setting."""

    pass


class MultiError(ParallelError):
    """
    Aggregate of every failure captured during one pool run.

    The errors are kept in completion order, not input order. A run with a
    single failure still raises a MultiError with one entry.

    Usage:
        try:
            await async_parallel.each(urls, fetch, concurrency=4)
        except MultiError as exc:
            for error in exc:
                log.warning("fetch failed: %s", error)
    """

    def __init__(self, errors: list[BaseException], **context: Any):
        count = len(errors)
        super().__init__(f"{count} error" if count == 1 else f"{count} errors", **context)
        self.errors = list(errors)

    @property
    def first(self) -> BaseException | None:
        """The earliest captured failure (or None for an empty aggregate)."""
        return self.errors[0] if self.errors else None

    def __len__(self) -> int:
        return len(self.errors)

    def __iter__(self) -> Iterator[BaseException]:
        return iter(self.errors)

    def __getitem__(self, index: int) -> BaseException:
        return self.errors[index]

    def __reduce__(self):
        return (_rebuild_multi_error, (self.errors, self.context))


def _rebuild_multi_error(errors: list[BaseException], context: dict[str, Any]) -> MultiError:
    return MultiError(errors, **context)
