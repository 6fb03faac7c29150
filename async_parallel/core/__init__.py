"""
async_parallel core - configuration handle and error hierarchy.

- ParallelContext: carries the default concurrency limit that combinator
  calls fall back to, replacing an ambient mutable global. A process-wide
  default context still exists for calls that pass none.

- ParallelError / ConfigurationError / MultiError: the only exceptions the
  package raises. A run that captured any callback failure raises exactly
  one MultiError listing them all.

Example usage:

    from async_parallel.core import MultiError, ParallelContext

    ctx = ParallelContext(concurrency=4)
    try:
        await ctx.each(jobs, run_job)
    except MultiError as exc:
        print(f"{len(exc)} job(s) failed")
"""

from async_parallel.core.context import (
    ENV_CONCURRENCY,
    ParallelContext,
    get_concurrency,
    get_default_context,
    set_concurrency,
    set_default_context,
)
from async_parallel.core.errors import ConfigurationError, MultiError, ParallelError

__all__ = [
    "ENV_CONCURRENCY",
    "ParallelContext",
    "get_concurrency",
    "get_default_context",
    "set_concurrency",
    "set_default_context",
    "ConfigurationError",
    "MultiError",
    "ParallelError",
]
