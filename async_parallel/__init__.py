"""
async_parallel - run async work with at most N tasks in flight.

The heart of the package is ``pool``: a self-refilling worker pool driven by a
producer callback, which collects every failure instead of stopping at the
first one and only settles once all in-flight work has finished. The
combinators are thin adapters over it.

Example usage:

    import async_parallel as ap

    # Bounded fan-out over a collection, results in input order
    pages = await ap.map(urls, fetch, concurrency=8)

    # Conditional selection and folds
    alive = await ap.filter(hosts, ping, concurrency=16)
    total = await ap.reduce(files, add_size, 0)

    # Raw pool with a custom producer
    await ap.pool(4, producer)

    # Default limit for calls that pass none (0 = unbounded)
    ap.set_concurrency(4)
"""

from async_parallel.combinators import each, every, filter, invoke, map, reduce, some
from async_parallel.core import (
    ConfigurationError,
    MultiError,
    ParallelContext,
    ParallelError,
    get_concurrency,
    get_default_context,
    set_concurrency,
    set_default_context,
)
from async_parallel.pool import Pool, PoolState, PoolStats, pool
from async_parallel.sequence import Claim, SequenceCursor, sequence_producer

__version__ = "0.1.0"

__all__ = [
    # Scheduler
    "pool",
    "Pool",
    "PoolState",
    "PoolStats",
    # Combinators
    "each",
    "invoke",
    "map",
    "filter",
    "every",
    "some",
    "reduce",
    # Sequence adapter
    "Claim",
    "SequenceCursor",
    "sequence_producer",
    # Configuration
    "ParallelContext",
    "get_concurrency",
    "set_concurrency",
    "get_default_context",
    "set_default_context",
    # Errors
    "ParallelError",
    "ConfigurationError",
    "MultiError",
]
