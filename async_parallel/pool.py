"""
Bounded worker pool driven by a pull-based producer.

The pool repeatedly calls a zero-argument async ``producer`` so that at most
``size`` calls are in flight at any instant. Each call performs one unit of
work and returns whether more work may exist:

- ``True``: keep pulling; every freed slot is refilled immediately
- ``False``: stop launching new calls, let the outstanding ones finish
- raising: record the failure, stop launching, let the outstanding ones finish

The run settles exactly once, after the last outstanding call has finished.
If any call failed, the run raises a single MultiError carrying every
captured failure in completion order.

Usage:
    queue = [job_a, job_b, job_c, job_d]

    async def producer() -> bool:
        if queue:
            await queue.pop(0)()
        return bool(queue)

    await pool(2, producer)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Optional

from async_parallel.core.errors import ConfigurationError, MultiError
from async_parallel.utils.async_utils import maybe_await

logger = logging.getLogger(__name__)

Producer = Callable[[], Awaitable[bool]]


class PoolState(Enum):
    IDLE = "idle"  # Not started yet
    ACTIVE = "active"  # Launching and refilling
    DRAINING = "draining"  # Stop signal or failure seen, waiting for in-flight calls
    SETTLED = "settled"  # Terminal: resolved, raised or cancelled


@dataclass
class PoolStats:
    """Runtime statistics for one pool run."""

    launched: int = 0
    succeeded: int = 0
    failed: int = 0
    max_active: int = 0

    @property
    def completed(self) -> int:
        return self.succeeded + self.failed


class Pool:
    """
    A single run of the bounded worker pool.

    A Pool object is single-use: build it, ``await pool.run()`` once, then
    inspect ``state``, ``errors`` and ``stats`` if needed.

    Example:
        p = Pool(3, producer, name="downloads")
        try:
            await p.run()
        finally:
            print(p.stats.launched, p.stats.max_active)
    """

    def __init__(self, size: int, producer: Producer, name: Optional[str] = None):
        if isinstance(size, bool) or not isinstance(size, int) or size < 1:
            raise ConfigurationError("pool size must be a positive integer", size=size)
        self.size = size
        self.producer = producer
        self.name = name or "pool"
        self.stats = PoolStats()

        self._active = 0
        self._draining = False
        self._errors: list[BaseException] = []
        self._tasks: set[asyncio.Task] = set()
        self._settled: Optional[asyncio.Future[None]] = None

    @property
    def state(self) -> PoolState:
        if self._settled is None:
            return PoolState.IDLE
        if self._settled.done():
            return PoolState.SETTLED
        if self._draining:
            return PoolState.DRAINING
        return PoolState.ACTIVE

    @property
    def active(self) -> int:
        """Number of producer calls currently in flight."""
        return self._active

    @property
    def errors(self) -> list[BaseException]:
        """Failures captured so far, in completion order."""
        return list(self._errors)

    async def run(self) -> None:
        """
        Drive the pool until every launched producer call has settled.

        Raises:
            MultiError: if one or more producer calls failed.
            ConfigurationError: if this pool has already been run.
        """
        if self._settled is not None:
            raise ConfigurationError("pool has already been run", pool=self.name)

        self._settled = asyncio.get_running_loop().create_future()
        logger.debug(f"Starting {self.name} with size={self.size}")
        self._refill()

        try:
            await self._settled
        except asyncio.CancelledError:
            if self._settled.done() and not self._settled.cancelled():
                # Settled just before the cancellation landed; mark it retrieved.
                self._settled.exception()
            await self._cancel_outstanding()
            raise

    async def _call(self) -> bool:
        # Truthiness is taken inside the task so a raising __bool__ is a failure.
        return bool(await maybe_await(self.producer))

    def _refill(self) -> None:
        # Never suspends: tops the pool up to `size` in one synchronous pass.
        while self._active < self.size and not self._draining:
            self._active += 1
            self.stats.launched += 1
            self.stats.max_active = max(self.stats.max_active, self._active)
            task = asyncio.create_task(
                self._call(),
                name=f"{self.name}-{self.stats.launched}",
            )
            self._tasks.add(task)
            task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)

        if task.cancelled():
            error: Optional[BaseException] = asyncio.CancelledError()
        else:
            error = task.exception()

        if error is not None:
            self._errors.append(error)
            self.stats.failed += 1
            if not self._draining:
                logger.debug(f"{self.name} draining after failure: {error!r}")
            self._draining = True
            self._active -= 1
            if self._active == 0:
                self._settle()
            return

        more = task.result()
        self.stats.succeeded += 1
        self._active -= 1
        if self._active == 0 and (self._draining or not more):
            self._settle()
        elif more:
            self._refill()
        else:
            logger.debug(f"{self.name} draining with {self._active} call(s) in flight")
            self._draining = True

    def _settle(self) -> None:
        if self._settled is None or self._settled.done():
            return
        if self._errors:
            logger.debug(f"{self.name} settled with {len(self._errors)} error(s)")
            self._settled.set_exception(MultiError(self._errors, pool=self.name))
        else:
            logger.debug(f"{self.name} settled after {self.stats.launched} call(s)")
            self._settled.set_result(None)

    async def _cancel_outstanding(self) -> None:
        """Cancel and await in-flight calls when the awaiting caller is cancelled."""
        self._draining = True
        tasks = list(self._tasks)
        if not tasks:
            return
        logger.debug(f"{self.name} cancelled, stopping {len(tasks)} call(s)")
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)


async def pool(size: int, producer: Producer, *, name: Optional[str] = None) -> None:
    """
    Run ``producer`` with at most ``size`` calls in flight until it reports
    no more work (or fails) and every outstanding call has settled.

    Args:
        size: Maximum number of concurrent producer calls (positive int)
        producer: Zero-argument callable returning (an awaitable of) bool
        name: Optional label used in log messages and error context

    Raises:
        MultiError: carrying every failure captured during the run
        ConfigurationError: if ``size`` is not a positive integer
    """
    await Pool(size, producer, name=name).run()
