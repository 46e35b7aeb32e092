"""In-process fixed-window rate limiter for registry submissions.

At most ``capacity`` acquisitions may begin per ``period``.  The limiter
starts full; a background asyncio task tops the pool back up to
``capacity`` every ``period`` seconds.  Permits left over from one window
are not carried forward, and unused capacity is not accumulated beyond
``capacity``.  Up to ``2 * capacity`` acquisitions can therefore begin in a
span shorter than ``period`` when that span straddles a refill tick.

Waiters are served strictly first-in, first-out: when a permit frees up it
is handed directly to the oldest waiter, and a new arrival never takes a
free permit while anyone is queued.

All state is touched only from the event loop thread, so no lock is
needed; every method below runs to completion without yielding between
reading and writing the counters.

Typical usage::

    limiter = RateLimiter(capacity=10, period=1.0)
    limiter.start()

    await limiter.acquire()
    response = await http_client.post(url, content=body)

    limiter.stop()
    await limiter.wait_stopped()
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import deque
from datetime import timedelta

from crpt_api.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


def _period_seconds(period: float | timedelta) -> float:
    """Normalise *period* to seconds.

    Raises:
        ConfigurationError: If *period* is not a positive number or timedelta.
    """
    if isinstance(period, timedelta):
        seconds = period.total_seconds()
    elif isinstance(period, (int, float)) and not isinstance(period, bool):
        seconds = float(period)
    else:
        raise ConfigurationError(
            f"period must be a number of seconds or a timedelta, got {type(period).__name__}"
        )
    if not seconds > 0:
        raise ConfigurationError(f"period must be positive, got {period!r}")
    return seconds


class RateLimiter:
    """Fixed-window permit pool with FIFO blocking acquisition.

    Args:
        capacity: Permits available per window (N).  Must be a positive int.
        period: Window length (T), in seconds or as a ``timedelta``.

    Raises:
        ConfigurationError: If *capacity* or *period* is not positive.
    """

    def __init__(self, capacity: int, period: float | timedelta) -> None:
        if not isinstance(capacity, int) or isinstance(capacity, bool):
            raise ConfigurationError(
                f"capacity must be an int, got {type(capacity).__name__}"
            )
        if capacity <= 0:
            raise ConfigurationError(f"capacity must be positive, got {capacity}")

        self._capacity = capacity
        self._period = _period_seconds(period)
        self._available = capacity
        self._waiters: deque[asyncio.Future[None]] = deque()
        self._refill_task: asyncio.Task[None] | None = None

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def period(self) -> float:
        """Window length in seconds."""
        return self._period

    @property
    def available(self) -> int:
        """Permits that can be taken right now without waiting."""
        return self._available

    @property
    def waiting(self) -> int:
        """Number of callers currently blocked in :meth:`acquire`."""
        return len(self._waiters)

    @property
    def running(self) -> bool:
        """Whether the refill task is active."""
        return self._refill_task is not None and not self._refill_task.done()

    def __repr__(self) -> str:
        return (
            f"RateLimiter(capacity={self._capacity}, period={self._period}, "
            f"available={self._available}, waiting={self.waiting})"
        )

    # ------------------------------------------------------------------
    # Refill timer
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the refill task on the running event loop.

        The first refill happens one period after this call.  Calling
        ``start()`` on a limiter that is already running is a no-op.

        Raises:
            RuntimeError: If no event loop is running in this thread.
        """
        if self.running:
            return
        loop = asyncio.get_running_loop()
        self._refill_task = loop.create_task(self._run_refill(), name="crpt-refill")
        logger.debug(
            "Rate limiter refill started",
            extra={"capacity": self._capacity, "period": self._period},
        )

    def stop(self) -> None:
        """Cancel the refill task.

        Callers already blocked in :meth:`acquire` are left queued; with no
        further refills they stay blocked until they are cancelled.
        """
        if self._refill_task is not None and not self._refill_task.done():
            self._refill_task.cancel()
            logger.debug(
                "Rate limiter refill stopped",
                extra={"waiting": len(self._waiters)},
            )

    async def wait_stopped(self) -> None:
        """Wait until a cancelled refill task has fully finished."""
        task = self._refill_task
        if task is None:
            return
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run_refill(self) -> None:
        """Tick every period at a fixed rate against the loop clock."""
        loop = asyncio.get_running_loop()
        next_tick = loop.time() + self._period
        while True:
            await asyncio.sleep(max(0.0, next_tick - loop.time()))
            self._refill()
            next_tick += self._period

    def _refill(self) -> None:
        """Top the pool up to capacity and hand permits to queued waiters."""
        deficit = self._capacity - self._available
        if deficit > 0:
            self._available += deficit
        self._wake_waiters()

    def _wake_waiters(self) -> None:
        while self._available > 0 and self._waiters:
            waiter = self._waiters.popleft()
            if waiter.done():
                continue
            self._available -= 1
            waiter.set_result(None)

    # ------------------------------------------------------------------
    # Acquisition
    # ------------------------------------------------------------------

    async def acquire(self) -> None:
        """Take one permit, waiting in FIFO order if none is free.

        There is no timeout.  If the calling task is cancelled while
        waiting, it leaves the queue without holding a permit and
        :class:`asyncio.CancelledError` propagates.

        Raises:
            asyncio.CancelledError: If the caller is cancelled while waiting.
        """
        if self._available > 0 and not self._waiters:
            self._available -= 1
            return

        waiter: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Permit was handed over just before the cancellation landed.
                self._available = min(self._capacity, self._available + 1)
                self._wake_waiters()
            else:
                with contextlib.suppress(ValueError):
                    self._waiters.remove(waiter)
            raise
