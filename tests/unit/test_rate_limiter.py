"""Unit tests for RateLimiter.

Tests cover:
- Construction rejects non-positive or mistyped capacity and period
- period accepts seconds and timedelta
- acquire() takes a free permit without waiting
- acquire() blocks when the pool is empty and resumes on refill
- _refill() tops up to capacity and never beyond
- Waiters are granted strictly in arrival order
- A cancelled waiter leaves the queue without consuming a permit
- A waiter cancelled after its permit was handed over returns the permit
- start() requires a running loop and is idempotent
- stop() halts refills and leaves blocked waiters blocked
- The timer refills at fixed intervals; a burst of 2N is possible across a tick

Most tests drive ``_refill()`` by hand on a limiter whose timer was never
started, so they do not depend on wall-clock timing.
"""

from __future__ import annotations

import asyncio
import contextlib
from datetime import timedelta

import pytest

from crpt_api.core.exceptions import ConfigurationError
from crpt_api.core.rate_limiter import RateLimiter


async def _exhausted(capacity: int = 1) -> RateLimiter:
    limiter = RateLimiter(capacity=capacity, period=3600)
    for _ in range(capacity):
        await limiter.acquire()
    return limiter


async def _queue(limiter: RateLimiter, name: str, order: list[str]) -> asyncio.Task[None]:
    """Start a task that records *name* once it holds a permit."""

    async def _worker() -> None:
        await limiter.acquire()
        order.append(name)

    task = asyncio.create_task(_worker())
    await asyncio.sleep(0)
    return task


async def _cancel(task: asyncio.Task[None]) -> None:
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task


# ---------------------------------------------------------------------------
# Construction
# ---------------------------------------------------------------------------


class TestConstruction:
    @pytest.mark.parametrize("capacity", [0, -1])
    def test_non_positive_capacity_is_rejected(self, capacity: int) -> None:
        """Capacity must be at least one permit."""
        with pytest.raises(ConfigurationError, match="capacity"):
            RateLimiter(capacity=capacity, period=1.0)

    @pytest.mark.parametrize("capacity", [2.0, True, "3"])
    def test_non_int_capacity_is_rejected(self, capacity: object) -> None:
        """Floats, bools and strings are not valid capacities."""
        with pytest.raises(ConfigurationError):
            RateLimiter(capacity=capacity, period=1.0)  # type: ignore[arg-type]

    @pytest.mark.parametrize("period", [0, -0.5, timedelta(0), timedelta(seconds=-1)])
    def test_non_positive_period_is_rejected(self, period: object) -> None:
        """The window must have a positive length."""
        with pytest.raises(ConfigurationError, match="period"):
            RateLimiter(capacity=1, period=period)  # type: ignore[arg-type]

    def test_non_numeric_period_is_rejected(self) -> None:
        """A string is not a duration."""
        with pytest.raises(ConfigurationError):
            RateLimiter(capacity=1, period="1s")  # type: ignore[arg-type]

    def test_configuration_error_is_value_error(self) -> None:
        """Callers catching ValueError also catch configuration errors."""
        with pytest.raises(ValueError):
            RateLimiter(capacity=0, period=1.0)

    def test_timedelta_period_is_converted_to_seconds(self) -> None:
        """A timedelta period is exposed in seconds."""
        limiter = RateLimiter(capacity=3, period=timedelta(minutes=1))

        assert limiter.period == 60.0

    def test_new_limiter_is_full_and_idle(self) -> None:
        """The pool starts at capacity with no waiters and no timer."""
        limiter = RateLimiter(capacity=4, period=1)

        assert limiter.capacity == 4
        assert limiter.available == 4
        assert limiter.waiting == 0
        assert limiter.running is False


# ---------------------------------------------------------------------------
# acquire() / _refill()
# ---------------------------------------------------------------------------


class TestAcquire:
    async def test_acquire_takes_free_permit_immediately(self) -> None:
        """acquire() returns at once and decrements the pool."""
        limiter = RateLimiter(capacity=3, period=3600)

        await limiter.acquire()

        assert limiter.available == 2

    async def test_acquire_blocks_when_pool_is_empty(self) -> None:
        """With no permits left, acquire() waits instead of returning."""
        limiter = await _exhausted()

        task = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)

        assert not task.done()
        assert limiter.waiting == 1
        await _cancel(task)

    async def test_refill_wakes_blocked_waiter(self) -> None:
        """A refill hands a permit to the blocked waiter."""
        limiter = await _exhausted()
        task = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)

        limiter._refill()
        await asyncio.wait_for(task, timeout=1.0)

        assert limiter.available == 0
        assert limiter.waiting == 0

    async def test_refill_never_exceeds_capacity(self) -> None:
        """Refilling a partially used pool restores exactly capacity."""
        limiter = RateLimiter(capacity=3, period=3600)
        await limiter.acquire()

        limiter._refill()
        limiter._refill()

        assert limiter.available == 3

    async def test_refill_grants_at_most_capacity_waiters(self) -> None:
        """One refill admits N waiters; the rest keep waiting."""
        limiter = await _exhausted(capacity=2)
        order: list[str] = []
        tasks = [await _queue(limiter, name, order) for name in ("a", "b", "c")]

        limiter._refill()
        await asyncio.sleep(0)

        assert order == ["a", "b"]
        assert limiter.waiting == 1
        assert limiter.available == 0
        await _cancel(tasks[2])


# ---------------------------------------------------------------------------
# Fairness
# ---------------------------------------------------------------------------


class TestFifoOrder:
    async def test_waiters_are_granted_in_arrival_order(self) -> None:
        """Each refill admits the oldest waiter first."""
        limiter = await _exhausted()
        order: list[str] = []
        for name in ("first", "second", "third"):
            await _queue(limiter, name, order)

        for _ in range(3):
            limiter._refill()
            await asyncio.sleep(0)

        assert order == ["first", "second", "third"]

    async def test_new_arrival_queues_behind_existing_waiters(self) -> None:
        """A caller arriving after a waiter is served after it."""
        limiter = await _exhausted()
        order: list[str] = []
        await _queue(limiter, "early", order)
        late = await _queue(limiter, "late", order)

        limiter._refill()
        await asyncio.sleep(0)

        assert order == ["early"]
        assert not late.done()
        await _cancel(late)


# ---------------------------------------------------------------------------
# Cancellation
# ---------------------------------------------------------------------------


class TestCancellation:
    async def test_cancelled_waiter_raises_cancelled_error(self) -> None:
        """Cancellation surfaces as CancelledError, not as a grant."""
        limiter = await _exhausted()
        task = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)

        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

    async def test_cancelled_waiter_leaves_queue_without_consuming(self) -> None:
        """After cancellation the queue is empty and a refill restores capacity."""
        limiter = await _exhausted(capacity=2)
        task = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        limiter._refill()

        assert limiter.waiting == 0
        assert limiter.available == 2

    async def test_cancelled_middle_waiter_is_skipped(self) -> None:
        """Cancelling the second of three waiters lets the third take its turn."""
        limiter = await _exhausted(capacity=2)
        order: list[str] = []
        await _queue(limiter, "a", order)
        b = await _queue(limiter, "b", order)
        await _queue(limiter, "c", order)

        b.cancel()
        with pytest.raises(asyncio.CancelledError):
            await b
        limiter._refill()
        await asyncio.sleep(0)

        assert order == ["a", "c"]
        assert limiter.available == 0

    async def test_cancel_after_grant_returns_permit(self) -> None:
        """A permit handed to a waiter that is cancelled before resuming goes back."""
        limiter = await _exhausted()
        task = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)

        limiter._refill()  # permit handed to the waiter, which has not resumed yet
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert limiter.available == 1
        assert limiter.waiting == 0

    async def test_returned_permit_goes_to_next_waiter(self) -> None:
        """A permit given back by a cancelled waiter is passed down the queue."""
        limiter = await _exhausted()
        order: list[str] = []
        first = await _queue(limiter, "first", order)
        await _queue(limiter, "second", order)

        limiter._refill()
        first.cancel()
        with pytest.raises(asyncio.CancelledError):
            await first
        await asyncio.sleep(0)

        assert order == ["second"]
        assert limiter.available == 0


# ---------------------------------------------------------------------------
# Refill timer
# ---------------------------------------------------------------------------


class TestRefillTimer:
    def test_start_without_running_loop_raises(self) -> None:
        """The timer needs a running event loop."""
        limiter = RateLimiter(capacity=1, period=1)

        with pytest.raises(RuntimeError):
            limiter.start()

    async def test_start_is_idempotent(self) -> None:
        """A second start() keeps the existing task."""
        limiter = RateLimiter(capacity=1, period=3600)
        limiter.start()
        task = limiter._refill_task

        limiter.start()

        assert limiter._refill_task is task
        limiter.stop()
        await limiter.wait_stopped()

    async def test_stop_halts_the_timer(self) -> None:
        """After stop() and wait_stopped() the limiter is no longer running."""
        limiter = RateLimiter(capacity=1, period=3600)
        limiter.start()
        assert limiter.running is True

        limiter.stop()
        await limiter.wait_stopped()

        assert limiter.running is False

    async def test_wait_stopped_without_start_returns(self) -> None:
        """wait_stopped() on a never-started limiter is a no-op."""
        limiter = RateLimiter(capacity=1, period=1)

        await limiter.wait_stopped()

    async def test_timer_refills_after_one_period(self) -> None:
        """An exhausted pool is topped up by the timer, not before."""
        limiter = RateLimiter(capacity=2, period=0.1)
        limiter.start()
        try:
            loop = asyncio.get_running_loop()
            started = loop.time()
            await limiter.acquire()
            await limiter.acquire()

            await asyncio.wait_for(limiter.acquire(), timeout=2.0)
            elapsed = loop.time() - started
        finally:
            limiter.stop()
            await limiter.wait_stopped()

        assert elapsed >= 0.08

    async def test_burst_of_twice_capacity_across_tick(self) -> None:
        """N grants before a tick plus N right after it are all admitted."""
        limiter = RateLimiter(capacity=3, period=0.2)
        limiter.start()
        try:
            for _ in range(3):
                await limiter.acquire()
            pending = [asyncio.create_task(limiter.acquire()) for _ in range(3)]
            await asyncio.sleep(0)
            assert limiter.waiting == 3

            await asyncio.wait_for(asyncio.gather(*pending), timeout=2.0)
            seventh = asyncio.create_task(limiter.acquire())
            await asyncio.sleep(0)

            # Six admitted within one window length; the seventh waits for the next tick.
            assert not seventh.done()
            await asyncio.wait_for(seventh, timeout=2.0)
        finally:
            limiter.stop()
            await limiter.wait_stopped()

    async def test_stop_leaves_blocked_waiters_blocked(self) -> None:
        """Stopping the timer does not release or cancel queued callers."""
        limiter = RateLimiter(capacity=1, period=0.05)
        limiter.start()
        await limiter.acquire()
        task = asyncio.create_task(limiter.acquire())
        await asyncio.sleep(0)

        limiter.stop()
        await limiter.wait_stopped()
        await asyncio.sleep(0.2)

        assert not task.done()
        assert limiter.waiting == 1
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
