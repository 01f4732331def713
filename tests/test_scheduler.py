"""Tests for chain.scheduler: ordering, rate and failure isolation."""

import asyncio
import time

import pytest

from chain.scheduler import RequestScheduler, SchedulerState

INTERVAL = 0.05
JITTER = 0.01


def _recording_task(log, value, delay=0.0):
    async def task():
        log.append((value, time.monotonic()))
        if delay:
            await asyncio.sleep(delay)
        return value

    return task


async def _settle(scheduler):
    for _ in range(100):
        if scheduler.state is SchedulerState.IDLE:
            return
        await asyncio.sleep(0.005)


class TestRequestSchedulerConfig:
    def test_defaults(self):
        scheduler = RequestScheduler()
        assert scheduler.min_interval == 0.2
        assert scheduler.state is SchedulerState.IDLE
        assert scheduler.pending == 0
        assert scheduler.last_request_at is None

    def test_from_rate(self):
        assert RequestScheduler.from_rate(5).min_interval == pytest.approx(0.2)
        with pytest.raises(ValueError):
            RequestScheduler.from_rate(0)

    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError):
            RequestScheduler(min_interval=-1)


class TestRequestScheduler:
    @pytest.mark.asyncio
    async def test_fifo_order_and_min_interval(self):
        scheduler = RequestScheduler(min_interval=INTERVAL)
        log = []
        futures = [scheduler.enqueue(_recording_task(log, i)) for i in range(5)]

        results = await asyncio.gather(*futures)

        assert results == [0, 1, 2, 3, 4]
        assert [value for value, _ in log] == [0, 1, 2, 3, 4]
        starts = [ts for _, ts in log]
        gaps = [b - a for a, b in zip(starts, starts[1:])]
        assert all(gap >= INTERVAL - JITTER for gap in gaps)

    @pytest.mark.asyncio
    async def test_first_task_runs_immediately(self):
        scheduler = RequestScheduler(min_interval=1.0)
        start = time.monotonic()
        assert await scheduler.enqueue(_recording_task([], "x")) == "x"
        assert time.monotonic() - start < 0.5

    @pytest.mark.asyncio
    async def test_failure_is_isolated(self):
        scheduler = RequestScheduler(min_interval=0.0)
        log = []

        async def boom():
            raise RuntimeError("reverted")

        first = scheduler.enqueue(_recording_task(log, "a"))
        failing = scheduler.enqueue(boom)
        last = scheduler.enqueue(_recording_task(log, "c"))

        assert await first == "a"
        with pytest.raises(RuntimeError, match="reverted"):
            await failing
        assert await last == "c"
        assert [value for value, _ in log] == ["a", "c"]
        assert scheduler.executed == 3

    @pytest.mark.asyncio
    async def test_slow_task_does_not_throttle_next(self):
        scheduler = RequestScheduler(min_interval=INTERVAL)
        log = []
        slow = scheduler.enqueue(_recording_task(log, "slow", delay=2 * INTERVAL))
        fast = scheduler.enqueue(_recording_task(log, "fast"))

        await asyncio.gather(slow, fast)

        (_, slow_start), (_, fast_start) = log
        # next start follows the slow task's completion, not completion + interval
        assert fast_start - slow_start < 3 * INTERVAL

    @pytest.mark.asyncio
    async def test_state_transitions(self):
        scheduler = RequestScheduler(min_interval=0.0)
        future = scheduler.enqueue(_recording_task([], 1))
        assert scheduler.state is SchedulerState.DRAINING

        await future
        await _settle(scheduler)
        assert scheduler.state is SchedulerState.IDLE
        assert scheduler.last_request_at is not None

        # re-enters draining when new work arrives
        assert await scheduler.enqueue(_recording_task([], 2)) == 2

    @pytest.mark.asyncio
    async def test_enqueue_while_draining_keeps_order(self):
        scheduler = RequestScheduler(min_interval=0.0)
        log = []

        async def spawner():
            log.append(("spawner", time.monotonic()))
            return scheduler.enqueue(_recording_task(log, "child"))

        outer = scheduler.enqueue(spawner)
        sibling = scheduler.enqueue(_recording_task(log, "sibling"))

        child_future = await outer
        await asyncio.gather(sibling, child_future)

        assert [value for value, _ in log] == ["spawner", "sibling", "child"]

    @pytest.mark.asyncio
    async def test_abandoned_future_still_executes(self):
        scheduler = RequestScheduler(min_interval=0.0)
        log = []

        slow = scheduler.enqueue(_recording_task(log, "slow", delay=0.05))
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(slow, timeout=0.01)

        after = scheduler.enqueue(_recording_task(log, "after"))
        assert await after == "after"
        assert [value for value, _ in log] == ["slow", "after"]
