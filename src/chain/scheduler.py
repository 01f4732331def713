"""Rate-limited FIFO scheduler for outbound RPC work."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

CallTask = Callable[[], Awaitable[Any]]


class SchedulerState(Enum):
    IDLE = auto()
    DRAINING = auto()


@dataclass
class _QueuedTask:
    task: CallTask
    future: asyncio.Future


class RequestScheduler:
    """
    Serializes tasks behind a minimum inter-request interval.

    Tasks run one at a time in the order they were enqueued. A failing task
    only fails its own future; the queue keeps draining. The "last request"
    timestamp is taken right before a task starts, so a slow task does not
    push the next one further out than the configured rate requires.

    Usage:
        scheduler = RequestScheduler(min_interval=0.2)
        result = await scheduler.enqueue(lambda: fetch_something())
    """

    def __init__(
        self,
        min_interval: float = 0.2,
        clock: Callable[[], float] = time.monotonic,
    ):
        if min_interval < 0:
            raise ValueError("min_interval must be non-negative")
        self._min_interval = min_interval
        self._clock = clock
        self._queue: deque[_QueuedTask] = deque()
        self._state = SchedulerState.IDLE
        self._last_request_at: Optional[float] = None
        self._drainer: Optional[asyncio.Task] = None
        self.executed = 0

    @classmethod
    def from_rate(cls, requests_per_second: float) -> "RequestScheduler":
        if requests_per_second <= 0:
            raise ValueError("requests_per_second must be positive")
        return cls(min_interval=1.0 / requests_per_second)

    @property
    def min_interval(self) -> float:
        return self._min_interval

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def pending(self) -> int:
        return len(self._queue)

    @property
    def last_request_at(self) -> Optional[float]:
        return self._last_request_at

    def enqueue(self, task: CallTask) -> asyncio.Future:
        """
        Queue a task and return a future for its result.

        Must be called from a running event loop. The future may be awaited,
        wrapped in ``asyncio.wait_for`` or dropped; the task runs either way.
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()
        self._queue.append(_QueuedTask(task=task, future=future))
        if self._state is SchedulerState.IDLE:
            self._state = SchedulerState.DRAINING
            self._drainer = loop.create_task(self._drain())
        return future

    async def _drain(self) -> None:
        try:
            while self._queue:
                await self._wait_for_slot()
                item = self._queue.popleft()
                self._last_request_at = self._clock()
                await self._run(item)
        finally:
            self._state = SchedulerState.IDLE
            self._drainer = None

    async def _wait_for_slot(self) -> None:
        if self._last_request_at is None:
            return
        elapsed = self._clock() - self._last_request_at
        if elapsed < self._min_interval:
            await asyncio.sleep(self._min_interval - elapsed)

    async def _run(self, item: _QueuedTask) -> None:
        try:
            result = await item.task()
        except asyncio.CancelledError:
            if not item.future.done():
                item.future.cancel()
            raise
        except Exception as exc:
            logger.debug("scheduled task failed: %r", exc)
            if not item.future.done():
                item.future.set_exception(exc)
        else:
            if not item.future.done():
                item.future.set_result(result)
        finally:
            self.executed += 1
