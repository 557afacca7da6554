"""Task bookkeeping on the asyncio event loop.

Fire-and-forget work (color sampling, delayed re-scans, the periodic save)
goes through a Scheduler so tasks keep a strong reference until they finish,
failures are logged instead of lost, and teardown can wait for or cancel them.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Any

import structlog

logger = structlog.get_logger()

Job = Callable[[], Awaitable[Any] | Any]


async def _call(fn: Job) -> Any:
    result = fn()
    if inspect.isawaitable(result):
        return await result
    return result


class Scheduler:
    """Owns background tasks spawned by the service."""

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task] = set()
        self._periodic: set[asyncio.Task] = set()

    def spawn(self, coro: Awaitable[Any], name: str | None = None) -> asyncio.Task:
        """Run a coroutine in the background on the running loop."""
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        self._periodic.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task failed", task=task.get_name(), error=str(exc))

    def call_later(self, delay: float, fn: Job, name: str | None = None) -> asyncio.Task:
        """Run `fn` once after `delay` seconds."""

        async def delayed() -> Any:
            await asyncio.sleep(delay)
            return await _call(fn)

        return self.spawn(delayed(), name=name)

    def every(self, interval: float, fn: Job, name: str | None = None) -> asyncio.Task:
        """Run `fn` every `interval` seconds until shutdown; one failed run does not stop the loop."""

        async def periodic() -> None:
            while True:
                await asyncio.sleep(interval)
                try:
                    await _call(fn)
                except Exception as e:
                    logger.error("Periodic job failed", task=name, error=str(e))

        task = self.spawn(periodic(), name=name)
        self._tasks.discard(task)
        self._periodic.add(task)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: float | None = None) -> bool:
        """Wait until every one-shot task, including ones spawned while waiting, has finished.

        Args:
            timeout: Give up after this many seconds; None waits as long as it takes

        Returns:
            False if tasks were still running when the timeout expired
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while self._tasks:
            remaining = None if deadline is None else deadline - loop.time()
            if remaining is not None and remaining <= 0:
                logger.warning("Background tasks still running after drain timeout", pending=len(self._tasks))
                return False
            await asyncio.wait(list(self._tasks), timeout=remaining)
        return True

    async def shutdown(self) -> None:
        """Cancel everything still scheduled and wait for the cancellations to land."""
        tasks = list(self._tasks | self._periodic)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks.clear()
        self._periodic.clear()
