# stackwright/utils/async_utils.py
"""Asynchronous operation utilities"""

import asyncio
import functools
from typing import Any, Callable, Coroutine, List, TypeVar

T = TypeVar('T')


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """
    Run async coroutine in sync context

    Args:
        coro: Coroutine to run

    Returns:
        Coroutine result
    """
    return asyncio.run(coro)


async def run_blocking(func: Callable[..., T], *args, **kwargs) -> T:
    """
    Run a blocking call in the default executor

    Args:
        func: Blocking callable
        *args: Positional arguments
        **kwargs: Keyword arguments

    Returns:
        Callable result
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args, **kwargs))


class AsyncPool:
    """Async task pool with a bounded number of running tasks

    Every submitted coroutine holds a semaphore permit for its whole
    run. ``in_flight`` and ``peak`` count tasks currently holding a
    permit; both are only touched from the event loop thread.
    """

    def __init__(self, max_workers: int = 10):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.max_workers = max_workers
        self.semaphore = asyncio.Semaphore(max_workers)
        self.tasks: List[asyncio.Task] = []
        self.in_flight = 0
        self.peak = 0

    def submit(self, coro: Coroutine) -> asyncio.Task:
        """Submit task to pool"""

        async def wrapped():
            async with self.semaphore:
                self.in_flight += 1
                self.peak = max(self.peak, self.in_flight)
                try:
                    return await coro
                finally:
                    self.in_flight -= 1

        task = asyncio.ensure_future(wrapped())
        self.tasks.append(task)
        return task

    async def wait_all(self) -> List[Any]:
        """Wait for all tasks to complete

        Exceptions are returned in place of results so one failing
        task never cancels its siblings.
        """
        results = await asyncio.gather(*self.tasks, return_exceptions=True)
        self.tasks.clear()
        return results

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.wait_all()
