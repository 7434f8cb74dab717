"""
Scheduler infrastructure for dispatching streaming crawls onto workers.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional, Set


logger = logging.getLogger(__name__)

Job = Callable[[], Awaitable[None]]


class WorkerScheduler(ABC):
    """Capability for running a crawl job off the caller's path."""

    @abstractmethod
    async def dispatch(self, job: Job, *, name: Optional[str] = None) -> None:
        """Start *job*. May return before the job finishes."""

    async def stop(self) -> None:
        """Cancel or wait for outstanding jobs. Optional."""


class TaskScheduler(WorkerScheduler):
    """Runs every job on its own asyncio task.

    There is no pool limit, so unrelated crawls never queue behind each
    other. The scheduler keeps strong references until tasks finish.
    """

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    async def dispatch(self, job: Job, *, name: Optional[str] = None) -> None:
        task = asyncio.get_running_loop().create_task(job(), name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        logger.debug("Dispatched job %s (%d running)", name or task.get_name(), len(self._tasks))

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Job %s crashed: %s", task.get_name(), exc, exc_info=exc)

    @property
    def running(self) -> int:
        return len(self._tasks)

    async def stop(self) -> None:
        """Cancel outstanding jobs and wait for them to unwind."""
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Scheduler stopped (%d job(s) cancelled)", len(tasks))


class InlineScheduler(WorkerScheduler):
    """Runs the job to completion inside :meth:`dispatch`."""

    async def dispatch(self, job: Job, *, name: Optional[str] = None) -> None:
        await job()
