# -*- coding: utf-8 -*-
"""Task scheduler backed by asyncio tasks."""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional

import structlog

from notification_router.exceptions import SchedulerShutdown
from notification_router.scheduling.base import ITaskScheduler, TaskCallback


class AsyncioTaskScheduler(ITaskScheduler):
    """One asyncio task per key: sleep for the delay, then await the callback.

    Callback exceptions are logged and do not propagate; a failing callback never
    affects other scheduled tasks.
    """

    def __init__(
        self,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._waiting: dict[str, asyncio.Task[None]] = {}
        self._running: set[asyncio.Task[None]] = set()
        self._shutdown = False

    def schedule(self, key: str, delay: float, callback: TaskCallback) -> None:
        if self._shutdown:
            raise SchedulerShutdown(f"cannot schedule {key!r}: scheduler is shut down")
        previous = self._waiting.pop(key, None)
        if previous is not None:
            previous.cancel()
        task = asyncio.get_running_loop().create_task(
            self._run(key, max(delay, 0.0), callback), name=f"scheduled:{key}"
        )
        self._waiting[key] = task
        self._logger.debug("task_scheduled", task_key=key, delay_seconds=delay)

    async def _run(self, key: str, delay: float, callback: TaskCallback) -> None:
        await asyncio.sleep(delay)
        task = asyncio.current_task()
        if self._waiting.get(key) is task:
            del self._waiting[key]
        if task is not None:
            self._running.add(task)
        try:
            await callback()
        except asyncio.CancelledError:
            raise
        except Exception:
            self._logger.exception("scheduled_task_failed", task_key=key)
        finally:
            if task is not None:
                self._running.discard(task)

    def cancel(self, key: str) -> bool:
        task = self._waiting.pop(key, None)
        if task is None:
            return False
        task.cancel()
        self._logger.debug("task_cancelled", task_key=key)
        return True

    def is_scheduled(self, key: str) -> bool:
        return key in self._waiting

    def pending_count(self) -> int:
        return len(self._waiting)

    async def join(self) -> None:
        while self._waiting or self._running:
            await asyncio.gather(
                *self._waiting.values(), *self._running, return_exceptions=True
            )

    async def shutdown(self) -> None:
        self._shutdown = True
        tasks = [*self._waiting.values(), *self._running]
        self._waiting.clear()
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._running.clear()
        self._logger.debug("scheduler_shutdown", cancelled=len(tasks))
