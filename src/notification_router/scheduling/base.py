# -*- coding: utf-8 -*-
"""Delayed task scheduler interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

TaskCallback = Callable[[], Awaitable[None]]


class ITaskScheduler(ABC):
    """Abstract interface for running keyed callbacks after a delay.

    Tasks are identified by a caller-chosen key so they can be cancelled before
    they fire. Once a callback has started it is no longer cancellable through
    cancel(); shutdown() stops everything.
    """

    @abstractmethod
    def schedule(self, key: str, delay: float, callback: TaskCallback) -> None:
        """Run callback after delay seconds.

        Scheduling an existing key replaces the previous (not yet fired) task.

        Args:
            key: Identifier used by cancel() and is_scheduled().
            delay: Seconds to wait; values <= 0 run on the next loop iteration.
            callback: Coroutine function invoked with no arguments.

        Raises:
            SchedulerShutdown: If the scheduler has been shut down.
        """
        ...

    @abstractmethod
    def cancel(self, key: str) -> bool:
        """Cancel a task that has not fired yet.

        Returns:
            True if a pending task was cancelled, False if none was waiting under key.
        """
        ...

    @abstractmethod
    def is_scheduled(self, key: str) -> bool:
        """Return True if a task is waiting to fire under key."""
        ...

    @abstractmethod
    def pending_count(self) -> int:
        """Return the number of tasks waiting to fire."""
        ...

    @abstractmethod
    async def join(self) -> None:
        """Wait until no task is waiting or running, including tasks scheduled by callbacks."""
        ...

    @abstractmethod
    async def shutdown(self) -> None:
        """Cancel waiting and running tasks and reject further schedule() calls."""
        ...
