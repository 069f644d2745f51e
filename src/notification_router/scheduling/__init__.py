# -*- coding: utf-8 -*-
"""Delayed task scheduling (escalation timers, scheduled sends)."""

from notification_router.scheduling.asyncio_scheduler import AsyncioTaskScheduler
from notification_router.scheduling.base import ITaskScheduler, TaskCallback

__all__ = ["AsyncioTaskScheduler", "ITaskScheduler", "TaskCallback"]
