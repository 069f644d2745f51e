# -*- coding: utf-8 -*-
"""Sliding-window rate limiter keyed by arbitrary strings (e.g. "recipient:channel").

Each key keeps a log of hit timestamps. A call is allowed while fewer than
`capacity` hits fall inside the trailing window; denied calls are not recorded.
Old timestamps are pruned on access, there is no background timer.
"""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable, Optional


class RateLimiter:
    """Thread-safe sliding-window log limiter.

    Args:
        capacity: Hits allowed inside one window.
        window_seconds: Trailing window length.
        cooldown_seconds: After a denial, keep the key denied this long even if the
            window frees up. 0 disables the cooldown.
        clock: Monotonic clock in seconds (injectable for tests).
    """

    def __init__(
        self,
        capacity: int = 60,
        window_seconds: float = 60.0,
        *,
        cooldown_seconds: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        if cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must be >= 0")
        self.capacity = capacity
        self.window_seconds = window_seconds
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._blocked_until: dict[str, float] = {}
        self._lock = threading.Lock()

    def _capacity(self, override: Optional[int]) -> int:
        return self.capacity if override is None else override

    def _prune(self, key: str, now: float) -> deque[float]:
        hits = self._hits.get(key)
        if hits is None:
            return deque()
        cutoff = now - self.window_seconds
        while hits and hits[0] <= cutoff:
            hits.popleft()
        if not hits:
            del self._hits[key]
        return hits

    def _cooling_down(self, key: str, now: float) -> bool:
        until = self._blocked_until.get(key)
        if until is None:
            return False
        if now >= until:
            del self._blocked_until[key]
            return False
        return True

    def is_allowed(self, key: str, capacity: Optional[int] = None) -> bool:
        """Record a hit for key and return True, or return False without recording.

        capacity overrides the limiter default for this call only; the hit log is
        shared, so a key whose capacity changes keeps its history.
        """
        with self._lock:
            now = self._clock()
            if self._cooling_down(key, now):
                return False
            hits = self._prune(key, now)
            if len(hits) >= self._capacity(capacity):
                if self.cooldown_seconds > 0:
                    self._blocked_until[key] = now + self.cooldown_seconds
                return False
            self._hits.setdefault(key, hits).append(now)
            return True

    def remaining(self, key: str, capacity: Optional[int] = None) -> int:
        """Hits still allowed for key right now. Does not record anything."""
        with self._lock:
            now = self._clock()
            if self._cooling_down(key, now):
                return 0
            return max(self._capacity(capacity) - len(self._prune(key, now)), 0)

    def reset(self, key: Optional[str] = None) -> None:
        """Forget hits for key, or for every key when key is None."""
        with self._lock:
            if key is None:
                self._hits.clear()
                self._blocked_until.clear()
            else:
                self._hits.pop(key, None)
                self._blocked_until.pop(key, None)
