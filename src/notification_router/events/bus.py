"""Application event bus (bubus).

Delivery outcome events are published here for realtime consumers. The router
never waits on handlers.
"""

from __future__ import annotations

from bubus import EventBus  # type: ignore[import-untyped]

_event_bus: EventBus | None = None


def create_event_bus(name: str = "NotificationRouter", *, max_history_size: int = 500) -> EventBus:
    """Build a standalone bus (no write-ahead log)."""
    return EventBus(name=name, max_history_size=max_history_size, wal_path=None)


def get_event_bus() -> EventBus:
    """Return the process-wide bus, creating it on first use."""
    global _event_bus
    if _event_bus is None:
        _event_bus = create_event_bus()
    return _event_bus


def set_event_bus(bus: EventBus | None) -> None:
    """Replace the process-wide bus; None makes the next get_event_bus() create a fresh one."""
    global _event_bus
    _event_bus = bus
