"""Dependency injection."""

from notification_router.DI.container import Container

__all__ = ["Container"]
