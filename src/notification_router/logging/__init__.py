"""Logging setup (structlog + optional Logfire)."""

from notification_router.logging.config import configure_logging

__all__ = ["configure_logging"]
