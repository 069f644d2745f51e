"""Notification router: multi-channel notification routing and delivery."""

from notification_router.config import get_settings
from notification_router.DI import Container
from notification_router.services import NotificationRouter

__version__ = "0.0.1"
__all__ = [
    "Container",
    "NotificationRouter",
    "get_settings",
]
