"""Message rendering."""

from notification_router.rendering.message_renderer import PayloadMessageRenderer

__all__ = ["PayloadMessageRenderer"]
