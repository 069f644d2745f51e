# -*- coding: utf-8 -*-
"""Payload renderer with per-type emoji headings and labelled detail rows."""

from __future__ import annotations

from typing import Any

from notification_router.channels.types import MessageRenderer
from notification_router.models.payload import NotificationPayload, NotificationType

_TYPE_TITLES: dict[NotificationType, tuple[str, str]] = {
    NotificationType.SECURITY_ALERT: ("🚨", "Security Alert"),
    NotificationType.COMPLIANCE_VIOLATION: ("⚖️", "Compliance Violation"),
    NotificationType.WORKFLOW_FAILURE: ("❌", "Workflow Failure"),
    NotificationType.SCAN_COMPLETED: ("✅", "Scan Completed"),
    NotificationType.RATE_LIMIT_WARNING: ("⏳", "Rate Limit Warning"),
    NotificationType.SYSTEM_MAINTENANCE: ("🛠️", "System Maintenance"),
}


class PayloadMessageRenderer(MessageRenderer):
    """Render a payload as text.

    The first line is always a plain-text headline (usable as an email subject);
    rich output adds HTML emphasis to the detail rows.
    """

    def render(self, payload: NotificationPayload, *, rich: bool = False) -> str:
        emoji, type_title = _TYPE_TITLES.get(
            payload.type, ("ℹ️", payload.type.value.replace("_", " ").title())
        )
        headline = f"[{payload.priority.value.upper()}] {payload.title}"
        if rich:
            headline = f"{emoji} {headline}"

        lines = [headline, "", payload.message]
        rows = [
            ("Type", type_title),
            ("Organization", payload.organization_name),
            ("Repository", payload.repository_name),
            ("Details", payload.action_url),
        ]
        details = [self._row(label, value, rich=rich) for label, value in rows if value]
        if details:
            lines.append("")
            lines.extend(details)
        return "\n".join(lines).strip()

    @staticmethod
    def _row(label: str, value: Any, *, rich: bool) -> str:
        if rich:
            return f"<b>{label}:</b> {value}"
        return f"{label}: {value}"
