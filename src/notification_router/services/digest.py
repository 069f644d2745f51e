# -*- coding: utf-8 -*-
"""DigestAccumulator: buffers digest-eligible notifications per (user, frequency)."""

from __future__ import annotations

from typing import Any, Callable, Optional

import structlog

from notification_router.models.digest import DigestFrequency, NotificationDigest
from notification_router.models.payload import NotificationPayload
from notification_router.services.preference_store import UserPreferenceStore


class DigestAccumulator:
    """Pending payloads per (user_id, frequency).

    Snapshot-and-clear in generate_digest() runs without awaiting in between, so a
    concurrent accumulate() lands either in the returned digest or in the next one.
    """

    def __init__(
        self,
        preference_store: UserPreferenceStore,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._preferences = preference_store
        self._logger = get_logger(logger_name or self.__class__.__name__)
        self._pending: dict[tuple[str, DigestFrequency], dict[str, NotificationPayload]] = {}

    async def accumulate(
        self,
        user_id: str,
        payload: NotificationPayload,
        frequency: DigestFrequency | str = DigestFrequency.DAILY,
    ) -> bool:
        """Add payload to the user's pending set for frequency.

        Returns:
            True if the payload is (now) pending, False if the user's preferences
            exclude it from digests. Adding the same payload twice keeps one copy.
        """
        frequency = DigestFrequency(frequency)
        preferences = await self._preferences.get(user_id)
        if not preferences.is_digest_eligible(payload.type):
            self._logger.debug(
                "digest_accumulate_rejected",
                user_id=user_id,
                notification_type=payload.type.value,
            )
            return False
        pending = self._pending.setdefault((user_id, frequency), {})
        pending.setdefault(payload.id, payload)
        self._logger.debug(
            "digest_accumulated",
            user_id=user_id,
            frequency=frequency.value,
            pending=len(pending),
        )
        return True

    async def generate_digest(
        self,
        user_id: str,
        frequency: DigestFrequency | str = DigestFrequency.DAILY,
    ) -> NotificationDigest:
        """Snapshot and clear the pending set for (user_id, frequency).

        If the user's global digest setting is off the digest is empty; the pending
        set is still cleared.
        """
        frequency = DigestFrequency(frequency)
        preferences = await self._preferences.get(user_id)
        pending = self._pending.pop((user_id, frequency), {})
        notifications = list(pending.values()) if preferences.global_settings.enable_digest else []
        digest = NotificationDigest.create(user_id, frequency, notifications)
        self._logger.info(
            "digest_generated",
            user_id=user_id,
            frequency=frequency.value,
            digest_id=digest.id,
            notifications=len(digest.notifications),
            dropped=len(pending) - len(notifications),
        )
        return digest

    def pending_count(self, user_id: str, frequency: DigestFrequency | str = DigestFrequency.DAILY) -> int:
        return len(self._pending.get((user_id, DigestFrequency(frequency)), ()))
