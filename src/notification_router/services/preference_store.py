# -*- coding: utf-8 -*-
"""UserPreferenceStore: per-user preferences with defaults for unknown users."""

from __future__ import annotations

from typing import Any, Callable, Optional

import structlog

from notification_router.models.preferences import UserPreferences
from notification_router.persistence.repositories.interfaces import IUserPreferenceRepository


class UserPreferenceStore:
    """Reads return defaults for unknown users without storing them; writes replace the whole record."""

    def __init__(
        self,
        repository: IUserPreferenceRepository,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._repository = repository
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def get(self, user_id: str) -> UserPreferences:
        stored = await self._repository.get(user_id)
        if stored is not None:
            return stored
        return UserPreferences.defaults(user_id)

    async def upsert(self, preferences: UserPreferences) -> UserPreferences:
        if not preferences.user_id or not preferences.user_id.strip():
            raise ValueError("preferences.user_id must be non-empty")
        await self._repository.save(preferences)
        self._logger.info(
            "user_preferences_updated",
            user_id=preferences.user_id,
            enabled_channels=sorted(c.value for c, p in preferences.channels.items() if p.enabled),
        )
        return preferences
