# -*- coding: utf-8 -*-
"""Abstract interface for user preference storage (in-memory, DB, etc.)."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from notification_router.models.preferences import UserPreferences


class IUserPreferenceRepository(ABC):
    """Interface for persisting UserPreferences (one record per user id)."""

    @abstractmethod
    async def get(self, user_id: str) -> Optional[UserPreferences]:
        """Return the stored preferences for user_id, or None if the user has none."""
        ...

    @abstractmethod
    async def save(self, preferences: UserPreferences) -> None:
        """Insert or replace the whole record for preferences.user_id."""
        ...

    @abstractmethod
    async def list_user_ids(self) -> list[str]:
        """Return every user id with stored preferences."""
        ...
