"""In-memory user preference repository (keyed by user id)."""

from __future__ import annotations

from notification_router.models.preferences import UserPreferences
from notification_router.persistence.repositories.interfaces.user_preference_repository import (
    IUserPreferenceRepository,
)


class InMemoryUserPreferenceRepository(IUserPreferenceRepository):
    """In-memory implementation of IUserPreferenceRepository."""

    def __init__(self) -> None:
        self._store: dict[str, UserPreferences] = {}

    async def get(self, user_id: str) -> UserPreferences | None:
        return self._store.get(user_id)

    async def save(self, preferences: UserPreferences) -> None:
        self._store[preferences.user_id] = preferences

    async def list_user_ids(self) -> list[str]:
        return list(self._store)
