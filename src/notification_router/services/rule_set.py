# -*- coding: utf-8 -*-
"""NotificationRuleSet: ordered routing rules and payload matching."""

from __future__ import annotations

from typing import Any, Callable, Mapping, Optional

import structlog

from notification_router.exceptions import InvalidRuleError
from notification_router.models.payload import NotificationPayload
from notification_router.models.rule import NotificationRule
from notification_router.persistence.repositories.interfaces import INotificationRuleRepository
from notification_router.services.conditions import evaluate_all


class NotificationRuleSet:
    """Rules keyed by id, matched in insertion order."""

    def __init__(
        self,
        repository: INotificationRuleRepository,
        *,
        get_logger: Callable[[str], Any] = structlog.get_logger,
        logger_name: Optional[str] = None,
    ) -> None:
        self._repository = repository
        self._logger = get_logger(logger_name or self.__class__.__name__)

    async def add_rule(self, rule: NotificationRule | Mapping[str, Any]) -> NotificationRule:
        """Validate and store a rule, replacing any rule with the same id.

        Raises:
            InvalidRuleError: If rule is not a NotificationRule and cannot be built from a mapping.
        """
        if isinstance(rule, Mapping):
            rule = NotificationRule.from_dict(rule)
        elif not isinstance(rule, NotificationRule):
            raise InvalidRuleError(f"expected NotificationRule, got {type(rule).__name__}")
        await self._repository.save(rule)
        self._logger.info(
            "notification_rule_added",
            rule_id=rule.id,
            notification_type=rule.notification_type.value,
            conditions=len(rule.conditions),
        )
        return rule

    async def remove_rule(self, rule_id: str) -> bool:
        removed = await self._repository.delete(rule_id)
        if removed:
            self._logger.info("notification_rule_removed", rule_id=rule_id)
        return removed

    async def get_rule(self, rule_id: str) -> NotificationRule | None:
        return await self._repository.get(rule_id)

    async def list_rules(self) -> list[NotificationRule]:
        return await self._repository.list_all()

    async def match(self, payload: NotificationPayload) -> list[NotificationRule]:
        """Enabled rules of the payload's type whose conditions all hold, in insertion order."""
        return [
            rule
            for rule in await self._repository.list_by_type(payload.type)
            if rule.enabled and evaluate_all(rule.conditions, payload)
        ]
