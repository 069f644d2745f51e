"""Interpreter for rule conditions.

Conditions are evaluated against a fixed view of the payload: its public fields
plus `metadata.<key>[.<key>...]` walking nested mappings. Evaluation is total:
missing paths, type mismatches and failed regex matches all yield False.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Iterable, Mapping

from notification_router.models.payload import NotificationPayload, NotificationPriority
from notification_router.models.rule import ConditionOperator, NotificationCondition

_MISSING = object()

_PAYLOAD_FIELDS = frozenset(
    {
        "id",
        "type",
        "priority",
        "title",
        "message",
        "organization_name",
        "timestamp",
        "dismissible",
        "repository_name",
        "action_url",
        "expires_at",
    }
)


def resolve_field(payload: NotificationPayload, path: str) -> Any:
    """Return the value at dotted path, or the _MISSING sentinel."""
    root, *rest = path.split(".")
    if root == "metadata":
        node: Any = payload.metadata
    elif root in _PAYLOAD_FIELDS and not rest:
        return getattr(payload, root)
    else:
        return _MISSING
    for part in rest:
        if not isinstance(node, Mapping) or part not in node:
            return _MISSING
        node = node[part]
    return node


def _as_priority(value: Any) -> NotificationPriority | None:
    try:
        return NotificationPriority(value)
    except ValueError:
        return None


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _compare(actual: Any, expected: Any) -> int | None:
    """Three-way compare for ordering operators; None when the values do not order."""
    if isinstance(actual, NotificationPriority):
        other = _as_priority(expected)
        if other is None:
            return None
        return (actual.rank > other.rank) - (actual.rank < other.rank)
    if _is_number(actual) and _is_number(expected):
        return (actual > expected) - (actual < expected)
    if isinstance(actual, str) and isinstance(expected, str):
        return (actual > expected) - (actual < expected)
    return None


def _normalize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


def evaluate_condition(condition: NotificationCondition, payload: NotificationPayload) -> bool:
    actual = resolve_field(payload, condition.field)
    if actual is _MISSING:
        return False
    expected = condition.value
    op = condition.operator

    if op in (ConditionOperator.EQUALS, ConditionOperator.NOT_EQUALS):
        equal = _normalize(actual) == expected
        return equal if op == ConditionOperator.EQUALS else not equal

    if op in (ConditionOperator.GREATER_THAN, ConditionOperator.LESS_THAN):
        order = _compare(actual, expected)
        if order is None:
            return False
        return order > 0 if op == ConditionOperator.GREATER_THAN else order < 0

    if op == ConditionOperator.CONTAINS:
        if isinstance(actual, str):
            return isinstance(expected, str) and expected in actual
        if isinstance(actual, (list, tuple, set, frozenset)):
            return expected in actual
        if isinstance(actual, Mapping):
            return expected in actual
        return False

    if op == ConditionOperator.MATCHES_REGEX:
        text = _normalize(actual)
        if not isinstance(text, str) or not isinstance(expected, str):
            return False
        return re.search(expected, text) is not None

    return False


def evaluate_all(conditions: Iterable[NotificationCondition], payload: NotificationPayload) -> bool:
    """Conjunction of every condition. An empty list is True."""
    return all(evaluate_condition(c, payload) for c in conditions)
