"""Rule and threshold stores and their condition evaluation."""

from __future__ import annotations

import dataclasses
import itertools
import operator
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any

from .models import (
    DEFAULT_THRESHOLD_OPERATOR,
    Condition,
    CustomCondition,
    FormattingRule,
    Threshold,
)

# ============================================================================
# Comparison operators
# ============================================================================


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def loose_equal(a: Any, b: Any) -> bool:
    """Equality with numeric coercion: 5 == '5' and 1 == True."""
    if a is None or b is None:
        return a is None and b is None
    try:
        return float(a) == float(b)
    except (TypeError, ValueError):
        return a == b


def strict_equal(a: Any, b: Any) -> bool:
    """Equality without coercion: both numbers, or the same type."""
    if _is_number(a) and _is_number(b):
        return a == b
    return type(a) is type(b) and a == b


Comparator = Callable[[Any, Any], Any]


def _relational(compare: Comparator) -> Comparator:
    """Wrap an ordering operator so that numeric strings compare as numbers: "5" > 0."""

    def comparator(a: Any, b: Any) -> Any:
        if a is None or b is None:
            return False
        try:
            return compare(float(a), float(b))
        except (TypeError, ValueError):
            return compare(a, b)

    return comparator


THRESHOLD_OPERATORS: dict[str, Comparator] = {
    ">": _relational(operator.gt),
    ">=": _relational(operator.ge),
    "<": _relational(operator.lt),
    "<=": _relational(operator.le),
    "==": loose_equal,
    "===": strict_equal,
}

RULE_OPERATORS: dict[str, Comparator] = {
    **THRESHOLD_OPERATORS,
    "!=": lambda a, b: not loose_equal(a, b),
    "!==": lambda a, b: not strict_equal(a, b),
}


def _compare(comparator: Comparator, value: Any, operand: Any) -> bool:
    try:
        return bool(comparator(value, operand))
    except TypeError:
        # Incomparable operands (e.g. str > int) never match
        return False


def evaluate_condition(
    condition: Condition, value: Any, item: Any, index: int, dataset: Any
) -> bool:
    """Evaluate a rule condition against one data item.

    Custom callbacks receive (value, item, index, dataset); a falsy result is a
    non-match. Literal conditions with an unrecognized operator never match.
    """
    if isinstance(condition, CustomCondition):
        return bool(condition.callback(value, item, index, dataset))

    comparator = RULE_OPERATORS.get(condition.operator or "")
    if comparator is None:
        return False
    return _compare(comparator, value, condition.value)


def evaluate_threshold(threshold: Threshold, value: Any) -> bool:
    """Evaluate a threshold. Unrecognized operators behave as '>='."""
    comparator = THRESHOLD_OPERATORS.get(
        threshold.operator, THRESHOLD_OPERATORS[DEFAULT_THRESHOLD_OPERATOR]
    )
    return _compare(comparator, value, threshold.value)


# ============================================================================
# Stores
# ============================================================================


class RuleStore:
    """Formatting rules keyed by id, iterated in insertion order.

    Re-adding an existing id replaces the rule but keeps its original position.
    """

    def __init__(self) -> None:
        self._rules: dict[str, FormattingRule] = {}
        self._counter = itertools.count(1)

    def __contains__(self, rule_id: object) -> bool:
        return rule_id in self._rules

    def __iter__(self) -> Iterator[FormattingRule]:
        return iter(self._rules.values())

    def __len__(self) -> int:
        return len(self._rules)

    def _next_id(self) -> str:
        while True:
            rule_id = f"rule_{next(self._counter)}"
            if rule_id not in self._rules:
                return rule_id

    def add(self, rule: FormattingRule | Mapping[str, Any]) -> FormattingRule:
        """Add or replace a rule. Mappings get a generated id when they have none."""
        if not isinstance(rule, FormattingRule):
            rule = FormattingRule.from_mapping(rule, default_id=self._next_id())
        self._rules[rule.id] = rule
        return rule

    def remove(self, rule_id: str) -> bool:
        """Remove a rule by id. Returns False if it was not registered."""
        return self._rules.pop(rule_id, None) is not None

    def get(self, rule_id: str) -> FormattingRule | None:
        return self._rules.get(rule_id)

    def items(self) -> list[tuple[str, FormattingRule]]:
        """(id, rule) pairs in insertion order."""
        return list(self._rules.items())

    def replace(self, pairs: Iterable[tuple[str, Any]]) -> None:
        """Replace the whole store with (id, rule) pairs. The pair's id wins."""
        rules: dict[str, FormattingRule] = {}
        for rule_id, rule in pairs:
            if isinstance(rule, FormattingRule):
                rules[rule_id] = (
                    rule if rule.id == rule_id else dataclasses.replace(rule, id=rule_id)
                )
            else:
                rules[rule_id] = FormattingRule.from_mapping(
                    {**rule, "id": rule_id}, default_id=rule_id
                )
        self._rules = rules

    def clear(self) -> None:
        self._rules.clear()

    def active(self) -> list[FormattingRule]:
        """Enabled rules, highest priority first; ties keep insertion order."""
        enabled = [rule for rule in self._rules.values() if rule.enabled]
        # sorted() is stable, including with reverse=True
        return sorted(enabled, key=lambda rule: rule.priority, reverse=True)

    def evaluate(self, value: Any, item: Any, index: int, dataset: Any) -> list[FormattingRule]:
        """Every enabled rule matching the item, highest priority first."""
        return [
            rule
            for rule in self.active()
            if evaluate_condition(rule.condition, value, item, index, dataset)
        ]


class ThresholdStore:
    """Thresholds keyed by id, evaluated in insertion order (never priority-sorted)."""

    def __init__(self) -> None:
        self._thresholds: dict[str, Threshold] = {}
        self._counter = itertools.count(1)

    def __contains__(self, threshold_id: object) -> bool:
        return threshold_id in self._thresholds

    def __iter__(self) -> Iterator[Threshold]:
        return iter(self._thresholds.values())

    def __len__(self) -> int:
        return len(self._thresholds)

    def _next_id(self) -> str:
        while True:
            threshold_id = f"threshold_{next(self._counter)}"
            if threshold_id not in self._thresholds:
                return threshold_id

    def add(self, threshold: Threshold | Mapping[str, Any]) -> Threshold:
        """Add or replace a threshold. Mappings get a generated id when they have none."""
        if not isinstance(threshold, Threshold):
            threshold = Threshold.from_mapping(threshold, default_id=self._next_id())
        self._thresholds[threshold.id] = threshold
        return threshold

    def remove(self, threshold_id: str) -> bool:
        """Remove a threshold by id. Returns False if it was not registered."""
        return self._thresholds.pop(threshold_id, None) is not None

    def get(self, threshold_id: str) -> Threshold | None:
        return self._thresholds.get(threshold_id)

    def items(self) -> list[tuple[str, Threshold]]:
        """(id, threshold) pairs in insertion order."""
        return list(self._thresholds.items())

    def replace(self, pairs: Iterable[tuple[str, Any]]) -> None:
        """Replace the whole store with (id, threshold) pairs. The pair's id wins."""
        thresholds: dict[str, Threshold] = {}
        for threshold_id, threshold in pairs:
            if isinstance(threshold, Threshold):
                thresholds[threshold_id] = (
                    threshold
                    if threshold.id == threshold_id
                    else dataclasses.replace(threshold, id=threshold_id)
                )
            else:
                thresholds[threshold_id] = Threshold.from_mapping(
                    {**threshold, "id": threshold_id}, default_id=threshold_id
                )
        self._thresholds = thresholds

    def clear(self) -> None:
        self._thresholds.clear()

    def evaluate(self, value: Any) -> list[Threshold]:
        """Every threshold matching the value, in insertion order."""
        return [
            threshold
            for threshold in self._thresholds.values()
            if evaluate_threshold(threshold, value)
        ]
