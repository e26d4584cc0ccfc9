"""Cross-field rules declared under ``customValidations``.

Rules are looked up by name in a registry. A rule whose inputs are absent
from the document does not apply and produces no violations. Names without a
registered implementation are ignored.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from fsaudit.schema import CustomRule
from fsaudit.validators.base import CUSTOM_VALIDATION_FAILED, Violation
from fsaudit.validators.type_checker import to_datetime

RuleCheck = Callable[[Mapping[str, Any], CustomRule], bool]
"""Returns True when the document violates the rule."""


class RuleRegistry:
    """Maps rule names to check functions.

    Example:
        >>> registry = RuleRegistry()
        >>> registry.register("hasTitle", lambda data, rule: "title" not in data)
        >>> registry.evaluate({}, CustomRule(name="hasTitle"), "hasTitle")
        [Violation(type='custom_validation_failed', ...)]
    """

    def __init__(self) -> None:
        self._rules: dict[str, RuleCheck] = {}

    def register(self, name: str, check: RuleCheck) -> None:
        """Register a check function under a rule name.

        Raises:
            ValueError: If a rule with the same name is already registered.
        """
        if name in self._rules:
            raise ValueError(f"Rule '{name}' already registered")
        self._rules[name] = check

    def get(self, name: str) -> RuleCheck | None:
        return self._rules.get(name)

    def has_rule(self, name: str) -> bool:
        return name in self._rules

    def list_rules(self) -> list[str]:
        """List registered rule names, sorted."""
        return sorted(self._rules)

    def evaluate(self, data: Mapping[str, Any], rule: CustomRule, rule_name: str) -> list[Violation]:
        """Evaluate a named rule against document data.

        Args:
            data: Document data.
            rule: The rule declaration from the schema.
            rule_name: Name used for dispatch.

        Returns:
            A single custom_validation_failed violation if the rule fails,
            otherwise an empty list.
        """
        check = self.get(rule_name)
        if check is None or not check(data, rule):
            return []
        return [
            Violation.create(
                CUSTOM_VALIDATION_FAILED,
                rule=rule_name,
                description=rule.description,
            )
        ]


def _present(data: Mapping[str, Any], name: str) -> bool:
    return data.get(name) is not None


def end_at_before_start_at(data: Mapping[str, Any], rule: CustomRule) -> bool:
    """Detect an ``endAt`` that is strictly earlier than ``startAt``."""
    if not (_present(data, "endAt") and _present(data, "startAt")):
        return False

    start_at = to_datetime(data["startAt"])
    end_at = to_datetime(data["endAt"])
    if start_at is None or end_at is None:
        return False
    return end_at < start_at


_default_registry: RuleRegistry | None = None


def get_default_registry() -> RuleRegistry:
    """Get the registry of built-in rules."""
    global _default_registry
    if _default_registry is None:
        registry = RuleRegistry()
        registry.register("endAtAfterStartAt", end_at_before_start_at)
        _default_registry = registry
    return _default_registry


def evaluate_custom_rule(
    data: Mapping[str, Any],
    rule: CustomRule,
    rule_name: str,
    registry: RuleRegistry | None = None,
) -> list[Violation]:
    """Evaluate a named custom rule using the given or built-in registry."""
    return (registry or get_default_registry()).evaluate(data, rule, rule_name)
