"""Validation framework for Firestore documents.

Provides the type checker, field validator and custom rule evaluator used to
check document data against a collection schema.
"""

from __future__ import annotations

from fsaudit.validators.base import (
    AuditedDocument,
    Severity,
    Violation,
    severity_for,
)
from fsaudit.validators.custom_rules import (
    RuleRegistry,
    evaluate_custom_rule,
    get_default_registry,
)
from fsaudit.validators.field_validator import validate_field
from fsaudit.validators.type_checker import describe_type, is_valid_type, to_datetime

__all__ = [
    # Base types
    "AuditedDocument",
    "Severity",
    "Violation",
    "severity_for",
    # Checks
    "describe_type",
    "is_valid_type",
    "to_datetime",
    "validate_field",
    # Custom rules
    "RuleRegistry",
    "evaluate_custom_rule",
    "get_default_registry",
]
