"""Fixer framework for automatically resolving document violations."""

from __future__ import annotations

from fsaudit.fixers.base import BaseFixer, FixResult
from fsaudit.fixers.default_value_fixer import DefaultValueFixer, resolve_field_schema

__all__ = [
    # Base types
    "BaseFixer",
    "FixResult",
    # Fixers
    "DefaultValueFixer",
    "resolve_field_schema",
]
