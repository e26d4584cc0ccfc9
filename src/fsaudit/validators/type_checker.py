"""Runtime type checks for dynamic document values.

Firestore hands back plain Python values: str, int, float, bool, list, dict,
None and datetime subclasses for timestamps. Declared types that this module
does not know are treated as valid (fail-open).
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any

_TIMESTAMP_METHODS = ("to_datetime", "ToDatetime", "to_date")


def _has_date_conversion(value: Any) -> bool:
    return any(callable(getattr(value, name, None)) for name in _TIMESTAMP_METHODS)


def is_valid_type(value: Any, declared_type: str) -> bool:
    """Check whether a value conforms to a declared schema type.

    Args:
        value: Runtime value taken from a document.
        declared_type: Type name from the schema.

    Returns:
        True if the value matches, or if the declared type is unknown.
    """
    if declared_type == "string":
        return isinstance(value, str)
    if declared_type == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if declared_type == "boolean":
        return isinstance(value, bool)
    if declared_type == "array":
        return isinstance(value, (list, tuple))
    if declared_type == "object":
        return isinstance(value, Mapping)
    if declared_type == "timestamp":
        return isinstance(value, datetime) or _has_date_conversion(value)
    return True


def describe_type(value: Any) -> str:
    """Name the type of a runtime value using the schema vocabulary."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    if isinstance(value, datetime) or _has_date_conversion(value):
        return "timestamp"
    return type(value).__name__


def to_datetime(value: Any) -> datetime | None:
    """Convert a timestamp-like value to an aware datetime.

    Accepts datetimes (naive values are taken as UTC), objects exposing a
    date conversion method, ISO-8601 strings and epoch milliseconds.

    Returns:
        The converted datetime, or None if the value cannot be converted.
    """
    converted: Any = value
    if not isinstance(value, (datetime, date, str, int, float)) or isinstance(value, bool):
        converted = None
        for name in _TIMESTAMP_METHODS:
            method = getattr(value, name, None)
            if callable(method):
                try:
                    converted = method()
                except (TypeError, ValueError, OverflowError):
                    return None
                break

    if isinstance(converted, str):
        text = converted.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            converted = datetime.fromisoformat(text)
        except ValueError:
            return None
    elif isinstance(converted, (int, float)) and not isinstance(converted, bool):
        try:
            converted = datetime.fromtimestamp(converted / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(converted, date) and not isinstance(converted, datetime):
        converted = datetime(converted.year, converted.month, converted.day)

    if not isinstance(converted, datetime):
        return None
    if converted.tzinfo is None:
        converted = converted.replace(tzinfo=timezone.utc)
    return converted
