"""Field-level validation against a FieldSchema.

A value whose runtime type does not match the declared type only produces an
``invalid_type`` violation. Constraint checks (length, pattern, enum, range,
item count) and nested-object recursion run only when the value has the shape
the constraint applies to. When they do run, every declared constraint is
evaluated independently, so a single value can produce several violations.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from fsaudit.schema import FieldSchema
from fsaudit.validators.base import (
    ENUM_VIOLATION,
    INVALID_TYPE,
    MAX_ITEMS_VIOLATION,
    MAX_LENGTH_VIOLATION,
    MAXIMUM_VIOLATION,
    MIN_LENGTH_VIOLATION,
    MINIMUM_VIOLATION,
    MISSING_REQUIRED_FIELD,
    PATTERN_VIOLATION,
    Violation,
)
from fsaudit.validators.type_checker import describe_type, is_valid_type


def validate_field(name: str, value: Any, field_schema: FieldSchema) -> list[Violation]:
    """Validate one field value.

    Args:
        name: Field name, dotted for nested fields (e.g. "address.city").
        value: Value found in the document.
        field_schema: Declared schema for the field.

    Returns:
        Violations in detection order. Empty if the value is valid.
    """
    if field_schema.type is not None and not is_valid_type(value, field_schema.type):
        return [
            Violation.create(
                INVALID_TYPE,
                name,
                expected=field_schema.type,
                actual=describe_type(value),
            )
        ]

    violations: list[Violation] = []

    if field_schema.type == "string" and isinstance(value, str):
        violations.extend(_check_string(name, value, field_schema))
    elif field_schema.type == "number" and is_valid_type(value, "number"):
        violations.extend(_check_number(name, value, field_schema))
    elif field_schema.type == "array" and isinstance(value, (list, tuple)):
        if field_schema.max_items is not None and len(value) > field_schema.max_items:
            violations.append(
                Violation.create(
                    MAX_ITEMS_VIOLATION,
                    name,
                    maxItems=field_schema.max_items,
                    actualItems=len(value),
                )
            )

    if field_schema.type == "object" and field_schema.properties and isinstance(value, Mapping):
        violations.extend(_check_nested(name, value, field_schema))

    return violations


def _check_string(name: str, value: str, field_schema: FieldSchema) -> list[Violation]:
    violations: list[Violation] = []

    if field_schema.min_length is not None and len(value) < field_schema.min_length:
        violations.append(
            Violation.create(
                MIN_LENGTH_VIOLATION,
                name,
                minLength=field_schema.min_length,
                actualLength=len(value),
            )
        )

    if field_schema.max_length is not None and len(value) > field_schema.max_length:
        violations.append(
            Violation.create(
                MAX_LENGTH_VIOLATION,
                name,
                maxLength=field_schema.max_length,
                actualLength=len(value),
            )
        )

    if field_schema.compiled_pattern is not None and not field_schema.compiled_pattern.search(value):
        violations.append(
            Violation.create(
                PATTERN_VIOLATION,
                name,
                pattern=field_schema.pattern,
                value=value,
            )
        )

    if field_schema.enum is not None and value not in field_schema.enum:
        violations.append(
            Violation.create(
                ENUM_VIOLATION,
                name,
                allowedValues=list(field_schema.enum),
                actualValue=value,
            )
        )

    return violations


def _check_number(name: str, value: float, field_schema: FieldSchema) -> list[Violation]:
    violations: list[Violation] = []

    if field_schema.minimum is not None and value < field_schema.minimum:
        violations.append(
            Violation.create(MINIMUM_VIOLATION, name, minimum=field_schema.minimum, actualValue=value)
        )

    if field_schema.maximum is not None and value > field_schema.maximum:
        violations.append(
            Violation.create(MAXIMUM_VIOLATION, name, maximum=field_schema.maximum, actualValue=value)
        )

    return violations


def _check_nested(name: str, value: Mapping[str, Any], field_schema: FieldSchema) -> list[Violation]:
    violations: list[Violation] = []

    # Only this level's `required` is checked here; deeper levels are checked
    # by the recursive call when the nested object is present.
    for nested_name, nested_schema in field_schema.properties.items():
        nested_path = f"{name}.{nested_name}"
        if nested_name in value:
            violations.extend(validate_field(nested_path, value[nested_name], nested_schema))
        elif nested_name in field_schema.required:
            violations.append(Violation.create(MISSING_REQUIRED_FIELD, nested_path))

    return violations
