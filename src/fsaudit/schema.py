"""Schema model and loader for fsaudit.

The schema file is a JSON object of the form::

    {
      "version": "1.0.0",
      "title": "My App",
      "collections": {
        "bars": {
          "path": "bars/{barId}",
          "required": ["name"],
          "properties": {"name": {"type": "string", "minLength": 2}},
          "customValidations": {}
        }
      }
    }

Schemas are loaded once per run and never mutated afterwards, so every model
here is a frozen dataclass holding tuples and read-only mappings.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any

from fsaudit.errors import SchemaError

FIELD_TYPES = ("string", "number", "boolean", "array", "object", "timestamp")


def _empty_mapping() -> Mapping[str, Any]:
    return MappingProxyType({})


@dataclass(frozen=True)
class FieldSchema:
    """Declared constraints for a single document field.

    Attributes:
        type: Declared type name (see FIELD_TYPES). Unknown names fail open.
        min_length: Minimum string length.
        max_length: Maximum string length.
        pattern: Regular expression a string must match (search semantics).
        enum: Allowed string values.
        minimum: Minimum numeric value.
        maximum: Maximum numeric value.
        max_items: Maximum array length.
        properties: Nested field schemas for object fields.
        required: Nested field names required on object fields.
        default: Value used by the fixer when the field is missing.
        has_default: Whether the schema declared a default (null is a valid default).
    """

    type: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    pattern: str | None = None
    enum: tuple[Any, ...] | None = None
    minimum: float | None = None
    maximum: float | None = None
    max_items: int | None = None
    properties: Mapping[str, FieldSchema] = field(default_factory=_empty_mapping)
    required: tuple[str, ...] = ()
    default: Any = None
    has_default: bool = False
    compiled_pattern: re.Pattern[str] | None = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class CustomRule:
    """A named cross-field rule declared under customValidations."""

    name: str
    description: str = ""
    params: Mapping[str, Any] = field(default_factory=_empty_mapping)


@dataclass(frozen=True)
class CollectionSchema:
    """Schema for one collection or subcollection."""

    name: str
    path: str
    required: tuple[str, ...] = ()
    properties: Mapping[str, FieldSchema] = field(default_factory=_empty_mapping)
    custom_validations: Mapping[str, CustomRule] = field(default_factory=_empty_mapping)


@dataclass(frozen=True)
class AuditSchema:
    """A complete schema file."""

    version: str | None
    title: str | None
    collections: Mapping[str, CollectionSchema]


# -----------------------------------------------------------------------------
# Parsing
# -----------------------------------------------------------------------------


def _expect_mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise SchemaError(f"{where} must be an object, got {type(value).__name__}")
    return value


def _expect_names(value: Any, where: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise SchemaError(f"{where} must be a list of field names")
    return tuple(value)


def _expect_int(value: Any, where: str) -> int | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise SchemaError(f"{where} must be a non-negative integer")
    return value


def _expect_number(value: Any, where: str) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise SchemaError(f"{where} must be a number")
    return value


def parse_field_schema(data: Any, where: str) -> FieldSchema:
    """Parse a field schema object.

    Args:
        data: Raw JSON value for the field.
        where: Location used in error messages (e.g. "bars.properties.name").

    Returns:
        The parsed FieldSchema.

    Raises:
        SchemaError: If the field schema is malformed.
    """
    raw = _expect_mapping(data, where)

    field_type = raw.get("type")
    if field_type is not None and not isinstance(field_type, str):
        raise SchemaError(f"{where}.type must be a string")

    pattern = raw.get("pattern")
    compiled: re.Pattern[str] | None = None
    if pattern is not None:
        if not isinstance(pattern, str):
            raise SchemaError(f"{where}.pattern must be a string")
        try:
            compiled = re.compile(pattern)
        except re.error as e:
            raise SchemaError(f"{where}.pattern is not a valid regular expression: {e}") from e

    enum = raw.get("enum")
    if enum is not None and not isinstance(enum, list):
        raise SchemaError(f"{where}.enum must be a list")

    nested: dict[str, FieldSchema] = {}
    for name, nested_raw in _expect_mapping(raw.get("properties", {}), f"{where}.properties").items():
        nested[name] = parse_field_schema(nested_raw, f"{where}.{name}")

    return FieldSchema(
        type=field_type,
        min_length=_expect_int(raw.get("minLength"), f"{where}.minLength"),
        max_length=_expect_int(raw.get("maxLength"), f"{where}.maxLength"),
        pattern=pattern,
        enum=tuple(enum) if enum is not None else None,
        minimum=_expect_number(raw.get("minimum"), f"{where}.minimum"),
        maximum=_expect_number(raw.get("maximum"), f"{where}.maximum"),
        max_items=_expect_int(raw.get("maxItems"), f"{where}.maxItems"),
        properties=MappingProxyType(nested),
        required=_expect_names(raw.get("required"), f"{where}.required"),
        default=raw.get("default"),
        has_default="default" in raw,
        compiled_pattern=compiled,
    )


def parse_collection_schema(name: str, data: Any) -> CollectionSchema:
    """Parse the schema of a single collection.

    Raises:
        SchemaError: If the collection schema is malformed.
    """
    raw = _expect_mapping(data, name)

    path = raw.get("path", name)
    if not isinstance(path, str) or not path.strip("/"):
        raise SchemaError(f"{name}.path must be a non-empty string")

    properties = {
        field_name: parse_field_schema(field_raw, f"{name}.properties.{field_name}")
        for field_name, field_raw in _expect_mapping(
            raw.get("properties", {}), f"{name}.properties"
        ).items()
    }

    rules: dict[str, CustomRule] = {}
    for rule_name, rule_raw in _expect_mapping(
        raw.get("customValidations", {}), f"{name}.customValidations"
    ).items():
        rule_data = _expect_mapping(rule_raw, f"{name}.customValidations.{rule_name}")
        rules[rule_name] = CustomRule(
            name=rule_name,
            description=str(rule_data.get("description", "")),
            params=MappingProxyType(
                {k: v for k, v in rule_data.items() if k != "description"}
            ),
        )

    return CollectionSchema(
        name=name,
        path=path.strip("/"),
        required=_expect_names(raw.get("required"), f"{name}.required"),
        properties=MappingProxyType(properties),
        custom_validations=MappingProxyType(rules),
    )


def parse_schema(data: Any) -> AuditSchema:
    """Parse a decoded schema document.

    Raises:
        SchemaError: If the document does not describe any collections or
            any part of it is malformed.
    """
    raw = _expect_mapping(data, "schema")
    collections_raw = _expect_mapping(raw.get("collections", {}), "collections")
    if not collections_raw:
        raise SchemaError("schema declares no collections")

    collections = {
        name: parse_collection_schema(name, collection_raw)
        for name, collection_raw in collections_raw.items()
    }

    version = raw.get("version")
    title = raw.get("title")
    return AuditSchema(
        version=str(version) if version is not None else None,
        title=str(title) if title is not None else None,
        collections=MappingProxyType(collections),
    )


def load_schema(path: str | Path) -> AuditSchema:
    """Load and parse a schema file.

    Args:
        path: Path to the JSON schema file.

    Returns:
        The parsed AuditSchema.

    Raises:
        SchemaError: If the file is missing, is not valid JSON, or is malformed.
    """
    schema_path = Path(path)
    if not schema_path.is_file():
        raise SchemaError(f"Schema file not found: {schema_path}")

    try:
        data = json.loads(schema_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SchemaError(f"Schema file is not valid JSON ({schema_path}): {e}") from e
    except OSError as e:
        raise SchemaError(f"Cannot read schema file {schema_path}: {e}") from e

    return parse_schema(data)
