"""Base models for the fsaudit validation framework.

Provides the violation and audited-document records produced while checking
documents against a schema.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field as dc_field
from types import MappingProxyType
from typing import Any, Literal

Severity = Literal["error", "warning"]

# Violation types
MISSING_REQUIRED_FIELD = "missing_required_field"
INVALID_TYPE = "invalid_type"
MIN_LENGTH_VIOLATION = "min_length_violation"
MAX_LENGTH_VIOLATION = "max_length_violation"
PATTERN_VIOLATION = "pattern_violation"
ENUM_VIOLATION = "enum_violation"
MINIMUM_VIOLATION = "minimum_violation"
MAXIMUM_VIOLATION = "maximum_violation"
MAX_ITEMS_VIOLATION = "max_items_violation"
UNKNOWN_FIELD = "unknown_field"
CUSTOM_VALIDATION_FAILED = "custom_validation_failed"

WARNING_TYPES = frozenset({UNKNOWN_FIELD})


def _empty_mapping() -> Mapping[str, Any]:
    return MappingProxyType({})


def severity_for(violation_type: str) -> Severity:
    """Return the severity attached to a violation type."""
    return "warning" if violation_type in WARNING_TYPES else "error"


@dataclass(frozen=True)
class Violation:
    """A single deviation between a document and its schema.

    Attributes:
        type: Violation type (e.g. "missing_required_field").
        severity: "error" or "warning".
        field: Field name, dotted for nested fields. None for document-level rules.
        details: Type-specific details, keyed as they appear in the report
            (e.g. {"expected": "string", "actual": "number"}).
    """

    type: str
    severity: Severity
    field: str | None = None
    details: Mapping[str, Any] = dc_field(default_factory=_empty_mapping)

    @classmethod
    def create(cls, violation_type: str, field_name: str | None = None, **details: Any) -> Violation:
        """Build a violation with the severity implied by its type."""
        return cls(
            type=violation_type,
            severity=severity_for(violation_type),
            field=field_name,
            details=MappingProxyType(details),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the report representation."""
        result: dict[str, Any] = {"type": self.type}
        if self.field is not None:
            result["field"] = self.field
        result.update(self.details)
        result["severity"] = self.severity
        return result


@dataclass(frozen=True)
class AuditedDocument:
    """Report entry for a document that produced at least one violation.

    Attributes:
        document: Full document path (e.g. "bars/abc/events/xyz").
        document_id: Document identifier.
        collection: Collection path as declared by the schema.
        issues: Violations in detection order.
        data: Sanitized snapshot of the document data.
        context: Parent context (e.g. {"parentId": "abc"}), empty for top-level documents.
    """

    document: str
    document_id: str
    collection: str
    issues: tuple[Violation, ...]
    data: Mapping[str, Any]
    context: Mapping[str, Any] = dc_field(default_factory=_empty_mapping)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warning_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "warning")

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the report representation."""
        return {
            "document": self.document,
            "documentId": self.document_id,
            "collection": self.collection,
            "issues": [issue.to_dict() for issue in self.issues],
            "data": dict(self.data),
            "context": dict(self.context),
        }
