"""Fixer that fills missing required fields with schema defaults."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from fsaudit.fixers.base import BaseFixer, FixResult
from fsaudit.schema import CollectionSchema, FieldSchema
from fsaudit.store import StoreDocument
from fsaudit.validators.base import MISSING_REQUIRED_FIELD, Violation


def resolve_field_schema(schema: CollectionSchema, field_path: str) -> FieldSchema | None:
    """Find the schema of a possibly dotted field path ("address.city").

    Returns:
        The FieldSchema, or None if the path is not declared.
    """
    head, *rest = field_path.split(".")
    current = schema.properties.get(head)
    for part in rest:
        if current is None:
            return None
        current = current.properties.get(part)
    return current


class DefaultValueFixer(BaseFixer):
    """Sets schema-declared defaults for missing required fields.

    All defaults for a document are written in a single partial update, so a
    document is either fully fixed or left untouched. Dotted keys address
    nested fields. Defaults are deterministic, so re-running the fix against
    an already fixed document writes the same values.
    """

    fix_id = MISSING_REQUIRED_FIELD

    def compute_update(
        self, violations: Sequence[Violation], schema: CollectionSchema
    ) -> dict[str, Any]:
        """Build the partial update for a document's violations."""
        update: dict[str, Any] = {}
        for violation in violations:
            if not self.can_fix(violation) or violation.field is None:
                continue
            field_schema = resolve_field_schema(schema, violation.field)
            if field_schema is not None and field_schema.has_default:
                update[violation.field] = field_schema.default
        return update

    def fix(
        self,
        document: StoreDocument,
        violations: Sequence[Violation],
        schema: CollectionSchema,
    ) -> FixResult:
        """Apply defaults for missing required fields.

        Args:
            document: The audited document.
            violations: All violations found on the document.
            schema: Schema of the document's collection.

        Returns:
            FixResult with applied=True when an update was written.
        """
        update = self.compute_update(violations, schema)
        if not update:
            return FixResult(success=True, message=f"Nothing to fix in {document.path}")

        try:
            self.store.update_document(document.path, update)
        except Exception as e:
            return FixResult(success=False, message=str(e), fields_updated=update)

        return FixResult(
            success=True,
            message=f"Fixed {document.path}: set {', '.join(sorted(update))}",
            applied=True,
            fields_updated=update,
        )
