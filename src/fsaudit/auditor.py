"""Document-level auditing.

Checks a document against its collection schema, records the outcome in the
run statistics and, in fix mode, hands invalid documents to the fixer.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Any

from fsaudit.fixers.base import BaseFixer, FixResult
from fsaudit.report import DEFAULT_REDACT_FIELDS, sanitize_data
from fsaudit.schema import CollectionSchema
from fsaudit.stats import AuditStatistics
from fsaudit.store import StoreDocument
from fsaudit.validators.base import (
    MISSING_REQUIRED_FIELD,
    UNKNOWN_FIELD,
    AuditedDocument,
    Violation,
)
from fsaudit.validators.custom_rules import RuleRegistry, evaluate_custom_rule
from fsaudit.validators.field_validator import validate_field

FixCallback = Callable[[StoreDocument, FixResult], None]


class DocumentAuditor:
    """Audits documents and accumulates results for one run.

    Violations are collected in a fixed order: missing required fields,
    declared property checks (schema order), unknown fields, custom rules.

    Attributes:
        stats: Statistics accumulator for the run.
        audited: Report entries for invalid documents, in audit order.
        fixer: Fixer applied to invalid documents, or None when fixes are off.
    """

    def __init__(
        self,
        stats: AuditStatistics,
        *,
        fixer: BaseFixer | None = None,
        redact_fields: Iterable[str] = DEFAULT_REDACT_FIELDS,
        rules: RuleRegistry | None = None,
        on_fix: FixCallback | None = None,
    ) -> None:
        """Initialize the auditor.

        Args:
            stats: Statistics accumulator to update.
            fixer: Fixer to run on invalid documents. None disables fixing.
            redact_fields: Field names redacted from report snapshots.
            rules: Custom rule registry. Defaults to the built-in rules.
            on_fix: Called with the outcome of every fix attempt.
        """
        self.stats = stats
        self.fixer = fixer
        self.redact_fields = tuple(redact_fields)
        self.rules = rules
        self.on_fix = on_fix
        self.audited: list[AuditedDocument] = []

    def check_document(self, data: Mapping[str, Any], schema: CollectionSchema) -> list[Violation]:
        """Collect every violation of a document without recording anything."""
        violations: list[Violation] = []

        for name in schema.required:
            if name not in data:
                violations.append(Violation.create(MISSING_REQUIRED_FIELD, name))

        for name, field_schema in schema.properties.items():
            if name in data:
                violations.extend(validate_field(name, data[name], field_schema))

        for name in data:
            if name not in schema.properties:
                violations.append(Violation.create(UNKNOWN_FIELD, name))

        for rule_name, rule in schema.custom_validations.items():
            violations.extend(evaluate_custom_rule(data, rule, rule_name, self.rules))

        return violations

    def audit_document(
        self,
        collection_path: str,
        document: StoreDocument,
        schema: CollectionSchema,
        context: Mapping[str, Any] | None = None,
    ) -> AuditedDocument | None:
        """Audit one document and record the outcome.

        Args:
            collection_path: Collection path as declared by the schema.
            document: The document snapshot.
            schema: Schema of the collection.
            context: Parent context for subcollection documents.

        Returns:
            The report entry if the document is invalid, otherwise None.
        """
        violations = self.check_document(document.data, schema)

        if not violations:
            self.stats.record_valid(collection_path)
            return None

        entry = AuditedDocument(
            document=document.path,
            document_id=document.id,
            collection=collection_path,
            issues=tuple(violations),
            data=sanitize_data(document.data, self.redact_fields),
            context=MappingProxyType(dict(context or {})),
        )
        self.audited.append(entry)
        self.stats.record_invalid(collection_path)

        if self.fixer is not None:
            result = self.fixer.fix(document, violations, schema)
            if result.applied:
                self.stats.record_fixed(collection_path)
            if self.on_fix is not None and (result.applied or not result.success):
                self.on_fix(document, result)

        return entry
