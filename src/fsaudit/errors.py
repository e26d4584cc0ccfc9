"""Exception hierarchy for fsaudit."""

from __future__ import annotations


class AuditError(Exception):
    """Base class for fatal audit errors."""


class SchemaError(AuditError):
    """Raised when the schema file is missing, unparsable or malformed."""


class CredentialsError(AuditError):
    """Raised when the store credentials cannot be loaded."""


class StoreError(AuditError):
    """Raised when fetching from or writing to the document store fails."""

    def __init__(self, operation: str, path: str, cause: Exception) -> None:
        self.operation = operation
        self.path = path
        self.cause = cause
        super().__init__(f"Failed to {operation} '{path}': {cause}")


class ReportError(AuditError):
    """Raised when the audit report cannot be written."""
