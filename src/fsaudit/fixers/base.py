"""Base classes for fsaudit fixers.

Provides core abstractions for fixers that turn violations into partial
document updates.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from fsaudit.schema import CollectionSchema
from fsaudit.store import DocumentStore, StoreDocument
from fsaudit.validators.base import Violation


@dataclass
class FixResult:
    """Result of a fixer execution.

    Attributes:
        success: Whether the fixer completed without error.
        message: Human-readable description of what happened.
        applied: Whether an update was written to the store.
        fields_updated: Field values written (dotted keys for nested fields).
    """

    success: bool
    message: str
    applied: bool = False
    fields_updated: dict[str, Any] = field(default_factory=dict)


class BaseFixer(ABC):
    """Abstract base class for all fixers.

    Attributes:
        store: Store the fixer writes updates to.
    """

    # The violation type this fixer handles (must be set by subclasses)
    fix_id: str = ""

    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    @abstractmethod
    def fix(
        self,
        document: StoreDocument,
        violations: Sequence[Violation],
        schema: CollectionSchema,
    ) -> FixResult:
        """Fix what can be fixed among a document's violations.

        Must be implemented by subclasses. Fixers must not raise on store
        failures; they report them through the returned FixResult.

        Args:
            document: The audited document.
            violations: All violations found on the document.
            schema: Schema of the document's collection.

        Returns:
            FixResult describing the outcome.
        """

    def can_fix(self, violation: Violation) -> bool:
        """Check whether this fixer handles the given violation type."""
        return violation.type == self.fix_id
