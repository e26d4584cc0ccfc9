"""Per-run audit statistics."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def top_level_collection(collection_path: str) -> str:
    """Return the first segment of a collection path ("bars/{barId}/events" -> "bars")."""
    return collection_path.strip("/").split("/", 1)[0]


@dataclass
class CollectionStats:
    """Counters for one top-level collection."""

    total: int = 0
    valid: int = 0
    invalid: int = 0
    fixed: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "valid": self.valid,
            "invalid": self.invalid,
            "fixed": self.fixed,
        }


@dataclass
class AuditStatistics:
    """Running counters for a single audit run.

    Subcollection documents are tallied under their top-level collection.
    Every document is recorded exactly once as valid or invalid, so
    ``valid_documents + invalid_documents == total_documents`` holds after
    each record call.

    Attributes:
        total_documents: Documents audited.
        valid_documents: Documents without violations.
        invalid_documents: Documents with at least one violation.
        fixed_documents: Invalid documents a fix was applied to.
        collections: Counters per top-level collection name.
    """

    total_documents: int = 0
    valid_documents: int = 0
    invalid_documents: int = 0
    fixed_documents: int = 0
    collections: dict[str, CollectionStats] = field(default_factory=dict)

    def collection(self, collection_path: str) -> CollectionStats:
        """Get (creating if needed) the counters for a path's top-level collection."""
        name = top_level_collection(collection_path)
        if name not in self.collections:
            self.collections[name] = CollectionStats()
        return self.collections[name]

    def record_valid(self, collection_path: str) -> None:
        stats = self.collection(collection_path)
        self.total_documents += 1
        self.valid_documents += 1
        stats.total += 1
        stats.valid += 1

    def record_invalid(self, collection_path: str) -> None:
        stats = self.collection(collection_path)
        self.total_documents += 1
        self.invalid_documents += 1
        stats.total += 1
        stats.invalid += 1

    def record_fixed(self, collection_path: str) -> None:
        stats = self.collection(collection_path)
        self.fixed_documents += 1
        stats.fixed += 1

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the report representation."""
        return {
            "totalDocuments": self.total_documents,
            "validDocuments": self.valid_documents,
            "invalidDocuments": self.invalid_documents,
            "fixedDocuments": self.fixed_documents,
            "collections": {name: stats.to_dict() for name, stats in self.collections.items()},
        }
