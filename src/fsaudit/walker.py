"""Collection traversal.

Turns a collection schema path into store fetches and feeds every fetched
document to the DocumentAuditor. Two shapes are supported:

- ``bars`` or ``bars/{barId}``: a top-level collection.
- ``bars/{barId}/events`` or ``bars/{barId}/events/{eventId}``: a
  subcollection nested one level under each document of ``bars``.

Fetch errors are not caught here; they abort the run.
"""

from __future__ import annotations

from dataclasses import dataclass

from fsaudit.auditor import DocumentAuditor
from fsaudit.schema import CollectionSchema
from fsaudit.store import DocumentStore


def _is_parameter(segment: str) -> bool:
    return segment.startswith("{") and segment.endswith("}")


@dataclass(frozen=True)
class CollectionTarget:
    """Where the documents of a collection schema live.

    Attributes:
        root: Top-level collection name.
        subcollection: Subcollection name, or None for a top-level collection.
        parent_parameter: Parameter segment naming the parent (e.g. "{barId}").
    """

    root: str
    subcollection: str | None = None
    parent_parameter: str | None = None

    @property
    def is_subcollection(self) -> bool:
        return self.subcollection is not None

    @property
    def collection_path(self) -> str:
        """Collection path as reported ("bars" or "bars/{barId}/events")."""
        if self.subcollection is None:
            return self.root
        return f"{self.root}/{self.parent_parameter}/{self.subcollection}"


def parse_collection_path(path: str) -> CollectionTarget | None:
    """Resolve a schema path to a traversal target.

    A trailing document-id parameter is ignored.

    Returns:
        The target, or None when the path shape is not supported (deeper
        nesting, or parameters in unexpected positions).
    """
    segments = [segment for segment in path.strip("/").split("/") if segment]
    if segments and _is_parameter(segments[-1]):
        segments = segments[:-1]

    if len(segments) == 1 and not _is_parameter(segments[0]):
        return CollectionTarget(root=segments[0])

    if (
        len(segments) == 3
        and not _is_parameter(segments[0])
        and _is_parameter(segments[1])
        and not _is_parameter(segments[2])
    ):
        return CollectionTarget(
            root=segments[0],
            subcollection=segments[2],
            parent_parameter=segments[1],
        )

    return None


@dataclass
class WalkResult:
    """Outcome of walking one collection schema.

    Attributes:
        name: Collection name from the schema.
        path: Collection path walked (or the raw schema path if skipped).
        documents: Number of documents audited.
        invalid: Number of audited documents with violations.
        parents: Number of parent documents enumerated (subcollections only).
        skipped: True if the path shape is unsupported and nothing was fetched.
    """

    name: str
    path: str
    documents: int = 0
    invalid: int = 0
    parents: int = 0
    skipped: bool = False


class CollectionWalker:
    """Fetches the documents of each collection and audits them in fetch order."""

    def __init__(
        self,
        store: DocumentStore,
        auditor: DocumentAuditor,
        *,
        limit: int = 0,
        parent_limit: int = 0,
    ) -> None:
        """Initialize the walker.

        Args:
            store: Store to fetch documents from.
            auditor: Auditor receiving each document.
            limit: Maximum documents fetched from a top-level collection (0 = unlimited).
            parent_limit: Maximum parent documents enumerated for a
                subcollection (0 = unlimited). Subcollection fetches under
                each parent are never limited.
        """
        self.store = store
        self.auditor = auditor
        self.limit = limit
        self.parent_limit = parent_limit

    def walk(self, name: str, schema: CollectionSchema) -> WalkResult:
        """Audit every document of a collection schema.

        Raises:
            StoreError: If any fetch fails.
        """
        target = parse_collection_path(schema.path)
        if target is None:
            return WalkResult(name=name, path=schema.path, skipped=True)

        # Register the collection so it is reported even when empty.
        self.auditor.stats.collection(target.root)

        if target.subcollection is None:
            return self._walk_collection(name, target, schema)
        return self._walk_subcollection(name, target, schema)

    def _walk_collection(
        self, name: str, target: CollectionTarget, schema: CollectionSchema
    ) -> WalkResult:
        result = WalkResult(name=name, path=target.collection_path)
        for document in self.store.fetch_documents(target.root, self.limit):
            if self.auditor.audit_document(target.collection_path, document, schema) is not None:
                result.invalid += 1
            result.documents += 1
        return result

    def _walk_subcollection(
        self, name: str, target: CollectionTarget, schema: CollectionSchema
    ) -> WalkResult:
        result = WalkResult(name=name, path=target.collection_path)
        parents = self.store.fetch_documents(target.root, self.parent_limit)

        for parent in parents:
            result.parents += 1
            children = self.store.fetch_documents(
                f"{target.root}/{parent.id}/{target.subcollection}"
            )
            for document in children:
                entry = self.auditor.audit_document(
                    target.collection_path,
                    document,
                    schema,
                    {"parentId": parent.id},
                )
                if entry is not None:
                    result.invalid += 1
                result.documents += 1

        return result
