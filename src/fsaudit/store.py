"""Document store access.

The auditor only needs two operations from the store: fetch up to N documents
of a collection path, and apply a partial update to a document. They are
described by the DocumentStore protocol; FirestoreStore implements it on top
of the Firebase Admin SDK.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core.exceptions import DeadlineExceeded, GoogleAPIError, ServiceUnavailable
from google.auth.exceptions import DefaultCredentialsError, GoogleAuthError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from fsaudit.errors import CredentialsError, StoreError

_TRANSIENT_ERRORS = (ServiceUnavailable, DeadlineExceeded)


@dataclass(frozen=True)
class StoreDocument:
    """A document snapshot.

    Attributes:
        id: Document identifier.
        path: Full document path (e.g. "bars/abc/events/xyz").
        data: Field values as returned by the store.
    """

    id: str
    path: str
    data: Mapping[str, Any]


class DocumentStore(Protocol):
    """Operations the auditor needs from a document store."""

    def fetch_documents(self, collection_path: str, limit: int = 0) -> list[StoreDocument]:
        """Fetch documents of a collection. A limit of 0 means unlimited."""
        ...

    def update_document(self, document_path: str, fields: Mapping[str, Any]) -> None:
        """Apply a partial update. Dotted keys address nested fields."""
        ...


class FirestoreStore:
    """DocumentStore backed by a google-cloud-firestore client."""

    def __init__(self, client: Any) -> None:
        self._client = client

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=1, max=5),
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        reraise=True,
    )
    def _stream(self, collection_path: str, limit: int) -> list[Any]:
        query = self._client.collection(collection_path)
        if limit > 0:
            query = query.limit(limit)
        return list(query.stream())

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.5, min=1, max=5),
        retry=retry_if_exception_type(_TRANSIENT_ERRORS),
        reraise=True,
    )
    def _update(self, document_path: str, fields: dict[str, Any]) -> None:
        self._client.document(document_path).update(fields)

    def fetch_documents(self, collection_path: str, limit: int = 0) -> list[StoreDocument]:
        """Fetch documents of a collection or subcollection path.

        Raises:
            StoreError: If the query fails after retries.
        """
        try:
            snapshots = self._stream(collection_path, limit)
        except (GoogleAPIError, GoogleAuthError, ValueError) as e:
            raise StoreError("fetch", collection_path, e) from e

        return [
            StoreDocument(
                id=snapshot.id,
                path=snapshot.reference.path,
                data=snapshot.to_dict() or {},
            )
            for snapshot in snapshots
        ]

    def update_document(self, document_path: str, fields: Mapping[str, Any]) -> None:
        """Apply a partial update to a document.

        Raises:
            StoreError: If the update fails after retries.
        """
        try:
            self._update(document_path, dict(fields))
        except (GoogleAPIError, GoogleAuthError, ValueError) as e:
            raise StoreError("update", document_path, e) from e


def open_firestore(credentials_path: str | Path | None = None) -> FirestoreStore:
    """Initialize the Firebase Admin app and return a Firestore-backed store.

    Args:
        credentials_path: Service-account JSON file. When omitted, application
            default credentials are used.

    Returns:
        A FirestoreStore bound to the default Firebase app.

    Raises:
        CredentialsError: If the credentials file is missing or invalid, or
            no default credentials are available.
    """
    try:
        app = firebase_admin.get_app()
    except ValueError:
        if credentials_path is not None:
            cert_path = Path(credentials_path)
            if not cert_path.is_file():
                raise CredentialsError(f"Credentials file not found: {cert_path}") from None
            try:
                cert = credentials.Certificate(str(cert_path))
            except (ValueError, OSError) as e:
                raise CredentialsError(f"Invalid credentials file {cert_path}: {e}") from e
            app = firebase_admin.initialize_app(cert)
        else:
            app = firebase_admin.initialize_app()

    try:
        client = firestore.client(app)
    except DefaultCredentialsError as e:
        raise CredentialsError(f"No Firestore credentials available: {e}") from e

    return FirestoreStore(client)
