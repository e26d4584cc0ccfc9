"""Tests for the Firestore-backed store."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from google.api_core.exceptions import PermissionDenied, ServiceUnavailable
from google.auth.exceptions import RefreshError, TransportError

from fsaudit.errors import CredentialsError, StoreError
from fsaudit.store import FirestoreStore, StoreDocument, open_firestore


def _snapshot(doc_id: str, path: str, data: dict | None) -> MagicMock:
    snapshot = MagicMock()
    snapshot.id = doc_id
    snapshot.reference.path = path
    snapshot.to_dict.return_value = data
    return snapshot


@pytest.fixture
def no_retry_wait(monkeypatch: pytest.MonkeyPatch) -> None:
    """Make tenacity retries immediate."""
    monkeypatch.setattr(FirestoreStore._stream.retry, "sleep", lambda seconds: None)
    monkeypatch.setattr(FirestoreStore._update.retry, "sleep", lambda seconds: None)


class TestFetchDocuments:
    """Tests for FirestoreStore.fetch_documents."""

    def test_limit_applied(self) -> None:
        client = MagicMock()
        query = client.collection.return_value.limit.return_value
        query.stream.return_value = [_snapshot("b1", "bars/b1", {"name": "Boteco"})]

        documents = FirestoreStore(client).fetch_documents("bars", 2)

        client.collection.assert_called_once_with("bars")
        client.collection.return_value.limit.assert_called_once_with(2)
        assert documents == [StoreDocument(id="b1", path="bars/b1", data={"name": "Boteco"})]

    def test_unlimited(self) -> None:
        client = MagicMock()
        client.collection.return_value.stream.return_value = [
            _snapshot("e1", "bars/b1/events/e1", None),
        ]

        documents = FirestoreStore(client).fetch_documents("bars/b1/events")

        client.collection.return_value.limit.assert_not_called()
        assert documents[0].path == "bars/b1/events/e1"
        assert documents[0].data == {}

    def test_error_wrapped(self) -> None:
        client = MagicMock()
        client.collection.return_value.stream.side_effect = PermissionDenied("denied")

        with pytest.raises(StoreError, match="Failed to fetch 'bars'") as info:
            FirestoreStore(client).fetch_documents("bars")
        assert info.value.operation == "fetch"
        assert isinstance(info.value.cause, PermissionDenied)

    def test_auth_error_wrapped(self) -> None:
        """Test token refresh failures surface as store errors."""
        client = MagicMock()
        client.collection.return_value.stream.side_effect = RefreshError("token expired")

        with pytest.raises(StoreError, match="token expired"):
            FirestoreStore(client).fetch_documents("bars")

    def test_transient_error_retried(self, no_retry_wait: None) -> None:
        client = MagicMock()
        client.collection.return_value.stream.side_effect = [
            ServiceUnavailable("busy"),
            [_snapshot("b1", "bars/b1", {})],
        ]

        documents = FirestoreStore(client).fetch_documents("bars")

        assert [d.id for d in documents] == ["b1"]
        assert client.collection.return_value.stream.call_count == 2

    def test_transient_error_gives_up(self, no_retry_wait: None) -> None:
        client = MagicMock()
        client.collection.return_value.stream.side_effect = ServiceUnavailable("busy")

        with pytest.raises(StoreError):
            FirestoreStore(client).fetch_documents("bars")
        assert client.collection.return_value.stream.call_count == 3


class TestUpdateDocument:
    """Tests for FirestoreStore.update_document."""

    def test_partial_update(self) -> None:
        client = MagicMock()
        FirestoreStore(client).update_document("bars/b1", {"status": "closed", "address.city": "Rio"})

        client.document.assert_called_once_with("bars/b1")
        client.document.return_value.update.assert_called_once_with(
            {"status": "closed", "address.city": "Rio"}
        )

    def test_error_wrapped(self) -> None:
        client = MagicMock()
        client.document.return_value.update.side_effect = PermissionDenied("denied")

        with pytest.raises(StoreError, match="Failed to update 'bars/b1'"):
            FirestoreStore(client).update_document("bars/b1", {"status": "closed"})

    def test_transport_error_wrapped(self) -> None:
        client = MagicMock()
        client.document.return_value.update.side_effect = TransportError("connection reset")

        with pytest.raises(StoreError, match="Failed to update 'bars/b1'"):
            FirestoreStore(client).update_document("bars/b1", {"status": "closed"})


class TestOpenFirestore:
    """Tests for open_firestore."""

    @pytest.fixture(autouse=True)
    def no_app(self, monkeypatch: pytest.MonkeyPatch) -> None:
        def get_app() -> None:
            raise ValueError("The default Firebase app does not exist.")

        monkeypatch.setattr("fsaudit.store.firebase_admin.get_app", get_app)

    def test_missing_credentials_file(self, tmp_path: Path) -> None:
        with pytest.raises(CredentialsError, match="Credentials file not found"):
            open_firestore(tmp_path / "sa.json")

    def test_invalid_credentials_file(self, tmp_path: Path) -> None:
        path = tmp_path / "sa.json"
        path.write_text('{"type": "authorized_user"}')
        with pytest.raises(CredentialsError, match="Invalid credentials file"):
            open_firestore(path)

    def test_uses_certificate(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = tmp_path / "sa.json"
        path.write_text("{}")
        cert = object()
        app = object()
        client = MagicMock()
        monkeypatch.setattr("fsaudit.store.credentials.Certificate", lambda p: cert)
        initialize = MagicMock(return_value=app)
        monkeypatch.setattr("fsaudit.store.firebase_admin.initialize_app", initialize)
        monkeypatch.setattr("fsaudit.store.firestore.client", lambda a: client if a is app else None)

        store = open_firestore(path)

        initialize.assert_called_once_with(cert)
        assert isinstance(store, FirestoreStore)
        assert store._client is client
