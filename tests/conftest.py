"""Pytest configuration and fixtures for fsaudit tests."""

import copy
import json
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest

# Set a fixed terminal width to prevent line wrapping issues in CI
# This must be set before any Rich imports
os.environ.setdefault("COLUMNS", "200")
os.environ.setdefault("LINES", "50")
# Disable Rich's terminal detection to ensure consistent output
os.environ.setdefault("TERM", "dumb")

from fsaudit.errors import StoreError  # noqa: E402
from fsaudit.store import StoreDocument  # noqa: E402


class InMemoryStore:
    """DocumentStore fake keyed by collection path, preserving insertion order."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict[str, Any]]] = {}
        self.fetches: list[tuple[str, int]] = []
        self.updates: list[tuple[str, dict[str, Any]]] = []
        self.fail_fetch: set[str] = set()
        self.fail_update: set[str] = set()

    def add(self, collection_path: str, doc_id: str, data: dict[str, Any]) -> None:
        self.collections.setdefault(collection_path, {})[doc_id] = data

    def get(self, document_path: str) -> dict[str, Any]:
        collection_path, doc_id = document_path.rsplit("/", 1)
        return self.collections[collection_path][doc_id]

    def fetch_documents(self, collection_path: str, limit: int = 0) -> list[StoreDocument]:
        self.fetches.append((collection_path, limit))
        if collection_path in self.fail_fetch:
            raise StoreError("fetch", collection_path, RuntimeError("unavailable"))

        items = list(self.collections.get(collection_path, {}).items())
        if limit > 0:
            items = items[:limit]
        return [
            StoreDocument(id=doc_id, path=f"{collection_path}/{doc_id}", data=copy.deepcopy(data))
            for doc_id, data in items
        ]

    def update_document(self, document_path: str, fields: Mapping[str, Any]) -> None:
        if document_path in self.fail_update:
            raise StoreError("update", document_path, RuntimeError("permission denied"))

        data = self.get(document_path)
        for key, value in fields.items():
            target = data
            *parents, leaf = key.split(".")
            for part in parents:
                target = target.setdefault(part, {})
            target[leaf] = value
        self.updates.append((document_path, dict(fields)))


@pytest.fixture
def store() -> InMemoryStore:
    """An empty in-memory document store."""
    return InMemoryStore()


@pytest.fixture
def schema_data() -> dict[str, Any]:
    """A schema with a top-level collection and a subcollection."""
    return {
        "version": "1.2.0",
        "title": "Boteco",
        "collections": {
            "bars": {
                "path": "bars/{barId}",
                "required": ["name", "status"],
                "properties": {
                    "name": {"type": "string", "minLength": 2, "maxLength": 40},
                    "status": {
                        "type": "string",
                        "enum": ["open", "closed"],
                        "default": "closed",
                    },
                    "cnpj": {"type": "string", "pattern": "^\\d{14}$"},
                    "capacity": {"type": "number", "minimum": 1},
                    "address": {
                        "type": "object",
                        "required": ["city"],
                        "properties": {
                            "city": {"type": "string"},
                            "zip": {"type": "string"},
                        },
                    },
                    "token": {"type": "string"},
                },
            },
            "events": {
                "path": "bars/{barId}/events/{eventId}",
                "required": ["title", "startAt"],
                "properties": {
                    "title": {"type": "string", "default": "Untitled"},
                    "startAt": {"type": "timestamp"},
                    "endAt": {"type": "timestamp"},
                },
                "customValidations": {
                    "endAtAfterStartAt": {"description": "endAt must not precede startAt"},
                },
            },
        },
    }


@pytest.fixture
def schema_file(tmp_path: Path, schema_data: dict[str, Any]) -> Path:
    """The sample schema written to tmp_path/schema.json."""
    path = tmp_path / "schema.json"
    path.write_text(json.dumps(schema_data), encoding="utf-8")
    return path
