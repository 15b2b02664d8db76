from __future__ import annotations

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from qrorder.application.ports.documents import (
    Document,
    DocumentNotFoundError,
    FieldFilter,
    StoreUnavailableError,
)
from qrorder.infrastructure.documents.memory_store import InMemoryDocumentStore


def test_crud_and_copies() -> None:
    store = InMemoryDocumentStore()
    data = {"name": "x", "tags": ["a"]}

    doc_id = store.add("things", data)
    data["tags"].append("b")

    document = store.get("things", doc_id)
    assert document is not None
    assert document.get("tags") == ["a"]

    store.update("things", doc_id, {"name": "y"})
    updated = store.get("things", doc_id)
    assert updated is not None and updated.data == {"name": "y", "tags": ["a"]}

    store.delete("things", doc_id)
    assert store.get("things", doc_id) is None
    with pytest.raises(DocumentNotFoundError):
        store.update("things", doc_id, {"name": "z"})


def test_query_filters_and_orders_missing_values_first() -> None:
    store = InMemoryDocumentStore()
    store.set("things", "a", {"kind": "k", "rank": 2})
    store.set("things", "b", {"kind": "k"})
    store.set("things", "c", {"kind": "k", "rank": 1})
    store.set("things", "d", {"kind": "other", "rank": 0})

    ascending = store.query("things", [FieldFilter("kind", "k")], order_by="rank")
    descending = store.query("things", [FieldFilter("kind", "k")], order_by="rank", descending=True)

    assert [doc.doc_id for doc in ascending] == ["b", "c", "a"]
    assert [doc.doc_id for doc in descending] == ["a", "c", "b"]


def test_document_subscription_delivers_snapshot_then_changes() -> None:
    store = InMemoryDocumentStore()
    store.set("things", "a", {"n": 1})
    seen: list[Document | None] = []

    subscription = store.subscribe_document("things", "a", seen.append)
    store.update("things", "a", {"n": 2})
    store.set("things", "other", {"n": 9})
    store.delete("things", "a")
    subscription.close()
    subscription.close()
    store.set("things", "a", {"n": 3})

    assert [doc.get("n") if doc else None for doc in seen] == [1, 2, None]


def test_query_subscription_only_sees_its_collection() -> None:
    store = InMemoryDocumentStore()
    snapshots: list[list[Document]] = []

    with store.subscribe_query("things", [FieldFilter("kind", "k")], snapshots.append):
        store.set("things", "a", {"kind": "k"})
        store.set("others", "b", {"kind": "k"})

    store.set("things", "c", {"kind": "k"})
    assert [[doc.doc_id for doc in snapshot] for snapshot in snapshots] == [[], ["a"]]


def test_unavailable_reads_are_logged_not_raised_to_listeners(caplog) -> None:
    class FlakyStore(InMemoryDocumentStore):
        fail = False

        def get(self, collection, doc_id):
            if self.fail:
                raise StoreUnavailableError("offline")
            return super().get(collection, doc_id)

    store = FlakyStore()
    store.set("things", "a", {"n": 1})
    seen: list[Document | None] = []
    store.subscribe_document("things", "a", seen.append)

    store.fail = True
    store.set("things", "a", {"n": 2})

    assert len(seen) == 1
    assert "document_snapshot_failed" in caplog.text
