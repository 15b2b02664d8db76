from __future__ import annotations

import copy
import threading
from typing import Any, Sequence
from uuid import uuid4

from qrorder.application.ports.documents import (
    Document,
    DocumentListener,
    DocumentNotFoundError,
    DocumentStore,
    FieldFilter,
    QueryListener,
    Subscription,
    apply_query,
)
from qrorder.application.ports.publisher import EventPublisher
from qrorder.infrastructure.documents.change_feed import (
    ChangeFeed,
    collection_topic,
    document_topic,
)
from qrorder.infrastructure.documents.local_publisher import LocalEventPublisher
from qrorder.infrastructure.documents.subscriptions import watch_document, watch_query


class InMemoryDocumentStore(DocumentStore):
    """Process-local document store for development and tests."""

    def __init__(
        self,
        feed: ChangeFeed | None = None,
        publisher: EventPublisher | None = None,
    ) -> None:
        self._feed = feed or ChangeFeed()
        self._publisher = publisher or LocalEventPublisher(self._feed)
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = threading.Lock()

    @property
    def feed(self) -> ChangeFeed:
        return self._feed

    def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Document]:
        with self._lock:
            documents = [
                Document(doc_id=doc_id, data=copy.deepcopy(data))
                for doc_id, data in self._collections.get(collection, {}).items()
            ]
        return apply_query(documents, filters, order_by, descending)

    def get(self, collection: str, doc_id: str) -> Document | None:
        with self._lock:
            data = self._collections.get(collection, {}).get(doc_id)
            if data is None:
                return None
            return Document(doc_id=doc_id, data=copy.deepcopy(data))

    def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = uuid4().hex[:20]
        self.set(collection, doc_id, data)
        return doc_id

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        with self._lock:
            self._collections.setdefault(collection, {})[doc_id] = copy.deepcopy(data)
        self._changed(collection, doc_id)

    def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None:
        with self._lock:
            existing = self._collections.get(collection, {}).get(doc_id)
            if existing is None:
                raise DocumentNotFoundError(f"{collection}/{doc_id} not found")
            existing.update(copy.deepcopy(changes))
        self._changed(collection, doc_id)

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            removed = self._collections.get(collection, {}).pop(doc_id, None)
        if removed is not None:
            self._changed(collection, doc_id)

    def subscribe_document(
        self,
        collection: str,
        doc_id: str,
        listener: DocumentListener,
    ) -> Subscription:
        return watch_document(
            self._feed,
            collection,
            doc_id,
            lambda: self.get(collection, doc_id),
            listener,
        )

    def subscribe_query(
        self,
        collection: str,
        filters: Sequence[FieldFilter],
        listener: QueryListener,
        order_by: str | None = None,
        descending: bool = False,
    ) -> Subscription:
        return watch_query(
            self._feed,
            collection,
            filters,
            lambda: self.query(collection, filters, order_by, descending),
            listener,
        )

    def _changed(self, collection: str, doc_id: str) -> None:
        self._publisher.publish(document_topic(collection, doc_id))
        self._publisher.publish(collection_topic(collection))
