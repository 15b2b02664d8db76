from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import uuid4

from sqlalchemy import Engine, delete, select
from sqlalchemy.exc import SQLAlchemyError

from qrorder.application.ports.documents import (
    Document,
    DocumentListener,
    DocumentNotFoundError,
    DocumentStore,
    FieldFilter,
    QueryListener,
    StoreUnavailableError,
    Subscription,
    apply_query,
)
from qrorder.application.ports.publisher import EventPublisher
from qrorder.infrastructure.db.models.document import DocumentModel
from qrorder.infrastructure.db.session import get_engine, session_scope
from qrorder.infrastructure.documents.change_feed import (
    ChangeFeed,
    collection_topic,
    document_topic,
)
from qrorder.infrastructure.documents.local_publisher import LocalEventPublisher
from qrorder.infrastructure.documents.subscriptions import watch_document, watch_query

logger = logging.getLogger(__name__)


class SqlAlchemyDocumentStore(DocumentStore):
    """Documents persisted as JSON rows in a single ``documents`` table.

    Filtering and ordering run in Python over the rows of one collection.
    Listeners are driven by the change feed; with a Redis publisher the feed
    is fed by the fanout task so that every worker process sees the writes.
    """

    def __init__(
        self,
        engine: Engine | None = None,
        feed: ChangeFeed | None = None,
        publisher: EventPublisher | None = None,
    ) -> None:
        self._engine = engine or get_engine()
        self._feed = feed or ChangeFeed()
        self._publisher = publisher or LocalEventPublisher(self._feed)

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
        statement = select(DocumentModel).where(DocumentModel.collection == collection)
        try:
            with session_scope(self._engine) as session:
                models = session.execute(statement).scalars().all()
                documents = [self._to_document(model) for model in models]
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"query on {collection} failed") from exc
        return apply_query(documents, filters, order_by, descending)

    def get(self, collection: str, doc_id: str) -> Document | None:
        try:
            with session_scope(self._engine) as session:
                model = session.get(DocumentModel, (collection, doc_id))
                if model is None:
                    return None
                return self._to_document(model)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"read of {collection}/{doc_id} failed") from exc

    def add(self, collection: str, data: dict[str, Any]) -> str:
        doc_id = uuid4().hex[:20]
        self.set(collection, doc_id, data)
        return doc_id

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None:
        now = datetime.now(timezone.utc)
        try:
            with session_scope(self._engine) as session:
                model = session.get(DocumentModel, (collection, doc_id))
                if model is None:
                    session.add(
                        DocumentModel(
                            collection=collection,
                            id=doc_id,
                            data=dict(data),
                            created_at=now,
                            updated_at=now,
                        )
                    )
                else:
                    model.data = dict(data)
                    model.updated_at = now
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"write of {collection}/{doc_id} failed") from exc
        self._changed(collection, doc_id)

    def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None:
        try:
            with session_scope(self._engine) as session:
                model = session.get(DocumentModel, (collection, doc_id))
                if model is None:
                    raise DocumentNotFoundError(f"{collection}/{doc_id} not found")
                # reassign so the JSON column is flagged dirty
                model.data = {**model.data, **changes}
                model.updated_at = datetime.now(timezone.utc)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"update of {collection}/{doc_id} failed") from exc
        self._changed(collection, doc_id)

    def delete(self, collection: str, doc_id: str) -> None:
        statement = delete(DocumentModel).where(
            DocumentModel.collection == collection,
            DocumentModel.id == doc_id,
        )
        try:
            with session_scope(self._engine) as session:
                result = session.execute(statement)
        except SQLAlchemyError as exc:
            raise StoreUnavailableError(f"delete of {collection}/{doc_id} failed") from exc
        if result.rowcount:
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
        for topic in (document_topic(collection, doc_id), collection_topic(collection)):
            try:
                self._publisher.publish(topic)
            except Exception:
                logger.exception("change_publish_failed", extra={"topic": topic})

    @staticmethod
    def _to_document(model: DocumentModel) -> Document:
        return Document(doc_id=model.id, data=dict(model.data or {}))
