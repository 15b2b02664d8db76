from __future__ import annotations

import logging
from typing import Callable, Sequence

from qrorder.application.ports.documents import (
    Document,
    DocumentListener,
    FieldFilter,
    QueryListener,
    StoreUnavailableError,
    Subscription,
)
from qrorder.infrastructure.documents.change_feed import (
    ChangeFeed,
    collection_topic,
    document_topic,
)

logger = logging.getLogger(__name__)


def watch_document(
    feed: ChangeFeed,
    collection: str,
    doc_id: str,
    read: Callable[[], Document | None],
    listener: DocumentListener,
) -> Subscription:
    """Deliver the current snapshot now and a fresh one after every change."""
    handle: Subscription | None = None

    def deliver() -> None:
        if handle is not None and handle.closed:
            return
        try:
            snapshot = read()
        except StoreUnavailableError:
            logger.exception(
                "document_snapshot_failed",
                extra={"collection": collection, "doc_id": doc_id},
            )
            return
        listener(snapshot)

    handle = feed.subscribe(document_topic(collection, doc_id), deliver)
    deliver()
    return handle


def watch_query(
    feed: ChangeFeed,
    collection: str,
    filters: Sequence[FieldFilter],
    read: Callable[[], list[Document]],
    listener: QueryListener,
) -> Subscription:
    handle: Subscription | None = None

    def deliver() -> None:
        if handle is not None and handle.closed:
            return
        try:
            snapshot = read()
        except StoreUnavailableError:
            logger.exception(
                "query_snapshot_failed",
                extra={"collection": collection, "filters": [f.field for f in filters]},
            )
            return
        listener(snapshot)

    handle = feed.subscribe(collection_topic(collection), deliver)
    deliver()
    return handle
