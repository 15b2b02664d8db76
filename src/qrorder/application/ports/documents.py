from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Protocol, Sequence

SHOPS = "shops"
MENU_ITEMS = "menuItems"
ORDERS = "orders"
PAYMENTS = "payments"


@dataclass(frozen=True)
class Document:
    doc_id: str
    data: dict[str, Any] = field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)


@dataclass(frozen=True)
class FieldFilter:
    field: str
    value: Any

    def matches(self, data: dict[str, Any]) -> bool:
        return data.get(self.field) == self.value


DocumentListener = Callable[[Document | None], None]
QueryListener = Callable[[list[Document]], None]


class StoreUnavailableError(Exception):
    pass


class DocumentNotFoundError(Exception):
    pass


class Subscription:
    """Handle for a live listener; closing it releases the listener for good."""

    def __init__(self, release: Callable[[], None] | None = None) -> None:
        self._release = release
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        release, self._release = self._release, None
        if release is not None:
            release()

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class DocumentStore(Protocol):
    def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: str | None = None,
        descending: bool = False,
    ) -> list[Document]: ...

    def get(self, collection: str, doc_id: str) -> Document | None: ...

    def add(self, collection: str, data: dict[str, Any]) -> str: ...

    def set(self, collection: str, doc_id: str, data: dict[str, Any]) -> None: ...

    def update(self, collection: str, doc_id: str, changes: dict[str, Any]) -> None: ...

    def delete(self, collection: str, doc_id: str) -> None: ...

    def subscribe_document(
        self,
        collection: str,
        doc_id: str,
        listener: DocumentListener,
    ) -> Subscription: ...

    def subscribe_query(
        self,
        collection: str,
        filters: Sequence[FieldFilter],
        listener: QueryListener,
        order_by: str | None = None,
        descending: bool = False,
    ) -> Subscription: ...


def apply_query(
    documents: Sequence[Document],
    filters: Sequence[FieldFilter],
    order_by: str | None,
    descending: bool,
) -> list[Document]:
    matched = [doc for doc in documents if all(f.matches(doc.data) for f in filters)]
    if order_by is not None:
        matched.sort(key=lambda doc: _sort_key(doc.data.get(order_by)), reverse=descending)
    return matched


def _sort_key(value: Any) -> tuple[int, Any]:
    # missing values sort first and never get compared against real ones
    if value is None:
        return (0, "")
    return (1, value)
