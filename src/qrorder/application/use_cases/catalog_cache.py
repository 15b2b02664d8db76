from __future__ import annotations

import logging
from typing import Callable, Protocol

from qrorder.application.mappers.documents import MalformedDocumentError, menu_item_from_document
from qrorder.application.metrics.order_lifecycle import record_catalog_fallback
from qrorder.application.ports.documents import (
    MENU_ITEMS,
    Document,
    DocumentStore,
    FieldFilter,
    StoreUnavailableError,
)
from qrorder.application.sample_data import sample_menu
from qrorder.domain.menu.entities import (
    ALL_CATEGORIES,
    CATEGORY_LABELS,
    MenuItem,
    parse_category_filter,
)

logger = logging.getLogger(__name__)

FallbackMenu = Callable[[str, str], list[MenuItem]]


class CatalogInvalidation(Protocol):
    def invalidate(self, shop: str | None = None) -> None: ...


def category_label(category: str) -> str:
    return CATEGORY_LABELS.get(category, category)


class CatalogCache:
    def __init__(
        self,
        store: DocumentStore,
        fallback: FallbackMenu = sample_menu,
    ) -> None:
        self._store = store
        self._fallback = fallback
        self._entries: dict[tuple[str, str], list[MenuItem]] = {}

    def get_by_category(self, shop: str, category: str = ALL_CATEGORIES) -> list[MenuItem]:
        category = parse_category_filter(category)
        key = (shop, category)
        cached = self._entries.get(key)
        if cached is not None:
            return list(cached)

        filters = [FieldFilter("shop", shop), FieldFilter("available", True)]
        if category != ALL_CATEGORIES:
            filters.append(FieldFilter("category", category))

        try:
            documents = self._store.query(MENU_ITEMS, filters, order_by="name")
        except StoreUnavailableError:
            logger.warning(
                "catalog_fallback_used",
                extra={"shop": shop, "category": category},
                exc_info=True,
            )
            record_catalog_fallback(shop)
            return self._fallback(shop, category)

        items = _to_menu_items(documents)
        self._entries[key] = items
        logger.info(
            "catalog_loaded",
            extra={"shop": shop, "category": category, "count": len(items)},
        )
        return list(items)

    def invalidate(self, shop: str | None = None) -> None:
        if shop is None:
            self._entries.clear()
            return
        for key in [key for key in self._entries if key[0] == shop]:
            self._entries.pop(key, None)

    def apply_change(self, shop: str, items: list[MenuItem]) -> None:
        """Replace a shop's catalog with a fresh realtime snapshot."""
        self.invalidate(shop)
        self._entries[(shop, ALL_CATEGORIES)] = list(items)

    def find_item(self, shop: str, item_id: str) -> MenuItem | None:
        for item in self.get_by_category(shop, ALL_CATEGORIES):
            if str(item.item_id) == item_id:
                return item
        return None

    @staticmethod
    def search(items: list[MenuItem], term: str) -> list[MenuItem]:
        needle = term.strip().lower()
        if not needle:
            return list(items)
        return [
            item
            for item in items
            if needle in item.name.lower() or needle in (item.description or "").lower()
        ]

    @staticmethod
    def categories(items: list[MenuItem]) -> list[str]:
        seen: dict[str, None] = {}
        for item in items:
            seen.setdefault(item.category.value, None)
        return list(seen)


def _to_menu_items(documents: list[Document]) -> list[MenuItem]:
    items: list[MenuItem] = []
    for document in documents:
        try:
            items.append(menu_item_from_document(document))
        except MalformedDocumentError:
            logger.warning("menu_item_skipped", extra={"doc_id": document.doc_id})
    return items
