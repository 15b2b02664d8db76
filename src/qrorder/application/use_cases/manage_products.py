from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any

from qrorder.application.mappers.documents import (
    MalformedDocumentError,
    menu_item_from_document,
    menu_item_to_data,
)
from qrorder.application.ports.documents import (
    MENU_ITEMS,
    DocumentNotFoundError,
    DocumentStore,
    FieldFilter,
)
from qrorder.application.use_cases.catalog_cache import CatalogInvalidation
from qrorder.domain.common.clock import Clock, to_iso, utc_now
from qrorder.domain.common.ids import MenuItemId, ShopName
from qrorder.domain.common.money import as_json_number, to_price
from qrorder.domain.menu.entities import Category, InvalidCategoryError, MenuItem

logger = logging.getLogger(__name__)

_UPDATABLE_FIELDS = {"name", "description", "price", "category", "available", "imageUrl"}


class ProductNotFoundError(Exception):
    pass


def _category(value: str) -> Category:
    try:
        return Category(value.strip().lower())
    except ValueError as exc:
        raise InvalidCategoryError(f"unknown menu category: {value}") from exc


class ManageProducts:
    """Kitchen-side maintenance of a shop's menu items, including unavailable ones."""

    def __init__(
        self,
        store: DocumentStore,
        catalog: CatalogInvalidation | None = None,
        clock: Clock = utc_now,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._clock = clock

    def list_products(self, shop: str) -> list[MenuItem]:
        documents = self._store.query(MENU_ITEMS, [FieldFilter("shop", shop)], order_by="name")
        products: list[MenuItem] = []
        for document in documents:
            try:
                products.append(menu_item_from_document(document))
            except MalformedDocumentError:
                logger.warning("product_skipped", extra={"doc_id": document.doc_id})
        return products

    def add_product(
        self,
        shop: str,
        name: str,
        price: Decimal,
        category: str,
        description: str | None = None,
        available: bool = True,
        image_url: str | None = None,
    ) -> MenuItem:
        draft = MenuItem(
            item_id=MenuItemId(""),
            name=name,
            price=price,
            category=_category(category),
            shop=ShopName(shop),
            available=available,
            description=description,
            image_url=image_url,
        )
        data = menu_item_to_data(draft)
        data["createdAt"] = to_iso(self._clock())
        product_id = self._store.add(MENU_ITEMS, data)
        self._invalidate(shop)
        logger.info("product_added", extra={"product_id": product_id, "shop": shop})
        return MenuItem(
            item_id=MenuItemId(product_id),
            name=draft.name,
            price=draft.price,
            category=draft.category,
            shop=draft.shop,
            available=draft.available,
            description=draft.description,
            image_url=draft.image_url,
        )

    def update_product(self, product_id: str, changes: dict[str, Any]) -> MenuItem:
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"cannot update fields: {', '.join(sorted(unknown))}")

        normalized = dict(changes)
        if "price" in normalized:
            normalized["price"] = as_json_number(to_price(normalized["price"]))
        if "category" in normalized:
            normalized["category"] = _category(normalized["category"]).value
        normalized["updatedAt"] = to_iso(self._clock())

        try:
            self._store.update(MENU_ITEMS, product_id, normalized)
        except DocumentNotFoundError as exc:
            raise ProductNotFoundError(f"product {product_id} not found") from exc

        document = self._store.get(MENU_ITEMS, product_id)
        if document is None:
            raise ProductNotFoundError(f"product {product_id} not found")
        product = menu_item_from_document(document)
        self._invalidate(str(product.shop))
        logger.info("product_updated", extra={"product_id": product_id})
        return product

    def delete_product(self, product_id: str) -> bool:
        document = self._store.get(MENU_ITEMS, product_id)
        if document is None:
            return False
        self._store.delete(MENU_ITEMS, product_id)
        self._invalidate(document.get("shop"))
        logger.info("product_deleted", extra={"product_id": product_id})
        return True

    def _invalidate(self, shop: str | None) -> None:
        if self._catalog is not None:
            self._catalog.invalidate(shop)
