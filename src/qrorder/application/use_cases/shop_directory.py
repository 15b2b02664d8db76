from __future__ import annotations

import logging

from qrorder.application.mappers.documents import MalformedDocumentError, shop_from_document
from qrorder.application.ports.documents import (
    SHOPS,
    DocumentStore,
    FieldFilter,
    StoreUnavailableError,
)
from qrorder.application.ports.session_storage import SessionStorage
from qrorder.application.sample_data import DEFAULT_SHOPS
from qrorder.domain.menu.entities import Shop

logger = logging.getLogger(__name__)

SELECTED_SHOP_KEY = "selectedShop"


class ShopDirectory:
    def __init__(self, store: DocumentStore, local_storage: SessionStorage) -> None:
        self._store = store
        self._local_storage = local_storage
        self._shops: list[Shop] = []
        self._current: str | None = None

    def load_shops(self) -> list[Shop]:
        try:
            documents = self._store.query(
                SHOPS,
                [FieldFilter("isActive", True)],
                order_by="name",
            )
            shops = []
            for document in documents:
                try:
                    shops.append(shop_from_document(document))
                except MalformedDocumentError:
                    logger.warning("shop_skipped", extra={"doc_id": document.doc_id})
        except StoreUnavailableError:
            logger.warning("shops_fallback_used", exc_info=True)
            shops = list(DEFAULT_SHOPS)

        self._shops = shops
        saved = self._local_storage.get(SELECTED_SHOP_KEY)
        if saved and self._find(saved) is not None:
            self._current = saved
        elif shops:
            self._current = str(shops[0].name)
        else:
            self._current = None
        logger.info("shops_loaded", extra={"count": len(shops), "current_shop": self._current})
        return list(shops)

    def change_shop(self, name: str) -> bool:
        if self._find(name) is None:
            return False
        self._current = name
        self._local_storage.set(SELECTED_SHOP_KEY, name)
        logger.info("shop_changed", extra={"shop": name})
        return True

    @property
    def current_shop_name(self) -> str | None:
        return self._current

    def current_shop(self) -> Shop | None:
        if self._current is None:
            return None
        return self._find(self._current)

    def active_shops(self) -> list[Shop]:
        return [shop for shop in self._shops if shop.is_active]

    def _find(self, name: str) -> Shop | None:
        for shop in self._shops:
            if shop.name == name:
                return shop
        return None
