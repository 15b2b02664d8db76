from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from typing import Callable

from qrorder.application.mappers.documents import MalformedDocumentError, menu_item_from_document
from qrorder.application.ports.documents import (
    MENU_ITEMS,
    Document,
    DocumentStore,
    FieldFilter,
    Subscription,
)
from qrorder.application.ports.session_storage import SessionStorage
from qrorder.application.use_cases.access_gate import AccessGate
from qrorder.application.use_cases.catalog_cache import CatalogCache
from qrorder.application.use_cases.payment_tracking import PaymentEventHandler, PaymentTracker
from qrorder.application.use_cases.shop_directory import ShopDirectory
from qrorder.application.use_cases.submit_order import EmptyCartError, OrderReceipt, SubmitOrder
from qrorder.domain.cart.ledger import CartLedger, CartLine
from qrorder.domain.common.ids import MenuItemId, PaymentId, ShopName
from qrorder.domain.menu.entities import ALL_CATEGORIES, MenuItem, Shop

logger = logging.getLogger(__name__)

LOCAL_SCOPE = "local"
SESSION_SCOPE = "session"

StorageFactory = Callable[[str, str], SessionStorage]


class NoShopSelectedError(Exception):
    pass


class MenuItemNotFoundError(Exception):
    pass


class Storefront:
    """All mutable state of one customer session, changed only through these methods."""

    def __init__(
        self,
        store: DocumentStore,
        local_storage: SessionStorage,
        tracker: PaymentTracker,
        submit_order: SubmitOrder | None = None,
        catalog: CatalogCache | None = None,
    ) -> None:
        self._store = store
        self.shops = ShopDirectory(store, local_storage)
        self.cart = CartLedger()
        self.catalog = catalog or CatalogCache(store)
        self._submit_order = submit_order or SubmitOrder(store)
        self._tracker = tracker
        self._payment_watches: dict[str, Subscription] = {}
        self._menu_watch: Subscription | None = None
        self._lock = threading.Lock()
        self.current_payment: OrderReceipt | None = None
        self._started = False

    def start(self) -> list[Shop]:
        shops = self.shops.load_shops()
        self.cart.current_shop = self._shop_name_or_none()
        self._started = True
        return shops

    def ensure_started(self) -> None:
        if not self._started:
            self.start()

    @property
    def current_shop(self) -> str | None:
        return self.shops.current_shop_name

    def change_shop(self, name: str) -> bool:
        if not self.shops.change_shop(name):
            return False
        self.catalog.invalidate()
        self.cart.clear()
        self.cart.current_shop = ShopName(name)
        if self._menu_watch is not None:
            self._menu_watch.close()
            self._menu_watch = None
        return True

    def menu(self, category: str = ALL_CATEGORIES, search: str = "") -> list[MenuItem]:
        items = self.catalog.get_by_category(self._require_shop(), category)
        if search:
            return CatalogCache.search(items, search)
        return items

    def add_to_cart(self, item_id: str, quantity: int = 1) -> CartLine | None:
        shop = self._require_shop()
        item = self.catalog.find_item(shop, item_id)
        if item is None:
            raise MenuItemNotFoundError(f"menu item {item_id} is not available at {shop}")
        self.cart.add(item, quantity)
        return self.cart.get_line(item.item_id)

    def update_cart_item(self, item_id: str, delta: int) -> CartLine | None:
        self.cart.update_quantity(MenuItemId(item_id), delta)
        return self.cart.get_line(MenuItemId(item_id))

    def remove_from_cart(self, item_id: str) -> None:
        self.cart.remove(MenuItemId(item_id))

    def clear_cart(self) -> None:
        self.cart.clear()

    def checkout(
        self,
        customer_name: str | None = None,
        table_number: str | None = None,
    ) -> OrderReceipt:
        if self.cart.is_empty():
            raise EmptyCartError("select at least one item before confirming the order")
        receipt = self._submit_order.execute(
            self.cart.lines(),
            self._require_shop(),
            customer_name=customer_name,
            table_number=table_number,
        )
        self.cart.clear()
        self.current_payment = receipt
        return receipt

    def track_payment(self, payment_id: PaymentId, on_event: PaymentEventHandler) -> Subscription:
        """Track one payment for this session; re-tracking replaces the earlier handle."""
        handle = self._tracker.start_tracking(payment_id, on_event)
        with self._lock:
            previous = self._payment_watches.pop(str(payment_id), None)
            # drop handles that were released or whose tracking already finished
            self._payment_watches = {
                key: watch
                for key, watch in self._payment_watches.items()
                if not watch.closed and self._tracker.is_tracking(PaymentId(key))
            }
            self._payment_watches[str(payment_id)] = handle
        if previous is not None:
            previous.close()
        return handle

    @property
    def tracked_payments(self) -> list[str]:
        with self._lock:
            return [key for key, watch in self._payment_watches.items() if not watch.closed]

    def watch_menu(self, on_change: Callable[[list[MenuItem]], None]) -> Subscription:
        shop = self._require_shop()

        def handle(documents: list[Document]) -> None:
            items: list[MenuItem] = []
            for document in documents:
                try:
                    items.append(menu_item_from_document(document))
                except MalformedDocumentError:
                    logger.warning("menu_item_skipped", extra={"doc_id": document.doc_id})
            self.catalog.apply_change(shop, items)
            on_change(items)

        if self._menu_watch is not None:
            self._menu_watch.close()
        self._menu_watch = self._store.subscribe_query(
            MENU_ITEMS,
            [FieldFilter("shop", shop), FieldFilter("available", True)],
            handle,
            order_by="name",
        )
        return self._menu_watch

    def close(self) -> None:
        with self._lock:
            handles = list(self._payment_watches.values())
            self._payment_watches.clear()
        if self._menu_watch is not None:
            handles.append(self._menu_watch)
            self._menu_watch = None
        for handle in handles:
            handle.close()

    def _shop_name_or_none(self) -> ShopName | None:
        current = self.shops.current_shop_name
        return ShopName(current) if current else None

    def _require_shop(self) -> str:
        self.ensure_started()
        current = self.shops.current_shop_name
        if not current:
            raise NoShopSelectedError("no shop is selected")
        return current


class SessionRegistry:
    """Per-session storefronts and access gates, bounded to the most recent sessions."""

    def __init__(
        self,
        store: DocumentStore,
        storage_factory: StorageFactory,
        tracker: PaymentTracker,
        max_sessions: int = 1000,
    ) -> None:
        self._store = store
        self._storage_factory = storage_factory
        self._tracker = tracker
        self._max_sessions = max_sessions
        self._storefronts: OrderedDict[str, Storefront] = OrderedDict()
        self._gates: OrderedDict[str, AccessGate] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def tracker(self) -> PaymentTracker:
        return self._tracker

    @property
    def store(self) -> DocumentStore:
        return self._store

    def storefront(self, session_id: str) -> Storefront:
        with self._lock:
            storefront = self._storefronts.get(session_id)
            if storefront is not None:
                self._storefronts.move_to_end(session_id)
                return storefront
            storefront = Storefront(
                store=self._store,
                local_storage=self._storage_factory(session_id, LOCAL_SCOPE),
                tracker=self._tracker,
            )
            self._storefronts[session_id] = storefront
            evicted = self._evict(self._storefronts)
        for old in evicted:
            old.close()
        storefront.ensure_started()
        return storefront

    def access_gate(self, session_id: str) -> AccessGate:
        with self._lock:
            gate = self._gates.get(session_id)
            if gate is not None:
                self._gates.move_to_end(session_id)
                return gate
            gate = AccessGate(
                session_storage=self._storage_factory(session_id, SESSION_SCOPE),
                local_storage=self._storage_factory(session_id, LOCAL_SCOPE),
            )
            gate.load_saved_password()
            self._gates[session_id] = gate
            self._evict(self._gates)
        return gate

    def invalidate(self, shop: str | None = None) -> None:
        """Drop cached menus in every live session, e.g. after a product edit."""
        with self._lock:
            storefronts = list(self._storefronts.values())
        for storefront in storefronts:
            storefront.catalog.invalidate(shop)

    def close_session(self, session_id: str) -> None:
        with self._lock:
            storefront = self._storefronts.pop(session_id, None)
            self._gates.pop(session_id, None)
        if storefront is not None:
            storefront.close()

    def close(self) -> None:
        with self._lock:
            storefronts = list(self._storefronts.values())
            self._storefronts.clear()
            self._gates.clear()
        for storefront in storefronts:
            storefront.close()
        self._tracker.close()

    def _evict(self, entries: OrderedDict) -> list:
        evicted = []
        while len(entries) > self._max_sessions:
            _, value = entries.popitem(last=False)
            evicted.append(value)
        return evicted
