from __future__ import annotations

import logging
from typing import Callable

from qrorder.application.mappers.documents import MalformedDocumentError, order_from_document
from qrorder.application.metrics.order_lifecycle import record_kitchen_queue_size, record_transition
from qrorder.application.ports.documents import (
    ORDERS,
    Document,
    DocumentNotFoundError,
    DocumentStore,
    FieldFilter,
    Subscription,
)
from qrorder.domain.common.clock import Clock, to_iso, utc_now
from qrorder.domain.common.ids import OrderId
from qrorder.domain.order.entities import Order, OrderStatus, OrderTransitionError

logger = logging.getLogger(__name__)

_FILTERS: dict[str, OrderStatus | None] = {
    "all": None,
    "pending": OrderStatus.PENDING,
    "preparing": OrderStatus.PREPARING,
    "completed": OrderStatus.COMPLETED,
}


class InvalidKitchenFilterError(Exception):
    pass


class InvalidOrderStatusError(Exception):
    pass


class InvalidOrderTransitionError(Exception):
    pass


def parse_order_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value.strip().lower())
    except ValueError as exc:
        raise InvalidOrderStatusError(f"invalid order status: {value}") from exc


class KitchenWorkflow:
    def __init__(self, store: DocumentStore, shop: str, clock: Clock = utc_now) -> None:
        self._store = store
        self._shop = shop
        self._clock = clock
        self._orders: list[Order] = []
        self._filter = "pending"

    @property
    def shop(self) -> str:
        return self._shop

    @property
    def current_filter(self) -> str:
        return self._filter

    def set_filter(self, status: str) -> None:
        normalized = status.strip().lower()
        if normalized not in _FILTERS:
            raise InvalidKitchenFilterError(f"invalid kitchen filter: {status}")
        self._filter = normalized

    def load_orders(self) -> list[Order]:
        documents = self._store.query(
            ORDERS,
            [FieldFilter("shop", self._shop)],
            order_by="createdAt",
            descending=True,
        )
        self._replace_orders(documents)
        return list(self._orders)

    def orders(self) -> list[Order]:
        return list(self._orders)

    def get_filtered(self) -> list[Order]:
        wanted = _FILTERS[self._filter]
        if wanted is None:
            filtered = list(self._orders)
        else:
            filtered = [order for order in self._orders if order.status == wanted]
        record_kitchen_queue_size(shop=self._shop, status=self._filter, size=len(filtered))
        return filtered

    def get_order(self, order_id: OrderId) -> Order | None:
        for order in self._orders:
            if order.order_id == order_id:
                return order
        return None

    def update_status(self, order_id: OrderId, new_status: OrderStatus) -> Order | None:
        document = self._store.get(ORDERS, str(order_id))
        if document is None:
            return None
        order = order_from_document(document)
        if order.shop != self._shop:
            return None

        try:
            updated = order.transition_to(new_status, self._clock())
        except OrderTransitionError as exc:
            raise InvalidOrderTransitionError(str(exc)) from exc
        if updated is order:
            return order

        try:
            self._store.update(
                ORDERS,
                str(order_id),
                {"status": updated.status.value, "updatedAt": to_iso(updated.updated_at)},
            )
        except DocumentNotFoundError:
            return None

        record_transition(order.status, updated.status)
        logger.info(
            "order_status_updated",
            extra={
                "order_id": str(order_id),
                "from_status": order.status.value,
                "to_status": updated.status.value,
            },
        )
        self._orders = [updated if o.order_id == order_id else o for o in self._orders]
        return updated

    def listen(self, on_change: Callable[[list[Order]], None]) -> Subscription:
        def handle(documents: list[Document]) -> None:
            self._replace_orders(documents)
            on_change(self.get_filtered())

        return self._store.subscribe_query(
            ORDERS,
            [FieldFilter("shop", self._shop)],
            handle,
            order_by="createdAt",
            descending=True,
        )

    def _replace_orders(self, documents: list[Document]) -> None:
        orders: list[Order] = []
        for document in documents:
            try:
                orders.append(order_from_document(document))
            except MalformedDocumentError:
                logger.warning("order_skipped", extra={"doc_id": document.doc_id})
        self._orders = orders
