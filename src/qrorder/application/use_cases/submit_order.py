from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from decimal import Decimal

from qrorder.application.mappers.documents import order_to_data, payment_to_data
from qrorder.application.metrics.order_lifecycle import (
    record_order_submitted,
    record_orphaned_order,
)
from qrorder.application.ports.documents import ORDERS, PAYMENTS, DocumentStore
from qrorder.domain.cart.ledger import CartLine
from qrorder.domain.common.clock import Clock, utc_now
from qrorder.domain.common.ids import OrderId, PaymentId, ShopName
from qrorder.domain.order.entities import (
    DEFAULT_CUSTOMER_NAME,
    DEFAULT_TABLE_NUMBER,
    Order,
    OrderLine,
    OrderStatus,
    generate_order_number,
)
from qrorder.domain.payment.entities import create_pending_payment, generate_payment_id

logger = logging.getLogger(__name__)


class EmptyCartError(Exception):
    pass


@dataclass(frozen=True)
class OrderReceipt:
    order_id: OrderId
    payment_id: PaymentId
    order_number: str
    total: Decimal


class SubmitOrder:
    """Persist a cart snapshot as an order plus its pending payment.

    The two writes are independent. A failed payment write leaves the order
    in ``pending_payment`` with nothing pointing at it; that is logged and
    counted but not repaired here.
    """

    def __init__(
        self,
        store: DocumentStore,
        clock: Clock = utc_now,
        rng: random.Random | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._rng = rng or random.Random()

    def execute(
        self,
        cart_lines: list[CartLine],
        shop: str,
        customer_name: str | None = None,
        table_number: str | None = None,
    ) -> OrderReceipt:
        if not cart_lines:
            raise EmptyCartError("cart is empty")

        now = self._clock()
        shop_name = ShopName(shop)
        order_lines = [
            OrderLine(
                item_id=line.item.item_id,
                name=line.item.name,
                price=line.item.price,
                quantity=line.quantity,
                shop=line.item.shop or shop_name,
            )
            for line in cart_lines
        ]
        total = sum((line.line_total for line in order_lines), Decimal("0"))
        draft = Order(
            order_id=OrderId(""),
            order_number=generate_order_number(now, self._rng),
            shop=shop_name,
            lines=order_lines,
            total=total,
            status=OrderStatus.PENDING_PAYMENT,
            created_at=now,
            updated_at=now,
            customer_name=customer_name or DEFAULT_CUSTOMER_NAME,
            table_number=table_number or DEFAULT_TABLE_NUMBER,
        )

        order_id = OrderId(self._store.add(ORDERS, order_to_data(draft)))
        record_order_submitted(draft)

        payment = create_pending_payment(
            payment_id=generate_payment_id(now, self._rng),
            order_id=order_id,
            order_number=draft.order_number,
            amount=total,
            shop=shop_name,
            now=now,
        )
        try:
            self._store.set(PAYMENTS, str(payment.payment_id), payment_to_data(payment))
        except Exception:
            record_orphaned_order(draft)
            logger.exception(
                "payment_write_failed",
                extra={"order_id": str(order_id), "payment_id": str(payment.payment_id)},
            )
            raise

        logger.info(
            "order_submitted",
            extra={
                "order_id": str(order_id),
                "order_number": draft.order_number,
                "payment_id": str(payment.payment_id),
                "shop": shop,
                "total": str(total),
            },
        )
        return OrderReceipt(
            order_id=order_id,
            payment_id=payment.payment_id,
            order_number=draft.order_number,
            total=total,
        )
