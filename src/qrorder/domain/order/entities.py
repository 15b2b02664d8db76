from __future__ import annotations

import random
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum

from qrorder.domain.common.ids import MenuItemId, OrderId, ShopName


class OrderStatus(str, Enum):
    PENDING_PAYMENT = "pending_payment"
    PENDING = "pending"
    PREPARING = "preparing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING_PAYMENT: frozenset({OrderStatus.PENDING, OrderStatus.CANCELLED}),
    OrderStatus.PENDING: frozenset({OrderStatus.PREPARING, OrderStatus.CANCELLED}),
    # preparing -> pending lets the kitchen undo an accidental "start cooking"
    OrderStatus.PREPARING: frozenset({OrderStatus.COMPLETED, OrderStatus.PENDING}),
    OrderStatus.COMPLETED: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}

DEFAULT_CUSTOMER_NAME = "ลูกค้าทั่วไป"
DEFAULT_TABLE_NUMBER = "1"


class OrderTransitionError(Exception):
    pass


@dataclass(frozen=True)
class OrderLine:
    item_id: MenuItemId
    name: str
    price: Decimal
    quantity: int
    shop: ShopName

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")
        if self.price < 0:
            raise ValueError("price must be >= 0")

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity


@dataclass(frozen=True)
class Order:
    order_id: OrderId
    order_number: str
    shop: ShopName
    lines: list[OrderLine]
    total: Decimal
    status: OrderStatus
    created_at: datetime
    updated_at: datetime
    customer_name: str = DEFAULT_CUSTOMER_NAME
    table_number: str = DEFAULT_TABLE_NUMBER

    def __post_init__(self) -> None:
        if not self.lines:
            raise ValueError("order must contain at least one line")

    def transition_to(self, new_status: OrderStatus, now: datetime) -> Order:
        if new_status == self.status:
            return self
        if new_status not in ALLOWED_TRANSITIONS[self.status]:
            raise OrderTransitionError(
                f"cannot move order from status={self.status.value} to status={new_status.value}"
            )
        return replace(self, status=new_status, updated_at=now)


def generate_order_number(now: datetime, rng: random.Random | None = None) -> str:
    """Human-facing order code, ``ORD`` + yymmddHHMM + two random digits.

    Two orders in the same minute can collide; never use it as a key.
    """
    source = rng or random
    suffix = source.randint(0, 99)
    return f"ORD{now.strftime('%y%m%d%H%M')}{suffix:02d}"
