from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum

from qrorder.domain.common.ids import OrderId, PaymentId, ShopName

PAYMENT_WINDOW = timedelta(minutes=30)


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"


class PaymentOutcome(str, Enum):
    PAID = "paid"
    FAILED = "failed"
    EXPIRED = "expired"


TERMINAL_STATUSES = frozenset({PaymentStatus.PAID, PaymentStatus.FAILED})


@dataclass(frozen=True)
class Payment:
    payment_id: PaymentId
    order_id: OrderId
    order_number: str
    amount: Decimal
    shop: ShopName
    status: PaymentStatus
    created_at: datetime
    expires_at: datetime

    def __post_init__(self) -> None:
        if self.amount < 0:
            raise ValueError("amount must be >= 0")

    def is_expired(self, now: datetime) -> bool:
        return self.status == PaymentStatus.PENDING and now >= self.expires_at


def create_pending_payment(
    payment_id: PaymentId,
    order_id: OrderId,
    order_number: str,
    amount: Decimal,
    shop: ShopName,
    now: datetime,
) -> Payment:
    return Payment(
        payment_id=payment_id,
        order_id=order_id,
        order_number=order_number,
        amount=amount,
        shop=shop,
        status=PaymentStatus.PENDING,
        created_at=now,
        expires_at=now + PAYMENT_WINDOW,
    )


def generate_payment_id(now: datetime, rng: random.Random | None = None) -> PaymentId:
    source = rng or random
    epoch_ms = int(now.timestamp() * 1000)
    return PaymentId(f"PAY{epoch_ms}{source.randint(0, 999):03d}")
