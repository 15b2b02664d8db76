from __future__ import annotations

import random
import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from qrorder.domain.common.ids import MenuItemId, OrderId, PaymentId, ShopName
from qrorder.domain.common.money import as_json_number, to_price
from qrorder.domain.order.entities import (
    Order,
    OrderLine,
    OrderStatus,
    OrderTransitionError,
    generate_order_number,
)
from qrorder.domain.payment.entities import (
    PAYMENT_WINDOW,
    PaymentStatus,
    create_pending_payment,
    generate_payment_id,
)

NOW = datetime(2026, 3, 14, 9, 26, 53, tzinfo=timezone.utc)


def _order(status: OrderStatus = OrderStatus.PENDING) -> Order:
    line = OrderLine(
        item_id=MenuItemId("1"),
        name="ผัดไทย",
        price=Decimal("60"),
        quantity=2,
        shop=ShopName("ป้าเปิ้ลสุดสวย"),
    )
    return Order(
        order_id=OrderId("o1"),
        order_number="ORD260314092612",
        shop=ShopName("ป้าเปิ้ลสุดสวย"),
        lines=[line],
        total=line.line_total,
        status=status,
        created_at=NOW,
        updated_at=NOW,
    )


def test_order_number_format() -> None:
    number = generate_order_number(NOW, random.Random(7))

    assert number.startswith("ORD2603140926")
    assert len(number) == len("ORD") + 10 + 2
    assert number[-2:].isdigit()


def test_payment_id_format() -> None:
    payment_id = generate_payment_id(NOW, random.Random(7))

    epoch_ms = int(NOW.timestamp() * 1000)
    assert payment_id.startswith(f"PAY{epoch_ms}")
    assert len(payment_id) == len(f"PAY{epoch_ms}") + 3


def test_kitchen_happy_path_transitions() -> None:
    order = _order(OrderStatus.PENDING)
    later = NOW + timedelta(minutes=5)

    preparing = order.transition_to(OrderStatus.PREPARING, later)
    completed = preparing.transition_to(OrderStatus.COMPLETED, later)

    assert completed.status == OrderStatus.COMPLETED
    assert completed.updated_at == later
    assert order.status == OrderStatus.PENDING


def test_preparing_can_go_back_to_pending() -> None:
    order = _order(OrderStatus.PREPARING)

    assert order.transition_to(OrderStatus.PENDING, NOW).status == OrderStatus.PENDING


@pytest.mark.parametrize(
    ("current", "target"),
    [
        (OrderStatus.COMPLETED, OrderStatus.PENDING),
        (OrderStatus.CANCELLED, OrderStatus.PREPARING),
        (OrderStatus.PENDING_PAYMENT, OrderStatus.PREPARING),
        (OrderStatus.PENDING, OrderStatus.COMPLETED),
    ],
)
def test_invalid_transitions_are_rejected(current: OrderStatus, target: OrderStatus) -> None:
    with pytest.raises(OrderTransitionError):
        _order(current).transition_to(target, NOW)


def test_same_status_transition_returns_the_same_order() -> None:
    order = _order(OrderStatus.PREPARING)

    assert order.transition_to(OrderStatus.PREPARING, NOW) is order


def test_order_requires_lines() -> None:
    with pytest.raises(ValueError):
        Order(
            order_id=OrderId("o1"),
            order_number="ORD",
            shop=ShopName("shop"),
            lines=[],
            total=Decimal("0"),
            status=OrderStatus.PENDING,
            created_at=NOW,
            updated_at=NOW,
        )


def test_pending_payment_expires_after_the_window() -> None:
    payment = create_pending_payment(
        payment_id=PaymentId("PAY1"),
        order_id=OrderId("o1"),
        order_number="ORD1",
        amount=Decimal("120"),
        shop=ShopName("shop"),
        now=NOW,
    )

    assert payment.status == PaymentStatus.PENDING
    assert payment.expires_at == NOW + PAYMENT_WINDOW
    assert not payment.is_expired(NOW + PAYMENT_WINDOW - timedelta(seconds=1))
    assert payment.is_expired(NOW + PAYMENT_WINDOW)


def test_prices_are_validated_and_rendered_as_json_numbers() -> None:
    assert to_price(45) == Decimal("45")
    assert as_json_number(Decimal("45")) == 45
    assert as_json_number(Decimal("12.5")) == 12.5
    for bad in (True, "abc", -1, float("nan")):
        with pytest.raises(ValueError):
            to_price(bad)
