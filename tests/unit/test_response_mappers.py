from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from qrorder.application.mappers.responses import to_cart_response, to_payment_response
from qrorder.domain.cart.ledger import CartLedger
from qrorder.domain.common.ids import MenuItemId, OrderId, PaymentId, ShopName
from qrorder.domain.menu.entities import Category, MenuItem
from qrorder.domain.payment.entities import PAYMENT_WINDOW, create_pending_payment

NOW = datetime(2026, 6, 1, 8, 0, tzinfo=timezone.utc)


def _item(item_id: str, price: str, shop: str) -> MenuItem:
    return MenuItem(
        item_id=MenuItemId(item_id),
        name=f"item {item_id}",
        price=Decimal(price),
        category=Category.FOOD,
        shop=ShopName(shop),
    )


def test_cart_response_groups_lines_by_shop() -> None:
    cart = CartLedger(current_shop=ShopName("ป้าเปิ้ลสุดสวย"))
    cart.add(_item("1", "60", "ป้าเปิ้ลสุดสวย"), 2)
    cart.add(_item("2", "45", "ป้าเปิ้ลสุดสวย"), 1)
    cart.add(_item("4", "55", "ป้ามิตรสุดเก๋"), 1)

    body = to_cart_response(cart).model_dump(mode="json")

    subtotals = {group["shop"]: group["subtotal"] for group in body["groups"]}
    assert subtotals == {"ป้าเปิ้ลสุดสวย": 165.0, "ป้ามิตรสุดเก๋": 55.0}
    assert body["totalPrice"] == 220.0
    assert sum(len(group["lines"]) for group in body["groups"]) == len(body["lines"])


def test_empty_cart_has_no_groups() -> None:
    assert to_cart_response(CartLedger()).groups == []


def test_payment_response_flags_expired_pending_payments() -> None:
    payment = create_pending_payment(
        payment_id=PaymentId("PAY1"),
        order_id=OrderId("o1"),
        order_number="ORD1",
        amount=Decimal("120"),
        shop=ShopName("ป้าเปิ้ลสุดสวย"),
        now=NOW,
    )

    assert not to_payment_response(payment, now=NOW + timedelta(minutes=1)).expired
    assert to_payment_response(payment, now=NOW + PAYMENT_WINDOW).expired
