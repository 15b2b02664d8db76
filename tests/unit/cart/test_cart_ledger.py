from __future__ import annotations

import sys
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from qrorder.domain.cart.ledger import CartLedger
from qrorder.domain.common.ids import MenuItemId, ShopName
from qrorder.domain.menu.entities import Category, MenuItem


def _item(item_id: str = "1", price: str = "60", shop: str = "ป้าเปิ้ลสุดสวย") -> MenuItem:
    return MenuItem(
        item_id=MenuItemId(item_id),
        name=f"item {item_id}",
        price=Decimal(price),
        category=Category.FOOD,
        shop=ShopName(shop),
    )


def test_add_replaces_quantity_instead_of_accumulating() -> None:
    cart = CartLedger()
    cart.add(_item(), 2)
    cart.add(_item(), 3)

    assert cart.total_quantity() == 3
    assert len(cart.lines()) == 1


def test_add_keeps_the_first_price_snapshot() -> None:
    cart = CartLedger()
    cart.add(_item(price="60"), 1)
    cart.add(_item(price="75"), 2)

    line = cart.get_line(MenuItemId("1"))
    assert line is not None
    assert line.item.price == Decimal("60")
    assert cart.total_price() == Decimal("120")


def test_add_with_zero_quantity_removes_or_skips_the_line() -> None:
    cart = CartLedger()
    cart.add(_item("1"), 0)
    assert cart.is_empty()

    cart.add(_item("2"), 2)
    cart.add(_item("2"), 0)
    assert cart.is_empty()


def test_update_quantity_applies_delta_and_drops_empty_lines() -> None:
    cart = CartLedger()
    cart.add(_item(), 2)

    cart.update_quantity(MenuItemId("1"), 1)
    assert cart.total_quantity() == 3

    cart.update_quantity(MenuItemId("1"), -3)
    assert cart.get_line(MenuItemId("1")) is None


def test_update_quantity_on_missing_line_is_a_no_op(caplog) -> None:
    cart = CartLedger()

    cart.update_quantity(MenuItemId("42"), 2)
    cart.update_quantity(MenuItemId("42"), -1)

    assert cart.is_empty()
    assert "cart_update_missing_line" in caplog.text


def test_totals_and_grouping() -> None:
    cart = CartLedger(current_shop=ShopName("ป้าเปิ้ลสุดสวย"))
    cart.add(_item("1", "60"), 2)
    cart.add(_item("4", "55", shop="ป้ามิตรสุดเก๋"), 1)

    assert cart.total_quantity() == 3
    assert cart.total_price() == Decimal("175")
    grouped = cart.grouped_by_shop()
    assert sorted(grouped) == ["ป้ามิตรสุดเก๋", "ป้าเปิ้ลสุดสวย"]
    assert [line.item_id for line in grouped["ป้าเปิ้ลสุดสวย"]] == ["1"]


def test_remove_and_clear() -> None:
    cart = CartLedger()
    cart.add(_item("1"), 1)
    cart.add(_item("2"), 1)

    cart.remove(MenuItemId("1"))
    cart.remove(MenuItemId("missing"))
    assert [line.item_id for line in cart.lines()] == ["2"]

    cart.clear()
    assert cart.is_empty()
    assert cart.total_price() == Decimal("0")
