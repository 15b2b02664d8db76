from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from qrorder.domain.common.ids import MenuItemId, ShopName
from qrorder.domain.menu.entities import MenuItem

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CartLine:
    item: MenuItem
    quantity: int

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")

    @property
    def item_id(self) -> MenuItemId:
        return self.item.item_id

    @property
    def line_total(self) -> Decimal:
        return self.item.price * self.quantity


class CartLedger:
    """Pending selection for one browsing session.

    Lines keep the ``MenuItem`` snapshot taken when they were added, so later
    catalog price changes never reach the cart total.
    """

    def __init__(self, current_shop: ShopName | None = None) -> None:
        self._lines: dict[MenuItemId, CartLine] = {}
        self.current_shop = current_shop

    def add(self, item: MenuItem, quantity: int) -> None:
        if quantity < 1:
            self._lines.pop(item.item_id, None)
            return
        existing = self._lines.get(item.item_id)
        if existing is not None:
            self._lines[item.item_id] = CartLine(item=existing.item, quantity=quantity)
            return
        self._lines[item.item_id] = CartLine(item=item, quantity=quantity)

    def update_quantity(self, item_id: MenuItemId, delta: int) -> None:
        line = self._lines.get(item_id)
        if line is None:
            if delta > 0:
                logger.warning("cart_update_missing_line", extra={"item_id": str(item_id)})
            return

        new_quantity = line.quantity + delta
        if new_quantity <= 0:
            del self._lines[item_id]
            return
        self._lines[item_id] = CartLine(item=line.item, quantity=new_quantity)

    def remove(self, item_id: MenuItemId) -> None:
        self._lines.pop(item_id, None)

    def clear(self) -> None:
        self._lines.clear()

    def total_quantity(self) -> int:
        return sum(line.quantity for line in self._lines.values())

    def total_price(self) -> Decimal:
        return sum((line.line_total for line in self._lines.values()), Decimal("0"))

    def is_empty(self) -> bool:
        return not self._lines

    def get_line(self, item_id: MenuItemId) -> CartLine | None:
        return self._lines.get(item_id)

    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    def grouped_by_shop(self) -> dict[str, list[CartLine]]:
        grouped: dict[str, list[CartLine]] = {}
        for line in self._lines.values():
            shop = line.item.shop or self.current_shop or ""
            grouped.setdefault(str(shop), []).append(line)
        return grouped
