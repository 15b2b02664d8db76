from __future__ import annotations

from typing import NewType

ShopName = NewType("ShopName", str)
MenuItemId = NewType("MenuItemId", str)
OrderId = NewType("OrderId", str)
PaymentId = NewType("PaymentId", str)
SessionId = NewType("SessionId", str)
