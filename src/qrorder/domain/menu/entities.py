from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from qrorder.domain.common.ids import MenuItemId, ShopName
from qrorder.domain.common.money import to_price


class Category(str, Enum):
    FOOD = "food"
    NOODLE = "noodle"
    DESSERT = "dessert"
    DRINK = "drink"
    ISAN = "isan"


ALL_CATEGORIES = "all"

CATEGORY_LABELS: dict[str, str] = {
    "food": "อาหารตามสั่ง",
    "noodle": "ก๋วยเตี๋ยว",
    "dessert": "ของหวาน",
    "drink": "เครื่องดื่ม",
    "isan": "อาหารอีสาน",
    ALL_CATEGORIES: "ทั้งหมด",
}


class InvalidCategoryError(Exception):
    pass


def parse_category_filter(value: str) -> str:
    normalized = value.strip().lower()
    if normalized == ALL_CATEGORIES:
        return ALL_CATEGORIES
    try:
        return Category(normalized).value
    except ValueError as exc:
        raise InvalidCategoryError(f"unknown menu category: {value}") from exc


@dataclass(frozen=True)
class MenuItem:
    item_id: MenuItemId
    name: str
    price: Decimal
    category: Category
    shop: ShopName
    available: bool = True
    description: str | None = None
    image_url: str | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must be non-empty")
        object.__setattr__(self, "price", to_price(self.price))


@dataclass(frozen=True)
class Shop:
    shop_id: str
    name: ShopName
    description: str = ""
    is_active: bool = True
    categories: list[str] = field(default_factory=list)
    image_url: str | None = None
    opening_hours: str | None = None
    phone: str | None = None

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("shop name must be non-empty")
