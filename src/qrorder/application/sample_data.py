"""Built-in shops and menus served when the document store cannot be reached."""

from __future__ import annotations

from decimal import Decimal

from qrorder.domain.common.ids import MenuItemId, ShopName
from qrorder.domain.menu.entities import ALL_CATEGORIES, Category, MenuItem, Shop

_IMAGE = "https://images.unsplash.com/photo-{}?ixlib=rb-1.2.1&auto=format&fit=crop&w=600&q=80"

DEFAULT_SHOPS: list[Shop] = [
    Shop(
        shop_id="1",
        name=ShopName("ป้าเปิ้ลสุดสวย"),
        description="อาหารตามสั่ง",
        categories=["food", "noodle", "isan"],
        opening_hours="06:00-14:00",
        phone="081-234-5678",
    ),
    Shop(
        shop_id="2",
        name=ShopName("ป้ามิตรสุดเก๋"),
        description="ก๋วยเตี๋ยวสูตรเด็ด",
        categories=["noodle"],
        opening_hours="06:00-13:00",
        phone="082-345-6789",
    ),
    Shop(
        shop_id="3",
        name=ShopName("ป้าอ้อยสุดแซ่บ"),
        description="ก๋วยเตี๋ยวน้ำตกน้ำใส",
        categories=["noodle"],
        opening_hours="06:00-13:00",
        phone="083-456-7890",
    ),
]


def _item(
    item_id: str,
    name: str,
    description: str,
    price: int,
    category: Category,
    shop: str,
    image: str,
) -> MenuItem:
    return MenuItem(
        item_id=MenuItemId(item_id),
        name=name,
        description=description,
        price=Decimal(price),
        category=category,
        shop=ShopName(shop),
        available=True,
        image_url=_IMAGE.format(image),
    )


SAMPLE_MENUS: dict[str, list[MenuItem]] = {
    "ป้าเปิ้ลสุดสวย": [
        _item("1", "ผัดไทย", "ผัดไทยสูตรดั้งเดิมใส่กุ้งสด", 60, Category.FOOD, "ป้าเปิ้ลสุดสวย", "1559314809-2b99056a8c4a"),
        _item("2", "ข้าวผัดกระเพราไก่", "ข้าวผัดกระเพราไก่สับ", 50, Category.FOOD, "ป้าเปิ้ลสุดสวย", "1563245372-f21724e3856d"),
        _item("3", "ส้มตำไทย", "ส้มตำไทยแบบดั้งเดิม", 40, Category.ISAN, "ป้าเปิ้ลสุดสวย", "1586190848861-99aa4a171e90"),
    ],
    "ป้ามิตรสุดเก๋": [
        _item("4", "ก๋วยเตี๋ยวเรือ", "ก๋วยเตี๋ยวเรือน้ำตก", 55, Category.NOODLE, "ป้ามิตรสุดเก๋", "1552611052-33b04c8c17c6"),
        _item("5", "บะหมี่แห้ง", "บะหมี่แห้งหมูสับ", 50, Category.NOODLE, "ป้ามิตรสุดเก๋", "1563245372-f21724e3856d"),
    ],
    "ป้าอ้อยสุดแซ่บ": [
        _item("6", "บัวลอยไข่หวาน", "บัวลอยไข่หวานน้ำกะทิ", 35, Category.DESSERT, "ป้าอ้อยสุดแซ่บ", "1565958011703-44f9829ba187"),
        _item("7", "โกปี้นมสด", "โกปี้นมสดเย็น", 45, Category.DRINK, "ป้าอ้อยสุดแซ่บ", "1495474472287-4d71bcdd2085"),
    ],
}


def sample_menu(shop: str, category: str = ALL_CATEGORIES) -> list[MenuItem]:
    items = SAMPLE_MENUS.get(shop, [])
    if category == ALL_CATEGORIES:
        return list(items)
    return [item for item in items if item.category.value == category]
