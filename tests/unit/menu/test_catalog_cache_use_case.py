from __future__ import annotations

import sys
from decimal import Decimal
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from qrorder.application.ports.documents import MENU_ITEMS, StoreUnavailableError
from qrorder.application.sample_data import SAMPLE_MENUS
from qrorder.application.use_cases.catalog_cache import CatalogCache, category_label
from qrorder.domain.common.ids import MenuItemId, ShopName
from qrorder.domain.menu.entities import Category, InvalidCategoryError, MenuItem
from qrorder.infrastructure.documents.memory_store import InMemoryDocumentStore

SHOP = "ป้าเปิ้ลสุดสวย"


class CountingStore(InMemoryDocumentStore):
    def __init__(self) -> None:
        super().__init__()
        self.queries = 0

    def query(self, collection, filters=(), order_by=None, descending=False):
        self.queries += 1
        return super().query(collection, filters, order_by, descending)


class UnavailableStore(InMemoryDocumentStore):
    def query(self, collection, filters=(), order_by=None, descending=False):
        raise StoreUnavailableError("offline")


def _seed(store: InMemoryDocumentStore) -> None:
    store.set(MENU_ITEMS, "a", {"name": "ส้มตำ", "price": 40, "category": "isan", "shop": SHOP, "available": True})
    store.set(MENU_ITEMS, "b", {"name": "ข้าวผัด", "price": 50, "category": "food", "shop": SHOP, "available": True})
    store.set(MENU_ITEMS, "c", {"name": "ชาเย็น", "price": 25, "category": "drink", "shop": SHOP, "available": False})
    store.set(MENU_ITEMS, "d", {"name": "บะหมี่", "price": 45, "category": "noodle", "shop": "other", "available": True})
    store.set(MENU_ITEMS, "e", {"name": "", "price": "oops", "shop": SHOP, "available": True})


def test_returns_available_items_of_the_shop_sorted_by_name() -> None:
    store = CountingStore()
    _seed(store)
    catalog = CatalogCache(store)

    items = catalog.get_by_category(SHOP)

    assert [item.item_id for item in items] == ["b", "a"]
    assert items[0].price == Decimal("50")


def test_category_filter_and_caching() -> None:
    store = CountingStore()
    _seed(store)
    catalog = CatalogCache(store)

    first = catalog.get_by_category(SHOP, "isan")
    second = catalog.get_by_category(SHOP, "ISAN")

    assert [item.item_id for item in first] == ["a"]
    assert second == first
    assert store.queries == 1

    catalog.invalidate(SHOP)
    catalog.get_by_category(SHOP, "isan")
    assert store.queries == 2


def test_unknown_category_is_rejected() -> None:
    catalog = CatalogCache(CountingStore())

    with pytest.raises(InvalidCategoryError):
        catalog.get_by_category(SHOP, "pizza")


def test_store_failure_serves_fallback_without_caching() -> None:
    catalog = CatalogCache(UnavailableStore())

    items = catalog.get_by_category(SHOP)

    assert items == SAMPLE_MENUS[SHOP]
    assert catalog.get_by_category(SHOP, "isan") == [
        item for item in SAMPLE_MENUS[SHOP] if item.category == Category.ISAN
    ]


def test_apply_change_replaces_cached_snapshot() -> None:
    store = CountingStore()
    catalog = CatalogCache(store)
    fresh = MenuItem(
        item_id=MenuItemId("z"),
        name="ลาบ",
        price=Decimal("70"),
        category=Category.ISAN,
        shop=ShopName(SHOP),
    )

    catalog.apply_change(SHOP, [fresh])

    assert catalog.find_item(SHOP, "z") == fresh
    assert catalog.find_item(SHOP, "missing") is None
    assert store.queries == 0


def test_search_and_categories_helpers() -> None:
    items = SAMPLE_MENUS[SHOP]

    assert [item.name for item in CatalogCache.search(items, "กุ้ง")] == ["ผัดไทย"]
    assert CatalogCache.search(items, "  ") == items
    assert CatalogCache.categories(items) == ["food", "isan"]
    assert category_label("isan") == "อาหารอีสาน"
