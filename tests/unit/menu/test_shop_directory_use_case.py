from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parents[3] / "src"))

from qrorder.application.ports.documents import SHOPS, StoreUnavailableError
from qrorder.application.sample_data import DEFAULT_SHOPS
from qrorder.application.use_cases.shop_directory import SELECTED_SHOP_KEY, ShopDirectory
from qrorder.infrastructure.cache.session_storage import InMemorySessionStorage
from qrorder.infrastructure.documents.memory_store import InMemoryDocumentStore


class UnavailableStore(InMemoryDocumentStore):
    def query(self, collection, filters=(), order_by=None, descending=False):
        raise StoreUnavailableError("offline")


def _store() -> InMemoryDocumentStore:
    store = InMemoryDocumentStore()
    store.set(SHOPS, "s2", {"name": "B shop", "isActive": True})
    store.set(SHOPS, "s1", {"name": "A shop", "isActive": True, "categories": ["food"]})
    store.set(SHOPS, "s3", {"name": "C shop", "isActive": False})
    return store


def test_loads_active_shops_and_selects_the_first() -> None:
    directory = ShopDirectory(_store(), InMemorySessionStorage())

    shops = directory.load_shops()

    assert [shop.name for shop in shops] == ["A shop", "B shop"]
    assert directory.current_shop_name == "A shop"
    assert directory.current_shop() is not None


def test_saved_selection_survives_reload() -> None:
    storage = InMemorySessionStorage()
    directory = ShopDirectory(_store(), storage)
    directory.load_shops()

    assert directory.change_shop("B shop")
    assert storage.get(SELECTED_SHOP_KEY) == "B shop"

    reloaded = ShopDirectory(_store(), storage)
    reloaded.load_shops()
    assert reloaded.current_shop_name == "B shop"


def test_unknown_or_inactive_shop_is_not_selectable() -> None:
    directory = ShopDirectory(_store(), InMemorySessionStorage())
    directory.load_shops()

    assert not directory.change_shop("C shop")
    assert not directory.change_shop("Z shop")
    assert directory.current_shop_name == "A shop"


def test_store_failure_falls_back_to_default_shops() -> None:
    directory = ShopDirectory(UnavailableStore(), InMemorySessionStorage())

    shops = directory.load_shops()

    assert shops == DEFAULT_SHOPS
    assert directory.current_shop_name == DEFAULT_SHOPS[0].name


def test_empty_store_leaves_no_selection() -> None:
    directory = ShopDirectory(InMemoryDocumentStore(), InMemorySessionStorage())

    assert directory.load_shops() == []
    assert directory.current_shop_name is None
