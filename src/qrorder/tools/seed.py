from __future__ import annotations

from sqlalchemy import inspect

from qrorder.application.mappers.documents import menu_item_to_data, shop_to_data
from qrorder.application.ports.documents import MENU_ITEMS, SHOPS, DocumentStore
from qrorder.application.sample_data import DEFAULT_SHOPS, SAMPLE_MENUS
from qrorder.infrastructure.db.session import get_engine
from qrorder.infrastructure.documents.sql_store import SqlAlchemyDocumentStore


def seed_documents(store: DocumentStore) -> int:
    """Write the built-in shops and menus under fixed ids, so reseeding overwrites."""
    written = 0
    for shop in DEFAULT_SHOPS:
        store.set(SHOPS, shop.shop_id, shop_to_data(shop))
        written += 1
    for items in SAMPLE_MENUS.values():
        for item in items:
            store.set(MENU_ITEMS, str(item.item_id), menu_item_to_data(item))
            written += 1
    return written


def main() -> None:
    engine = get_engine(timeout_seconds=2.0)
    if "documents" not in set(inspect(engine).get_table_names()):
        print("no schema yet")
        return

    written = seed_documents(SqlAlchemyDocumentStore(engine=engine))
    print(f"seeded {written} documents")


if __name__ == "__main__":
    main()
