from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from qrorder.application.ports.documents import (
    MENU_ITEMS,
    SHOPS,
    Document,
    DocumentNotFoundError,
    FieldFilter,
    StoreUnavailableError,
)
from qrorder.infrastructure.db.models.document import Base
from qrorder.infrastructure.documents.sql_store import SqlAlchemyDocumentStore
from qrorder.tools.seed import seed_documents


@pytest.fixture
def engine() -> Iterator[Engine]:
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


def test_documents_round_trip_through_sql(engine: Engine) -> None:
    store = SqlAlchemyDocumentStore(engine=engine)

    doc_id = store.add("orders", {"shop": "ป้าเปิ้ลสุดสวย", "status": "pending_payment", "total": 60})
    store.update("orders", doc_id, {"status": "pending"})

    document = store.get("orders", doc_id)
    assert document is not None
    assert document.data == {"shop": "ป้าเปิ้ลสุดสวย", "status": "pending", "total": 60}

    store.delete("orders", doc_id)
    assert store.get("orders", doc_id) is None
    with pytest.raises(DocumentNotFoundError):
        store.update("orders", doc_id, {"status": "preparing"})


def test_seeded_menu_is_queryable_per_shop(engine: Engine) -> None:
    store = SqlAlchemyDocumentStore(engine=engine)
    written = seed_documents(store)

    shops = store.query(SHOPS, order_by="name")
    items = store.query(MENU_ITEMS, [FieldFilter("shop", "ป้าอ้อยสุดแซ่บ")], order_by="price")

    assert written == 10
    assert [shop.get("name") for shop in shops][0] == "ป้ามิตรสุดเก๋"
    assert [item.doc_id for item in items] == ["6", "7"]

    assert seed_documents(store) == written
    assert len(store.query(MENU_ITEMS)) == 7


def test_subscriptions_follow_sql_writes(engine: Engine) -> None:
    store = SqlAlchemyDocumentStore(engine=engine)
    documents: list[Document | None] = []
    snapshots: list[list[str]] = []

    store.set("payments", "PAY1", {"status": "pending"})
    with store.subscribe_document("payments", "PAY1", documents.append):
        with store.subscribe_query(
            "payments",
            [FieldFilter("status", "paid")],
            lambda docs: snapshots.append([doc.doc_id for doc in docs]),
        ):
            store.update("payments", "PAY1", {"status": "paid"})

    store.delete("payments", "PAY1")

    assert [doc.get("status") if doc else None for doc in documents] == ["pending", "paid"]
    assert snapshots == [[], ["PAY1"]]


def test_database_errors_surface_as_store_unavailable(engine: Engine) -> None:
    store = SqlAlchemyDocumentStore(engine=engine)
    Base.metadata.drop_all(engine)

    with pytest.raises(StoreUnavailableError):
        store.get("orders", "missing")
