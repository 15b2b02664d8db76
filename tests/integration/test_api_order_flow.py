from __future__ import annotations

import sys
from pathlib import Path

from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

FIRST_SHOP = "ป้ามิตรสุดเก๋"
OTHER_SHOP = "ป้าเปิ้ลสุดสวย"


def _login(client: TestClient, password: str = "123"):
    return client.post("/v1/kitchen/login", json={"password": password})


def test_session_cookie_is_issued_and_reused(client: TestClient) -> None:
    first = client.get("/v1/shops")
    assert first.status_code == 200
    session_id = first.headers["X-Session-Id"]
    assert client.cookies.get("qrorder_session") == session_id

    second = client.get("/v1/cart")
    assert second.headers["X-Session-Id"] == session_id


def test_shops_and_menu(client: TestClient) -> None:
    shops = client.get("/v1/shops").json()
    assert shops["currentShop"] == FIRST_SHOP
    assert {shop["name"] for shop in shops["shops"]} == {FIRST_SHOP, OTHER_SHOP, "ป้าอ้อยสุดแซ่บ"}

    menu = client.get("/v1/menu").json()
    assert menu["shop"] == FIRST_SHOP
    assert [item["itemId"] for item in menu["items"]] == ["4", "5"]

    changed = client.put("/v1/session/shop", json={"shop": OTHER_SHOP})
    assert changed.status_code == 200
    assert changed.json()["currentShop"] == OTHER_SHOP

    food = client.get("/v1/menu", params={"category": "food"}).json()
    assert {item["itemId"] for item in food["items"]} == {"1", "2"}
    assert food["items"][0]["categoryLabel"]

    missing = client.put("/v1/session/shop", json={"shop": "ไม่มีร้านนี้"})
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "NOT_FOUND"

    bad_category = client.get("/v1/menu", params={"category": "pizza"})
    assert bad_category.status_code == 400
    assert bad_category.json()["error"]["code"] == "INVALID_CATEGORY"


def test_cart_operations(client: TestClient) -> None:
    added = client.post("/v1/cart/items", json={"itemId": "4", "quantity": 2})
    assert added.status_code == 200
    assert added.json()["totalQuantity"] == 2
    assert added.json()["totalPrice"] == 110.0

    client.post("/v1/cart/items", json={"itemId": "5"})
    bumped = client.patch("/v1/cart/items/4", json={"delta": 1}).json()
    assert bumped["totalQuantity"] == 4
    assert bumped["totalPrice"] == 215.0
    assert [group["shop"] for group in bumped["groups"]] == [bumped["shop"]]
    assert bumped["groups"][0]["subtotal"] == 215.0

    removed = client.delete("/v1/cart/items/5").json()
    assert [line["itemId"] for line in removed["lines"]] == ["4"]

    foreign = client.post("/v1/cart/items", json={"itemId": "1"})
    assert foreign.status_code == 404
    assert foreign.json()["error"]["code"] == "MENU_ITEM_NOT_FOUND"

    cleared = client.delete("/v1/cart").json()
    assert cleared["lines"] == []
    assert cleared["totalPrice"] == 0.0


def test_checkout_requires_items(client: TestClient) -> None:
    response = client.post("/v1/checkout")
    assert response.status_code == 400
    body = response.json()
    assert body["error"]["code"] == "EMPTY_CART"
    assert body["requestId"] == response.headers["X-Request-Id"]


def test_checkout_settle_and_kitchen_flow(client: TestClient) -> None:
    client.post("/v1/cart/items", json={"itemId": "4", "quantity": 3})
    checkout = client.post("/v1/checkout", json={"customerName": "สมชาย", "tableNumber": "5"})
    assert checkout.status_code == 201
    receipt = checkout.json()
    assert receipt["total"] == 165.0
    assert receipt["orderNumber"].startswith("ORD")
    assert receipt["payment"]["status"] == "pending"
    assert receipt["payment"]["qrCodeUrl"].endswith("&format=png")
    payment_id = receipt["paymentId"]

    assert client.get("/v1/cart").json()["lines"] == []
    payment = client.get(f"/v1/payments/{payment_id}").json()
    assert payment["status"] == "pending"
    assert payment["orderId"] == receipt["orderId"]
    assert payment["expired"] is False
    assert client.get(f"/v1/payments/{payment_id}/qr").status_code == 200

    denied = client.get("/v1/kitchen/orders")
    assert denied.status_code == 401
    assert denied.json()["error"]["code"] == "KITCHEN_ACCESS_DENIED"

    assert _login(client).json()["success"] is True
    assert client.get("/v1/kitchen/orders").json()["orders"] == []
    unpaid = client.get("/v1/kitchen/orders", params={"status": "all"}).json()["orders"]
    assert [order["status"] for order in unpaid] == ["pending_payment"]

    settled = client.post(f"/v1/kitchen/payments/{payment_id}/settle", json={"status": "paid"})
    assert settled.status_code == 200
    assert settled.json()["status"] == "paid"

    pending = client.get("/v1/kitchen/orders").json()
    assert pending["shop"] == FIRST_SHOP
    assert [order["orderId"] for order in pending["orders"]] == [receipt["orderId"]]
    assert pending["orders"][0]["customerName"] == "สมชาย"

    order_id = receipt["orderId"]
    preparing = client.post(f"/v1/kitchen/orders/{order_id}/status", json={"status": "preparing"})
    assert preparing.status_code == 200
    assert preparing.json()["status"] == "preparing"

    invalid = client.post(f"/v1/kitchen/orders/{order_id}/status", json={"status": "cancelled"})
    assert invalid.status_code == 409
    assert invalid.json()["error"]["code"] == "INVALID_ORDER_TRANSITION"

    unknown = client.post("/v1/kitchen/orders/nope/status", json={"status": "completed"})
    assert unknown.status_code == 404

    again = client.post(f"/v1/kitchen/payments/{payment_id}/settle", json={"status": "failed"})
    assert again.status_code == 409
    assert again.json()["error"]["code"] == "INVALID_SETTLEMENT"

    retried = client.post(f"/v1/payments/{payment_id}/retry")
    assert retried.status_code == 200
    assert retried.json()["status"] == "paid"


def test_unknown_payment_is_not_found(client: TestClient) -> None:
    assert client.get("/v1/payments/PAY0/qr").status_code == 404
    assert client.post("/v1/payments/PAY0/retry").status_code == 404

    _login(client)
    missing = client.post("/v1/kitchen/payments/PAY0/settle", json={"status": "paid"})
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "PAYMENT_NOT_FOUND"


def test_kitchen_login_locks_after_three_failures(client: TestClient) -> None:
    first = _login(client, "wrong")
    assert first.status_code == 401
    assert first.json()["error"]["details"] == {"remainingAttempts": 2}

    _login(client, "wrong")
    locked = _login(client, "wrong")
    assert locked.status_code == 423
    assert locked.json()["error"]["details"]["remainingLockSeconds"] == 300

    still_locked = _login(client)
    assert still_locked.status_code == 423


def test_kitchen_password_change_and_logout(client: TestClient) -> None:
    assert client.post(
        "/v1/kitchen/password", json={"oldPassword": "123", "newPassword": "4567"}
    ).status_code == 401

    _login(client)
    too_short = client.post("/v1/kitchen/password", json={"oldPassword": "123", "newPassword": "1"})
    assert too_short.status_code == 400

    changed = client.post("/v1/kitchen/password", json={"oldPassword": "123", "newPassword": "4567"})
    assert changed.status_code == 200

    assert client.post("/v1/kitchen/logout").json()["success"] is True
    assert client.get("/v1/kitchen/orders").status_code == 401
    assert _login(client, "123").status_code == 401
    assert _login(client, "4567").status_code == 200


def test_kitchen_product_management(client: TestClient) -> None:
    assert client.get("/v1/kitchen/products").status_code == 401
    _login(client)

    created = client.post(
        "/v1/kitchen/products",
        json={"name": "เกาเหลา", "price": 60, "category": "noodle"},
    )
    assert created.status_code == 201
    product_id = created.json()["itemId"]
    assert created.json()["shop"] == FIRST_SHOP

    menu_ids = [item["itemId"] for item in client.get("/v1/menu").json()["items"]]
    assert product_id in menu_ids

    updated = client.patch(f"/v1/kitchen/products/{product_id}", json={"price": 65.5})
    assert updated.status_code == 200
    assert updated.json()["price"] == 65.5

    assert client.patch(f"/v1/kitchen/products/{product_id}", json={}).status_code == 400

    listed = client.get("/v1/kitchen/products").json()
    assert product_id in [item["itemId"] for item in listed]

    assert client.delete(f"/v1/kitchen/products/{product_id}").status_code == 204
    assert client.delete(f"/v1/kitchen/products/{product_id}").status_code == 404
    assert product_id not in [item["itemId"] for item in client.get("/v1/menu").json()["items"]]


def test_validation_errors_use_error_envelope(client: TestClient) -> None:
    response = client.post("/v1/cart/items", json={"quantity": 1})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INVALID_REQUEST"
