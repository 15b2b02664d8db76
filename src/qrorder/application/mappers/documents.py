from __future__ import annotations

from typing import Any

from qrorder.application.ports.documents import Document
from qrorder.domain.common.clock import parse_iso, to_iso
from qrorder.domain.common.ids import MenuItemId, OrderId, PaymentId, ShopName
from qrorder.domain.common.money import as_json_number, to_price
from qrorder.domain.menu.entities import Category, MenuItem, Shop
from qrorder.domain.order.entities import (
    DEFAULT_CUSTOMER_NAME,
    DEFAULT_TABLE_NUMBER,
    Order,
    OrderLine,
    OrderStatus,
)
from qrorder.domain.payment.entities import Payment, PaymentStatus


class MalformedDocumentError(Exception):
    pass


def shop_from_document(document: Document) -> Shop:
    data = document.data
    try:
        return Shop(
            shop_id=document.doc_id,
            name=ShopName(data["name"]),
            description=data.get("description") or "",
            is_active=bool(data.get("isActive", True)),
            categories=list(data.get("categories") or []),
            image_url=data.get("imageUrl") or None,
            opening_hours=data.get("openingHours"),
            phone=data.get("phone"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedDocumentError(f"shop document {document.doc_id} is malformed") from exc


def shop_to_data(shop: Shop) -> dict[str, Any]:
    return {
        "name": str(shop.name),
        "description": shop.description,
        "isActive": shop.is_active,
        "categories": list(shop.categories),
        "imageUrl": shop.image_url,
        "openingHours": shop.opening_hours,
        "phone": shop.phone,
    }


def menu_item_from_document(document: Document) -> MenuItem:
    data = document.data
    try:
        return MenuItem(
            item_id=MenuItemId(document.doc_id),
            name=data["name"],
            price=to_price(data["price"]),
            category=Category(data["category"]),
            shop=ShopName(data["shop"]),
            available=bool(data.get("available", True)),
            description=data.get("description"),
            image_url=data.get("imageUrl"),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedDocumentError(f"menu item document {document.doc_id} is malformed") from exc


def menu_item_to_data(item: MenuItem) -> dict[str, Any]:
    return {
        "name": item.name,
        "description": item.description,
        "price": as_json_number(item.price),
        "category": item.category.value,
        "shop": str(item.shop),
        "available": item.available,
        "imageUrl": item.image_url,
    }


def order_to_data(order: Order) -> dict[str, Any]:
    return {
        "orderNumber": order.order_number,
        "shop": str(order.shop),
        "items": [
            {
                "id": str(line.item_id),
                "name": line.name,
                "price": as_json_number(line.price),
                "quantity": line.quantity,
                "shop": str(line.shop),
            }
            for line in order.lines
        ],
        "total": as_json_number(order.total),
        "customerName": order.customer_name,
        "tableNumber": order.table_number,
        "status": order.status.value,
        "createdAt": to_iso(order.created_at),
        "updatedAt": to_iso(order.updated_at),
    }


def order_from_document(document: Document) -> Order:
    data = document.data
    try:
        shop = ShopName(data["shop"])
        lines = [
            OrderLine(
                item_id=MenuItemId(str(line["id"])),
                name=line["name"],
                price=to_price(line["price"]),
                quantity=int(line["quantity"]),
                shop=ShopName(line.get("shop") or shop),
            )
            for line in data["items"]
        ]
        created_at = parse_iso(data["createdAt"])
        return Order(
            order_id=OrderId(document.doc_id),
            order_number=data["orderNumber"],
            shop=shop,
            lines=lines,
            total=to_price(data["total"]),
            status=OrderStatus(data["status"]),
            created_at=created_at,
            updated_at=parse_iso(data["updatedAt"]) if data.get("updatedAt") else created_at,
            customer_name=data.get("customerName") or DEFAULT_CUSTOMER_NAME,
            table_number=str(data.get("tableNumber") or DEFAULT_TABLE_NUMBER),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedDocumentError(f"order document {document.doc_id} is malformed") from exc


def payment_to_data(payment: Payment) -> dict[str, Any]:
    return {
        "orderId": str(payment.order_id),
        "orderNumber": payment.order_number,
        "amount": as_json_number(payment.amount),
        "shop": str(payment.shop),
        "status": payment.status.value,
        "createdAt": to_iso(payment.created_at),
        "expiresAt": to_iso(payment.expires_at),
    }


def payment_from_document(document: Document) -> Payment:
    data = document.data
    try:
        return Payment(
            payment_id=PaymentId(document.doc_id),
            order_id=OrderId(data["orderId"]),
            order_number=data["orderNumber"],
            amount=to_price(data["amount"]),
            shop=ShopName(data["shop"]),
            status=PaymentStatus(data.get("status") or PaymentStatus.PENDING.value),
            created_at=parse_iso(data["createdAt"]),
            expires_at=parse_iso(data["expiresAt"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedDocumentError(f"payment document {document.doc_id} is malformed") from exc
