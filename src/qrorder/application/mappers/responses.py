from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from qrorder.application.dto.responses import (
    AccessResponse,
    CartLineResponse,
    CartResponse,
    CartShopGroupResponse,
    CheckoutResponse,
    MenuItemResponse,
    OrderLineResponse,
    OrderResponse,
    PaymentQRCodeResponse,
    PaymentResponse,
    ShopResponse,
)
from qrorder.application.use_cases.access_gate import VerifyResult
from qrorder.application.use_cases.catalog_cache import category_label
from qrorder.application.use_cases.qr_code import PaymentQRCode
from qrorder.application.use_cases.submit_order import OrderReceipt
from qrorder.domain.cart.ledger import CartLedger, CartLine
from qrorder.domain.common.clock import utc_now
from qrorder.domain.menu.entities import MenuItem, Shop
from qrorder.domain.order.entities import Order
from qrorder.domain.payment.entities import Payment


def to_shop_response(shop: Shop) -> ShopResponse:
    return ShopResponse(
        shopId=shop.shop_id,
        name=str(shop.name),
        description=shop.description,
        isActive=shop.is_active,
        categories=list(shop.categories),
        imageUrl=shop.image_url,
        openingHours=shop.opening_hours,
        phone=shop.phone,
    )


def to_menu_item_response(item: MenuItem) -> MenuItemResponse:
    return MenuItemResponse(
        itemId=str(item.item_id),
        name=item.name,
        description=item.description,
        price=item.price,
        category=item.category.value,
        categoryLabel=category_label(item.category.value),
        shop=str(item.shop),
        available=item.available,
        imageUrl=item.image_url,
    )


def _to_cart_line_response(line: CartLine) -> CartLineResponse:
    return CartLineResponse(
        itemId=str(line.item_id),
        name=line.item.name,
        price=line.item.price,
        quantity=line.quantity,
        lineTotal=line.line_total,
        shop=str(line.item.shop),
    )


def to_cart_response(cart: CartLedger) -> CartResponse:
    return CartResponse(
        shop=cart.current_shop,
        lines=[_to_cart_line_response(line) for line in cart.lines()],
        groups=[
            CartShopGroupResponse(
                shop=shop,
                lines=[_to_cart_line_response(line) for line in lines],
                subtotal=sum((line.line_total for line in lines), Decimal("0")),
            )
            for shop, lines in cart.grouped_by_shop().items()
        ],
        totalQuantity=cart.total_quantity(),
        totalPrice=cart.total_price(),
    )


def to_order_response(order: Order) -> OrderResponse:
    return OrderResponse(
        orderId=str(order.order_id),
        orderNumber=order.order_number,
        shop=str(order.shop),
        status=order.status.value,
        lines=[
            OrderLineResponse(
                itemId=str(line.item_id),
                name=line.name,
                price=line.price,
                quantity=line.quantity,
                lineTotal=line.line_total,
                shop=str(line.shop),
            )
            for line in order.lines
        ],
        total=order.total,
        customerName=order.customer_name,
        tableNumber=order.table_number,
        createdAt=order.created_at,
        updatedAt=order.updated_at,
    )


def to_payment_response(payment: Payment, now: datetime | None = None) -> PaymentResponse:
    return PaymentResponse(
        paymentId=str(payment.payment_id),
        orderId=str(payment.order_id),
        orderNumber=payment.order_number,
        amount=payment.amount,
        shop=str(payment.shop),
        status=payment.status.value,
        createdAt=payment.created_at,
        expiresAt=payment.expires_at,
        expired=payment.is_expired(now or utc_now()),
    )


def to_qr_code_response(qr_code: PaymentQRCode) -> PaymentQRCodeResponse:
    return PaymentQRCodeResponse(
        paymentId=qr_code.payment_id,
        qrCodeUrl=qr_code.qr_code_url,
        amount=qr_code.amount,
        shop=qr_code.shop,
        status=qr_code.status,
    )


def to_checkout_response(
    receipt: OrderReceipt,
    qr_code: PaymentQRCode | None,
) -> CheckoutResponse:
    return CheckoutResponse(
        orderId=str(receipt.order_id),
        paymentId=str(receipt.payment_id),
        orderNumber=receipt.order_number,
        total=receipt.total,
        payment=to_qr_code_response(qr_code) if qr_code is not None else None,
    )


def to_access_response(result: VerifyResult) -> AccessResponse:
    return AccessResponse(
        success=result.success,
        message=result.message,
        locked=result.locked,
        remainingAttempts=result.remaining_attempts,
        remainingLockSeconds=result.remaining_lock_seconds,
    )
