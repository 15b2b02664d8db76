from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field, PlainSerializer

# amounts go over the wire as JSON numbers, the way the stored documents keep them
Amount = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ShopResponse(BaseModel):
    shopId: str
    name: str
    description: str = ""
    isActive: bool = True
    categories: list[str] = Field(default_factory=list)
    imageUrl: str | None = None
    openingHours: str | None = None
    phone: str | None = None


class ShopsResponse(BaseModel):
    shops: list[ShopResponse] = Field(default_factory=list)
    currentShop: str | None = None


class MenuItemResponse(BaseModel):
    itemId: str
    name: str
    description: str | None = None
    price: Amount
    category: str
    categoryLabel: str
    shop: str
    available: bool
    imageUrl: str | None = None


class MenuResponse(BaseModel):
    shop: str
    category: str
    items: list[MenuItemResponse] = Field(default_factory=list)


class CartLineResponse(BaseModel):
    itemId: str
    name: str
    price: Amount
    quantity: int
    lineTotal: Amount
    shop: str


class CartShopGroupResponse(BaseModel):
    shop: str
    lines: list[CartLineResponse] = Field(default_factory=list)
    subtotal: Amount


class CartResponse(BaseModel):
    shop: str | None = None
    lines: list[CartLineResponse] = Field(default_factory=list)
    groups: list[CartShopGroupResponse] = Field(default_factory=list)
    totalQuantity: int
    totalPrice: Amount


class OrderLineResponse(BaseModel):
    itemId: str
    name: str
    price: Amount
    quantity: int
    lineTotal: Amount
    shop: str


class OrderResponse(BaseModel):
    orderId: str
    orderNumber: str
    shop: str
    status: str
    lines: list[OrderLineResponse] = Field(default_factory=list)
    total: Amount
    customerName: str
    tableNumber: str
    createdAt: datetime
    updatedAt: datetime


class KitchenOrdersResponse(BaseModel):
    shop: str
    status: str
    orders: list[OrderResponse] = Field(default_factory=list)


class PaymentResponse(BaseModel):
    paymentId: str
    orderId: str
    orderNumber: str
    amount: Amount
    shop: str
    status: str
    createdAt: datetime
    expiresAt: datetime
    expired: bool = False


class PaymentQRCodeResponse(BaseModel):
    paymentId: str
    qrCodeUrl: str
    amount: Amount
    shop: str
    status: str


class CheckoutResponse(BaseModel):
    orderId: str
    paymentId: str
    orderNumber: str
    total: Amount
    payment: PaymentQRCodeResponse | None = None


class PaymentEventMessage(BaseModel):
    paymentId: str
    status: str


class AccessResponse(BaseModel):
    success: bool
    message: str
    locked: bool = False
    remainingAttempts: int | None = None
    remainingLockSeconds: int | None = None
