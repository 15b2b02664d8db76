from __future__ import annotations

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


def _to_camel(value: str) -> str:
    parts = value.split("_")
    return parts[0] + "".join(part.capitalize() for part in parts[1:])


class CamelBaseModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
    )


class ChangeShopRequest(CamelBaseModel):
    shop: str = Field(min_length=1)


class AddCartItemRequest(CamelBaseModel):
    item_id: str = Field(min_length=1)
    quantity: int = 1


class UpdateCartItemRequest(CamelBaseModel):
    delta: int


class CheckoutRequest(CamelBaseModel):
    customer_name: str | None = None
    table_number: str | None = None


class KitchenLoginRequest(CamelBaseModel):
    password: str


class ChangePasswordRequest(CamelBaseModel):
    old_password: str
    new_password: str


class UpdateOrderStatusRequest(CamelBaseModel):
    status: str


class SettlePaymentRequest(CamelBaseModel):
    status: Literal["paid", "failed"]


class ProductRequest(CamelBaseModel):
    name: str = Field(min_length=1)
    price: Decimal = Field(ge=0)
    category: str
    description: str | None = None
    available: bool = True
    image_url: str | None = None


class ProductUpdateRequest(CamelBaseModel):
    name: str | None = Field(default=None, min_length=1)
    price: Decimal | None = Field(default=None, ge=0)
    category: str | None = None
    description: str | None = None
    available: bool | None = None
    image_url: str | None = None
