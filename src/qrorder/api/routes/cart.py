from __future__ import annotations

from fastapi import APIRouter, Depends

from qrorder.api.dependencies import get_storefront
from qrorder.application.dto.requests import AddCartItemRequest, UpdateCartItemRequest
from qrorder.application.dto.responses import CartResponse
from qrorder.application.mappers.responses import to_cart_response
from qrorder.application.use_cases.storefront import Storefront

router = APIRouter()


@router.get("/v1/cart", response_model=CartResponse)
def get_cart(storefront: Storefront = Depends(get_storefront)) -> CartResponse:
    return to_cart_response(storefront.cart)


@router.post("/v1/cart/items", response_model=CartResponse)
def add_cart_item(
    request_dto: AddCartItemRequest,
    storefront: Storefront = Depends(get_storefront),
) -> CartResponse:
    storefront.add_to_cart(request_dto.item_id, request_dto.quantity)
    return to_cart_response(storefront.cart)


@router.patch("/v1/cart/items/{item_id}", response_model=CartResponse)
def update_cart_item(
    item_id: str,
    request_dto: UpdateCartItemRequest,
    storefront: Storefront = Depends(get_storefront),
) -> CartResponse:
    storefront.update_cart_item(item_id, request_dto.delta)
    return to_cart_response(storefront.cart)


@router.delete("/v1/cart/items/{item_id}", response_model=CartResponse)
def remove_cart_item(
    item_id: str,
    storefront: Storefront = Depends(get_storefront),
) -> CartResponse:
    storefront.remove_from_cart(item_id)
    return to_cart_response(storefront.cart)


@router.delete("/v1/cart", response_model=CartResponse)
def clear_cart(storefront: Storefront = Depends(get_storefront)) -> CartResponse:
    storefront.clear_cart()
    return to_cart_response(storefront.cart)
