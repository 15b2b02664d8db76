from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from qrorder.api.dependencies import get_storefront
from qrorder.application.dto.requests import ChangeShopRequest
from qrorder.application.dto.responses import ShopsResponse
from qrorder.application.mappers.responses import to_shop_response
from qrorder.application.use_cases.storefront import Storefront

router = APIRouter()


def _shops_response(storefront: Storefront) -> ShopsResponse:
    return ShopsResponse(
        shops=[to_shop_response(shop) for shop in storefront.shops.active_shops()],
        currentShop=storefront.current_shop,
    )


@router.get("/v1/shops", response_model=ShopsResponse)
def list_shops(storefront: Storefront = Depends(get_storefront)) -> ShopsResponse:
    storefront.start()
    return _shops_response(storefront)


@router.put("/v1/session/shop", response_model=ShopsResponse)
def change_shop(
    request_dto: ChangeShopRequest,
    storefront: Storefront = Depends(get_storefront),
) -> ShopsResponse:
    if not storefront.change_shop(request_dto.shop):
        raise HTTPException(status_code=404, detail=f"shop {request_dto.shop} not found")
    return _shops_response(storefront)
