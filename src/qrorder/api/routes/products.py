from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from qrorder.api.dependencies import get_registry, require_kitchen_access
from qrorder.api.routes.kitchen import kitchen_shop
from qrorder.application.dto.requests import ProductRequest, ProductUpdateRequest
from qrorder.application.dto.responses import MenuItemResponse
from qrorder.application.mappers.responses import to_menu_item_response
from qrorder.application.use_cases.manage_products import ManageProducts
from qrorder.application.use_cases.storefront import SessionRegistry

router = APIRouter(prefix="/v1/kitchen/products", dependencies=[Depends(require_kitchen_access)])


def _manage_products(registry: SessionRegistry = Depends(get_registry)) -> ManageProducts:
    return ManageProducts(registry.store, catalog=registry)


@router.get("", response_model=list[MenuItemResponse])
def list_products(
    shop: str = Depends(kitchen_shop),
    use_case: ManageProducts = Depends(_manage_products),
) -> list[MenuItemResponse]:
    return [to_menu_item_response(item) for item in use_case.list_products(shop)]


@router.post("", response_model=MenuItemResponse, status_code=status.HTTP_201_CREATED)
def add_product(
    request_dto: ProductRequest,
    shop: str = Depends(kitchen_shop),
    use_case: ManageProducts = Depends(_manage_products),
) -> MenuItemResponse:
    product = use_case.add_product(
        shop=shop,
        name=request_dto.name,
        price=request_dto.price,
        category=request_dto.category,
        description=request_dto.description,
        available=request_dto.available,
        image_url=request_dto.image_url,
    )
    return to_menu_item_response(product)


@router.patch("/{product_id}", response_model=MenuItemResponse)
def update_product(
    product_id: str,
    request_dto: ProductUpdateRequest,
    use_case: ManageProducts = Depends(_manage_products),
) -> MenuItemResponse:
    changes = request_dto.model_dump(by_alias=True, exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="no product fields to update")
    return to_menu_item_response(use_case.update_product(product_id, changes))


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: str,
    use_case: ManageProducts = Depends(_manage_products),
) -> Response:
    if not use_case.delete_product(product_id):
        raise HTTPException(status_code=404, detail=f"product {product_id} not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
