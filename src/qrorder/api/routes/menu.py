from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from qrorder.api.dependencies import get_storefront
from qrorder.application.dto.responses import MenuResponse
from qrorder.application.mappers.responses import to_menu_item_response
from qrorder.application.use_cases.storefront import Storefront
from qrorder.domain.menu.entities import ALL_CATEGORIES, parse_category_filter

router = APIRouter()


@router.get("/v1/menu", response_model=MenuResponse)
def get_menu(
    category: str = Query(default=ALL_CATEGORIES),
    search: str = Query(default="", max_length=100),
    storefront: Storefront = Depends(get_storefront),
) -> MenuResponse:
    items = storefront.menu(category=category, search=search)
    return MenuResponse(
        shop=storefront.current_shop or "",
        category=parse_category_filter(category),
        items=[to_menu_item_response(item) for item in items],
    )
