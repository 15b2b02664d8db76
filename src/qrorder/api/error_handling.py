from __future__ import annotations

import logging
from typing import Any, cast

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from qrorder.api.dependencies import KitchenAccessDeniedError, KitchenLockedError
from qrorder.api.middleware.request_id import get_request_id
from qrorder.application.mappers.documents import MalformedDocumentError
from qrorder.application.ports.documents import StoreUnavailableError
from qrorder.application.use_cases.kitchen_workflow import (
    InvalidKitchenFilterError,
    InvalidOrderStatusError,
    InvalidOrderTransitionError,
)
from qrorder.application.use_cases.manage_products import ProductNotFoundError
from qrorder.application.use_cases.settle_payment import (
    InvalidSettlementError,
    PaymentNotFoundError,
)
from qrorder.application.use_cases.storefront import MenuItemNotFoundError, NoShopSelectedError
from qrorder.application.use_cases.submit_order import EmptyCartError
from qrorder.domain.menu.entities import InvalidCategoryError

logger = logging.getLogger(__name__)


def _error_response(
    *,
    status_code: int,
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            },
            "requestId": get_request_id(),
        },
    )


def _exception_handler(status_code: int, code: str):
    async def handler(_: Request, exc: Exception) -> JSONResponse:
        details = getattr(exc, "details", None)
        if status_code >= 500:
            logger.error("request_failed", extra={"reason": code}, exc_info=exc)
        return _error_response(
            status_code=status_code,
            code=code,
            message=str(exc),
            details=details if isinstance(details, dict) else None,
        )

    return handler


async def _http_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    http_exc = cast(StarletteHTTPException, exc)
    message = str(http_exc.detail) if http_exc.detail else "request failed"
    code = "HTTP_ERROR"
    if http_exc.status_code == 404:
        code = "NOT_FOUND"
    elif http_exc.status_code == 400:
        code = "BAD_REQUEST"
    elif http_exc.status_code == 405:
        code = "METHOD_NOT_ALLOWED"
    elif http_exc.status_code == 409:
        code = "CONFLICT"
    return _error_response(
        status_code=http_exc.status_code,
        code=code,
        message=message,
    )


async def _validation_exception_handler(_: Request, exc: Exception) -> JSONResponse:
    validation_exc = cast(RequestValidationError, exc)
    return _error_response(
        status_code=400,
        code="INVALID_REQUEST",
        message="request validation failed",
        details={"errors": validation_exc.errors()},
    )


def register_exception_handlers(app: FastAPI) -> None:
    mappings: list[tuple[type[Exception], int, str]] = [
        (StoreUnavailableError, 503, "STORE_UNAVAILABLE"),
        (MalformedDocumentError, 500, "MALFORMED_DOCUMENT"),
        (EmptyCartError, 400, "EMPTY_CART"),
        (NoShopSelectedError, 400, "NO_SHOP_SELECTED"),
        (InvalidCategoryError, 400, "INVALID_CATEGORY"),
        (InvalidKitchenFilterError, 400, "INVALID_KITCHEN_FILTER"),
        (InvalidOrderStatusError, 400, "INVALID_ORDER_STATUS"),
        (InvalidSettlementError, 409, "INVALID_SETTLEMENT"),
        (InvalidOrderTransitionError, 409, "INVALID_ORDER_TRANSITION"),
        (MenuItemNotFoundError, 404, "MENU_ITEM_NOT_FOUND"),
        (PaymentNotFoundError, 404, "PAYMENT_NOT_FOUND"),
        (ProductNotFoundError, 404, "PRODUCT_NOT_FOUND"),
        (KitchenAccessDeniedError, 401, "KITCHEN_ACCESS_DENIED"),
        (KitchenLockedError, 423, "KITCHEN_LOCKED"),
    ]

    for exc_cls, status_code, code in mappings:
        app.add_exception_handler(exc_cls, _exception_handler(status_code, code))

    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)
