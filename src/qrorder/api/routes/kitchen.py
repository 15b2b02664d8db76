from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query

from qrorder.api.dependencies import (
    KitchenAccessDeniedError,
    KitchenLockedError,
    get_access_gate,
    get_store,
    get_storefront,
    require_kitchen_access,
)
from qrorder.application.dto.requests import (
    ChangePasswordRequest,
    KitchenLoginRequest,
    SettlePaymentRequest,
    UpdateOrderStatusRequest,
)
from qrorder.application.dto.responses import (
    AccessResponse,
    KitchenOrdersResponse,
    OrderResponse,
    PaymentResponse,
)
from qrorder.application.mappers.responses import (
    to_access_response,
    to_order_response,
    to_payment_response,
)
from qrorder.application.ports.documents import DocumentStore
from qrorder.application.use_cases.access_gate import AccessGate
from qrorder.application.use_cases.kitchen_workflow import KitchenWorkflow, parse_order_status
from qrorder.application.use_cases.settle_payment import SettlePayment
from qrorder.application.use_cases.storefront import NoShopSelectedError, Storefront
from qrorder.domain.common.ids import OrderId, PaymentId
from qrorder.domain.payment.entities import PaymentStatus

router = APIRouter(prefix="/v1/kitchen")


def kitchen_shop(
    shop: str | None = Query(default=None),
    storefront: Storefront = Depends(get_storefront),
) -> str:
    """Explicit ``shop`` query parameter, else the shop selected in this session."""
    selected = shop or storefront.current_shop
    if not selected:
        raise NoShopSelectedError("no shop is selected")
    return selected


@router.post("/login", response_model=AccessResponse)
def login(
    request_dto: KitchenLoginRequest,
    gate: AccessGate = Depends(get_access_gate),
) -> AccessResponse:
    result = gate.verify(request_dto.password)
    if result.success:
        return to_access_response(result)
    if result.locked:
        raise KitchenLockedError(
            result.message,
            details={"remainingLockSeconds": result.remaining_lock_seconds},
        )
    details: dict[str, object] = {}
    if result.remaining_attempts is not None:
        details["remainingAttempts"] = result.remaining_attempts
    raise KitchenAccessDeniedError(result.message, details=details)


@router.post("/logout", response_model=AccessResponse)
def logout(gate: AccessGate = Depends(get_access_gate)) -> AccessResponse:
    gate.logout()
    return AccessResponse(success=True, message="logged out")


@router.post("/password", response_model=AccessResponse)
def change_password(
    request_dto: ChangePasswordRequest,
    gate: AccessGate = Depends(require_kitchen_access),
) -> AccessResponse:
    result = gate.change_password(request_dto.old_password, request_dto.new_password)
    if not result.success:
        raise HTTPException(status_code=400, detail=result.message)
    return to_access_response(result)


@router.get(
    "/orders",
    response_model=KitchenOrdersResponse,
    dependencies=[Depends(require_kitchen_access)],
)
def list_orders(
    status: str = Query(default="pending"),
    shop: str = Depends(kitchen_shop),
    store: DocumentStore = Depends(get_store),
) -> KitchenOrdersResponse:
    workflow = KitchenWorkflow(store, shop)
    workflow.set_filter(status)
    workflow.load_orders()
    return KitchenOrdersResponse(
        shop=shop,
        status=workflow.current_filter,
        orders=[to_order_response(order) for order in workflow.get_filtered()],
    )


@router.post(
    "/orders/{order_id}/status",
    response_model=OrderResponse,
    dependencies=[Depends(require_kitchen_access)],
)
def update_order_status(
    order_id: str,
    request_dto: UpdateOrderStatusRequest,
    shop: str = Depends(kitchen_shop),
    store: DocumentStore = Depends(get_store),
) -> OrderResponse:
    new_status = parse_order_status(request_dto.status)
    order = KitchenWorkflow(store, shop).update_status(OrderId(order_id), new_status)
    if order is None:
        raise HTTPException(status_code=404, detail=f"order {order_id} not found at {shop}")
    return to_order_response(order)


@router.post(
    "/payments/{payment_id}/settle",
    response_model=PaymentResponse,
    dependencies=[Depends(require_kitchen_access)],
)
def settle_payment(
    payment_id: str,
    request_dto: SettlePaymentRequest,
    store: DocumentStore = Depends(get_store),
) -> PaymentResponse:
    payment = SettlePayment(store).execute(PaymentId(payment_id), PaymentStatus(request_dto.status))
    return to_payment_response(payment)
