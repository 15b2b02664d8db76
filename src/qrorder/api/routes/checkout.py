from __future__ import annotations

from fastapi import APIRouter, Depends, status

from qrorder.api.dependencies import get_storefront, get_tracker
from qrorder.application.dto.requests import CheckoutRequest
from qrorder.application.dto.responses import CheckoutResponse
from qrorder.application.mappers.responses import to_checkout_response
from qrorder.application.use_cases.payment_tracking import PaymentTracker
from qrorder.application.use_cases.storefront import Storefront

router = APIRouter()


@router.post(
    "/v1/checkout",
    response_model=CheckoutResponse,
    status_code=status.HTTP_201_CREATED,
)
def checkout(
    request_dto: CheckoutRequest | None = None,
    storefront: Storefront = Depends(get_storefront),
    tracker: PaymentTracker = Depends(get_tracker),
) -> CheckoutResponse:
    request_dto = request_dto or CheckoutRequest()
    receipt = storefront.checkout(
        customer_name=request_dto.customer_name,
        table_number=request_dto.table_number,
    )
    return to_checkout_response(receipt, tracker.qr_code(receipt.payment_id))
