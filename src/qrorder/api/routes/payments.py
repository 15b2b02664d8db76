from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from qrorder.api.dependencies import get_tracker
from qrorder.application.dto.responses import PaymentQRCodeResponse, PaymentResponse
from qrorder.application.mappers.responses import to_payment_response, to_qr_code_response
from qrorder.application.use_cases.payment_tracking import PaymentTracker
from qrorder.domain.common.ids import PaymentId

router = APIRouter()


def _not_found(payment_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"payment {payment_id} not found")


@router.get("/v1/payments/{payment_id}", response_model=PaymentResponse)
def get_payment(payment_id: str, tracker: PaymentTracker = Depends(get_tracker)) -> PaymentResponse:
    payment = tracker.check_status(PaymentId(payment_id))
    if payment is None:
        raise _not_found(payment_id)
    return to_payment_response(payment)


@router.get("/v1/payments/{payment_id}/qr", response_model=PaymentQRCodeResponse)
def get_payment_qr_code(
    payment_id: str,
    tracker: PaymentTracker = Depends(get_tracker),
) -> PaymentQRCodeResponse:
    qr_code = tracker.qr_code(PaymentId(payment_id))
    if qr_code is None:
        raise _not_found(payment_id)
    return to_qr_code_response(qr_code)


@router.post("/v1/payments/{payment_id}/retry", response_model=PaymentQRCodeResponse)
def retry_payment(
    payment_id: str,
    tracker: PaymentTracker = Depends(get_tracker),
) -> PaymentQRCodeResponse:
    qr_code = tracker.retry(PaymentId(payment_id))
    if qr_code is None:
        raise _not_found(payment_id)
    return to_qr_code_response(qr_code)
