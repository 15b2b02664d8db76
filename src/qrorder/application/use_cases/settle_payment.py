from __future__ import annotations

import logging

from qrorder.application.mappers.documents import order_from_document, payment_from_document
from qrorder.application.metrics.order_lifecycle import record_transition
from qrorder.application.ports.documents import ORDERS, PAYMENTS, DocumentStore
from qrorder.domain.common.clock import Clock, to_iso, utc_now
from qrorder.domain.common.ids import PaymentId
from qrorder.domain.order.entities import OrderStatus
from qrorder.domain.payment.entities import TERMINAL_STATUSES, Payment, PaymentStatus

logger = logging.getLogger(__name__)


class PaymentNotFoundError(Exception):
    pass


class InvalidSettlementError(Exception):
    pass


class SettlePayment:
    """Record the outcome of a payment and release a paid order to the kitchen."""

    def __init__(self, store: DocumentStore, clock: Clock = utc_now) -> None:
        self._store = store
        self._clock = clock

    def execute(self, payment_id: PaymentId, status: PaymentStatus) -> Payment:
        if status not in TERMINAL_STATUSES:
            raise InvalidSettlementError("settlement status must be paid or failed")

        document = self._store.get(PAYMENTS, str(payment_id))
        if document is None:
            raise PaymentNotFoundError(f"payment {payment_id} not found")
        payment = payment_from_document(document)
        if payment.status == PaymentStatus.PAID and status != PaymentStatus.PAID:
            raise InvalidSettlementError(f"payment {payment_id} is already paid")

        now_iso = to_iso(self._clock())
        self._store.update(
            PAYMENTS,
            str(payment_id),
            {"status": status.value, "updatedAt": now_iso},
        )
        logger.info(
            "payment_settled",
            extra={"payment_id": str(payment_id), "status": status.value},
        )

        if status == PaymentStatus.PAID:
            self._release_order(payment)

        updated = self._store.get(PAYMENTS, str(payment_id))
        return payment_from_document(updated) if updated is not None else payment

    def _release_order(self, payment: Payment) -> None:
        document = self._store.get(ORDERS, str(payment.order_id))
        if document is None:
            logger.warning(
                "paid_order_missing",
                extra={"payment_id": str(payment.payment_id), "order_id": str(payment.order_id)},
            )
            return
        order = order_from_document(document)
        if order.status != OrderStatus.PENDING_PAYMENT:
            return
        released = order.transition_to(OrderStatus.PENDING, self._clock())
        self._store.update(
            ORDERS,
            str(order.order_id),
            {"status": released.status.value, "updatedAt": to_iso(released.updated_at)},
        )
        record_transition(order.status, released.status)
