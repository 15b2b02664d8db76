from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Callable

from qrorder.application.mappers.documents import MalformedDocumentError, payment_from_document
from qrorder.application.metrics.order_lifecycle import (
    record_payment_outcome,
    set_active_payment_trackers,
)
from qrorder.application.ports.documents import (
    PAYMENTS,
    Document,
    DocumentNotFoundError,
    DocumentStore,
    StoreUnavailableError,
    Subscription,
)
from qrorder.application.ports.scheduler import Scheduler, TimerHandle
from qrorder.application.use_cases.qr_code import PaymentQRCode, build_qr_code_url
from qrorder.domain.common.clock import Clock, to_iso, utc_now
from qrorder.domain.common.ids import PaymentId
from qrorder.domain.payment.entities import (
    PAYMENT_WINDOW,
    TERMINAL_STATUSES,
    Payment,
    PaymentOutcome,
    PaymentStatus,
)

logger = logging.getLogger(__name__)

_TERMINAL_OUTCOMES = {status: PaymentOutcome(status.value) for status in TERMINAL_STATUSES}


def default_timeout_seconds() -> float:
    raw = os.getenv("PAYMENT_TIMEOUT_SECONDS")
    if not raw:
        return PAYMENT_WINDOW.total_seconds()
    return float(raw)


@dataclass(frozen=True)
class PaymentEvent:
    payment_id: PaymentId
    outcome: PaymentOutcome
    payment: Payment | None = None


PaymentEventHandler = Callable[[PaymentEvent], None]


class _Watch:
    """One tracking session: a document subscription racing an expiry timer."""

    def __init__(self, payment_id: PaymentId, on_event: PaymentEventHandler) -> None:
        self.payment_id = payment_id
        self.on_event = on_event
        self.active = True
        self._subscription: Subscription | None = None
        self._timer: TimerHandle | None = None
        self._lock = threading.Lock()

    def attach(
        self,
        subscription: Subscription | None = None,
        timer: TimerHandle | None = None,
    ) -> None:
        with self._lock:
            if self.active:
                if subscription is not None:
                    self._subscription = subscription
                if timer is not None:
                    self._timer = timer
                return
        # finished while subscribing, e.g. the first snapshot was already terminal
        if subscription is not None:
            subscription.close()
        if timer is not None:
            timer.cancel()

    def finish(self) -> bool:
        with self._lock:
            if not self.active:
                return False
            self.active = False
            subscription, self._subscription = self._subscription, None
            timer, self._timer = self._timer, None
        if subscription is not None:
            subscription.close()
        if timer is not None:
            timer.cancel()
        return True


class PaymentTracker:
    def __init__(
        self,
        store: DocumentStore,
        scheduler: Scheduler,
        timeout_seconds: float | None = None,
        clock: Clock = utc_now,
        qr_endpoint: str | None = None,
    ) -> None:
        self._store = store
        self._scheduler = scheduler
        self._timeout_seconds = (
            default_timeout_seconds() if timeout_seconds is None else timeout_seconds
        )
        self._clock = clock
        self._qr_endpoint = qr_endpoint
        self._watches: dict[str, _Watch] = {}
        self._lock = threading.Lock()

    def start_tracking(self, payment_id: PaymentId, on_event: PaymentEventHandler) -> Subscription:
        watch = _Watch(payment_id, on_event)
        with self._lock:
            displaced = self._watches.get(str(payment_id))
            self._watches[str(payment_id)] = watch
            set_active_payment_trackers(len(self._watches))
        if displaced is not None:
            # already unregistered, so only its timer and subscription are released
            displaced.finish()

        timer = self._scheduler.call_later(self._timeout_seconds, lambda: self._on_timeout(watch))
        watch.attach(timer=timer)
        subscription = self._store.subscribe_document(
            PAYMENTS,
            str(payment_id),
            lambda document: self._on_snapshot(watch, document),
        )
        watch.attach(subscription=subscription)
        logger.info(
            "payment_tracking_started",
            extra={"payment_id": str(payment_id), "timeout_seconds": self._timeout_seconds},
        )
        return Subscription(release=lambda: self._finish(watch))

    def stop_tracking(self, payment_id: PaymentId) -> None:
        with self._lock:
            watch = self._watches.get(str(payment_id))
        if watch is not None:
            self._finish(watch)

    def is_tracking(self, payment_id: PaymentId) -> bool:
        with self._lock:
            return str(payment_id) in self._watches

    def close(self) -> None:
        with self._lock:
            watches = list(self._watches.values())
        for watch in watches:
            self._finish(watch)

    def __enter__(self) -> PaymentTracker:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def check_status(self, payment_id: PaymentId) -> Payment | None:
        document = self._store.get(PAYMENTS, str(payment_id))
        if document is None:
            return None
        return payment_from_document(document)

    def qr_code(self, payment_id: PaymentId) -> PaymentQRCode | None:
        payment = self.check_status(payment_id)
        if payment is None:
            return None
        return PaymentQRCode(
            payment_id=str(payment.payment_id),
            qr_code_url=build_qr_code_url(
                str(payment.payment_id),
                payment.amount,
                str(payment.shop),
                now=self._clock(),
                endpoint=self._qr_endpoint,
            ),
            amount=payment.amount,
            shop=str(payment.shop),
            status=payment.status.value,
        )

    def retry(self, payment_id: PaymentId) -> PaymentQRCode | None:
        """Put a failed or expired payment back to pending with a fresh QR code.

        Tracking is not re-armed; call ``start_tracking`` again for that. A paid
        payment is left as it is.
        """
        payment = self.check_status(payment_id)
        if payment is None:
            return None
        if payment.status == PaymentStatus.PAID:
            logger.info("payment_retry_skipped", extra={"payment_id": str(payment_id)})
            return self.qr_code(payment_id)
        try:
            self._store.update(
                PAYMENTS,
                str(payment_id),
                {"status": PaymentStatus.PENDING.value, "updatedAt": to_iso(self._clock())},
            )
        except DocumentNotFoundError:
            return None
        logger.info("payment_retry", extra={"payment_id": str(payment_id)})
        return self.qr_code(payment_id)

    def _finish(self, watch: _Watch) -> bool:
        finished = watch.finish()
        with self._lock:
            if self._watches.get(str(watch.payment_id)) is watch:
                del self._watches[str(watch.payment_id)]
            set_active_payment_trackers(len(self._watches))
        return finished

    def _on_snapshot(self, watch: _Watch, document: Document | None) -> None:
        if document is None or not watch.active:
            return
        try:
            payment = payment_from_document(document)
        except MalformedDocumentError:
            logger.warning("payment_snapshot_malformed", extra={"payment_id": document.doc_id})
            return

        outcome = _TERMINAL_OUTCOMES.get(payment.status)
        if outcome is None:
            return
        if self._finish(watch):
            self._emit(watch, PaymentEvent(watch.payment_id, outcome, payment))

    def _on_timeout(self, watch: _Watch) -> None:
        if not self._finish(watch):
            return
        try:
            payment = self.check_status(watch.payment_id)
        except (StoreUnavailableError, MalformedDocumentError):
            logger.exception(
                "payment_expiry_check_failed",
                extra={"payment_id": str(watch.payment_id)},
            )
            return
        if payment is not None and payment.status == PaymentStatus.PENDING:
            self._emit(watch, PaymentEvent(watch.payment_id, PaymentOutcome.EXPIRED, payment))

    def _emit(self, watch: _Watch, event: PaymentEvent) -> None:
        record_payment_outcome(event.outcome.value)
        logger.info(
            "payment_tracking_finished",
            extra={"payment_id": str(event.payment_id), "outcome": event.outcome.value},
        )
        try:
            watch.on_event(event)
        except Exception:
            logger.exception(
                "payment_event_handler_failed",
                extra={"payment_id": str(event.payment_id)},
            )
