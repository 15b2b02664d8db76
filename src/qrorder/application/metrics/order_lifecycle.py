from __future__ import annotations

from prometheus_client import Counter, Gauge

from qrorder.domain.order.entities import Order, OrderStatus

ORDERS_SUBMITTED_TOTAL = Counter(
    "qrorder_orders_submitted_total",
    "Total number of orders written at checkout.",
    ["shop"],
)

ORPHANED_ORDERS_TOTAL = Counter(
    "qrorder_orphaned_orders_total",
    "Orders written without their payment record.",
    ["shop"],
)

ORDER_TRANSITION_TOTAL = Counter(
    "qrorder_order_transition_total",
    "Total number of order status transitions.",
    ["from", "to"],
)

PAYMENT_OUTCOME_TOTAL = Counter(
    "qrorder_payment_outcome_total",
    "Payment tracking outcomes observed by the storefront.",
    ["outcome"],
)

ACTIVE_PAYMENT_TRACKERS = Gauge(
    "qrorder_active_payment_trackers",
    "Payment trackers currently holding a subscription.",
)

CATALOG_FALLBACK_TOTAL = Counter(
    "qrorder_catalog_fallback_total",
    "Catalog reads served from the built-in sample data.",
    ["shop"],
)

KITCHEN_ACCESS_ATTEMPTS_TOTAL = Counter(
    "qrorder_kitchen_access_attempts_total",
    "Kitchen passphrase verification attempts by result.",
    ["result"],
)

KITCHEN_QUEUE_SIZE = Gauge(
    "qrorder_kitchen_queue_size",
    "Number of orders returned by the last kitchen list per filter.",
    ["shop", "status"],
)


def record_order_submitted(order: Order) -> None:
    ORDERS_SUBMITTED_TOTAL.labels(shop=str(order.shop)).inc()


def record_orphaned_order(order: Order) -> None:
    ORPHANED_ORDERS_TOTAL.labels(shop=str(order.shop)).inc()


def record_transition(from_status: OrderStatus, to_status: OrderStatus) -> None:
    ORDER_TRANSITION_TOTAL.labels(**{"from": from_status.value, "to": to_status.value}).inc()


def record_payment_outcome(outcome: str) -> None:
    PAYMENT_OUTCOME_TOTAL.labels(outcome=outcome).inc()


def set_active_payment_trackers(count: int) -> None:
    ACTIVE_PAYMENT_TRACKERS.set(count)


def record_catalog_fallback(shop: str) -> None:
    CATALOG_FALLBACK_TOTAL.labels(shop=shop).inc()


def record_kitchen_access_attempt(result: str) -> None:
    KITCHEN_ACCESS_ATTEMPTS_TOTAL.labels(result=result).inc()


def record_kitchen_queue_size(shop: str, status: str, size: int) -> None:
    KITCHEN_QUEUE_SIZE.labels(shop=shop, status=status).set(size)
