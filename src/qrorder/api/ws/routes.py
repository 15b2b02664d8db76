from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Awaitable, Callable

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from qrorder.api.middleware.session import session_id_from
from qrorder.api.ws.manager import ConnectionManager
from qrorder.application.dto.responses import KitchenOrdersResponse, PaymentEventMessage
from qrorder.application.mappers.responses import to_order_response
from qrorder.application.ports.documents import Subscription
from qrorder.application.use_cases.kitchen_workflow import (
    InvalidKitchenFilterError,
    KitchenWorkflow,
)
from qrorder.application.use_cases.payment_tracking import PaymentEvent
from qrorder.application.use_cases.storefront import SessionRegistry
from qrorder.domain.common.ids import PaymentId
from qrorder.domain.order.entities import Order

router = APIRouter()
logger = logging.getLogger(__name__)

POLICY_VIOLATION = 1008


def _threadsafe_put(
    loop: asyncio.AbstractEventLoop,
    queue: asyncio.Queue[str],
) -> Callable[[str], None]:
    # store listeners run on worker and timer threads
    def put(message: str) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, message)

    return put


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    with suppress(WebSocketDisconnect):
        while True:
            await websocket.receive_text()


async def _run_until_disconnect(websocket: WebSocket, sender: Awaitable[None]) -> None:
    sending = asyncio.ensure_future(sender)
    receiving = asyncio.ensure_future(_wait_for_disconnect(websocket))
    done, pending = await asyncio.wait({sending, receiving}, return_when=asyncio.FIRST_COMPLETED)
    for task in pending:
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
    for task in done:
        task.result()


@router.websocket("/ws/payments/{payment_id}")
async def payment_events(websocket: WebSocket, payment_id: str) -> None:
    registry: SessionRegistry = websocket.app.state.registry
    payment = await asyncio.to_thread(registry.tracker.check_status, PaymentId(payment_id))
    if payment is None:
        await websocket.close(code=POLICY_VIOLATION, reason=f"payment {payment_id} not found")
        return

    await websocket.accept()
    queue: asyncio.Queue[str] = asyncio.Queue()
    put = _threadsafe_put(asyncio.get_running_loop(), queue)

    def on_event(event: PaymentEvent) -> None:
        message = PaymentEventMessage(paymentId=str(event.payment_id), status=event.outcome.value)
        put(message.model_dump_json())

    session_id = session_id_from(websocket)
    if session_id is not None:
        storefront = await asyncio.to_thread(registry.storefront, session_id)
        handle = await asyncio.to_thread(storefront.track_payment, PaymentId(payment_id), on_event)
    else:
        handle = await asyncio.to_thread(
            registry.tracker.start_tracking, PaymentId(payment_id), on_event
        )

    async def send_outcome() -> None:
        # one terminal event per payment, then the socket is done
        await websocket.send_text(await queue.get())
        await websocket.close()

    try:
        await _run_until_disconnect(websocket, send_outcome())
    except Exception:
        logger.exception("ws_payment_error", extra={"payment_id": payment_id})
    finally:
        handle.close()


@router.websocket("/ws/kitchen")
async def kitchen_orders(websocket: WebSocket) -> None:
    registry: SessionRegistry = websocket.app.state.registry
    manager: ConnectionManager = websocket.app.state.ws_manager
    shop = websocket.query_params.get("shop")
    status = websocket.query_params.get("status", "pending")
    if not shop:
        await websocket.close(code=POLICY_VIOLATION, reason="shop query parameter is required")
        return

    session_id = session_id_from(websocket)
    if session_id is None:
        await websocket.close(code=POLICY_VIOLATION, reason="kitchen access required")
        return
    gate = await asyncio.to_thread(registry.access_gate, session_id)
    if not await asyncio.to_thread(gate.has_access):
        await websocket.close(code=POLICY_VIOLATION, reason="kitchen access required")
        return

    workflow = KitchenWorkflow(registry.store, shop)
    try:
        workflow.set_filter(status)
    except InvalidKitchenFilterError as exc:
        await websocket.close(code=POLICY_VIOLATION, reason=str(exc))
        return

    await manager.register(websocket, shop=shop, status=workflow.current_filter)
    queue: asyncio.Queue[str] = asyncio.Queue()
    put = _threadsafe_put(asyncio.get_running_loop(), queue)

    def on_change(orders: list[Order]) -> None:
        message = KitchenOrdersResponse(
            shop=shop,
            status=workflow.current_filter,
            orders=[to_order_response(order) for order in orders],
        )
        put(message.model_dump_json())

    async def send_updates() -> None:
        while True:
            if not await manager.send(websocket, await queue.get()):
                return

    handle: Subscription | None = None
    try:
        handle = await asyncio.to_thread(workflow.listen, on_change)
        await _run_until_disconnect(websocket, send_updates())
    except Exception:
        logger.exception("ws_kitchen_error", extra={"shop": shop})
    finally:
        if handle is not None:
            handle.close()
        await manager.unregister(websocket)
