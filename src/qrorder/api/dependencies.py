from __future__ import annotations

from fastapi import Depends, Request

from qrorder.application.ports.documents import DocumentStore
from qrorder.application.use_cases.access_gate import AccessGate
from qrorder.application.use_cases.payment_tracking import PaymentTracker
from qrorder.application.use_cases.storefront import SessionRegistry, Storefront


class KitchenAccessDeniedError(Exception):
    def __init__(self, message: str, details: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class KitchenLockedError(Exception):
    def __init__(self, message: str, details: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


def get_registry(request: Request) -> SessionRegistry:
    return request.app.state.registry


def get_store(request: Request) -> DocumentStore:
    return request.app.state.registry.store


def get_tracker(request: Request) -> PaymentTracker:
    return request.app.state.registry.tracker


def get_session_id(request: Request) -> str:
    return request.state.session_id


def get_storefront(
    session_id: str = Depends(get_session_id),
    registry: SessionRegistry = Depends(get_registry),
) -> Storefront:
    return registry.storefront(session_id)


def get_access_gate(
    session_id: str = Depends(get_session_id),
    registry: SessionRegistry = Depends(get_registry),
) -> AccessGate:
    return registry.access_gate(session_id)


def require_kitchen_access(gate: AccessGate = Depends(get_access_gate)) -> AccessGate:
    if not gate.has_access():
        raise KitchenAccessDeniedError("kitchen access required")
    return gate
