from __future__ import annotations

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from qrorder.api.error_handling import register_exception_handlers
from qrorder.api.middleware.request_id import RequestIDMiddleware
from qrorder.api.middleware.session import SESSION_HEADER, SessionMiddleware
from qrorder.api.routes.cart import router as cart_router
from qrorder.api.routes.checkout import router as checkout_router
from qrorder.api.routes.health import router as health_router
from qrorder.api.routes.kitchen import router as kitchen_router
from qrorder.api.routes.menu import router as menu_router
from qrorder.api.routes.metrics import router as metrics_router
from qrorder.api.routes.payments import router as payments_router
from qrorder.api.routes.products import router as products_router
from qrorder.api.routes.shops import router as shops_router
from qrorder.api.ws.manager import ConnectionManager
from qrorder.api.ws.routes import router as ws_router
from qrorder.application.ports.documents import DocumentStore
from qrorder.application.ports.publisher import EventPublisher
from qrorder.application.use_cases.payment_tracking import PaymentTracker
from qrorder.application.use_cases.storefront import SessionRegistry, StorageFactory
from qrorder.infrastructure.cache.redis_client import redis_configured
from qrorder.infrastructure.cache.session_storage import (
    InMemorySessionStorageFactory,
    redis_session_storage,
)
from qrorder.infrastructure.documents.change_feed import ChangeFeed
from qrorder.infrastructure.documents.local_publisher import LocalEventPublisher
from qrorder.infrastructure.documents.memory_store import InMemoryDocumentStore
from qrorder.infrastructure.documents.redis_change_listener import start_change_fanout
from qrorder.infrastructure.documents.redis_publisher import RedisEventPublisher
from qrorder.infrastructure.documents.sql_store import SqlAlchemyDocumentStore
from qrorder.infrastructure.observability.logging_config import configure_logging
from qrorder.infrastructure.observability.otel import configure_otel
from qrorder.infrastructure.scheduling.threading_scheduler import ThreadingScheduler
from qrorder.tools.seed import seed_documents

logger = logging.getLogger("qrorder.api.access")

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total number of HTTP requests",
    ["method", "path", "status_code"],
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)


def _cors_allow_origins() -> list[str]:
    env = os.getenv("APP_ENV", "dev").lower()

    # Dev/test: any origin, the session cookie stays same-site
    if env in {"dev", "test"}:
        return ["*"]

    default_value = "https://qrorder.example.com"
    raw_value = os.getenv("CORS_ALLOW_ORIGINS", default_value)
    return [origin.strip() for origin in raw_value.split(",") if origin.strip()]


def _store_backend() -> str:
    default = "sql" if os.getenv("DATABASE_URL") else "memory"
    backend = os.getenv("STORE_BACKEND", default).strip().lower()
    if backend not in {"sql", "memory"}:
        raise RuntimeError(f"unsupported STORE_BACKEND: {backend}")
    return backend


def _route_path(request: Request) -> str:
    # templated path keeps metric label cardinality bounded
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


class AccessLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        started = time.perf_counter()
        method = request.method
        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - started) * 1000
            path = _route_path(request)
            REQUEST_COUNT.labels(method=method, path=path, status_code="500").inc()
            REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
            logger.exception(
                "request_error",
                extra={
                    "method": method,
                    "path": request.url.path,
                    "status_code": 500,
                    "duration_ms": round(duration_ms, 2),
                },
            )
            raise

        duration_ms = (time.perf_counter() - started) * 1000
        path = _route_path(request)
        REQUEST_COUNT.labels(method=method, path=path, status_code=str(response.status_code)).inc()
        REQUEST_LATENCY.labels(method=method, path=path).observe(duration_ms / 1000)
        logger.info(
            "request_complete",
            extra={
                "method": method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round(duration_ms, 2),
                "session_id": getattr(request.state, "session_id", None),
            },
        )
        return response


def _build_store(backend: str, feed: ChangeFeed, publisher: EventPublisher) -> DocumentStore:
    if backend == "sql":
        return SqlAlchemyDocumentStore(feed=feed, publisher=publisher)
    store = InMemoryDocumentStore(feed=feed, publisher=publisher)
    seed_documents(store)
    return store


@asynccontextmanager
async def lifespan(app: FastAPI):
    backend = _store_backend()
    feed = ChangeFeed()
    # cross-process fanout only matters when several workers share one database
    use_redis = backend == "sql" and redis_configured()
    publisher: EventPublisher = RedisEventPublisher() if use_redis else LocalEventPublisher(feed)
    store = _build_store(backend, feed, publisher)
    storage_factory: StorageFactory = (
        redis_session_storage if redis_configured() else InMemorySessionStorageFactory()
    )
    registry = SessionRegistry(
        store=store,
        storage_factory=storage_factory,
        tracker=PaymentTracker(store, ThreadingScheduler()),
    )

    app.state.store_backend = backend
    app.state.registry = registry
    app.state.ws_manager = ConnectionManager()
    fanout_task = asyncio.create_task(start_change_fanout(feed)) if use_redis else None
    app.state.change_fanout_task = fanout_task
    logger.info("app_started", extra={"reason": f"store_backend={backend}"})
    try:
        yield
    finally:
        if fanout_task is not None:
            fanout_task.cancel()
            with suppress(asyncio.CancelledError):
                await fanout_task
        registry.close()


def create_app() -> FastAPI:
    configure_logging()

    app = FastAPI(title="QR Order Backend", version="0.1.0", lifespan=lifespan)
    register_exception_handlers(app)
    app.include_router(health_router)
    app.include_router(metrics_router)
    app.include_router(shops_router)
    app.include_router(menu_router)
    app.include_router(cart_router)
    app.include_router(checkout_router)
    app.include_router(payments_router)
    app.include_router(kitchen_router)
    app.include_router(products_router)
    app.include_router(ws_router)

    app.add_middleware(AccessLogMiddleware)
    app.add_middleware(SessionMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_allow_origins(),
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-Id", SESSION_HEADER],
    )

    configure_otel(app)
    return app


app = create_app()
