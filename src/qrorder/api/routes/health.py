from __future__ import annotations

from fastapi import APIRouter, Request, Response, status

from qrorder.infrastructure.cache.redis_client import ping_redis, redis_configured
from qrorder.infrastructure.db.session import ping_database

router = APIRouter()


@router.get("/health/live")
def live() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/health/ready")
def ready(request: Request, response: Response) -> dict[str, object]:
    checks: dict[str, bool] = {}
    if getattr(request.app.state, "store_backend", None) == "sql":
        checks["database"] = ping_database(timeout_seconds=1.0)
    if redis_configured():
        checks["redis"] = ping_redis(timeout_seconds=1.0)

    if all(checks.values()):
        return {"status": "ok", "checks": checks}

    response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"status": "unavailable", "checks": checks}
