from __future__ import annotations

import os
import re
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import HTTPConnection, Request

SESSION_COOKIE = "qrorder_session"
SESSION_HEADER = "X-Session-Id"
SESSION_MAX_AGE_SECONDS = 60 * 60 * 24

_VALID_SESSION_ID = re.compile(r"^[A-Za-z0-9_-]{8,64}$")


def _secure_cookie() -> bool:
    return os.getenv("APP_ENV", "dev").lower() not in {"dev", "test"}


def session_id_from(connection: HTTPConnection) -> str | None:
    for candidate in (
        connection.headers.get(SESSION_HEADER),
        connection.cookies.get(SESSION_COOKIE),
    ):
        if candidate and _VALID_SESSION_ID.match(candidate):
            return candidate
    return None


class SessionMiddleware(BaseHTTPMiddleware):
    """Attach a customer session id to every request, issuing a cookie for new ones."""

    async def dispatch(self, request: Request, call_next):
        session_id = session_id_from(request)
        issued = session_id is None
        if session_id is None:
            session_id = uuid4().hex
        request.state.session_id = session_id

        response = await call_next(request)

        if issued:
            response.set_cookie(
                SESSION_COOKIE,
                session_id,
                max_age=SESSION_MAX_AGE_SECONDS,
                httponly=True,
                samesite="lax",
                secure=_secure_cookie(),
            )
        response.headers[SESSION_HEADER] = session_id
        return response
