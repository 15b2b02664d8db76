from __future__ import annotations

import threading
from collections import OrderedDict

import redis

from qrorder.application.ports.documents import StoreUnavailableError
from qrorder.application.ports.session_storage import SessionStorage
from qrorder.infrastructure.cache.redis_client import get_redis_client

DEFAULT_SESSION_TTL_SECONDS = 60 * 60 * 24
DEFAULT_MAX_STORED_SESSIONS = 10_000


def session_key(session_id: str, scope: str) -> str:
    return f"session:{scope}:{session_id}"


class RedisSessionStorage(SessionStorage):
    """One Redis hash per session and scope, refreshed on every write."""

    def __init__(
        self,
        session_id: str,
        scope: str,
        ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        timeout_seconds: float = 1.0,
    ) -> None:
        self._key = session_key(session_id, scope)
        self._ttl_seconds = ttl_seconds
        self._timeout_seconds = timeout_seconds

    def get(self, key: str) -> str | None:
        try:
            value = self._client().hget(self._key, key)
        except redis.RedisError as exc:
            raise StoreUnavailableError("session storage unavailable") from exc
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def set(self, key: str, value: str) -> None:
        try:
            pipeline = self._client().pipeline()
            pipeline.hset(self._key, key, value)
            pipeline.expire(self._key, self._ttl_seconds)
            pipeline.execute()
        except redis.RedisError as exc:
            raise StoreUnavailableError("session storage unavailable") from exc

    def delete(self, key: str) -> None:
        try:
            self._client().hdel(self._key, key)
        except redis.RedisError as exc:
            raise StoreUnavailableError("session storage unavailable") from exc

    def _client(self) -> redis.Redis:
        return get_redis_client(timeout_seconds=self._timeout_seconds)


class InMemorySessionStorage(SessionStorage):
    def __init__(self) -> None:
        self._values: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> str | None:
        with self._lock:
            return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._values[key] = value

    def delete(self, key: str) -> None:
        with self._lock:
            self._values.pop(key, None)


class InMemorySessionStorageFactory:
    """Storages per (session, scope) for the most recently used sessions.

    Sized well above the session registry so a session whose live objects were
    evicted still finds its shop choice and kitchen lockout. Sessions beyond the
    bound are dropped oldest first, the way Redis keys lapse after their TTL.
    """

    def __init__(self, max_sessions: int = DEFAULT_MAX_STORED_SESSIONS) -> None:
        self._max_sessions = max_sessions
        self._sessions: OrderedDict[str, dict[str, InMemorySessionStorage]] = OrderedDict()
        self._lock = threading.Lock()

    def __call__(self, session_id: str, scope: str) -> SessionStorage:
        with self._lock:
            scopes = self._sessions.get(session_id)
            if scopes is None:
                scopes = {}
                self._sessions[session_id] = scopes
                while len(self._sessions) > self._max_sessions:
                    self._sessions.popitem(last=False)
            else:
                self._sessions.move_to_end(session_id)
            storage = scopes.get(scope)
            if storage is None:
                storage = InMemorySessionStorage()
                scopes[scope] = storage
            return storage

    @property
    def session_count(self) -> int:
        with self._lock:
            return len(self._sessions)


def redis_session_storage(session_id: str, scope: str) -> SessionStorage:
    return RedisSessionStorage(session_id, scope)
