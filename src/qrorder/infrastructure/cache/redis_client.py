from __future__ import annotations

import logging
import os
from functools import lru_cache

import redis
from redis import asyncio as redis_asyncio

logger = logging.getLogger(__name__)


def redis_configured() -> bool:
    return bool(os.getenv("REDIS_URL"))


def _redis_url() -> str:
    url = os.getenv("REDIS_URL")
    if not url:
        raise RuntimeError("REDIS_URL is not set")
    return url


@lru_cache(maxsize=8)
def _build_client(redis_url: str, timeout_seconds: float) -> redis.Redis:
    # session hashes and change topics are plain text
    return redis.Redis.from_url(
        redis_url,
        socket_connect_timeout=timeout_seconds,
        socket_timeout=timeout_seconds,
        decode_responses=True,
    )


def get_redis_client(timeout_seconds: float = 1.0) -> redis.Redis:
    return _build_client(_redis_url(), timeout_seconds)


def create_async_client() -> redis_asyncio.Redis:
    """A fresh asyncio client; the caller owns it and must ``aclose`` it.

    No socket timeout is set because pub/sub reads block between messages.
    """
    return redis_asyncio.from_url(_redis_url(), decode_responses=True)


def ping_redis(timeout_seconds: float = 1.0) -> bool:
    try:
        return bool(get_redis_client(timeout_seconds).ping())
    except (redis.RedisError, RuntimeError) as exc:
        logger.warning("redis_ping_failed", extra={"reason": type(exc).__name__})
        return False
