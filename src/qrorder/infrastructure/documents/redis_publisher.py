from __future__ import annotations

from qrorder.application.ports.publisher import EventPublisher
from qrorder.infrastructure.cache.redis_client import get_redis_client

CHANNEL_PREFIX = "changes:"


def change_channel(topic: str) -> str:
    return f"{CHANNEL_PREFIX}{topic}"


class RedisEventPublisher(EventPublisher):
    def __init__(self, timeout_seconds: float = 1.0) -> None:
        self._timeout_seconds = timeout_seconds

    def publish(self, topic: str) -> None:
        get_redis_client(timeout_seconds=self._timeout_seconds).publish(
            change_channel(topic), topic
        )
