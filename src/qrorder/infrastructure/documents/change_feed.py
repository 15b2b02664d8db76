from __future__ import annotations

import logging
import threading
from collections import defaultdict
from typing import Callable

from qrorder.application.ports.documents import Subscription

logger = logging.getLogger(__name__)

TopicListener = Callable[[], None]


def collection_topic(collection: str) -> str:
    return collection


def document_topic(collection: str, doc_id: str) -> str:
    return f"{collection}/{doc_id}"


class ChangeFeed:
    """In-process fan-out of "something changed under this topic" notifications."""

    def __init__(self) -> None:
        self._listeners: dict[str, dict[int, TopicListener]] = defaultdict(dict)
        self._next_token = 0
        self._lock = threading.Lock()

    def subscribe(self, topic: str, listener: TopicListener) -> Subscription:
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._listeners[topic][token] = listener

        def release() -> None:
            with self._lock:
                listeners = self._listeners.get(topic)
                if not listeners:
                    return
                listeners.pop(token, None)
                if not listeners:
                    self._listeners.pop(topic, None)

        return Subscription(release=release)

    def notify(self, topic: str) -> None:
        with self._lock:
            targets = list(self._listeners.get(topic, {}).values())
        for listener in targets:
            try:
                listener()
            except Exception:
                logger.exception("change_listener_failed", extra={"topic": topic})

    def listener_count(self, topic: str) -> int:
        with self._lock:
            return len(self._listeners.get(topic, {}))
