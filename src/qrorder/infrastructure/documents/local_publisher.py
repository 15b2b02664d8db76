from __future__ import annotations

from qrorder.application.ports.publisher import EventPublisher
from qrorder.infrastructure.documents.change_feed import ChangeFeed


class LocalEventPublisher(EventPublisher):
    def __init__(self, feed: ChangeFeed) -> None:
        self._feed = feed

    def publish(self, topic: str) -> None:
        self._feed.notify(topic)
