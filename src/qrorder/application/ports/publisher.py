from __future__ import annotations

from typing import Protocol


class EventPublisher(Protocol):
    def publish(self, topic: str) -> None: ...
