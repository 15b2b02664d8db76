from __future__ import annotations

import logging
import threading
from typing import Callable

from qrorder.application.ports.scheduler import Scheduler, TimerHandle

logger = logging.getLogger(__name__)


class ThreadingScheduler(Scheduler):
    """Runs callbacks on daemon timer threads."""

    def call_later(self, delay_seconds: float, callback: Callable[[], None]) -> TimerHandle:
        def run() -> None:
            try:
                callback()
            except Exception:
                logger.exception("scheduled_callback_failed")

        timer = threading.Timer(max(0.0, delay_seconds), run)
        timer.daemon = True
        timer.start()
        return timer
