from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

GRANT_TTL = timedelta(hours=8)
LOCK_DURATION = timedelta(minutes=5)
MAX_ATTEMPTS = 3
MIN_PASSWORD_LENGTH = 3


@dataclass(frozen=True)
class AccessGrant:
    granted_at: datetime

    def is_valid(self, now: datetime, ttl: timedelta = GRANT_TTL) -> bool:
        return now - self.granted_at <= ttl


class LoginThrottle:
    """Consecutive-failure counter with a fixed lockout window."""

    def __init__(
        self,
        max_attempts: int = MAX_ATTEMPTS,
        lock_duration: timedelta = LOCK_DURATION,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.lock_duration = lock_duration
        self.attempts = 0
        self.locked_at: datetime | None = None

    def remaining_lock_seconds(self, now: datetime) -> int | None:
        """Seconds left in the lockout, or None when attempts are allowed.

        An elapsed lockout resets the counter as a side effect.
        """
        if self.locked_at is None:
            return None
        elapsed = now - self.locked_at
        if elapsed < self.lock_duration:
            return math.ceil((self.lock_duration - elapsed).total_seconds())
        self.reset()
        return None

    def register_failure(self, now: datetime) -> bool:
        self.attempts += 1
        if self.attempts >= self.max_attempts:
            self.locked_at = now
            return True
        return False

    @property
    def remaining_attempts(self) -> int:
        return max(self.max_attempts - self.attempts, 0)

    def restore(self, attempts: int, locked_at: datetime | None) -> None:
        self.attempts = max(attempts, 0)
        self.locked_at = locked_at

    def reset(self) -> None:
        self.attempts = 0
        self.locked_at = None
