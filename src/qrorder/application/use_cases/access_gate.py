from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import timedelta

from qrorder.application.metrics.order_lifecycle import record_kitchen_access_attempt
from qrorder.application.ports.session_storage import SessionStorage
from qrorder.domain.access.entities import (
    GRANT_TTL,
    LOCK_DURATION,
    MAX_ATTEMPTS,
    MIN_PASSWORD_LENGTH,
    AccessGrant,
    LoginThrottle,
)
from qrorder.domain.common.clock import Clock, parse_iso, to_iso, utc_now

logger = logging.getLogger(__name__)

ACCESS_KEY = "kitchenAccess"
ACCESS_TIME_KEY = "accessTime"
SAVED_PASSWORD_KEY = "kitchenPassword"
FAILED_ATTEMPTS_KEY = "loginAttempts"
LOCKED_AT_KEY = "lockedAt"
GRANTED = "granted"
DEFAULT_PASSWORD = "123"


def default_password() -> str:
    return os.getenv("KITCHEN_PASSWORD", DEFAULT_PASSWORD)


@dataclass(frozen=True)
class VerifyResult:
    success: bool
    message: str
    locked: bool = False
    remaining_attempts: int | None = None
    remaining_lock_seconds: int | None = None


class AccessGate:
    """Shared-passphrase gate for the kitchen screen.

    The passphrase is compared in plaintext and any replacement is kept in the
    client's local storage. This is a convenience PIN, not authentication.
    """

    def __init__(
        self,
        session_storage: SessionStorage,
        local_storage: SessionStorage,
        password: str | None = None,
        max_attempts: int = MAX_ATTEMPTS,
        lock_duration: timedelta = LOCK_DURATION,
        grant_ttl: timedelta = GRANT_TTL,
        clock: Clock = utc_now,
    ) -> None:
        self._session = session_storage
        self._local = local_storage
        self._password = password if password is not None else default_password()
        self._throttle = LoginThrottle(max_attempts=max_attempts, lock_duration=lock_duration)
        self._grant_ttl = grant_ttl
        self._clock = clock

    @property
    def failed_attempts(self) -> int:
        self._load_throttle()
        return self._throttle.attempts

    def verify(self, password: object) -> VerifyResult:
        if not isinstance(password, str) or not password:
            return VerifyResult(success=False, message="password is required")

        now = self._clock()
        self._load_throttle()
        remaining_lock = self._throttle.remaining_lock_seconds(now)
        if remaining_lock is not None:
            record_kitchen_access_attempt("locked")
            return VerifyResult(
                success=False,
                message=f"kitchen access is locked, try again in {remaining_lock} seconds",
                locked=True,
                remaining_lock_seconds=remaining_lock,
            )

        if password == self._password:
            self._throttle.reset()
            self._save_throttle()
            self._session.set(ACCESS_KEY, GRANTED)
            self._session.set(ACCESS_TIME_KEY, to_iso(now))
            record_kitchen_access_attempt("granted")
            logger.info("kitchen_access_granted")
            return VerifyResult(success=True, message="access granted")

        record_kitchen_access_attempt("denied")
        locked = self._throttle.register_failure(now)
        self._save_throttle()
        if locked:
            lock_seconds = int(self._throttle.lock_duration.total_seconds())
            logger.warning("kitchen_access_locked", extra={"lock_seconds": lock_seconds})
            return VerifyResult(
                success=False,
                message=f"too many attempts, kitchen access locked for {lock_seconds} seconds",
                locked=True,
                remaining_lock_seconds=lock_seconds,
            )
        remaining = self._throttle.remaining_attempts
        return VerifyResult(
            success=False,
            message=f"incorrect password ({remaining} attempts left)",
            remaining_attempts=remaining,
        )

    def has_access(self) -> bool:
        if self._session.get(ACCESS_KEY) != GRANTED:
            return False
        raw_time = self._session.get(ACCESS_TIME_KEY)
        if not raw_time:
            return False
        try:
            grant = AccessGrant(granted_at=parse_iso(raw_time))
        except ValueError:
            self._clear_grant()
            return False
        if not grant.is_valid(self._clock(), self._grant_ttl):
            self._clear_grant()
            logger.info("kitchen_access_expired")
            return False
        return True

    def logout(self) -> None:
        self._clear_grant()
        self._throttle.reset()
        self._save_throttle()
        logger.info("kitchen_logout")

    def change_password(self, old_password: str, new_password: str) -> VerifyResult:
        if old_password != self._password:
            return VerifyResult(success=False, message="old password is incorrect")
        if len(new_password) < MIN_PASSWORD_LENGTH:
            return VerifyResult(
                success=False,
                message=f"new password must be at least {MIN_PASSWORD_LENGTH} characters",
            )
        self._password = new_password
        self._local.set(SAVED_PASSWORD_KEY, new_password)
        logger.info("kitchen_password_changed")
        return VerifyResult(success=True, message="password changed")

    def load_saved_password(self) -> None:
        saved = self._local.get(SAVED_PASSWORD_KEY)
        if saved:
            self._password = saved

    def _load_throttle(self) -> None:
        """Lockout state lives in session storage so it survives gate rebuilds and workers."""
        raw_attempts = self._session.get(FAILED_ATTEMPTS_KEY)
        raw_locked_at = self._session.get(LOCKED_AT_KEY)
        try:
            attempts = int(raw_attempts) if raw_attempts else 0
            locked_at = parse_iso(raw_locked_at) if raw_locked_at else None
        except ValueError:
            logger.warning("kitchen_lock_state_invalid")
            attempts, locked_at = 0, None
        self._throttle.restore(attempts, locked_at)

    def _save_throttle(self) -> None:
        if self._throttle.attempts:
            self._session.set(FAILED_ATTEMPTS_KEY, str(self._throttle.attempts))
        else:
            self._session.delete(FAILED_ATTEMPTS_KEY)
        if self._throttle.locked_at is not None:
            self._session.set(LOCKED_AT_KEY, to_iso(self._throttle.locked_at))
        else:
            self._session.delete(LOCKED_AT_KEY)

    def _clear_grant(self) -> None:
        self._session.delete(ACCESS_KEY)
        self._session.delete(ACCESS_TIME_KEY)
