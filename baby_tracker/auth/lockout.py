"""
Per-IP login lockout.

Five failed logins lock an address out for fifteen minutes. State is kept
in process memory and guarded by a lock, since sync endpoints run on a
threadpool.
"""

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

MAX_FAILED_ATTEMPTS = 5
LOCKOUT_DURATION_SECONDS = 15 * 60


@dataclass
class LockoutStatus:
    locked: bool
    remaining_seconds: float = 0.0

    @property
    def remaining_minutes(self) -> int:
        return math.ceil(self.remaining_seconds / 60)


class IpLockout:
    """Tracks failed login attempts per client address."""

    def __init__(
        self,
        max_attempts: int = MAX_FAILED_ATTEMPTS,
        lockout_seconds: int = LOCKOUT_DURATION_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.max_attempts = max_attempts
        self.lockout_seconds = lockout_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._failures: dict[str, int] = {}
        self._locked_until: dict[str, float] = {}

    def check(self, ip: str) -> LockoutStatus:
        """Check whether an address is currently locked out."""
        now = self._clock()
        with self._lock:
            until = self._locked_until.get(ip)
            if until is None:
                return LockoutStatus(False)
            if until <= now:
                self._locked_until.pop(ip, None)
                self._failures.pop(ip, None)
                return LockoutStatus(False)
            return LockoutStatus(True, until - now)

    def record_failure(self, ip: str) -> bool:
        """
        Count a failed attempt.

        Returns:
            True if this failure triggered a lockout
        """
        with self._lock:
            count = self._failures.get(ip, 0) + 1
            self._failures[ip] = count
            if count >= self.max_attempts:
                self._locked_until[ip] = self._clock() + self.lockout_seconds
                self._failures.pop(ip, None)
                return True
        return False

    def reset(self, ip: str) -> None:
        """Forget failures after a successful login."""
        with self._lock:
            self._failures.pop(ip, None)
            self._locked_until.pop(ip, None)

    def clear(self) -> None:
        with self._lock:
            self._failures.clear()
            self._locked_until.clear()


ip_lockout = IpLockout()
