"""Per-key request cooldown shared by the Jira client."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from .config import RATE_LIMIT_COOLDOWN_SECONDS, RATE_LIMIT_TTL_SECONDS


class RequestRateLimiter:
    """Refuse repeat requests for the same key within ``cooldown`` seconds.

    Keys not seen for ``ttl`` seconds are forgotten so the tracking map stays
    bounded over a long session.
    """

    def __init__(
        self,
        cooldown: float = RATE_LIMIT_COOLDOWN_SECONDS,
        ttl: float = RATE_LIMIT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.cooldown = float(cooldown)
        self.ttl = max(float(ttl), self.cooldown)
        self._clock = clock
        self._last_request: dict[str, float] = {}
        self._lock = threading.Lock()

    def try_acquire(self, key: str) -> bool:
        """Record a request for ``key``; False if it is still cooling down."""
        now = self._clock()
        with self._lock:
            self._prune(now)
            last = self._last_request.get(key)
            if last is not None and (now - last) < self.cooldown:
                return False
            self._last_request[key] = now
            return True

    def reset(self, key: str | None = None) -> None:
        with self._lock:
            if key is None:
                self._last_request.clear()
            else:
                self._last_request.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_request)

    def _prune(self, now: float) -> None:
        expired = [k for k, ts in self._last_request.items() if (now - ts) >= self.ttl]
        for k in expired:
            del self._last_request[k]
