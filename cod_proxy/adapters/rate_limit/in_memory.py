"""In-memory anchored-window rate limiter.

Notes:
- Per-process only: state is lost on restart and each worker counts separately.
- Thread-safe: the whole check-then-set runs under one lock.
"""

from __future__ import annotations

import math
import threading
import time
from typing import Callable

from cod_proxy.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult


def _epoch_ms() -> int:
    return int(time.time() * 1000)


class InMemoryWindowRateLimiter(AbstractRateLimiter):
    """Admit one request per key per window.

    The window is anchored to the request that was admitted: attempts rejected
    inside the window do not move the anchor, so a client retrying every few
    seconds is admitted again exactly ``window_ms`` after its last accepted
    order.

    Expired entries behave exactly like absent ones. Once the map holds more
    than ``max_entries`` keys, expired entries are dropped on the next call;
    live entries are never evicted.
    """

    def __init__(
        self,
        *,
        window_ms: int,
        max_entries: int | None = None,
        clock: Callable[[], int] = _epoch_ms,
    ) -> None:
        """Initialize the limiter.

        Args:
            window_ms: Window length in milliseconds.
            max_entries: Map size that triggers pruning of expired entries.
            clock: Time source returning ms since epoch.

        Raises:
            ValueError: If window_ms or max_entries are invalid.
        """
        if window_ms < 1:
            raise ValueError("window_ms must be >= 1")
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1")

        self._window_ms = window_ms
        self._max_entries = max_entries
        self._clock = clock
        self._lock = threading.RLock()
        self._last_accepted: dict[str, int] = {}

    @property
    def window_ms(self) -> int:
        return self._window_ms

    def __len__(self) -> int:
        with self._lock:
            return len(self._last_accepted)

    def get(self, key: str) -> int | None:
        """Return the anchor timestamp recorded for ``key``, if any."""
        with self._lock:
            return self._last_accepted.get(key)

    def _prune_expired(self, now_ms: int) -> None:
        cutoff = now_ms - self._window_ms
        expired = [k for k, ts in self._last_accepted.items() if ts <= cutoff]
        for key in expired:
            del self._last_accepted[key]

    def check_and_record(self, key: str, *, now_ms: int | None = None) -> RateLimitResult:
        """Admit the request when ``key`` has no live window, recording ``now``.

        Raises:
            ValueError: If key is empty.
        """
        if not key:
            raise ValueError("key must be a non-empty string")

        now = self._clock() if now_ms is None else now_ms

        with self._lock:
            last = self._last_accepted.get(key)
            if last is not None and now - last < self._window_ms:
                retry_after = max(1, math.ceil((last + self._window_ms - now) / 1000))
                return RateLimitResult(allowed=False, anchor_ms=last, retry_after_seconds=retry_after)

            self._last_accepted[key] = now
            if self._max_entries is not None and len(self._last_accepted) > self._max_entries:
                self._prune_expired(now)
            return RateLimitResult(allowed=True, anchor_ms=now)
