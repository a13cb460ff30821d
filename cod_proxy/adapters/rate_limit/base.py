"""Rate limiter interfaces.

The HTTP layer depends on this abstraction so the in-memory store can later be
replaced by a shared one (e.g., Redis) without touching the route.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one check-and-record call.

    Attributes:
        allowed: Whether the request may proceed.
        anchor_ms: Timestamp (ms since epoch) the current window is anchored to.
        retry_after_seconds: Seconds until the window elapses when blocked.
    """

    allowed: bool
    anchor_ms: int
    retry_after_seconds: int | None = None


class AbstractRateLimiter(ABC):
    """Interface for per-client rate limiters."""

    @abstractmethod
    def check_and_record(self, key: str, *, now_ms: int | None = None) -> RateLimitResult:
        """Admit or reject one request for ``key``, recording it when admitted.

        Args:
            key: Client identifier.
            now_ms: Current time in ms since epoch; the limiter clock when omitted.

        Returns:
            RateLimitResult describing the decision.
        """
        raise NotImplementedError
