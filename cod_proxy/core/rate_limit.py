"""Rate limiting dependency for the order route.

Strategy:
- One accepted order per client per window (default 5 minutes).
- Clients are identified by the first X-Forwarded-For entry, then the peer
  address, then the literal ``"unknown"``.
- The limiter instance is process-wide and created lazily; it is rebuilt only
  when its configuration changes (primarily in tests).
"""

from __future__ import annotations

import hashlib
import logging

from fastapi import Request

from cod_proxy.adapters.rate_limit.base import AbstractRateLimiter
from cod_proxy.adapters.rate_limit.in_memory import InMemoryWindowRateLimiter
from cod_proxy.core.config import settings
from cod_proxy.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"

_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int] | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return the process-wide rate limiter instance."""

    global _limiter, _limiter_config

    config = (
        settings.app.rate_limit_window_seconds,
        settings.app.rate_limit_max_entries,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = InMemoryWindowRateLimiter(
            window_ms=settings.app.rate_limit_window_seconds * 1000,
            max_entries=settings.app.rate_limit_max_entries,
        )
        _limiter_config = config

    return _limiter


def reset_rate_limiter() -> None:
    """Drop the process-wide limiter so the next request starts empty."""

    global _limiter, _limiter_config
    _limiter = None
    _limiter_config = None


def get_client_identifier(request: Request) -> str:
    """Derive the limiter key for a request.

    Args:
        request: FastAPI request.

    Returns:
        str: First forwarded address, the peer host, or ``"unknown"``.
    """

    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_CLIENT


def _hash_client(identifier: str) -> str:
    return hashlib.sha256(identifier.encode()).hexdigest()[:16]


def _window_label(window_seconds: int) -> str:
    if window_seconds % 60 == 0:
        minutes = window_seconds // 60
        return "minute" if minutes == 1 else f"{minutes} minutes"
    return f"{window_seconds} seconds"


def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency admitting at most one order per client per window.

    Raises:
        RateLimitAppError: When the client already placed an order in the window.
    """

    if not settings.app.rate_limit_enabled:
        return

    limiter = get_rate_limiter()
    identifier = get_client_identifier(request)
    result = limiter.check_and_record(identifier)

    if result.allowed:
        logger.info(
            "rate_limit.allowed",
            extra={"client_hash": _hash_client(identifier)},
        )
        return

    window_seconds = settings.app.rate_limit_window_seconds
    logger.warning(
        "rate_limit.exceeded",
        extra={
            "client_hash": _hash_client(identifier),
            "window_s": window_seconds,
            "retry_after_s": result.retry_after_seconds,
        },
    )
    raise RateLimitAppError(
        code="RateLimitExceeded",
        message=f"You can only place a COD order once every {_window_label(window_seconds)} from this IP.",
        details={
            "retry_after": result.retry_after_seconds or 0,
            "window_seconds": window_seconds,
        },
    )
