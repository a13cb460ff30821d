"""Rate limiting adapters.

The endpoint starts with an in-memory limiter; a shared store can be added
behind ``AbstractRateLimiter`` without changing the HTTP layer.
"""

from cod_proxy.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from cod_proxy.adapters.rate_limit.in_memory import InMemoryWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "InMemoryWindowRateLimiter",
    "RateLimitResult",
]
