"""Rate limiting adapters.

This package provides a small abstraction layer so the service can start with
an in-memory limiter and later migrate to a shared store without changing the
API layer.
"""

from storefront_admin.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitPolicy,
    RateLimitResult,
)
from storefront_admin.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from storefront_admin.adapters.rate_limit.policies import RATE_LIMITS

__all__ = [
    "AbstractRateLimiter",
    "InMemoryFixedWindowRateLimiter",
    "RATE_LIMITS",
    "RateLimitPolicy",
    "RateLimitResult",
]
