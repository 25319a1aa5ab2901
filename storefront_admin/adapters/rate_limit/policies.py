"""Named rate limit policies, one per route class."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from storefront_admin.adapters.rate_limit.base import RateLimitPolicy

_MINUTE_MS = 60 * 1000

RATE_LIMITS: Mapping[str, RateLimitPolicy] = MappingProxyType(
    {
        "auth": RateLimitPolicy(limit=5, window_ms=_MINUTE_MS),
        "password": RateLimitPolicy(limit=3, window_ms=_MINUTE_MS),
        "ai": RateLimitPolicy(limit=20, window_ms=_MINUTE_MS),
        "sync": RateLimitPolicy(limit=5, window_ms=_MINUTE_MS),
        # POST/PUT/DELETE
        "write": RateLimitPolicy(limit=60, window_ms=_MINUTE_MS),
        # GET
        "read": RateLimitPolicy(limit=100, window_ms=_MINUTE_MS),
    }
)
