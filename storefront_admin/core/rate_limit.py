"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Design goals:
- Minimal coupling: API routes depend on a dependency factory only.
- Swap-friendly: the limiter lives on ``app.state`` behind an abstract
  interface, created once by the app factory.
- One policy per route class (see ``RATE_LIMITS``).

Rate limiting strategy:
- Fixed window per ``"<prefix>:<client-ip>"`` identifier.
- Client address comes from X-Forwarded-For (first entry), then X-Real-IP,
  then the literal "unknown". Addresses are never authenticated; they are only
  a coarse fairness key.
"""

from __future__ import annotations

import hashlib
import logging
import math
from typing import Awaitable, Callable

from fastapi import HTTPException, Request, status

from storefront_admin.adapters.rate_limit.base import AbstractRateLimiter, RateLimitPolicy
from storefront_admin.adapters.rate_limit.policies import RATE_LIMITS
from storefront_admin.core.config import settings

logger = logging.getLogger(__name__)

RATE_LIMIT_DETAIL = "Too many requests. Please try again later."


def get_rate_limiter(request: Request) -> AbstractRateLimiter:
    """Return the limiter owned by the running application.

    Raises:
        RuntimeError: If the app was built without a limiter.
    """

    limiter = getattr(request.app.state, "rate_limiter", None)
    if limiter is None:
        raise RuntimeError("rate limiter is not configured on app.state")
    return limiter


def get_client_ip(request: Request) -> str:
    """Extract the client address used as the fairness key.

    Args:
        request: FastAPI request.

    Returns:
        str: First X-Forwarded-For entry, else X-Real-IP, else "unknown".
    """

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    return "unknown"


def build_identifier(prefix: str, request: Request) -> str:
    return f"{prefix}:{get_client_ip(request)}"


def _hash_identifier(identifier: str) -> str:
    """Hash the identifier for logging without exposing client addresses."""
    return hashlib.sha256(identifier.encode()).hexdigest()[:16]


def build_rate_limit_headers(reset_in_ms: int) -> dict[str, str]:
    """Headers attached to a 429 rejection."""
    seconds = str(max(0, math.ceil(reset_in_ms / 1000)))
    return {
        "Retry-After": seconds,
        "X-RateLimit-Remaining": "0",
        "X-RateLimit-Reset": seconds,
    }


def rate_limit(
    prefix: str,
    policy: RateLimitPolicy | str,
) -> Callable[[Request], Awaitable[None]]:
    """Build a FastAPI dependency enforcing ``policy`` for one route class.

    Usage:
        @router.post("/sync", dependencies=[Depends(rate_limit("shopify:sync", "sync"))])

    Args:
        prefix: Route-class prefix of the identifier.
        policy: Policy instance or a name from ``RATE_LIMITS``.

    Returns:
        Async dependency raising HTTP 429 when the request is not admitted.
    """

    resolved = RATE_LIMITS[policy] if isinstance(policy, str) else policy

    async def enforce_rate_limit(request: Request) -> None:
        if not settings.app.rate_limit_enabled:
            return

        limiter = get_rate_limiter(request)
        identifier = build_identifier(prefix, request)
        result = limiter.check(identifier, resolved)

        if result.admitted:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "prefix": prefix,
                    "key_hash": _hash_identifier(identifier),
                    "limit": resolved.limit,
                    "remaining": result.remaining,
                },
            )
            return

        logger.warning(
            "rate_limit.exceeded",
            extra={
                "prefix": prefix,
                "key_hash": _hash_identifier(identifier),
                "limit": resolved.limit,
                "window_ms": resolved.window_ms,
                "retry_after_s": result.retry_after_seconds,
            },
        )

        headers: dict[str, str] | None = None
        if settings.app.rate_limit_include_headers:
            headers = build_rate_limit_headers(result.reset_in_ms)

        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=RATE_LIMIT_DETAIL,
            headers=headers,
        )

    enforce_rate_limit.__name__ = f"enforce_rate_limit_{prefix.replace(':', '_')}"
    return enforce_rate_limit
