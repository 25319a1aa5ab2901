"""Rate limiter interfaces and value types.

The API depends on this abstraction (not the concrete implementation) so the
in-memory table can later be swapped for a shared store behind the same
``check`` contract.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitPolicy:
    """Immutable admission policy for one route class.

    Attributes:
        limit: Maximum admitted requests per window.
        window_ms: Window length in milliseconds.
    """

    limit: int
    window_ms: int

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise ValueError("limit must be >= 1")
        if self.window_ms < 1:
            raise ValueError("window_ms must be >= 1")


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of a single rate limit check.

    Attributes:
        admitted: Whether the request may proceed.
        remaining: Admissions left in the current window (0 when rejected).
        reset_in_ms: Milliseconds until the current window expires.
    """

    admitted: bool
    remaining: int
    reset_in_ms: int

    @property
    def retry_after_seconds(self) -> int:
        """Whole seconds until the window resets, rounded up."""
        return max(0, math.ceil(self.reset_in_ms / 1000))


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, identifier: str, policy: RateLimitPolicy) -> RateLimitResult:
        """Decide whether to admit one request for ``identifier``.

        Admission consumes one slot; a rejection leaves the window untouched.
        Rejection is reported through the result, never raised.

        Args:
            identifier: Opaque key, e.g. ``"shopify:sync:203.0.113.7"``.
            policy: Limit and window to enforce.

        Returns:
            RateLimitResult describing the decision.
        """
        raise NotImplementedError
