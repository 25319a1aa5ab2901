"""Backoff arithmetic for retrying Shopify 429 responses."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_MS = 2000
MAX_JITTER_MS = 1000


class AttemptOutcome(str, Enum):
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    TERMINAL_ERROR = "terminal_error"


@dataclass(frozen=True)
class RetryAttempt:
    """One attempt within a single ``execute`` call.

    Attributes:
        attempt: 0-based attempt index.
        delay_ms: Wait applied after this attempt (0 when none followed).
        outcome: How the attempt ended.
    """

    attempt: int
    delay_ms: float
    outcome: AttemptOutcome


def parse_retry_after_ms(value: str | None, default_ms: int = DEFAULT_RETRY_DELAY_MS) -> float:
    """Convert a ``Retry-After`` header (seconds) into milliseconds.

    Values that are missing, non-numeric (including HTTP-date forms),
    non-finite or negative fall back to ``default_ms``.
    """
    if value is None or not value.strip():
        return float(default_ms)
    try:
        seconds = float(value.strip())
    except ValueError:
        logger.debug("shopify.retry_after_unparsable", extra={"retry_after": value})
        return float(default_ms)
    delay_ms = seconds * 1000
    if not math.isfinite(delay_ms) or delay_ms < 0:
        logger.debug("shopify.retry_after_unusable", extra={"retry_after": value})
        return float(default_ms)
    return delay_ms


def compute_base_delay_ms(attempt: int, base_delay_ms: float) -> float:
    """Exponential part of the wait: ``base_delay_ms * 2 ** attempt``."""
    if attempt < 0:
        raise ValueError("attempt must be >= 0")
    return base_delay_ms * (2**attempt)


def compute_backoff_ms(attempt: int, base_delay_ms: float, jitter_ms: float) -> float:
    """Full wait for a retry; jitter is added once, after exponentiation."""
    return compute_base_delay_ms(attempt, base_delay_ms) + jitter_ms
