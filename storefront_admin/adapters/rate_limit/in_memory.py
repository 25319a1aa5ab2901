"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: a single lock guards the check-then-act on a window and the
  sweep, so ``count`` never exceeds the policy limit.
- Windows start at the first request for an identifier (not on clock-aligned
  boundaries) and expire ``window_ms`` later.
"""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable

from storefront_admin.adapters.rate_limit.base import (
    AbstractRateLimiter,
    RateLimitPolicy,
    RateLimitResult,
)

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 5 * 60


@dataclass
class _WindowState:
    count: int
    reset_time_ms: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter keeping one fixed window per identifier in process memory.

    Expired windows are treated as absent on the next check, so correctness
    never depends on the background sweep; the sweep only bounds memory held
    by identifiers that stopped sending requests.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            clock: Time source function returning UNIX time in seconds.
            sweep_interval_seconds: Delay between background sweeps.

        Raises:
            ValueError: If sweep_interval_seconds is not positive.
        """
        if sweep_interval_seconds <= 0:
            raise ValueError("sweep_interval_seconds must be > 0")

        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._lock = threading.Lock()
        self._windows: dict[str, _WindowState] = {}
        self._stop_event = threading.Event()
        self._sweeper: threading.Thread | None = None

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def check(self, identifier: str, policy: RateLimitPolicy) -> RateLimitResult:
        """Apply the fixed-window algorithm for ``identifier``.

        Args:
            identifier: Opaque rate limit key.
            policy: Limit and window to enforce.

        Returns:
            RateLimitResult with the admission decision and timing hints.
        """
        now = self._now_ms()

        with self._lock:
            window = self._windows.get(identifier)

            if window is None or now > window.reset_time_ms:
                self._windows[identifier] = _WindowState(
                    count=1,
                    reset_time_ms=now + policy.window_ms,
                )
                return RateLimitResult(
                    admitted=True,
                    remaining=policy.limit - 1,
                    reset_in_ms=policy.window_ms,
                )

            if window.count >= policy.limit:
                return RateLimitResult(
                    admitted=False,
                    remaining=0,
                    reset_in_ms=window.reset_time_ms - now,
                )

            window.count += 1
            return RateLimitResult(
                admitted=True,
                remaining=policy.limit - window.count,
                reset_in_ms=window.reset_time_ms - now,
            )

    def sweep(self) -> int:
        """Remove every window whose reset time has passed.

        Returns:
            Number of windows removed.
        """
        now = self._now_ms()
        with self._lock:
            expired = [key for key, window in self._windows.items() if now > window.reset_time_ms]
            for key in expired:
                del self._windows[key]
            remaining = len(self._windows)

        if expired:
            logger.debug(
                "rate_limit.swept",
                extra={"removed": len(expired), "active_windows": remaining},
            )
        return len(expired)

    def clear(self) -> None:
        """Drop all windows."""
        with self._lock:
            self._windows.clear()

    @property
    def running(self) -> bool:
        return self._sweeper is not None and self._sweeper.is_alive()

    def start(self) -> None:
        """Start the background sweep thread (no-op when already running)."""
        if self.running:
            return

        self._stop_event.clear()
        self._sweeper = threading.Thread(
            target=self._run_sweeper,
            name="rate-limit-sweeper",
            daemon=True,
        )
        self._sweeper.start()
        logger.info(
            "rate_limit.sweeper_started",
            extra={"interval_s": self._sweep_interval},
        )

    def stop(self, timeout: float | None = 5.0) -> None:
        """Signal the sweep thread to exit and wait for it."""
        self._stop_event.set()
        sweeper, self._sweeper = self._sweeper, None
        if sweeper is not None:
            sweeper.join(timeout)
            logger.info("rate_limit.sweeper_stopped")

    def _run_sweeper(self) -> None:
        # Event.wait returns True once stop() is called
        while not self._stop_event.wait(self._sweep_interval):
            self.sweep()
