"""
In-memory fixed-window rate limiting for sensitive actions.

State lives in this process only, so limits hold per worker. The deployment
runs a single worker (see uvicorn.conf.py); a shared store is needed before
scaling out.
"""
import logging
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict

from vms.core.config import get_settings
from vms.core.exceptions import RateLimitExceeded

logger = logging.getLogger(__name__)
settings = get_settings()


@dataclass
class RateLimitResult:
    allowed: bool
    remaining: int
    reset_in: float


@dataclass
class _Window:
    count: int
    reset_at: float


class FixedWindowRateLimiter:
    def __init__(self, sweep_interval: float = 60.0, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            sweep_interval: Seconds between sweeps of expired windows
            clock: Monotonic time source, injectable for tests
        """
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._windows: Dict[str, _Window] = {}
        self._lock = Lock()
        self._last_sweep = clock()

    def hit(self, key: str, max_attempts: int, window_seconds: float) -> RateLimitResult:
        """Count one attempt for ``key`` and report whether it is allowed."""
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self.sweep_interval:
                self._sweep(now)

            window = self._windows.get(key)
            if window is None or now >= window.reset_at:
                self._windows[key] = _Window(count=1, reset_at=now + window_seconds)
                return RateLimitResult(allowed=True, remaining=max_attempts - 1, reset_in=window_seconds)

            if window.count >= max_attempts:
                return RateLimitResult(allowed=False, remaining=0, reset_in=window.reset_at - now)

            window.count += 1
            return RateLimitResult(
                allowed=True,
                remaining=max_attempts - window.count,
                reset_in=window.reset_at - now,
            )

    def _sweep(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]
        self._last_sweep = now

    def __len__(self) -> int:
        return len(self._windows)

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()
            self._last_sweep = self._clock()


def rate_limit_key(prefix: str, identifier: str) -> str:
    return f"{prefix}:{identifier}"


def enforce_rate_limit(prefix: str, identifier: str, max_attempts: int, window_seconds: float) -> RateLimitResult:
    key = rate_limit_key(prefix, identifier)
    result = rate_limiter.hit(key, max_attempts, window_seconds)
    if not result.allowed:
        logger.warning("Rate limit exceeded for %s (retry in %.0fs)", key, result.reset_in)
        raise RateLimitExceeded(reset_in=result.reset_in)
    return result


rate_limiter = FixedWindowRateLimiter(sweep_interval=settings.RATE_LIMIT_SWEEP_SECONDS)
