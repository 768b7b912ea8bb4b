"""Per-IP request throttling for the public signup endpoints."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from threading import Lock
import time
from typing import Dict, Protocol, Tuple

from membership_billing.core.config import get_settings


# Gateway callbacks and probes are never throttled.
RATE_LIMIT_EXEMPT_PREFIXES = ("/api/webhook/", "/health", "/metrics")


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    limit: int
    remaining: int
    reset_seconds: int


class IPRateLimiter(Protocol):
    def check(self, *, ip: str, scope: str = "global") -> RateLimitDecision:
        """Count one request from ``ip`` against ``scope`` and decide."""


def is_rate_limited_path(path: str) -> bool:
    return not any(path.startswith(prefix) for prefix in RATE_LIMIT_EXEMPT_PREFIXES)


class InMemoryIPRateLimiter:
    """Fixed-window counter keyed by (scope, ip, window)."""

    def __init__(self, *, requests_per_window: int, window_seconds: int) -> None:
        if requests_per_window <= 0:
            raise ValueError("requests_per_window must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self._limit = requests_per_window
        self._window = window_seconds
        self._lock = Lock()
        self._counts: Dict[Tuple[str, str, int], int] = {}

    def _prune(self, window_id: int) -> None:
        for key in [key for key in self._counts if key[2] < window_id]:
            del self._counts[key]

    def check(self, *, ip: str, scope: str = "global", now: float | None = None) -> RateLimitDecision:
        current = int(now if now is not None else time.time())
        window_id, offset = divmod(current, self._window)
        key = (scope, ip, window_id)

        with self._lock:
            self._prune(window_id)
            count = self._counts.get(key, 0) + 1
            self._counts[key] = count

        return RateLimitDecision(
            allowed=count <= self._limit,
            limit=self._limit,
            remaining=max(self._limit - count, 0),
            reset_seconds=self._window - offset,
        )


@lru_cache(maxsize=1)
def get_ip_rate_limiter() -> IPRateLimiter:
    settings = get_settings()
    return InMemoryIPRateLimiter(
        requests_per_window=settings.ip_rate_limit_requests_per_window,
        window_seconds=settings.ip_rate_limit_window_seconds,
    )
