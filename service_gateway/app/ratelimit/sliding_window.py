"""
Per-client fixed-minute rate limiter for the Gateway.

Counts requests per ``(identity, minute bucket)`` in process memory. There is
no cross-instance consistency and counts reset on restart.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector

WINDOW_MS = 60_000
PURGE_GRACE_MS = 1_000
UNKNOWN_CLIENT = "unknown"


@dataclass
class RateWindow:
    count: int
    reset_at: int


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of one admission."""

    allowed: bool
    limit: int
    remaining: int
    reset_at: int

    def headers(self) -> Dict[str, str]:
        """Standard rate limit headers; the reset is in epoch seconds."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset_at // 1000),
        }


class SlidingWindowRateLimiter:
    """In-memory per-minute admission control."""

    def __init__(
        self,
        limit: int = 30,
        cleanup_interval: int = 100,
        clock: Optional[Callable[[], float]] = None,
        metrics: Optional[MetricsCollector] = None,
    ):
        self.limit = limit
        self.cleanup_interval = max(1, cleanup_interval)
        self.logger = get_logger("gateway.rate_limiter")
        self.metrics = metrics
        self._clock = clock or time.time
        self._windows: Dict[str, RateWindow] = {}
        self._lock = threading.Lock()
        self._until_cleanup = self.cleanup_interval

    def __len__(self) -> int:
        return len(self._windows)

    def _now_ms(self) -> int:
        return int(self._clock() * 1000)

    def _make_key(self, identity: str, bucket: int) -> str:
        """Generate rate limit key."""
        return f"{identity}:{bucket}"

    def admit(self, identity: str) -> RateLimitDecision:
        """Count one request for ``identity`` and decide whether it may proceed."""
        now = self._now_ms()
        bucket = now // WINDOW_MS
        key = self._make_key(identity, bucket)

        with self._lock:
            window = self._windows.get(key)
            if window is None:
                window = RateWindow(count=0, reset_at=(bucket + 1) * WINDOW_MS)
                self._windows[key] = window
            window.count += 1
            count = window.count

            self._until_cleanup -= 1
            if self._until_cleanup <= 0:
                self._until_cleanup = self.cleanup_interval
                self._purge_expired(now)

        decision = RateLimitDecision(
            allowed=count <= self.limit,
            limit=self.limit,
            remaining=max(0, self.limit - count),
            reset_at=window.reset_at,
        )

        if not decision.allowed:
            self.logger.warning("Rate limit exceeded", client_id=identity, count=count, limit=self.limit)
            if self.metrics is not None:
                self.metrics.record_rate_limit_rejection()

        return decision

    def purge_expired(self) -> int:
        """Drop windows that ended before now; returns how many were removed."""
        with self._lock:
            return self._purge_expired(self._now_ms())

    def _purge_expired(self, now: int) -> int:
        expired = []
        for key in self._windows:
            _, _, bucket_part = key.rpartition(":")
            try:
                bucket = int(bucket_part)
            except ValueError:
                expired.append(key)
                continue
            if (bucket + 1) * WINDOW_MS < now - PURGE_GRACE_MS:
                expired.append(key)

        for key in expired:
            del self._windows[key]

        if expired:
            self.logger.debug("Purged expired rate windows", purged=len(expired), remaining=len(self._windows))
        return len(expired)


def client_identity(headers: Mapping[str, str], trusted_header: str = "CF-Connecting-IP") -> str:
    """Identify the caller from proxy headers.

    Callers without either header share the ``"unknown"`` quota.
    """
    trusted = headers.get(trusted_header)
    if trusted:
        return trusted.strip()

    forwarded_for = headers.get("X-Forwarded-For")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    return UNKNOWN_CLIENT
