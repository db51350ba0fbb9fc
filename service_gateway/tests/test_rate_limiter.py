"""
Unit tests for Gateway Rate Limiter.
"""

import pytest

from service_gateway.app.ratelimit.sliding_window import (
    UNKNOWN_CLIENT,
    RateWindow,
    WINDOW_MS,
    SlidingWindowRateLimiter,
    client_identity,
)
from shared.metrics import MetricsCollector


class FakeClock:
    """Settable clock returning epoch seconds."""

    def __init__(self, now: float):
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestSlidingWindowRateLimiter:
    """Test cases for SlidingWindowRateLimiter."""

    @pytest.fixture
    def clock(self):
        return FakeClock(1_700_000_010.5)

    @pytest.fixture
    def rate_limiter(self, clock):
        return SlidingWindowRateLimiter(limit=2, clock=clock)

    def test_admits_up_to_limit(self, rate_limiter):
        decisions = [rate_limiter.admit("1.2.3.4") for _ in range(3)]

        assert [d.allowed for d in decisions] == [True, True, False]
        assert [d.remaining for d in decisions] == [1, 0, 0]
        assert all(d.limit == 2 for d in decisions)

    def test_clients_are_counted_separately(self, rate_limiter):
        rate_limiter.admit("a")
        rate_limiter.admit("a")

        assert rate_limiter.admit("a").allowed is False
        assert rate_limiter.admit("b").allowed is True

    def test_reset_is_end_of_minute_bucket(self, rate_limiter, clock):
        decision = rate_limiter.admit("client")

        now_ms = int(clock.now * 1000)
        expected = (now_ms // WINDOW_MS + 1) * WINDOW_MS
        assert decision.reset_at == expected
        assert decision.reset_at > now_ms
        assert decision.headers() == {
            "X-RateLimit-Limit": "2",
            "X-RateLimit-Remaining": "1",
            "X-RateLimit-Reset": str(expected // 1000),
        }

    def test_new_minute_starts_fresh_count(self, rate_limiter, clock):
        for _ in range(3):
            rate_limiter.admit("client")
        assert rate_limiter.admit("client").allowed is False

        clock.now += 60

        decision = rate_limiter.admit("client")
        assert decision.allowed is True
        assert decision.remaining == 1

    def test_rejections_are_counted_in_metrics(self, clock):
        metrics = MetricsCollector("gateway")
        rate_limiter = SlidingWindowRateLimiter(limit=1, clock=clock, metrics=metrics)

        rate_limiter.admit("client")
        rate_limiter.admit("client")
        rate_limiter.admit("client")

        assert metrics.registry.get_sample_value("rate_limit_rejections_total") == 2.0

    def test_purge_removes_past_windows(self, rate_limiter, clock):
        rate_limiter.admit("a")
        rate_limiter.admit("b")
        assert len(rate_limiter) == 2

        # Still inside the current window
        assert rate_limiter.purge_expired() == 0

        clock.now += 180
        assert rate_limiter.purge_expired() == 2
        assert len(rate_limiter) == 0

    def test_purge_runs_every_nth_admission(self, clock):
        rate_limiter = SlidingWindowRateLimiter(limit=100, cleanup_interval=3, clock=clock)
        rate_limiter.admit("old-1")
        rate_limiter.admit("old-2")

        clock.now += 180
        rate_limiter.admit("new")

        # Third admission triggered the sweep; only the live window remains.
        assert len(rate_limiter) == 1

    def test_purge_drops_malformed_keys(self, rate_limiter):
        rate_limiter._windows["garbage"] = RateWindow(count=1, reset_at=0)

        assert rate_limiter.purge_expired() == 1


class TestClientIdentity:
    """Test cases for caller identification."""

    def test_trusted_header_wins(self):
        headers = {"CF-Connecting-IP": " 203.0.113.9 ", "X-Forwarded-For": "198.51.100.1"}
        assert client_identity(headers) == "203.0.113.9"

    def test_first_forwarded_for_entry(self):
        headers = {"X-Forwarded-For": "198.51.100.1, 10.0.0.1, 10.0.0.2"}
        assert client_identity(headers) == "198.51.100.1"

    def test_custom_trusted_header(self):
        headers = {"X-Real-IP": "192.0.2.5", "CF-Connecting-IP": "203.0.113.9"}
        assert client_identity(headers, "X-Real-IP") == "192.0.2.5"

    def test_unknown_when_no_headers(self):
        assert client_identity({}) == UNKNOWN_CLIENT
        assert client_identity({"X-Forwarded-For": " , "}) == UNKNOWN_CLIENT
