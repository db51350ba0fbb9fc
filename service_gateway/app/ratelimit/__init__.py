"""
Rate limiting package for the Gateway.

Holds the in-memory per-minute window limiter and the helper that derives a
client identity from proxy headers.
"""

from .sliding_window import RateLimitDecision, SlidingWindowRateLimiter, client_identity

__all__ = [
    "RateLimitDecision",
    "SlidingWindowRateLimiter",
    "client_identity",
]
