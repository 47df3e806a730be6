"""ASGI middleware."""

from fitness_tracker_server.middleware.rate_limit import (
    RATE_LIMIT_STATE_KEY,
    RATE_LIMITERS_STATE_KEY,
    TRUST_PROXY_STATE_KEY,
    RateLimitMiddleware,
)

__all__ = [
    "RATE_LIMITERS_STATE_KEY",
    "RATE_LIMIT_STATE_KEY",
    "TRUST_PROXY_STATE_KEY",
    "RateLimitMiddleware",
]
