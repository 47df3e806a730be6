"""Fixed-window request rate limiting.

Counters live in a process-wide map keyed by client key, one map per
policy, so a client blocked by one policy is not necessarily blocked by
another. Increment-and-check happens under a lock with no awaits inside
the critical section, so concurrent bursts cannot under-count.
"""

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from fitness_tracker_server.core.config import Settings

Clock = Callable[[], float]

GENERAL_POLICY_MESSAGE = "Too many requests from this IP, please try again later."
AUTH_POLICY_MESSAGE = "Too many authentication attempts, please try again later."

# Expired windows are swept when the map grows past this many keys
MAX_TRACKED_KEYS = 10_000


@dataclass(frozen=True)
class RateLimitPolicy:
    """Window size, ceiling and counting rules for one limiter.

    Attributes:
        name: Policy identifier (used in logs)
        max_requests: Maximum counted requests per window
        window_seconds: Window length
        skip_successful_requests: Un-count requests whose response succeeds
        message: Client-facing message when the limit is hit
    """

    name: str
    max_requests: int
    window_seconds: int
    skip_successful_requests: bool = False
    message: str = GENERAL_POLICY_MESSAGE


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of counting one request."""

    permitted: bool
    limit: int
    remaining: int
    reset_at: float

    def retry_after(self, now: float) -> int:
        """Seconds until the window resets (at least 1)."""
        return max(1, math.ceil(self.reset_at - now))

    def headers(self) -> dict[str, str]:
        """X-RateLimit-* response headers."""
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(math.ceil(self.reset_at)),
        }


class _Window:
    __slots__ = ("count", "reset_at")

    def __init__(self, reset_at: float) -> None:
        self.count = 0
        self.reset_at = reset_at


class RateLimiter:
    """Counts requests per client key over fixed windows."""

    def __init__(self, policy: RateLimitPolicy, clock: Clock | None = None) -> None:
        """Initialize limiter.

        Args:
            policy: Window and ceiling configuration
            clock: Returns current unix time in seconds (defaults to time.time)
        """
        self.policy = policy
        self._clock = clock or time.time
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def now(self) -> float:
        return self._clock()

    def _current_window(self, client_key: str, now: float) -> _Window:
        window = self._windows.get(client_key)
        if window is None or now >= window.reset_at:
            if window is None and len(self._windows) >= MAX_TRACKED_KEYS:
                self._drop_expired(now)
            window = _Window(reset_at=now + self.policy.window_seconds)
            self._windows[client_key] = window
        return window

    def _drop_expired(self, now: float) -> int:
        expired = [key for key, window in self._windows.items() if now >= window.reset_at]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def hit(self, client_key: str) -> RateLimitResult:
        """Count one request and decide whether it is permitted.

        Every hit is counted, including denied ones.

        Args:
            client_key: Client identity (IP, or IP + route for auth)

        Returns:
            RateLimitResult for this request
        """
        with self._lock:
            now = self.now()
            window = self._current_window(client_key, now)
            window.count += 1
            count = window.count
            reset_at = window.reset_at

        limit = self.policy.max_requests
        return RateLimitResult(
            permitted=count <= limit,
            limit=limit,
            remaining=max(0, limit - count),
            reset_at=reset_at,
        )

    def count(self, client_key: str) -> int:
        """Counted requests in the client's current window."""
        with self._lock:
            window = self._windows.get(client_key)
            if window is None or self.now() >= window.reset_at:
                return 0
            return window.count

    def release(self, client_key: str) -> None:
        """Un-count one request in the client's current window.

        Used for policies that skip successful requests. A window that has
        already reset is left alone.
        """
        with self._lock:
            window = self._windows.get(client_key)
            if window is not None and self.now() < window.reset_at and window.count > 0:
                window.count -= 1

    def reset(self, client_key: str | None = None) -> None:
        """Forget one client's window, or all windows."""
        with self._lock:
            if client_key is None:
                self._windows.clear()
            else:
                self._windows.pop(client_key, None)

    def prune(self) -> int:
        """Drop expired windows.

        Returns:
            Number of windows removed
        """
        with self._lock:
            return self._drop_expired(self.now())

    def __len__(self) -> int:
        return len(self._windows)


def general_policy(config: Settings) -> RateLimitPolicy:
    """Policy applied to all non-health traffic."""
    return RateLimitPolicy(
        name="general",
        max_requests=config.rate_limit_max_requests,
        window_seconds=config.rate_limit_window_seconds,
        message=GENERAL_POLICY_MESSAGE,
    )


def auth_policy(config: Settings) -> RateLimitPolicy:
    """Stricter policy for registration and login; only failures count."""
    return RateLimitPolicy(
        name="auth",
        max_requests=config.auth_rate_limit_max_requests,
        window_seconds=config.auth_rate_limit_window_seconds,
        skip_successful_requests=True,
        message=AUTH_POLICY_MESSAGE,
    )
