"""Rate limiting middleware.

Counts each request against a RateLimiter held in application state,
rejects it with RATE_LIMITED before any validation or authentication runs,
and adds X-RateLimit-* headers to the response.

The general policy is installed app-wide; the auth policy is installed on
the registration/login handlers, so it runs after the general one.
"""

from typing import Any

from litestar.datastructures import MutableScopeHeaders
from litestar.types import ASGIApp, Message, Receive, Scope, Send

from fitness_tracker_server.core.errors import AppError, ErrorKind
from fitness_tracker_server.core.rate_limit import RateLimiter, RateLimitResult

# Application state key for the {policy name: RateLimiter} map
RATE_LIMITERS_STATE_KEY = "rate_limiters"
# Application state key: use X-Forwarded-For as the client address
TRUST_PROXY_STATE_KEY = "trust_proxy"
# Connection state key for the last rate limit result (for logging/handlers)
RATE_LIMIT_STATE_KEY = "rate_limit_info"

# Health checks are never rate limited
EXEMPT_PATH_PREFIXES = ("/health", "/api/health")


def is_exempt(path: str) -> bool:
    """Return True for health-check paths."""
    return any(path == prefix or path.startswith(prefix + "/") for prefix in EXEMPT_PATH_PREFIXES)


def client_address(scope: Scope, trust_proxy: bool = False) -> str:
    """Best-effort client IP for rate limiting and logs.

    Args:
        scope: ASGI scope
        trust_proxy: Prefer the first X-Forwarded-For entry

    Returns:
        Client address, or "unknown"
    """
    if trust_proxy:
        for name, value in scope.get("headers", []):
            if name == b"x-forwarded-for":
                forwarded = value.decode("latin-1").split(",")[0].strip()
                if forwarded:
                    return forwarded
    client = scope.get("client")
    if client:
        return str(client[0])
    return "unknown"


def _app_state(scope: Scope) -> Any:
    return scope["app"].state


class RateLimitMiddleware:
    """Middleware enforcing one rate-limit policy.

    Args:
        app: Next ASGI app
        policy: Name of the limiter in application state ("general" or "auth")
        key_by_route: Key counters by client address + route path
    """

    def __init__(self, app: ASGIApp, policy: str = "general", key_by_route: bool = False) -> None:
        """Initialize middleware with the ASGI app."""
        self.app = app
        self.policy = policy
        self.key_by_route = key_by_route

    def _limiter(self, scope: Scope) -> RateLimiter:
        return _app_state(scope)[RATE_LIMITERS_STATE_KEY][self.policy]

    def _client_key(self, scope: Scope) -> str:
        trust_proxy = bool(_app_state(scope).get(TRUST_PROXY_STATE_KEY, False))
        address = client_address(scope, trust_proxy)
        if self.key_by_route:
            return f"{address}:{scope['path']}"
        return address

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Count the request, reject it if over budget, otherwise pass it on."""
        if scope["type"] != "http" or is_exempt(scope["path"]):  # type: ignore[comparison-overlap]
            await self.app(scope, receive, send)
            return

        limiter = self._limiter(scope)
        client_key = self._client_key(scope)
        result = limiter.hit(client_key)

        # Initialize state dict if not present
        if "state" not in scope:
            scope["state"] = {}
        scope["state"][RATE_LIMIT_STATE_KEY] = result

        if not result.permitted:
            raise AppError(
                ErrorKind.RATE_LIMITED,
                limiter.policy.message,
                headers={
                    **result.headers(),
                    "Retry-After": str(result.retry_after(limiter.now())),
                },
            )

        status_code = 500

        async def send_wrapper(message: Message) -> None:
            """Wrap send to inject rate limit headers and capture the status."""
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                headers = MutableScopeHeaders.from_message(message)
                self._add_headers(headers, result)
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            if limiter.policy.skip_successful_requests and status_code < 400:
                limiter.release(client_key)

    def _add_headers(self, headers: MutableScopeHeaders, result: RateLimitResult) -> None:
        # Inner (auth) policy headers are set first and kept
        for name, value in result.headers().items():
            if name not in headers:
                headers[name] = value
