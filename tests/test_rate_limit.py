"""Tests for fixed-window rate limiting."""

import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from litestar.testing import AsyncTestClient
from sqlalchemy import select

from fitness_tracker_server.core.rate_limit import RateLimiter, RateLimitPolicy
from fitness_tracker_server.middleware.rate_limit import client_address, is_exempt
from fitness_tracker_server.models.user import User
from tests.helpers import API, PASSWORD, FakeClock, register_user


def _limiter(clock: FakeClock, limit: int = 3, window: int = 60, **kwargs) -> RateLimiter:
    return RateLimiter(
        RateLimitPolicy(name="test", max_requests=limit, window_seconds=window, **kwargs),
        clock=clock,
    )


class TestRateLimiter:
    """Counting, windows and release."""

    def test_first_requests_permitted_then_denied(self, clock):
        limiter = _limiter(clock, limit=3)

        results = [limiter.hit("1.2.3.4") for _ in range(4)]

        assert [r.permitted for r in results] == [True, True, True, False]
        assert [r.remaining for r in results] == [2, 1, 0, 0]
        assert results[0].limit == 3

    def test_window_reset(self, clock):
        limiter = _limiter(clock, limit=1, window=60)
        limiter.hit("1.2.3.4")
        assert limiter.hit("1.2.3.4").permitted is False

        clock.advance(60)

        assert limiter.hit("1.2.3.4").permitted is True

    def test_denied_hits_are_counted(self, clock):
        limiter = _limiter(clock, limit=1)
        limiter.hit("a")
        limiter.hit("a")
        limiter.release("a")

        # Two hits, one released: still at the limit
        assert limiter.hit("a").permitted is False

    def test_keys_are_independent(self, clock):
        limiter = _limiter(clock, limit=1)
        limiter.hit("a")

        assert limiter.hit("b").permitted is True

    def test_policies_are_independent(self, clock):
        general = _limiter(clock, limit=1)
        auth = _limiter(clock, limit=1)
        general.hit("a")

        assert auth.hit("a").permitted is True

    def test_release_uncounts(self, clock):
        limiter = _limiter(clock, limit=1)
        limiter.hit("a")
        limiter.release("a")

        assert limiter.hit("a").permitted is True

    def test_release_after_window_reset_is_ignored(self, clock):
        limiter = _limiter(clock, limit=1, window=10)
        limiter.hit("a")
        clock.advance(10)
        limiter.release("a")

        assert limiter.hit("a").permitted is True
        assert limiter.hit("a").permitted is False

    def test_retry_after_and_headers(self, clock):
        limiter = _limiter(clock, limit=1, window=60)
        limiter.hit("a")
        clock.advance(15)
        result = limiter.hit("a")

        assert result.retry_after(limiter.now()) == 45
        assert result.headers()["X-RateLimit-Limit"] == "1"
        assert result.headers()["X-RateLimit-Remaining"] == "0"

    def test_prune_drops_expired_windows(self, clock):
        limiter = _limiter(clock, window=10)
        limiter.hit("a")
        limiter.hit("b")
        clock.advance(10)

        assert limiter.prune() == 2
        assert len(limiter) == 0

    def test_concurrent_burst_counts_every_hit(self, clock):
        limiter = _limiter(clock, limit=5)
        threads = 32
        barrier = threading.Barrier(threads)

        def hit() -> bool:
            barrier.wait()
            return limiter.hit("1.2.3.4").permitted

        with ThreadPoolExecutor(max_workers=threads) as pool:
            results = list(pool.map(lambda _: hit(), range(threads)))

        assert results.count(True) == 5
        assert limiter.count("1.2.3.4") == threads

    def test_count_is_zero_after_window(self, clock):
        limiter = _limiter(clock, limit=5, window=10)
        limiter.hit("a")
        assert limiter.count("a") == 1

        clock.advance(10)

        assert limiter.count("a") == 0
        assert limiter.count("never-seen") == 0


class TestClientAddress:
    """Client key resolution."""

    def test_direct_client(self):
        scope = {"client": ("10.0.0.1", 1234), "headers": []}

        assert client_address(scope) == "10.0.0.1"

    def test_forwarded_for_only_when_trusted(self):
        scope = {
            "client": ("10.0.0.1", 1234),
            "headers": [(b"x-forwarded-for", b"203.0.113.7, 10.0.0.1")],
        }

        assert client_address(scope, trust_proxy=False) == "10.0.0.1"
        assert client_address(scope, trust_proxy=True) == "203.0.113.7"

    def test_unknown(self):
        assert client_address({"headers": []}) == "unknown"

    @pytest.mark.parametrize(
        ("path", "exempt"),
        [
            ("/health", True),
            ("/api/health/ready", True),
            ("/healthy", False),
            ("/api/v1/users/login", False),
        ],
    )
    def test_exempt_paths(self, path, exempt):
        assert is_exempt(path) is exempt


class TestRateLimitMiddleware:
    """Policies applied to live requests."""

    async def _failed_login(self, client: AsyncTestClient, username: str = "jane_doe"):
        return await client.post(
            f"{API}/users/login", json={"username": username, "password": "WrongPass1"}
        )

    async def test_sixth_failed_login_is_rate_limited(self, client):
        await register_user(client)
        for _ in range(5):
            response = await self._failed_login(client)
            assert response.status_code == 401

        response = await self._failed_login(client)

        assert response.status_code == 429
        body = response.json()
        assert body["status"] == "error"
        assert body["message"] == "Too many authentication attempts, please try again later."
        assert int(response.headers["Retry-After"]) >= 1
        assert response.headers["X-RateLimit-Limit"] == "5"

    async def test_blocked_request_never_executes(self, client, session_factory):
        await register_user(client)
        for _ in range(5):
            await self._failed_login(client)

        response = await client.post(
            f"{API}/users/login", json={"username": "jane_doe", "password": PASSWORD}
        )

        assert response.status_code == 429
        async with session_factory() as session:
            user = (await session.execute(select(User))).scalar_one()
            assert user.last_login_at is None

    async def test_successful_logins_are_not_counted(self, client):
        await register_user(client)
        for _ in range(8):
            response = await client.post(
                f"{API}/users/login", json={"username": "jane_doe", "password": PASSWORD}
            )
            assert response.status_code == 200

    async def test_window_reset_unblocks(self, client, clock):
        await register_user(client)
        for _ in range(6):
            await self._failed_login(client)

        clock.advance(15 * 60)

        assert (await self._failed_login(client)).status_code == 401

    async def test_auth_limit_is_per_route(self, client):
        for _ in range(6):
            await self._failed_login(client, username="nobody")

        data = await register_user(client)

        assert data["user"]["username"] == "jane_doe"

    async def test_general_limit_headers(self, client):
        data = await register_user(client)
        response = await client.get(
            f"{API}/users/me", headers={"Authorization": f"Bearer {data['token']}"}
        )

        assert response.status_code == 200
        assert response.headers["X-RateLimit-Limit"] == "100"
        assert "X-RateLimit-Reset" in response.headers

    async def test_health_is_exempt(self, app, client):
        limiter = app.state["rate_limiters"]["general"]
        for _ in range(3):
            assert (await client.get("/health")).status_code == 200

        assert len(limiter) == 0
