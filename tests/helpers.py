"""Test helpers shared across API tests."""

from typing import Any

from litestar.testing import AsyncTestClient

API = "/api/v1"
PASSWORD = "Passw0rdX"
START_TIME = 1_704_067_200.0  # 2024-01-01T00:00:00Z


class FakeClock:
    """Controllable unix-time clock for token expiry and rate limit windows."""

    def __init__(self, start: float = START_TIME) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def auth_header(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


async def register_user(
    client: AsyncTestClient, username: str = "jane_doe", email: str | None = None
) -> dict[str, Any]:
    """Register through the API and return the response data (user + tokens)."""
    response = await client.post(
        f"{API}/users/register",
        json={
            "username": username,
            "email": email or f"{username}@example.com",
            "password": PASSWORD,
        },
    )
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def create_workout(client: AsyncTestClient, token: str, **fields: Any) -> dict[str, Any]:
    payload = {"title": "Morning run", **fields}
    response = await client.post(f"{API}/workouts", json=payload, headers=auth_header(token))
    assert response.status_code == 201, response.text
    return response.json()["data"]
