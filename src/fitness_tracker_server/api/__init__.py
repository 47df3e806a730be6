"""API routes."""

from litestar import Router

from fitness_tracker_server.api.exercises import exercises_router
from fitness_tracker_server.api.health import health_router
from fitness_tracker_server.api.social import social_router
from fitness_tracker_server.api.users import users_router
from fitness_tracker_server.api.workouts import workouts_router

# Versioned API routers, mounted under the configured prefix (default /api/v1)
_v1_routers = [
    users_router,
    workouts_router,
    exercises_router,
    social_router,
]


def build_api_routers(prefix: str = "/api/v1") -> list[Router]:
    """Health (unprefixed, not rate limited) plus the versioned API."""
    return [health_router, Router(path=prefix, route_handlers=_v1_routers)]


__all__ = ["build_api_routers"]
