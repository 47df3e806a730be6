"""Root application routes."""

from typing import Any

from litestar import Request, get

from fitness_tracker_server import __version__


@get("/", sync_to_thread=False, include_in_schema=False)
def root_info(request: Request[Any, Any, Any]) -> dict[str, Any]:
    """Service name, version and where the API lives."""
    return {
        "name": "fitness-tracker-server",
        "version": __version__,
        "health": "/health",
        "docs": "/schema",
    }
