"""Health check endpoints. Never rate limited."""

from datetime import UTC, datetime
from typing import Any

import structlog
from litestar import Request, Response, Router, get
from litestar.status_codes import HTTP_200_OK, HTTP_503_SERVICE_UNAVAILABLE
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from fitness_tracker_server import __version__
from fitness_tracker_server.api.errors import SETTINGS_STATE_KEY

logger = structlog.get_logger()

# Application state key for the process start time (unix seconds)
STARTED_AT_STATE_KEY = "started_at"


async def _database_ok(session: AsyncSession) -> bool:
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError as err:
        logger.warning("Database health check failed", error=str(err))
        return False
    return True


@get(["/health", "/api/health"], status_code=HTTP_200_OK)
async def health_check(
    request: Request[Any, Any, Any], session: AsyncSession
) -> Response[dict[str, Any]]:
    """Health check endpoint.

    Returns:
        Status, version, environment and database connectivity; 503 when
        the database is unreachable
    """
    settings = request.app.state.get(SETTINGS_STATE_KEY)
    database_ok = await _database_ok(session)
    started_at = request.app.state.get(STARTED_AT_STATE_KEY)

    content = {
        "status": "ok" if database_ok else "degraded",
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime": round(datetime.now(UTC).timestamp() - started_at, 3) if started_at else None,
        "environment": settings.environment.value if settings else None,
        "database": {"status": "connected" if database_ok else "disconnected"},
        "version": __version__,
    }
    return Response(
        content=content,
        status_code=HTTP_200_OK if database_ok else HTTP_503_SERVICE_UNAVAILABLE,
    )


@get("/api/health/ready", status_code=HTTP_200_OK)
async def readiness(session: AsyncSession) -> Response[dict[str, str]]:
    """Readiness probe: the database answers queries."""
    if await _database_ok(session):
        return Response(content={"status": "ready"}, status_code=HTTP_200_OK)
    return Response(
        content={"status": "not ready", "database": "disconnected"},
        status_code=HTTP_503_SERVICE_UNAVAILABLE,
    )


@get("/api/health/live", status_code=HTTP_200_OK, sync_to_thread=False)
def liveness() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "alive"}


health_router = Router(path="/", route_handlers=[health_check, readiness, liveness])
