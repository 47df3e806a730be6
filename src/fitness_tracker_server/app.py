"""Litestar application factory."""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import structlog
from advanced_alchemy.config.asyncio import AsyncSessionConfig
from litestar import Litestar
from litestar.config.cors import CORSConfig
from litestar.contrib.sqlalchemy.plugins import SQLAlchemyAsyncConfig, SQLAlchemyPlugin
from litestar.datastructures import State
from litestar.middleware import DefineMiddleware
from litestar.openapi import OpenAPIConfig
from sqlalchemy.ext.asyncio import AsyncEngine

from fitness_tracker_server import __version__
from fitness_tracker_server.api import build_api_routers
from fitness_tracker_server.api.errors import SETTINGS_STATE_KEY, exception_handlers
from fitness_tracker_server.api.health import STARTED_AT_STATE_KEY
from fitness_tracker_server.api.users import PASSWORD_HASHER_STATE_KEY
from fitness_tracker_server.core.auth import TOKEN_SERVICE_STATE_KEY
from fitness_tracker_server.core.config import Settings, settings
from fitness_tracker_server.core.database import create_engine, init_database
from fitness_tracker_server.core.password import PasswordHasher
from fitness_tracker_server.core.rate_limit import RateLimiter, auth_policy, general_policy
from fitness_tracker_server.core.tokens import TokenService
from fitness_tracker_server.middleware import (
    RATE_LIMITERS_STATE_KEY,
    TRUST_PROXY_STATE_KEY,
    RateLimitMiddleware,
)
from fitness_tracker_server.routes import root_info

logger = structlog.get_logger()


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structured JSON logging."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, log_level, logging.INFO))
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def create_app(
    config: Settings | None = None,
    *,
    engine: AsyncEngine | None = None,
    clock: Callable[[], float] | None = None,
    password_hasher: PasswordHasher | None = None,
) -> Litestar:
    """Create Litestar application.

    Args:
        config: Settings (process-wide settings if None)
        engine: Database engine (created from config.database_url if None)
        clock: Unix-time clock shared by token expiry and rate limit windows
        password_hasher: Hasher for credentials (configured cost if None)

    Returns:
        Configured Litestar app instance
    """
    config = config or settings
    configure_logging(config.log_level)

    owns_engine = engine is None
    db_engine = engine or create_engine(config.database_url)

    @asynccontextmanager
    async def lifespan(app: Litestar) -> AsyncIterator[None]:
        """Verify the database on startup; release the pool on shutdown."""
        logger.info(
            "Starting fitness-tracker-server",
            version=__version__,
            environment=config.environment.value,
        )
        await init_database(db_engine)

        yield

        if owns_engine:
            await db_engine.dispose()
        logger.info("Shutdown complete")

    rate_limiters = {
        "general": RateLimiter(general_policy(config), clock=clock),
        "auth": RateLimiter(auth_policy(config), clock=clock),
    }

    state = State(
        {
            SETTINGS_STATE_KEY: config,
            TOKEN_SERVICE_STATE_KEY: TokenService(config, clock=clock),
            PASSWORD_HASHER_STATE_KEY: password_hasher
            or PasswordHasher(cost=config.password_hash_cost),
            RATE_LIMITERS_STATE_KEY: rate_limiters,
            TRUST_PROXY_STATE_KEY: config.trust_proxy,
            STARTED_AT_STATE_KEY: datetime.now(UTC).timestamp(),
        }
    )

    return Litestar(
        route_handlers=[root_info, *build_api_routers(config.api_prefix)],
        lifespan=[lifespan],
        state=state,
        openapi_config=OpenAPIConfig(
            title="fitness-tracker-server API",
            version=__version__,
            description="Fitness tracking REST API: workouts, exercises and social features",
        ),
        plugins=[
            SQLAlchemyPlugin(
                config=SQLAlchemyAsyncConfig(
                    engine_instance=db_engine,
                    session_dependency_key="session",
                    session_config=AsyncSessionConfig(expire_on_commit=False),
                ),
            ),
        ],
        cors_config=CORSConfig(
            allow_origins=[config.cors_origin],
            allow_credentials=True,
        ),
        middleware=[DefineMiddleware(RateLimitMiddleware, policy="general")],
        exception_handlers=exception_handlers,
        debug=config.log_level == "DEBUG",
    )


# Application instance
app = create_app()
