"""Database engine creation and startup checks."""

from typing import Any

import structlog
from sqlalchemy import inspect, text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

logger = structlog.get_logger()


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create the async database engine.

    PostgreSQL gets a sized connection pool; other backends (SQLite in
    tests) use their driver defaults.

    Args:
        database_url: SQLAlchemy async URL
        echo: Log emitted SQL

    Returns:
        Async SQLAlchemy engine
    """
    kwargs: dict[str, Any] = {"echo": echo}
    if database_url.startswith("postgresql"):
        kwargs.update(
            pool_size=10,
            max_overflow=20,
            pool_recycle=300,  # Recycle connections every 5 minutes
            pool_pre_ping=True,
        )
    return create_async_engine(database_url, **kwargs)


async def init_database(engine: AsyncEngine) -> None:
    """Verify the database is reachable and report the migration state.

    Does NOT create tables - use Alembic migrations for schema management.
    """
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))
        has_migrations = await conn.run_sync(
            lambda sync_conn: inspect(sync_conn).has_table("alembic_version")
        )

        if not has_migrations:
            logger.warning(
                "Database migrations have not been applied. "
                "Run 'alembic upgrade head' to initialize the database schema."
            )
            return

        result = await conn.execute(text("SELECT version_num FROM alembic_version"))
        logger.info("Database initialized", migration_version=result.scalar())
