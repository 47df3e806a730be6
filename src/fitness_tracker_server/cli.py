"""CLI entry point for fitness-tracker-server."""

import typer
import uvicorn

from fitness_tracker_server import __version__
from fitness_tracker_server.core.config import settings

app = typer.Typer(
    name="fitness-tracker-server",
    help="Fitness tracking REST API server",
    no_args_is_help=True,
)


@app.command()
def serve(
    host: str = typer.Option(None, help="Host to bind to (overrides config)"),
    port: int = typer.Option(None, help="Port to bind to (overrides config)"),
    reload: bool = typer.Option(False, help="Enable auto-reload for development"),
) -> None:
    """Start the API server.

    Example:
        fitness-tracker-server serve
        fitness-tracker-server serve --host 127.0.0.1 --port 8080 --reload
    """
    uvicorn.run(
        "fitness_tracker_server.app:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        log_level=settings.log_level.lower(),
        proxy_headers=settings.trust_proxy,
    )


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"fitness-tracker-server v{__version__}")


@app.command("check-config")
def check_config() -> None:
    """Print the effective (non-secret) configuration."""
    typer.echo(f"environment: {settings.environment.value}")
    typer.echo(f"api: {settings.api_host}:{settings.api_port}{settings.api_prefix}")
    typer.echo(
        f"rate limits: general {settings.rate_limit_max_requests}/"
        f"{settings.rate_limit_window_seconds}s, auth {settings.auth_rate_limit_max_requests}/"
        f"{settings.auth_rate_limit_window_seconds}s"
    )
    typer.echo(
        f"token lifetimes: access {settings.jwt_access_expiry_minutes}m, "
        f"refresh {settings.jwt_refresh_expiry_days}d"
    )


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
