"""
Command-line interface for the chat backend.

Usage:
    chat-backend serve    # Run the API server
    chat-backend init-db  # Initialize database
    chat-backend health   # Check storage connectivity
"""

import asyncio
import sys

import click

from chat_backend.config.settings import get_settings
from chat_backend.observability.logging import setup_logging
from chat_backend.observability.metrics import get_metrics


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
def main(debug: bool) -> None:
    """Chat Backend - users, chat history and feedback over REST and WebSocket."""
    if debug:
        import os
        os.environ["LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()

    setup_logging()


@main.command()
@click.option("--host", default=None, help="API server host")
@click.option("--port", default=None, type=int, help="API server port (defaults to PORT)")
@click.option("--reload", is_flag=True, help="Enable auto-reload (dev only)")
@click.option("--metrics/--no-metrics", default=True, help="Enable metrics server")
def serve(host: str | None, port: int | None, reload: bool, metrics: bool) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = host or settings.api_host
    port = port or settings.api_port

    if metrics:
        get_metrics().start_server(port=settings.metrics_port)
        click.echo(f"Metrics available on http://localhost:{settings.metrics_port}/metrics")

    click.echo(f"Starting API server on {host}:{port}")
    click.echo(f"API docs available on http://localhost:{port}/docs")

    uvicorn.run(
        "chat_backend.api.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
        log_level=settings.log_level.lower(),
        ws_ping_interval=settings.ws_transport_ping_interval,
        ws_ping_timeout=settings.ws_transport_ping_timeout,
    )


@main.command("init-db")
def init_db() -> None:
    """Initialize the database schema."""
    from chat_backend.storage.database import Database
    from chat_backend.users.repository import UserRepository

    async def run():
        db = Database()
        await db.connect()
        try:
            await UserRepository(db).create_tables()
            click.echo("Database initialized successfully")
        finally:
            await db.close()

    asyncio.run(run())


@main.command()
def health() -> None:
    """Check storage connectivity."""
    import structlog
    logger = structlog.get_logger()

    async def check() -> bool:
        from chat_backend.storage.database import Database

        db = Database()
        try:
            await db.connect()
            return await db.health_check()
        except Exception as e:
            logger.error("Postgres health check failed", error=str(e))
            return False
        finally:
            await db.close()

    healthy = asyncio.run(check())

    click.echo("\nHealth Check Results:")
    click.echo("-" * 40)
    icon = "✓" if healthy else "✗"
    color = "green" if healthy else "red"
    click.echo(click.style(f"  {icon} postgres: {healthy}", fg=color))
    click.echo("-" * 40)

    if healthy:
        click.echo(click.style("Storage healthy!", fg="green"))
        sys.exit(0)
    click.echo(click.style("Storage unreachable!", fg="red"))
    sys.exit(1)


if __name__ == "__main__":
    main()
