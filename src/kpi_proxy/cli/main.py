import asyncio
import logging

import typer
import uvicorn

from ..core.config import Settings, env_presence, load_settings
from ..core.database import DatabaseClient
from ..core.errors import ConfigError
from ..core.logging_config import configure_logging
from ..features.reports import service as report_service
from ..main import create_app

logger = logging.getLogger(__name__)

app = typer.Typer(name="kpi-proxy", help="Run and inspect the KPI reporting API.")


def _load_settings_or_exit() -> Settings:
    try:
        return load_settings()
    except ConfigError as e:
        # Startup failures still need a handler, before LOG_LEVEL is known.
        configure_logging()
        logger.error("Refusing to start, missing or invalid settings: %s", ", ".join(e.names))
        raise typer.Exit(code=1)


@app.command("serve")
def serve_command():
    """Validate settings and start the HTTP server on HOST:PORT."""
    settings = _load_settings_or_exit()
    configure_logging(settings.log_level, settings.log_namespaces)
    logger.info("Listening on %s:%s", settings.host, settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port, log_config=None)


@app.command("ping")
def ping_command():
    """Run the connectivity probe once against the configured database."""
    settings = _load_settings_or_exit()
    configure_logging(settings.log_level, settings.log_namespaces)
    result = asyncio.run(_ping(settings))
    if result.ok:
        typer.secho(f"Database reachable via table '{result.table}'.", fg=typer.colors.GREEN)
    else:
        typer.secho(f"Database unreachable: {result.error}", fg=typer.colors.RED)
        raise typer.Exit(code=1)


async def _ping(settings: Settings):
    db = DatabaseClient(settings)
    await db.connect()
    try:
        return await report_service.probe_connectivity(db, settings)
    finally:
        await db.close()


@app.command("env-check")
def env_check_command():
    """Report which required environment variables are set (never their values)."""
    presence = env_presence()
    for name, present in presence.items():
        colour = typer.colors.GREEN if present else typer.colors.RED
        typer.secho(f"{name}: {'set' if present else 'missing'}", fg=colour)
    if not all(presence.values()):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
