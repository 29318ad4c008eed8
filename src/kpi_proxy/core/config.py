import os
from typing import Mapping, Optional

from fastapi import Request
from pydantic import BaseModel, ConfigDict

from .errors import ConfigError

REQUIRED_ENV_VARS = ("API_SECRET", "DATABASE_URL", "DATABASE_SERVICE_KEY")

DEFAULT_PORT = 3000
DEFAULT_HOST = "0.0.0.0"
DEFAULT_DATABASE_TIMEOUT_S = 30.0


class Settings(BaseModel):
    """Process configuration, loaded once at startup and never mutated."""

    model_config = ConfigDict(frozen=True)

    api_secret: str
    database_url: str
    database_service_key: str
    port: int = DEFAULT_PORT
    host: str = DEFAULT_HOST
    log_level: str = "INFO"
    log_namespaces: tuple[str, ...] = ()
    database_timeout_s: float = DEFAULT_DATABASE_TIMEOUT_S
    sales_table: str = "sales"
    visits_table: str = "visits"
    stock_table: str = "stock"


def _parse_number(environ: Mapping[str, str], name: str, default, cast):
    raw = environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number", names=[name])


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build ``Settings`` from the environment.

    Raises ConfigError naming every required variable that is unset or empty.
    Values are never included in the error.
    """
    if environ is None:
        environ = os.environ

    missing = [name for name in REQUIRED_ENV_VARS if not environ.get(name)]
    if missing:
        raise ConfigError(
            f"Missing required environment variables: {', '.join(missing)}",
            names=missing,
        )

    namespaces = tuple(
        ns.strip() for ns in environ.get("LOG_NAMESPACES", "").split(",") if ns.strip()
    )

    return Settings(
        api_secret=environ["API_SECRET"],
        database_url=environ["DATABASE_URL"].rstrip("/"),
        database_service_key=environ["DATABASE_SERVICE_KEY"],
        port=_parse_number(environ, "PORT", DEFAULT_PORT, int),
        host=environ.get("HOST") or DEFAULT_HOST,
        log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
        log_namespaces=namespaces,
        database_timeout_s=_parse_number(
            environ, "DATABASE_TIMEOUT_S", DEFAULT_DATABASE_TIMEOUT_S, float
        ),
        sales_table=environ.get("SALES_TABLE") or "sales",
        visits_table=environ.get("VISITS_TABLE") or "visits",
        stock_table=environ.get("STOCK_TABLE") or "stock",
    )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def env_presence(environ: Optional[Mapping[str, str]] = None) -> dict[str, bool]:
    """Which required variables are set, without exposing their values."""
    if environ is None:
        environ = os.environ
    return {name: bool(environ.get(name)) for name in REQUIRED_ENV_VARS}
