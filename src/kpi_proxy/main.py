import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from . import __version__
from .core.config import Settings
from .core.database import DatabaseClient
from .features.health.router import router as health_router
from .features.reports.router import router as reports_router

logger = logging.getLogger(__name__)  # This logger will inherit from 'kpi_proxy'


def create_app(settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> FastAPI:
    """
    Build the API around already-validated settings.

    Settings and the database client hang off ``app.state``; they are the
    only state shared between requests and neither is mutated after startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        logger.info("Starting application...")
        await app.state.database.connect()
        logger.info("Ready to serve requests.")

        try:
            yield
        finally:
            await app.state.database.close()
            logger.info("Application shut down.")

    app = FastAPI(
        title="KPI Proxy API",
        description="Read-only sales, visit and stock reports for the dashboard.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = DatabaseClient(settings, transport=transport)

    app.include_router(health_router)
    app.include_router(reports_router)
    return app
