"""Unauthenticated liveness and deployment diagnostics."""
import platform
import time
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from ...core.config import Settings, get_settings

STARTED_AT = time.monotonic()

router = APIRouter(tags=["Health"])


class HealthResponse(BaseModel):
    ok: bool
    uptime_s: int
    node: str = Field(..., description="Runtime version serving the API")


class EnvCheckResponse(BaseModel):
    ok: bool
    hasApiSecret: bool
    hasUrl: bool
    hasServiceRole: bool
    port: int


@router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(
        ok=True,
        uptime_s=int(time.monotonic() - STARTED_AT),
        node=f"python {platform.python_version()}",
    )


@router.get("/env-check", response_model=EnvCheckResponse)
async def env_check(settings: Annotated[Settings, Depends(get_settings)]):
    # Presence only; secret values never leave the process.
    return EnvCheckResponse(
        ok=True,
        hasApiSecret=bool(settings.api_secret),
        hasUrl=bool(settings.database_url),
        hasServiceRole=bool(settings.database_service_key),
        port=settings.port,
    )
