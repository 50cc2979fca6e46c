"""Health check endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from metashelf import __version__
from metashelf.api.deps import get_engine
from metashelf.core.engine import MetashelfEngine

router = APIRouter()


class HealthResponse(BaseModel):
    """System health check response."""

    status: str = Field(description="Health status (e.g. 'healthy')")
    version: str = Field(description="metashelf server version")
    service: str = Field(description="Service name ('metashelf')")
    cache_enabled: bool = Field(description="Whether the cache store is open")
    providers: list[str] = Field(description="Ids of registered providers")


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="System Health Check",
)
async def health_check(
    engine: MetashelfEngine = Depends(get_engine),
) -> HealthResponse:
    """Basic health check endpoint with provider info."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        service="metashelf",
        cache_enabled=engine.cache.is_open,
        providers=engine.registry.provider_ids,
    )
