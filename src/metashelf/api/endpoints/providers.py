"""Provider listing endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from metashelf.api.deps import get_engine
from metashelf.core.engine import MetashelfEngine
from metashelf.models.provider import ProvidersResponse

router = APIRouter()


@router.get(
    "/providers",
    response_model=ProvidersResponse,
    response_model_exclude_none=True,
    summary="List providers",
    description="Returns the configuration document of every available provider, in load order.",
)
async def list_providers(
    engine: MetashelfEngine = Depends(get_engine),
) -> ProvidersResponse:
    return ProvidersResponse(providers=engine.registry.get_all_configs(available_only=True))
