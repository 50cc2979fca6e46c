"""API Router — Health, provider listing, search and lookup endpoints.

Fixed routes are included before the provider-addressed catch-all routes.
"""

from __future__ import annotations

from fastapi import APIRouter

from metashelf.api.endpoints.health import router as health_router
from metashelf.api.endpoints.providers import router as providers_router
from metashelf.api.endpoints.search import router as search_router

router = APIRouter()
router.include_router(health_router, tags=["health"])
router.include_router(providers_router, tags=["providers"])
router.include_router(search_router, tags=["search"])
