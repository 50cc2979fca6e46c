"""FastAPI application factory and lifecycle management."""

from __future__ import annotations

import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from metashelf import __version__
from metashelf.api.deps import set_engine
from metashelf.api.router import router
from metashelf.config.settings import Settings
from metashelf.core.engine import MetashelfEngine
from metashelf.observability.logging import setup_logging
from metashelf.providers.base.exceptions import MetashelfError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "METASHELF_CONFIG"
DEFAULT_CONFIG_FILE = "metashelf-config.yaml"


def load_settings() -> Settings:
    """Load settings from ``$METASHELF_CONFIG``, ``metashelf-config.yaml`` or the environment."""
    explicit = os.environ.get(CONFIG_ENV_VAR)
    if explicit:
        logger.info("Loading configuration from %s", explicit)
        return Settings.from_yaml(explicit)

    yaml_path = Path(DEFAULT_CONFIG_FILE)
    if yaml_path.exists():
        logger.info("Loading configuration from %s", yaml_path)
        return Settings.from_yaml(yaml_path)
    return Settings()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. If None, loads them via ``load_settings()``.

    Returns:
        Configured FastAPI application.
    """
    if settings is None:
        settings = load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Manage application lifecycle (startup/shutdown)."""
        setup_logging(settings.observability)
        logger.info("Starting metashelf v%s", __version__)

        engine = MetashelfEngine(settings)
        await engine.initialize()
        set_engine(engine)

        app.state.settings = settings
        app.state.engine = engine

        logger.info("metashelf is ready to serve requests on port %d", settings.server.port)
        yield

        logger.info("Shutting down metashelf...")
        await engine.shutdown()
        set_engine(None)
        logger.info("metashelf shutdown complete")

    app = FastAPI(
        title="metashelf",
        description="Book and audiobook metadata from many sources behind one search API.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(MetashelfError)
    async def metashelf_error_handler(request: Request, exc: MetashelfError) -> JSONResponse:
        """Render every metashelf error as ``{"error": message}``."""
        return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})

    app.include_router(router)

    return app
