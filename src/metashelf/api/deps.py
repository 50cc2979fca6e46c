"""API dependencies — Dependency injection for FastAPI endpoints."""

from __future__ import annotations

from metashelf.core.engine import MetashelfEngine

# Global engine instance (set during application lifespan)
_engine: MetashelfEngine | None = None


def set_engine(engine: MetashelfEngine | None) -> None:
    """Set the global engine instance (called during app lifespan)."""
    global _engine
    _engine = engine


def get_engine() -> MetashelfEngine:
    """Get the global metashelf engine instance.

    Raises:
        RuntimeError: If the engine is not initialized.
    """
    if _engine is None:
        raise RuntimeError("metashelf engine not initialized. Is the server running?")
    return _engine
