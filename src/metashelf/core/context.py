"""Request-scoped context — Ambient per-request values without argument threading.

The "skip cache" flag lives in a ``ContextVar``. Every asyncio task copies
the context it was created in, so concurrent requests never observe each
other's flag, while everything a request awaits or spawns inherits it.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import structlog

_skip_cache: ContextVar[bool] = ContextVar("metashelf_skip_cache", default=False)


def get_skip_cache_flag() -> bool:
    """Return the current request's bypass flag (``False`` outside a request)."""
    return _skip_cache.get()


@contextmanager
def request_context(*, skip_cache: bool = False, **log_context: Any) -> Iterator[None]:
    """Establish the ambient context for one request.

    Args:
        skip_cache: Whether cache reads are bypassed for this request.
        **log_context: Extra key/values bound into structlog's contextvars
            for the lifetime of the request.
    """
    token = _skip_cache.set(skip_cache)
    try:
        with structlog.contextvars.bound_contextvars(skip_cache=skip_cache, **log_context):
            yield
    finally:
        _skip_cache.reset(token)
