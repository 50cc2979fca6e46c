"""Search and lookup endpoints — Provider-addressed metadata queries.

Routes::

    GET /{provider_id}/search?title=...&author=...&cache=false
    GET /{provider_id}/{name:value}/.../search?title=...
    GET /{provider_id}/book/{book_id}
    GET /{provider_id}/{name:value}/.../book/{book_id}

Lookup routes are registered first, so ``/{provider_id}/book/search`` is a
lookup of the book with id ``search``.

``cache=false`` bypasses cache reads for the request; results are still
written back so the next normal request is served from the cache.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from metashelf.api.deps import get_engine
from metashelf.core.context import request_context
from metashelf.core.engine import MetashelfEngine
from metashelf.core.params import parse_request_params, split_param_path
from metashelf.models.metadata import BookMetadata, SearchResult
from metashelf.providers.base.exceptions import (
    BookNotFoundError,
    MetashelfError,
    MissingQueryFieldError,
    ProviderFailureError,
)

logger = logging.getLogger(__name__)

router = APIRouter()

_ERROR_RESPONSES: dict[int | str, dict] = {
    400: {"description": "Missing, invalid or unknown parameter"},
    404: {"description": "Unknown provider"},
    500: {"description": "Provider or cache failure"},
}


async def _search(
    engine: MetashelfEngine,
    provider_id: str,
    param_path: str | None,
    title: str | None,
    author: str | None,
    cache: str | None,
) -> SearchResult:
    with request_context(skip_cache=cache == "false", provider_id=provider_id):
        parsed = parse_request_params(engine.registry, provider_id, split_param_path(param_path))

        if not title:
            raise MissingQueryFieldError("title")

        try:
            return await engine.search(parsed.provider, title, author or None, parsed.params)
        except MetashelfError as e:
            logger.error("Search failed for provider %s: %s", provider_id, e)
            raise
        except Exception as e:
            logger.error("Search failed for provider %s: %s", provider_id, e, exc_info=True)
            raise ProviderFailureError(str(e) or "Internal server error") from e


async def _get_book(
    engine: MetashelfEngine,
    provider_id: str,
    param_path: str | None,
    book_id: str,
    cache: str | None,
) -> BookMetadata:
    with request_context(skip_cache=cache == "false", provider_id=provider_id):
        parsed = parse_request_params(engine.registry, provider_id, split_param_path(param_path))

        try:
            book = await engine.get_book(parsed.provider, book_id, parsed.params)
        except MetashelfError:
            raise
        except Exception as e:
            logger.error("Lookup failed for provider %s: %s", provider_id, e, exc_info=True)
            raise ProviderFailureError(str(e) or "Internal server error") from e

        if book is None:
            raise BookNotFoundError(book_id)
        return book


@router.get(
    "/{provider_id}/book/{book_id}",
    response_model=BookMetadata,
    response_model_exclude_none=True,
    summary="Look up a book by id",
    responses=_ERROR_RESPONSES,
)
async def get_book(
    provider_id: str,
    book_id: str,
    cache: str | None = None,
    engine: MetashelfEngine = Depends(get_engine),
) -> BookMetadata:
    """Look up one book on a provider that needs no path parameters."""
    return await _get_book(engine, provider_id, None, book_id, cache)


@router.get(
    "/{provider_id}/{param_path:path}/book/{book_id}",
    response_model=BookMetadata,
    response_model_exclude_none=True,
    summary="Look up a book by id with parameters",
    responses=_ERROR_RESPONSES,
)
async def get_book_with_params(
    provider_id: str,
    param_path: str,
    book_id: str,
    cache: str | None = None,
    engine: MetashelfEngine = Depends(get_engine),
) -> BookMetadata:
    """Look up one book, passing ``name:value`` path parameters."""
    return await _get_book(engine, provider_id, param_path, book_id, cache)


@router.get(
    "/{provider_id}/search",
    response_model=SearchResult,
    response_model_exclude_none=True,
    summary="Search a provider",
    responses=_ERROR_RESPONSES,
)
async def search(
    provider_id: str,
    title: str | None = None,
    author: str | None = None,
    cache: str | None = None,
    engine: MetashelfEngine = Depends(get_engine),
) -> SearchResult:
    """Search a provider that needs no path parameters."""
    return await _search(engine, provider_id, None, title, author, cache)


@router.get(
    "/{provider_id}/{param_path:path}/search",
    response_model=SearchResult,
    response_model_exclude_none=True,
    summary="Search a provider with parameters",
    responses=_ERROR_RESPONSES,
)
async def search_with_params(
    provider_id: str,
    param_path: str,
    title: str | None = None,
    author: str | None = None,
    cache: str | None = None,
    engine: MetashelfEngine = Depends(get_engine),
) -> SearchResult:
    """Search a provider, passing ``name:value`` path parameters."""
    return await _search(engine, provider_id, param_path, title, author, cache)
