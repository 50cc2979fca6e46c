"""metashelf Engine — Ties the provider registry, the cache store and provider calls together.

Request lifecycle (the API layer performs steps 1-3):
  1. Request context established (cache bypass flag)
  2. Provider resolved from the registry
  3. Path parameters parsed against the provider's schema
  4. Cache lookup (skipped while bypassing)
  5. Provider invocation on a miss
  6. Cache write (also while bypassing, so later requests benefit)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import TypeAdapter, ValidationError

from metashelf.cache.store import CacheStore
from metashelf.core.params import create_parameters_hash
from metashelf.models.metadata import BookMetadata, SearchResult
from metashelf.models.provider import ParsedParameters
from metashelf.providers.base.exceptions import LookupNotSupportedError
from metashelf.providers.base.registry import LoadReport, ProviderRegistry

if TYPE_CHECKING:
    from metashelf.config.settings import Settings
    from metashelf.providers.base.provider import BaseProvider

logger = logging.getLogger(__name__)

_MATCHES = TypeAdapter(list[BookMetadata])


class MetashelfEngine:
    """Core orchestrator for provider searches and lookups.

    Attributes:
        settings: Application configuration.
        registry: Registry of loaded providers.
        cache: Search / lookup cache store.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self.cache = CacheStore(settings.cache)
        self.registry = ProviderRegistry(
            reject_duplicates=settings.providers.reject_duplicate_ids,
            cache=self.cache,
        )

    async def initialize(self) -> LoadReport:
        """Open the cache store and load provider plugins.

        Returns:
            The plugin load report.
        """
        await self.cache.initialize()
        report = self.registry.load_providers(
            self.settings.providers.directory,
            disabled=set(self.settings.providers.disabled),
        )
        for warning in report.warnings:
            logger.warning("Provider plugin not loaded: %s", warning)
        logger.info("metashelf engine initialized with providers: %s", ", ".join(report.loaded) or "none")
        return report

    async def shutdown(self) -> None:
        """Close providers and the cache store."""
        await self.registry.aclose_all()
        await self.cache.shutdown()
        logger.info("metashelf engine shut down")

    # ──────────────────────────────────────────────────────────────────────
    # Search
    # ──────────────────────────────────────────────────────────────────────

    async def search(
        self,
        provider: BaseProvider,
        title: str,
        author: str | None,
        params: ParsedParameters,
    ) -> SearchResult:
        """Search *provider*, memoizing the result in the search cache.

        Provider errors propagate unchanged; a corrupt cache entry is
        treated as a miss.

        Args:
            provider: The resolved provider.
            title: Title to search for.
            author: Optional author.
            params: Validated provider parameters.

        Returns:
            The matches.
        """
        provider_id = provider.get_config().id
        params_hash = create_parameters_hash(params)

        cached = await self.cache.get_search(provider_id, title, author, params_hash)
        if cached is not None:
            matches = _decode_matches(cached, provider_id)
            if matches is not None:
                logger.debug("Search cache hit: provider=%s title=%s", provider_id, title)
                return SearchResult(matches=matches)

        matches = await provider.search(title, author, params)
        logger.debug("Provider %s returned %d match(es) for %r", provider_id, len(matches), title)

        payload = _MATCHES.dump_json(matches, by_alias=True, exclude_none=True).decode("utf-8")
        await self.cache.set_search(provider_id, title, author, params_hash, payload)
        return SearchResult(matches=matches)

    # ──────────────────────────────────────────────────────────────────────
    # Lookup
    # ──────────────────────────────────────────────────────────────────────

    async def get_book(
        self,
        provider: BaseProvider,
        book_id: str,
        params: ParsedParameters,
    ) -> BookMetadata | None:
        """Look up a single book, memoizing hits in the book cache.

        Raises:
            LookupNotSupportedError: If the provider has no direct lookup.
        """
        provider_id = provider.get_config().id
        if not provider.supports_book_lookup:
            raise LookupNotSupportedError(provider_id)

        cached = await self.cache.get_book(provider_id, book_id)
        if cached is not None:
            try:
                return BookMetadata.model_validate_json(cached)
            except ValidationError:
                logger.warning("Discarding corrupt book cache entry: provider=%s book=%s", provider_id, book_id)

        book = await provider.get_book_by_id(book_id, params)
        if book is not None:
            payload = book.model_dump_json(by_alias=True, exclude_none=True)
            await self.cache.set_book(provider_id, book_id, payload)
        return book

    # ──────────────────────────────────────────────────────────────────────
    # Maintenance
    # ──────────────────────────────────────────────────────────────────────

    async def clear_cache(self, provider_id: str | None = None) -> None:
        """Drop cached entries for one provider, or all of them."""
        await self.cache.clear(provider_id)


def _decode_matches(payload: str, provider_id: str) -> list[BookMetadata] | None:
    try:
        return _MATCHES.validate_json(payload)
    except ValidationError:
        logger.warning("Discarding corrupt search cache entry for provider %s", provider_id)
        return None
