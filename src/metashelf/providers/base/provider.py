"""Base provider — Abstract interface for all metadata source plugins.

Every metadata source must implement this interface to be served by
metashelf. A provider is responsible for:
  1. Declaring its parameters through its ``ProviderConfig``
  2. Searching its upstream source by title (and optionally author)
  3. Mapping upstream records to ``BookMetadata``
  4. Optionally looking up a single book by its source id
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from metashelf.models.metadata import BookMetadata
from metashelf.models.provider import ParsedParameters, ProviderConfig
from metashelf.providers.base.exceptions import LookupNotSupportedError

if TYPE_CHECKING:
    from metashelf.cache.store import CacheStore


class BaseProvider(ABC):
    """Abstract base class for metadata providers.

    Subclasses are constructed with their parsed ``config.json`` and must
    implement ``search()``. Providers that support direct lookup override
    ``get_book_by_id()``; callers check ``supports_book_lookup`` first.

    Providers may memoize their own upstream documents in ``cache``, which
    the registry attaches on registration. Its reads honour the request's
    bypass flag, so a provider never needs to check it.

    Args:
        config: The provider's declarative configuration.
    """

    def __init__(self, config: ProviderConfig) -> None:
        self._config = config
        self.cache: CacheStore | None = None

    @property
    def id(self) -> str:
        """Provider id from the configuration."""
        return self._config.id

    def get_config(self) -> ProviderConfig:
        return self._config

    @abstractmethod
    async def search(
        self,
        title: str,
        author: str | None,
        params: ParsedParameters,
    ) -> list[BookMetadata]:
        """Search the upstream source.

        Args:
            title: Title to search for.
            author: Optional author to narrow the search.
            params: Validated provider parameters.

        Returns:
            Normalized matches (possibly empty).

        Raises:
            UpstreamError: If the upstream call fails.
        """

    async def get_book_by_id(self, book_id: str, params: ParsedParameters) -> BookMetadata | None:
        """Look up a single book by its source id.

        Returns:
            The book, or ``None`` if the source has no such id.

        Raises:
            LookupNotSupportedError: If the provider has no direct lookup.
        """
        raise LookupNotSupportedError(self.id)

    @property
    def supports_book_lookup(self) -> bool:
        """Whether the provider overrides ``get_book_by_id()``."""
        return type(self).get_book_by_id is not BaseProvider.get_book_by_id

    async def aclose(self) -> None:
        """Release resources held by the provider (HTTP clients etc.)."""
