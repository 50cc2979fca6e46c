"""LibriVox provider — Public domain audiobooks via the LibriVox JSON feed.

API reference:
  GET https://librivox.org/api/feed/audiobooks
    ?format=json&extended=1&coverart=1
    &title=^<prefix>&author=^<prefix>&genre=<name>&limit=<n>
    &id=<book id>

The API answers 404 when nothing matches. Raw feed records are memoized in
the cache store, keyed by the full request URL.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from metashelf import __version__
from metashelf.core.normalizer import normalize_book_metadata
from metashelf.models.metadata import BookMetadata
from metashelf.models.provider import ParsedParameters, ProviderConfig
from metashelf.providers.base.exceptions import UpstreamError
from metashelf.providers.base.provider import BaseProvider

logger = logging.getLogger(__name__)

BASE_URL = "https://librivox.org/api/feed/audiobooks"
DEFAULT_LIMIT = 10


class LibrivoxProvider(BaseProvider):
    """Search adapter for the LibriVox audiobook catalogue.

    Args:
        config: Provider configuration.
        base_url: Feed endpoint.
        timeout: HTTP request timeout in seconds.
    """

    def __init__(self, config: ProviderConfig, base_url: str = BASE_URL, timeout: float = 30.0) -> None:
        super().__init__(config)
        self._base_url = base_url
        self._timeout = timeout
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={
                    "User-Agent": f"metashelf/{__version__}",
                    "Accept": "application/json",
                },
            )
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def search(
        self,
        title: str,
        author: str | None,
        params: ParsedParameters,
    ) -> list[BookMetadata]:
        query: dict[str, Any] = {
            "format": "json",
            "extended": 1,
            "coverart": 1,
            "limit": params.get("limit", DEFAULT_LIMIT),
        }
        if title:
            query["title"] = f"^{title}"
        if author:
            query["author"] = f"^{author}"
        if "genre" in params:
            query["genre"] = params["genre"]

        # The full feed URL keys the raw upstream records
        search_url = str(httpx.URL(self._base_url, params=query))
        books = await self._cached_search(title, author, search_url)
        if books is None:
            books = _book_records(await self._fetch(query))
            if books and self.cache is not None:
                await self.cache.set_search(self.id, title, author, search_url, json.dumps(books))

        logger.debug("LibriVox search: title=%s, results=%d", title, len(books))
        return [self.map_to_metadata(book) for book in books]

    async def get_book_by_id(self, book_id: str, params: ParsedParameters) -> BookMetadata | None:
        query: dict[str, Any] = {"id": book_id, "format": "json", "extended": 1, "coverart": 1}
        book_url = str(httpx.URL(self._base_url, params=query))

        book = await self._cached_book(book_url)
        if book is None:
            books = _book_records(await self._fetch(query))
            if not books:
                return None
            book = books[0]
            if self.cache is not None:
                await self.cache.set_book(self.id, book_url, json.dumps(book))
        return self.map_to_metadata(book)

    # ── Upstream document cache ──────────────────────────────────────────

    async def _cached_search(self, title: str, author: str | None, search_url: str) -> list[dict[str, Any]] | None:
        if self.cache is None:
            return None
        payload = await self.cache.get_search(self.id, title, author, search_url)
        if payload is None:
            return None
        try:
            books = json.loads(payload)
        except ValueError:
            books = None
        if not isinstance(books, list):
            logger.warning("Ignoring unreadable LibriVox search cache entry: %s", search_url)
            return None
        return [book for book in books if isinstance(book, dict)]

    async def _cached_book(self, book_url: str) -> dict[str, Any] | None:
        if self.cache is None:
            return None
        payload = await self.cache.get_book(self.id, book_url)
        if payload is None:
            return None
        try:
            book = json.loads(payload)
        except ValueError:
            book = None
        if not isinstance(book, dict):
            logger.warning("Ignoring unreadable LibriVox book cache entry: %s", book_url)
            return None
        return book

    async def _fetch(self, query: dict[str, Any]) -> dict[str, Any] | None:
        """GET the feed; ``None`` when LibriVox reports no match (404).

        Raises:
            UpstreamError: On transport failures and other non-2xx statuses.
        """
        try:
            response = await self._get_client().get(self._base_url, params=query)
        except httpx.RequestError as e:
            raise UpstreamError(f"LibriVox request failed: {e}") from e

        if response.status_code == 404:
            return None
        if response.status_code != 200:
            raise UpstreamError(f"LibriVox API error: {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise UpstreamError(f"LibriVox returned invalid JSON: {e}") from e
        return data if isinstance(data, dict) else None

    # ── Schema mapping ───────────────────────────────────────────────────

    def map_to_metadata(self, book: dict[str, Any]) -> BookMetadata:
        """Map a LibriVox book record to ``BookMetadata``."""
        author_names = [
            f"{a.get('first_name', '')} {a.get('last_name', '')}".strip()
            for a in book.get("authors") or []
            if isinstance(a, dict)
        ]
        author_names = [name for name in author_names if name]

        readers: dict[str, None] = {}
        for section in book.get("sections") or []:
            if not isinstance(section, dict):
                continue
            for reader in section.get("readers") or []:
                name = reader.get("display_name") if isinstance(reader, dict) else None
                if isinstance(name, str) and name:
                    readers[name] = None

        genres = [g.get("name") for g in book.get("genres") or [] if isinstance(g, dict) and g.get("name")]

        return normalize_book_metadata(
            {
                "title": book.get("title"),
                "author": ", ".join(author_names) or None,
                "narrator": ", ".join(readers) or None,
                "description": book.get("description"),
                "cover": book.get("coverart_jpg") or book.get("coverart_thumbnail") or book.get("coverart_pdf"),
                "genres": genres or None,
                "language": book.get("language"),
                "duration": book.get("totaltimesecs"),
                "publishedYear": book.get("copyright_year"),
            }
        )


def _book_records(data: dict[str, Any] | None) -> list[dict[str, Any]]:
    books = data.get("books") if data is not None else None
    if not isinstance(books, list):
        return []
    return [book for book in books if isinstance(book, dict)]


Provider = LibrivoxProvider
