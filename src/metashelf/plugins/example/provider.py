"""Example provider — Generates deterministic records from the search terms."""

from __future__ import annotations

from typing import Any

from metashelf.core.normalizer import normalize_book_metadata
from metashelf.models.metadata import BookMetadata
from metashelf.models.provider import ParsedParameters
from metashelf.providers.base.provider import BaseProvider

_MAX_GENERATED = 3


class ExampleProvider(BaseProvider):
    """Mock provider returning up to three generated books per search."""

    async def search(
        self,
        title: str,
        author: str | None,
        params: ParsedParameters,
    ) -> list[BookMetadata]:
        lang = str(params.get("lang", "en"))
        limit = int(params.get("limit", 10))
        count = min(limit, _MAX_GENERATED)
        return [normalize_book_metadata(self._record(title, author, lang, i)) for i in range(count)]

    async def get_book_by_id(self, book_id: str, params: ParsedParameters) -> BookMetadata | None:
        if not book_id.isdigit():
            return None
        lang = str(params.get("lang", "en"))
        return normalize_book_metadata(self._record(f"Example Book {book_id}", None, lang, 0))

    def _record(self, title: str, author: str | None, lang: str, index: int) -> dict[str, Any]:
        return {
            "title": f"{title} {index + 1}" if index else title,
            "subtitle": "The Beginning" if index == 0 else None,
            "author": author or "Unknown Author",
            "narrator": "Jane Narrator" if index % 2 == 0 else "John Narrator",
            "publisher": "Example Publishing House",
            "publishedYear": str(2020 + index),
            "description": f"<p>This is a <strong>mock description</strong> for {title}. Language: {lang}</p>",
            "cover": f"https://example.com/covers/{index}.jpg",
            "isbn": f"97800000000{index:02d}",
            "asin": f"B00EXAMPLE{index}",
            "genres": ["Fiction", "Fantasy" if index % 2 == 0 else "Science Fiction"],
            "tags": ["bestseller", "award-winning"],
            "series": [{"series": f"{title} Series", "sequence": index + 1}] if index == 0 else None,
            "language": lang,
            "duration": 3600 * (8 + index),
        }


Provider = ExampleProvider
