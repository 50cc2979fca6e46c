"""Canonical book metadata models — The source-agnostic shape returned to API callers.

Every provider maps its upstream records to ``BookMetadata`` (usually through
``metashelf.core.normalizer.normalize_book_metadata``). Optional fields are
either a validated, non-empty value or ``None``; ``None`` fields are omitted
from serialized payloads.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SeriesMetadata(BaseModel):
    """One series membership of a book."""

    series: str = Field(description="Series name (never empty)")
    sequence: str | None = Field(default=None, description="Position within the series, e.g. '1' or '2.5'")


class BookMetadata(BaseModel):
    """Normalized book / audiobook metadata.

    ``title`` is always a string (possibly empty). Every other field is
    optional. JSON keys use camelCase (``publishedYear``).
    """

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(default="", description="Book title")
    subtitle: str | None = Field(default=None, description="Subtitle")
    author: str | None = Field(default=None, description="Author(s), comma separated")
    narrator: str | None = Field(default=None, description="Narrator(s), comma separated")
    publisher: str | None = Field(default=None, description="Publisher name")
    published_year: str | None = Field(
        default=None,
        alias="publishedYear",
        description="Publication year as given by the source (not a parsed date)",
    )
    description: str | None = Field(default=None, description="Sanitized HTML description")
    cover: str | None = Field(default=None, description="Cover image URL")
    isbn: str | None = Field(default=None, description="ISBN")
    asin: str | None = Field(default=None, description="Amazon ASIN")
    genres: list[str] | None = Field(default=None, description="Genres")
    tags: list[str] | None = Field(default=None, description="Free-form tags")
    series: list[SeriesMetadata] | None = Field(default=None, description="Series memberships")
    language: str | None = Field(default=None, description="Language name or code")
    duration: int | float | None = Field(default=None, description="Duration in seconds")


# JSON field names a provider may declare in ``returnedFields``.
METADATA_FIELDS: frozenset[str] = frozenset(
    (field.alias or name) for name, field in BookMetadata.model_fields.items()
)


class SearchResult(BaseModel):
    """Response body of a provider search."""

    matches: list[BookMetadata] = Field(default_factory=list, description="Matching books")
