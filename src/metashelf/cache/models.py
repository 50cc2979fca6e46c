"""Cache tables — Search results and single-book lookups, one row per key."""

from __future__ import annotations

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel


class SearchCacheEntry(SQLModel, table=True):
    """Cached search payload keyed by ``(provider_id, title, author, params_hash)``.

    A missing author is stored as the empty string so the unique constraint
    also covers author-less searches.
    """

    __tablename__ = "search_cache"  # type: ignore[assignment]
    __table_args__ = (UniqueConstraint("provider_id", "title", "author", "params_hash"),)

    id: int | None = Field(default=None, primary_key=True)
    provider_id: str = Field(index=True)
    title: str
    author: str = ""
    params_hash: str
    payload: str
    created_at: int


class BookCacheEntry(SQLModel, table=True):
    """Cached lookup payload keyed by ``(provider_id, book_id)``."""

    __tablename__ = "book_cache"  # type: ignore[assignment]
    __table_args__ = (UniqueConstraint("provider_id", "book_id"),)

    id: int | None = Field(default=None, primary_key=True)
    provider_id: str = Field(index=True)
    book_id: str
    payload: str
    created_at: int
