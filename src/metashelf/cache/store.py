"""Cache Store — SQLite-backed memo of provider searches and book lookups.

Two independent namespaces, each an insert-or-replace table keyed by its
identity tuple. There is no TTL: entries live until ``clear()`` removes
them. Reads return ``None`` while the request's bypass flag is set; writes
are never affected by the flag.

The engine stores ``BookMetadata`` payloads keyed by the parameters hash
and the book id. Providers receive the same store and may keep their own
upstream documents in it under keys of their choosing (e.g. a request URL).

SQLite calls block, so every operation runs in the default executor.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from sqlalchemy import Engine, delete
from sqlalchemy.dialects.sqlite import insert
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, select

from metashelf.cache.models import BookCacheEntry, SearchCacheEntry
from metashelf.config.settings import CacheSettings
from metashelf.core.context import get_skip_cache_flag

logger = logging.getLogger(__name__)

_T = TypeVar("_T")

_MEMORY_PATH = ":memory:"


def _now_ms() -> int:
    return int(time.time() * 1000)


class CacheStore:
    """Persistent key-value cache for provider results.

    Attributes:
        settings: Cache configuration.
    """

    def __init__(self, settings: CacheSettings) -> None:
        self.settings = settings
        self._engine: Engine | None = None

    async def initialize(self) -> None:
        """Open the database and create the cache tables if needed."""
        if not self.settings.enabled:
            logger.info("Cache disabled")
            return
        await self._run(self._open)

    def _open(self) -> None:
        db_path = self.settings.db_path
        if db_path == _MEMORY_PATH:
            engine = create_engine(
                "sqlite://",
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(
                f"sqlite:///{db_path}",
                connect_args={"check_same_thread": False},
            )
        SQLModel.metadata.create_all(engine, tables=[SearchCacheEntry.__table__, BookCacheEntry.__table__])
        self._engine = engine
        logger.info("Cache store opened at %s", db_path)

    async def shutdown(self) -> None:
        """Dispose of the database engine."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    async def _run(self, fn: Callable[..., _T], *args: Any) -> _T:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, fn, *args)

    def _bypassed(self, skip_cache: bool | None) -> bool:
        return get_skip_cache_flag() if skip_cache is None else skip_cache

    # ── Search namespace ─────────────────────────────────────────────────

    async def get_search(
        self,
        provider_id: str,
        title: str,
        author: str | None,
        params_hash: str,
        *,
        skip_cache: bool | None = None,
    ) -> str | None:
        """Return the cached search payload, or ``None`` on a miss or bypass.

        Args:
            skip_cache: Explicit bypass override; defaults to the request flag.
        """
        if self._engine is None or self._bypassed(skip_cache):
            return None
        return await self._run(self._get_search_sync, provider_id, title, author or "", params_hash)

    def _get_search_sync(self, provider_id: str, title: str, author: str, params_hash: str) -> str | None:
        with Session(self._engine) as session:
            statement = select(SearchCacheEntry.payload).where(
                SearchCacheEntry.provider_id == provider_id,
                SearchCacheEntry.title == title,
                SearchCacheEntry.author == author,
                SearchCacheEntry.params_hash == params_hash,
            )
            return session.exec(statement).first()

    async def set_search(
        self,
        provider_id: str,
        title: str,
        author: str | None,
        params_hash: str,
        payload: str,
    ) -> None:
        """Insert or fully replace the search entry for this key."""
        if self._engine is None:
            return
        await self._run(self._set_search_sync, provider_id, title, author or "", params_hash, payload)

    def _set_search_sync(self, provider_id: str, title: str, author: str, params_hash: str, payload: str) -> None:
        created_at = _now_ms()
        statement = insert(SearchCacheEntry.__table__).values(
            provider_id=provider_id,
            title=title,
            author=author,
            params_hash=params_hash,
            payload=payload,
            created_at=created_at,
        )
        statement = statement.on_conflict_do_update(
            index_elements=["provider_id", "title", "author", "params_hash"],
            set_={"payload": payload, "created_at": created_at},
        )
        with self._engine.begin() as conn:
            conn.execute(statement)

    # ── Book namespace ───────────────────────────────────────────────────

    async def get_book(self, provider_id: str, book_id: str, *, skip_cache: bool | None = None) -> str | None:
        """Return the cached lookup payload, or ``None`` on a miss or bypass."""
        if self._engine is None or self._bypassed(skip_cache):
            return None
        return await self._run(self._get_book_sync, provider_id, book_id)

    def _get_book_sync(self, provider_id: str, book_id: str) -> str | None:
        with Session(self._engine) as session:
            statement = select(BookCacheEntry.payload).where(
                BookCacheEntry.provider_id == provider_id,
                BookCacheEntry.book_id == book_id,
            )
            return session.exec(statement).first()

    async def set_book(self, provider_id: str, book_id: str, payload: str) -> None:
        """Insert or fully replace the lookup entry for this key."""
        if self._engine is None:
            return
        await self._run(self._set_book_sync, provider_id, book_id, payload)

    def _set_book_sync(self, provider_id: str, book_id: str, payload: str) -> None:
        created_at = _now_ms()
        statement = insert(BookCacheEntry.__table__).values(
            provider_id=provider_id,
            book_id=book_id,
            payload=payload,
            created_at=created_at,
        )
        statement = statement.on_conflict_do_update(
            index_elements=["provider_id", "book_id"],
            set_={"payload": payload, "created_at": created_at},
        )
        with self._engine.begin() as conn:
            conn.execute(statement)

    # ── Invalidation ─────────────────────────────────────────────────────

    async def clear(self, provider_id: str | None = None) -> None:
        """Delete one provider's entries from both namespaces, or everything.

        Args:
            provider_id: Provider whose entries to drop; ``None`` clears all.
        """
        if self._engine is None:
            return
        await self._run(self._clear_sync, provider_id)
        logger.info("Cache cleared for %s", provider_id or "all providers")

    def _clear_sync(self, provider_id: str | None) -> None:
        with self._engine.begin() as conn:
            for table in (SearchCacheEntry.__table__, BookCacheEntry.__table__):
                statement = delete(table)
                if provider_id is not None:
                    statement = statement.where(table.c.provider_id == provider_id)
                conn.execute(statement)
