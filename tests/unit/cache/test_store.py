"""Tests for the SQLite cache store."""

from __future__ import annotations

from pathlib import Path

import pytest

from metashelf.cache.store import CacheStore
from metashelf.config.settings import CacheSettings
from metashelf.core.context import request_context

HASH = "d41d8cd98f00b204e9800998ecf8427e"


async def _open_store(db_path: str = ":memory:") -> CacheStore:
    store = CacheStore(CacheSettings(db_path=db_path))
    await store.initialize()
    return store


class TestSearchNamespace:
    @pytest.mark.asyncio
    async def test_miss_returns_none(self) -> None:
        store = await _open_store()
        assert await store.get_search("demo", "Dune", None, HASH) is None
        await store.shutdown()

    @pytest.mark.asyncio
    async def test_set_then_get(self) -> None:
        store = await _open_store()
        await store.set_search("demo", "Dune", "Herbert", HASH, '[{"title":"Dune"}]')

        assert await store.get_search("demo", "Dune", "Herbert", HASH) == '[{"title":"Dune"}]'
        assert await store.get_search("demo", "Dune", None, HASH) is None
        assert await store.get_search("other", "Dune", "Herbert", HASH) is None
        assert await store.get_search("demo", "Dune", "Herbert", "0" * 32) is None
        await store.shutdown()

    @pytest.mark.asyncio
    async def test_missing_author_is_one_key(self) -> None:
        store = await _open_store()
        await store.set_search("demo", "Dune", None, HASH, "[1]")
        await store.set_search("demo", "Dune", "", HASH, "[2]")

        assert await store.get_search("demo", "Dune", None, HASH) == "[2]"
        await store.shutdown()

    @pytest.mark.asyncio
    async def test_set_replaces_existing_entry(self) -> None:
        store = await _open_store()
        await store.set_search("demo", "Dune", None, HASH, "[]")
        await store.set_search("demo", "Dune", None, HASH, '[{"title":"Dune"}]')

        assert await store.get_search("demo", "Dune", None, HASH) == '[{"title":"Dune"}]'
        await store.shutdown()

    @pytest.mark.asyncio
    async def test_bypass_flag_hides_reads_not_writes(self) -> None:
        store = await _open_store()

        with request_context(skip_cache=True):
            await store.set_search("demo", "Dune", None, HASH, "[]")
            assert await store.get_search("demo", "Dune", None, HASH) is None

        assert await store.get_search("demo", "Dune", None, HASH) == "[]"
        await store.shutdown()

    @pytest.mark.asyncio
    async def test_explicit_skip_cache_overrides_flag(self) -> None:
        store = await _open_store()
        await store.set_search("demo", "Dune", None, HASH, "[]")

        assert await store.get_search("demo", "Dune", None, HASH, skip_cache=True) is None
        with request_context(skip_cache=True):
            assert await store.get_search("demo", "Dune", None, HASH, skip_cache=False) == "[]"
        await store.shutdown()


class TestBookNamespace:
    @pytest.mark.asyncio
    async def test_set_then_get(self) -> None:
        store = await _open_store()
        await store.set_book("demo", "42", '{"title":"The Answer"}')

        assert await store.get_book("demo", "42") == '{"title":"The Answer"}'
        assert await store.get_book("demo", "43") is None
        await store.shutdown()

    @pytest.mark.asyncio
    async def test_namespaces_are_independent(self) -> None:
        store = await _open_store()
        await store.set_book("demo", "Dune", "{}")

        assert await store.get_search("demo", "Dune", None, HASH) is None
        await store.shutdown()

    @pytest.mark.asyncio
    async def test_bypass_flag_hides_reads(self) -> None:
        store = await _open_store()
        await store.set_book("demo", "42", "{}")

        with request_context(skip_cache=True):
            assert await store.get_book("demo", "42") is None
        await store.shutdown()


class TestClearAndLifecycle:
    @pytest.mark.asyncio
    async def test_clear_one_provider(self) -> None:
        store = await _open_store()
        await store.set_search("alpha", "Dune", None, HASH, "[]")
        await store.set_book("alpha", "1", "{}")
        await store.set_search("beta", "Dune", None, HASH, "[]")

        await store.clear("alpha")

        assert await store.get_search("alpha", "Dune", None, HASH) is None
        assert await store.get_book("alpha", "1") is None
        assert await store.get_search("beta", "Dune", None, HASH) == "[]"
        await store.shutdown()

    @pytest.mark.asyncio
    async def test_clear_everything(self) -> None:
        store = await _open_store()
        await store.set_search("alpha", "Dune", None, HASH, "[]")
        await store.set_book("beta", "1", "{}")

        await store.clear()

        assert await store.get_search("alpha", "Dune", None, HASH) is None
        assert await store.get_book("beta", "1") is None
        await store.shutdown()

    @pytest.mark.asyncio
    async def test_file_database_persists_across_reopen(self, tmp_path: Path) -> None:
        db_path = str(tmp_path / "nested" / "cache.db")
        store = await _open_store(db_path)
        await store.set_search("demo", "Dune", None, HASH, "[]")
        await store.shutdown()

        reopened = await _open_store(db_path)
        assert await reopened.get_search("demo", "Dune", None, HASH) == "[]"
        await reopened.shutdown()

    @pytest.mark.asyncio
    async def test_disabled_store_is_a_no_op(self) -> None:
        store = CacheStore(CacheSettings(enabled=False))
        await store.initialize()

        await store.set_search("demo", "Dune", None, HASH, "[]")
        await store.clear()

        assert store.is_open is False
        assert await store.get_search("demo", "Dune", None, HASH) is None
