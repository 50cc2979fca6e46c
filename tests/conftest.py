"""Shared test fixtures and configuration."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Coroutine, Iterator
from typing import Any

import pytest

from metashelf.config.settings import Settings
from metashelf.core.engine import MetashelfEngine
from metashelf.models.metadata import BookMetadata
from metashelf.models.provider import ParsedParameters, ProviderConfig
from metashelf.providers.base.provider import BaseProvider


class StubProvider(BaseProvider):
    """In-memory provider that records every call it receives."""

    def __init__(self, config: ProviderConfig, matches: list[BookMetadata] | None = None) -> None:
        super().__init__(config)
        self.matches = matches if matches is not None else [BookMetadata(title="Stub Book", author="Stub Author")]
        self.calls: list[tuple[str, str | None, ParsedParameters]] = []
        self.error: Exception | None = None

    async def search(self, title: str, author: str | None, params: ParsedParameters) -> list[BookMetadata]:
        self.calls.append((title, author, dict(params)))
        if self.error is not None:
            raise self.error
        return list(self.matches)


class StubLookupProvider(StubProvider):
    """Stub provider that also answers direct lookups for ids in ``books``."""

    def __init__(self, config: ProviderConfig, books: dict[str, BookMetadata] | None = None) -> None:
        super().__init__(config)
        self.books = books if books is not None else {"42": BookMetadata(title="The Answer")}
        self.lookups: list[str] = []

    async def get_book_by_id(self, book_id: str, params: ParsedParameters) -> BookMetadata | None:
        self.lookups.append(book_id)
        if self.error is not None:
            raise self.error
        return self.books.get(book_id)


def _run_sync(coro: Coroutine[Any, Any, Any]) -> Any:
    """Run a coroutine on a private loop, leaving the current event loop untouched."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def make_config(provider_id: str = "demo", **overrides: object) -> ProviderConfig:
    """Build a ProviderConfig from camelCase document fields."""
    data: dict[str, object] = {"id": provider_id, "name": provider_id.title(), "description": "Test provider"}
    data.update(overrides)
    return ProviderConfig.model_validate(data)


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance with an in-memory cache."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        debug=True,
        cache={"db_path": ":memory:"},
        observability={"log_format": "console"},
    )


@pytest.fixture
def engine(settings: Settings) -> Iterator[MetashelfEngine]:
    """Engine with an open cache store and no providers registered."""
    engine = MetashelfEngine(settings)
    _run_sync(engine.cache.initialize())
    yield engine
    _run_sync(engine.shutdown())


@pytest.fixture
def demo_config() -> ProviderConfig:
    """Config with one required enum and one optional int parameter."""
    return make_config(
        "demo",
        parameters=[
            {"name": "lang", "required": True, "validation": {"type": "enum", "values": ["en", "de"]}},
            {"name": "limit", "validation": {"type": "int", "min": 1, "max": 20}},
        ],
        returnedFields=["title", "author"],
    )


@pytest.fixture
def demo_provider(demo_config: ProviderConfig) -> StubProvider:
    return StubProvider(demo_config)


@pytest.fixture
def lookup_provider() -> StubLookupProvider:
    """Parameterless provider with direct lookup support."""
    return StubLookupProvider(make_config("shelf"))


@pytest.fixture
def atlas_provider() -> StubLookupProvider:
    """Lookup provider with an optional ``lang`` enum parameter."""
    return StubLookupProvider(
        make_config(
            "atlas",
            parameters=[{"name": "lang", "validation": {"type": "enum", "values": ["en", "de"]}}],
        )
    )


@pytest.fixture
def provider_factory() -> Callable[..., StubProvider]:
    """Build a StubProvider for an id plus optional config fields."""

    def _make(provider_id: str = "demo", **overrides: object) -> StubProvider:
        return StubProvider(make_config(provider_id, **overrides))

    return _make
