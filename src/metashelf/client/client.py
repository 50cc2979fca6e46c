"""metashelf Python SDK — Async and sync clients for the metashelf HTTP API.

Usage::

    # Async
    async with AsyncMetashelfClient("http://localhost:3000") as client:
        result = await client.search("example", "Dune", params={"lang": "en"})

    # Sync (wraps async client internally)
    client = MetashelfClient("http://localhost:3000")
    result = client.search("example", "Dune", params={"lang": "en"})
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine, Mapping
from typing import Any, TypeVar, cast
from urllib.parse import quote

import httpx

_T = TypeVar("_T")

logger = logging.getLogger(__name__)

SearchResult = dict[str, Any]
"""Search response dict with a ``matches`` list (mirrors ``SearchResult`` JSON)."""

Book = dict[str, Any]
"""A single book metadata dict with camelCase keys."""


class MetashelfAPIError(Exception):
    """Raised when the server answers with a non-2xx status."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message


def build_provider_path(provider_id: str, params: Mapping[str, Any] | None, action: str) -> str:
    """Build ``/<provider>/<name:value>*/<action>`` with URL-quoted segments."""
    segments = [quote(provider_id, safe="")]
    for name, value in (params or {}).items():
        segments.append(quote(f"{name}:{value}", safe=":"))
    segments.append(action)
    return "/" + "/".join(segments)


def _raise_for_status(resp: httpx.Response) -> None:
    if resp.is_success:
        return
    try:
        body = resp.json()
    except ValueError:
        body = None
    message = str(body["error"]) if isinstance(body, dict) and "error" in body else resp.text
    raise MetashelfAPIError(resp.status_code, message)


class AsyncMetashelfClient:
    """Async Python client for the metashelf API.

    Args:
        base_url: Server URL, e.g. ``"http://localhost:3000"``.
        timeout: Request timeout in seconds.
        **httpx_kwargs: Additional keyword arguments passed to ``httpx.AsyncClient``.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        *,
        timeout: float = 30.0,
        **httpx_kwargs: Any,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout),
            **httpx_kwargs,
        )

    async def __aenter__(self) -> AsyncMetashelfClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    # ── Health ──

    async def health(self) -> dict[str, Any]:
        """Check server health."""
        resp = await self._client.get("/health")
        _raise_for_status(resp)
        return cast(dict[str, Any], resp.json())

    # ── Providers ──

    async def providers(self) -> list[dict[str, Any]]:
        """List the configs of all available providers."""
        resp = await self._client.get("/providers")
        _raise_for_status(resp)
        return cast(list[dict[str, Any]], resp.json()["providers"])

    # ── Search ──

    async def search(
        self,
        provider_id: str,
        title: str,
        author: str | None = None,
        *,
        params: Mapping[str, Any] | None = None,
        cache: bool = True,
    ) -> SearchResult:
        """Search one provider.

        Args:
            provider_id: Provider to query.
            title: Book title.
            author: Optional author.
            params: Provider parameters, sent as ``name:value`` path segments.
            cache: ``False`` bypasses the server's cache lookup for this request.

        Returns:
            Search response dict with a ``matches`` list.

        Raises:
            MetashelfAPIError: If the server rejects the request.
        """
        query: dict[str, str] = {"title": title}
        if author:
            query["author"] = author
        if not cache:
            query["cache"] = "false"
        resp = await self._client.get(build_provider_path(provider_id, params, "search"), params=query)
        _raise_for_status(resp)
        return cast(dict[str, Any], resp.json())

    async def get_book(
        self,
        provider_id: str,
        book_id: str,
        *,
        params: Mapping[str, Any] | None = None,
        cache: bool = True,
    ) -> Book:
        """Fetch a single book by its provider-specific id.

        Raises:
            MetashelfAPIError: 404 if the provider has no lookup or no such book.
        """
        path = build_provider_path(provider_id, params, f"book/{quote(book_id, safe='')}")
        query = {} if cache else {"cache": "false"}
        resp = await self._client.get(path, params=query)
        _raise_for_status(resp)
        return cast(dict[str, Any], resp.json())


class MetashelfClient:
    """Synchronous wrapper around :class:`AsyncMetashelfClient`.

    Each call opens a short-lived async client, so instances are cheap and
    safe to share between threads.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:3000",
        *,
        timeout: float = 30.0,
        **httpx_kwargs: Any,
    ) -> None:
        self._base_url = base_url
        self._timeout = timeout
        self._httpx_kwargs = httpx_kwargs

    def _run(self, coro: Coroutine[Any, Any, _T]) -> _T:
        """Run an async coroutine synchronously."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop and loop.is_running():
            import concurrent.futures

            with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
                return pool.submit(asyncio.run, coro).result()
        return asyncio.run(coro)

    def _make_client(self) -> AsyncMetashelfClient:
        return AsyncMetashelfClient(
            self._base_url,
            timeout=self._timeout,
            **self._httpx_kwargs,
        )

    def health(self) -> dict[str, Any]:
        """Check server health."""

        async def _call() -> dict[str, Any]:
            async with self._make_client() as c:
                return await c.health()

        return self._run(_call())

    def providers(self) -> list[dict[str, Any]]:
        """List the configs of all available providers."""

        async def _call() -> list[dict[str, Any]]:
            async with self._make_client() as c:
                return await c.providers()

        return self._run(_call())

    def search(
        self,
        provider_id: str,
        title: str,
        author: str | None = None,
        *,
        params: Mapping[str, Any] | None = None,
        cache: bool = True,
    ) -> SearchResult:
        """Search one provider."""

        async def _call() -> SearchResult:
            async with self._make_client() as c:
                return await c.search(provider_id, title, author, params=params, cache=cache)

        return self._run(_call())

    def get_book(
        self,
        provider_id: str,
        book_id: str,
        *,
        params: Mapping[str, Any] | None = None,
        cache: bool = True,
    ) -> Book:
        """Fetch a single book by its provider-specific id."""

        async def _call() -> Book:
            async with self._make_client() as c:
                return await c.get_book(provider_id, book_id, params=params, cache=cache)

        return self._run(_call())
