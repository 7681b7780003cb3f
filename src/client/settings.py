"""Client settings shared by catalog clients.

A settings object owns the HTTP transport and the key/value cache, so
every client built from it shares endpoint and partition cache state.
"""

from __future__ import annotations

from types import TracebackType

import httpx

from client.transport import CatalogTransport, TokenProvider
from core.config import GeoCatalogConfig
from store.key_value_cache import InMemoryKeyValueCache, KeyValueCache


class ClientSettings:
    """Configuration, transport, and cache bundle for catalog clients."""

    def __init__(
        self,
        config: GeoCatalogConfig | None = None,
        *,
        cache: KeyValueCache | None = None,
        http_client: httpx.AsyncClient | None = None,
        token_provider: TokenProvider | None = None,
    ) -> None:
        self.config = config or GeoCatalogConfig.from_env()
        self.cache: KeyValueCache = cache if cache is not None else InMemoryKeyValueCache()
        client = http_client or httpx.AsyncClient(timeout=self.config.http_timeout_seconds)
        self.transport = CatalogTransport(
            client,
            access_token=self.config.access_token,
            token_provider=token_provider,
        )

    @property
    def lookup_url(self) -> str:
        """Return the API lookup service URL without a trailing slash."""
        return self.config.lookup_url.rstrip("/")

    @property
    def quadtree_depth(self) -> int:
        """Return the configured quad-tree query depth."""
        return self.config.quadtree_depth

    async def aclose(self) -> None:
        """Release the HTTP connection pool."""
        await self.transport.aclose()

    async def __aenter__(self) -> "ClientSettings":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()
