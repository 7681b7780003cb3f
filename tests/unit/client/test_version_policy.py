"""Unit tests for catalog version selection."""

from __future__ import annotations

import asyncio

from client.version_policy import CatalogVersionPolicy


class _CountingFetcher:
    def __init__(self, version: int) -> None:
        self.version = version
        self.calls = 0

    async def __call__(self, billing_tag: str | None) -> int:
        self.calls += 1
        return self.version


def test_latest_version_is_fetched_once_and_locked() -> None:
    """Sequential unversioned requests should trigger one latest call."""
    fetcher = _CountingFetcher(7)
    policy = CatalogVersionPolicy(fetcher)

    async def run() -> list[int]:
        return [await policy.resolve(None), await policy.resolve(None)]

    assert asyncio.run(run()) == [7, 7]
    assert fetcher.calls == 1
    assert policy.locked_version == 7


def test_explicit_version_never_fetches_latest() -> None:
    """A request version should win without any network call."""
    fetcher = _CountingFetcher(7)
    policy = CatalogVersionPolicy(fetcher)

    assert asyncio.run(policy.resolve(3)) == 3
    assert fetcher.calls == 0
    assert policy.locked_version is None


def test_constructor_version_is_used_without_fetch() -> None:
    """A client-locked version should be reused for unversioned requests."""
    fetcher = _CountingFetcher(7)
    policy = CatalogVersionPolicy(fetcher, locked_version=5)

    assert asyncio.run(policy.resolve(None)) == 5
    assert fetcher.calls == 0
