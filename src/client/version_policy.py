"""Catalog version selection for versioned layer reads."""

from __future__ import annotations

from typing import Awaitable, Callable

from core.logging_config import get_logger

LatestVersionFetcher = Callable[[str | None], Awaitable[int]]

_LOGGER = get_logger(__name__)


class CatalogVersionPolicy:
    """Pick the catalog version for a request.

    An explicit request version always wins. Otherwise the policy reuses
    the locked version, resolving and locking the latest one on first use.
    """

    def __init__(self, fetch_latest: LatestVersionFetcher, locked_version: int | None = None) -> None:
        self._fetch_latest = fetch_latest
        self._locked_version = locked_version

    @property
    def locked_version(self) -> int | None:
        """Return the locked version, if any."""
        return self._locked_version

    async def resolve(self, explicit_version: int | None, billing_tag: str | None = None) -> int:
        """Return the version to use for one request.

        Args:
            explicit_version: Version carried by the request, if any.
            billing_tag: Billing tag forwarded to the latest-version call.

        Returns:
            Catalog version.
        """
        if explicit_version is not None:
            return explicit_version
        if self._locked_version is None:
            self._locked_version = await self._fetch_latest(billing_tag)
            _LOGGER.info("catalog_version_locked", version=self._locked_version)
        return self._locked_version
