"""Service endpoint discovery.

Base URLs are discovered through the API lookup service once per
(scope, api, api version) and then served from the settings cache.
"""

from __future__ import annotations

from client.settings import ClientSettings
from core.constants import DEFAULT_API_VERSION, PLATFORM_SCOPE
from core.errors import CatalogNotFoundError
from core.hrn import HRN
from core.logging_config import get_logger
from store.metadata_cache import EndpointCacheRepository
from store.record_payload import endpoints_from_payload

_LOGGER = get_logger(__name__)


class EndpointResolver:
    """Resolve api names to base URLs through the lookup service."""

    def __init__(self, settings: ClientSettings) -> None:
        self._settings = settings
        self._repository = EndpointCacheRepository(settings.cache)

    async def resolve(
        self,
        api: str,
        api_version: str = DEFAULT_API_VERSION,
        catalog_hrn: HRN | None = None,
    ) -> str:
        """Return the base URL for an api.

        Every descriptor returned by a discovery call is cached, so other
        apis of the same scope resolve without a further call.

        Args:
            api: Api name, such as ``query`` or ``blob``.
            api_version: Api version, such as ``v1``.
            catalog_hrn: Catalog scope; platform-wide apis when omitted.

        Returns:
            Service base URL.

        Raises:
            CatalogNotFoundError: If discovery does not list the api.
            CatalogProtocolError: If the lookup call fails.
        """
        scope = str(catalog_hrn) if catalog_hrn is not None else PLATFORM_SCOPE
        cached_url = self._repository.get(scope, api, api_version)
        if cached_url is not None:
            return cached_url

        payload = await self._settings.transport.get_json(self._discovery_url(catalog_hrn))
        base_url: str | None = None
        for descriptor in endpoints_from_payload(payload):
            self._repository.put(scope, descriptor.api, descriptor.version, descriptor.base_url)
            if descriptor.api == api and descriptor.version == api_version:
                base_url = descriptor.base_url
        if base_url is None:
            raise CatalogNotFoundError(
                f"Api '{api}' version '{api_version}' is not available for {scope}.",
                requested_key=f"{api}/{api_version}",
            )
        _LOGGER.debug("endpoint_resolved", scope=scope, api=api, api_version=api_version)
        return base_url

    def _discovery_url(self, catalog_hrn: HRN | None) -> str:
        if catalog_hrn is None:
            return f"{self._settings.lookup_url}/platform/apis"
        return f"{self._settings.lookup_url}/resources/{catalog_hrn}/apis"
