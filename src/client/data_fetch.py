"""Blob access by data handle.

The blob service differs per layer kind, so the fetcher picks its api
once at construction and rejects other layer kinds before any call.
"""

from __future__ import annotations

from client import service_api
from client.endpoint_resolver import EndpointResolver
from client.settings import ClientSettings
from core.constants import BLOB_API_BY_LAYER_KIND
from core.errors import UnsupportedLayerError
from core.hrn import HRN
from core.types import LayerKind


class BlobFetcher:
    """Read and write blobs of one versioned or volatile layer."""

    def __init__(
        self,
        settings: ClientSettings,
        endpoints: EndpointResolver,
        catalog_hrn: HRN,
        layer_id: str,
        layer_kind: LayerKind,
    ) -> None:
        blob_api = BLOB_API_BY_LAYER_KIND.get(layer_kind)
        if blob_api is None:
            raise UnsupportedLayerError(
                f"Layer '{layer_id}' is a {layer_kind} layer; "
                "only versioned and volatile layers are supported."
            )
        self._settings = settings
        self._endpoints = endpoints
        self._catalog_hrn = catalog_hrn
        self._layer_id = layer_id
        self._blob_api = blob_api

    @property
    def blob_api(self) -> str:
        """Return the blob api name used for this layer."""
        return self._blob_api

    async def get_blob(self, data_handle: str, billing_tag: str | None = None) -> bytes:
        """Download the blob stored under ``data_handle``."""
        blob_url = await self._blob_url()
        return await service_api.get_blob(
            self._settings.transport, blob_url, self._layer_id, data_handle, billing_tag
        )

    async def put_blob(
        self,
        data_handle: str,
        data: bytes,
        content_type: str,
        content_encoding: str | None = None,
        billing_tag: str | None = None,
    ) -> None:
        """Upload a blob in a single request."""
        blob_url = await self._blob_url()
        await service_api.put_blob(
            self._settings.transport,
            blob_url,
            self._layer_id,
            data_handle,
            data,
            content_type,
            content_encoding,
            billing_tag,
        )

    async def check_blob_exists(self, data_handle: str, billing_tag: str | None = None) -> bool:
        """Return whether a blob exists under ``data_handle``."""
        blob_url = await self._blob_url()
        return await service_api.check_blob_exists(
            self._settings.transport, blob_url, self._layer_id, data_handle, billing_tag
        )

    async def delete_blob(self, data_handle: str, billing_tag: str | None = None) -> None:
        """Delete the blob stored under ``data_handle``."""
        blob_url = await self._blob_url()
        await service_api.delete_blob(
            self._settings.transport, blob_url, self._layer_id, data_handle, billing_tag
        )

    async def _blob_url(self) -> str:
        return await self._endpoints.resolve(self._blob_api, "v1", self._catalog_hrn)
