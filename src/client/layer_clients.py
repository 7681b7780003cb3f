"""Layer clients for reading versioned and volatile catalog layers.

Clients compose version selection, tile and partition resolution, and
blob download behind one request-object API per layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from client.data_fetch import BlobFetcher
from client.endpoint_resolver import EndpointResolver
from client.service_api import fetch_latest_version, fetch_layer_partitions
from client.settings import ClientSettings
from client.tile_resolver import TileResolver
from client.version_policy import CatalogVersionPolicy
from core.constants import LAYER_KIND_VERSIONED, LAYER_KIND_VOLATILE
from core.errors import CatalogNotFoundError, InvalidRequestError, UnsupportedLayerError
from core.hrn import HRN
from core.types import (
    AggregatedTileData,
    DataRequest,
    LayerKind,
    PartitionRecord,
    PartitionsRequest,
    ResolvedTile,
    TileRequest,
)
from core.validation import validate_billing_tag


class _DataLayerClient(ABC):
    """Read path shared by versioned and volatile layers."""

    layer_kind: LayerKind = LAYER_KIND_VERSIONED

    def __init__(self, settings: ClientSettings, catalog_hrn: HRN | str, layer_id: str) -> None:
        self._settings = settings
        self._catalog_hrn = _as_hrn(catalog_hrn)
        self._layer_id = layer_id
        self._endpoints = EndpointResolver(settings)
        self._resolver = TileResolver(
            settings, self._endpoints, self._catalog_hrn, layer_id, self.layer_kind
        )
        self._blobs = BlobFetcher(
            settings, self._endpoints, self._catalog_hrn, layer_id, self.layer_kind
        )

    @property
    def catalog_hrn(self) -> HRN:
        """Return the catalog HRN."""
        return self._catalog_hrn

    @property
    def layer_id(self) -> str:
        """Return the layer id."""
        return self._layer_id

    async def get_data(self, request: DataRequest) -> bytes:
        """Download the data selected by a data handle, partition id, or tile.

        Tile requests fall back to the closest ancestor holding data.

        Raises:
            InvalidRequestError: If not exactly one selector is set.
            CatalogNotFoundError: If the partition or tile has no data.
        """
        validate_billing_tag(request.billing_tag)
        selectors = [
            value
            for value in (request.data_handle, request.partition_id, request.quad_key)
            if value is not None
        ]
        if len(selectors) != 1:
            raise InvalidRequestError(
                "Provide exactly one of data_handle, partition_id, or quad_key."
            )
        if request.data_handle is not None:
            return await self._blobs.get_blob(request.data_handle, request.billing_tag)

        version = await self._request_version(request.version, request.billing_tag)
        if request.quad_key is not None:
            resolved = await self._resolver.resolve_tile(
                request.quad_key,
                version,
                billing_tag=request.billing_tag,
                fetch_option=request.fetch_option,
            )
            return await self._blobs.get_blob(resolved.data_handle, request.billing_tag)

        partition_id = str(request.partition_id)
        records = await self._resolver.resolve_partitions(
            [partition_id],
            version,
            billing_tag=request.billing_tag,
            fetch_option=request.fetch_option,
        )
        if not records:
            raise CatalogNotFoundError(
                f"Partition '{partition_id}' not found in layer '{self._layer_id}'.",
                requested_key=partition_id,
            )
        return await self._blobs.get_blob(records[0].data_handle, request.billing_tag)

    async def resolve_tile(self, request: TileRequest) -> ResolvedTile:
        """Resolve a tile to the record holding its data without downloading it."""
        validate_billing_tag(request.billing_tag)
        version = await self._request_version(request.version, request.billing_tag)
        return await self._resolver.resolve_tile(
            request.quad_key,
            version,
            billing_tag=request.billing_tag,
            fetch_option=request.fetch_option,
        )

    async def get_aggregated_data(self, request: TileRequest) -> AggregatedTileData:
        """Download tile data, from the tile itself or its closest ancestor.

        Returns:
            The downloaded bytes with the key of the tile that held them.
        """
        resolved = await self.resolve_tile(request)
        content = await self._blobs.get_blob(resolved.data_handle, request.billing_tag)
        return AggregatedTileData(
            quad_key=resolved.quad_key,
            data_handle=resolved.data_handle,
            content=content,
        )

    async def get_partitions(self, request: PartitionsRequest) -> list[PartitionRecord]:
        """Return partition metadata for explicit ids, or for the whole layer.

        Returns:
            Found partition records; unknown ids are absent.
        """
        validate_billing_tag(request.billing_tag)
        version = await self._request_version(request.version, request.billing_tag)
        if request.partition_ids is not None:
            return await self._resolver.resolve_partitions(
                request.partition_ids,
                version,
                billing_tag=request.billing_tag,
                fetch_option=request.fetch_option,
            )
        metadata_url = await self._endpoints.resolve("metadata", "v1", self._catalog_hrn)
        return await fetch_layer_partitions(
            self._settings.transport,
            metadata_url,
            self._layer_id,
            version,
            request.billing_tag,
        )

    @abstractmethod
    async def _request_version(self, explicit_version: int | None, billing_tag: str | None) -> int | None:
        """Return the catalog version a request applies to, or None for volatile layers."""


class VersionedLayerClient(_DataLayerClient):
    """Read client for a versioned layer.

    Unversioned requests use the version the client was created with, or
    the latest catalog version, resolved once and then locked.
    """

    layer_kind: LayerKind = LAYER_KIND_VERSIONED

    def __init__(
        self,
        settings: ClientSettings,
        catalog_hrn: HRN | str,
        layer_id: str,
        version: int | None = None,
    ) -> None:
        super().__init__(settings, catalog_hrn, layer_id)
        self._version_policy = CatalogVersionPolicy(self.get_latest_version, locked_version=version)

    @property
    def locked_version(self) -> int | None:
        """Return the version used for unversioned requests, once known."""
        return self._version_policy.locked_version

    async def get_latest_version(self, billing_tag: str | None = None) -> int:
        """Fetch the latest catalog version from the metadata service."""
        validate_billing_tag(billing_tag)
        metadata_url = await self._endpoints.resolve("metadata", "v1", self._catalog_hrn)
        return await fetch_latest_version(self._settings.transport, metadata_url, billing_tag)

    async def _request_version(self, explicit_version: int | None, billing_tag: str | None) -> int:
        return await self._version_policy.resolve(explicit_version, billing_tag)


class VolatileLayerClient(_DataLayerClient):
    """Read client for a volatile layer; its data carries no catalog version."""

    layer_kind: LayerKind = LAYER_KIND_VOLATILE

    async def _request_version(self, explicit_version: int | None, billing_tag: str | None) -> None:
        return None


def create_layer_client(
    settings: ClientSettings,
    catalog_hrn: HRN | str,
    layer_id: str,
    layer_kind: LayerKind,
    version: int | None = None,
) -> VersionedLayerClient | VolatileLayerClient:
    """Build the read client matching a layer kind.

    Raises:
        UnsupportedLayerError: For index and stream layers.
    """
    if layer_kind == LAYER_KIND_VERSIONED:
        return VersionedLayerClient(settings, catalog_hrn, layer_id, version)
    if layer_kind == LAYER_KIND_VOLATILE:
        return VolatileLayerClient(settings, catalog_hrn, layer_id)
    raise UnsupportedLayerError(
        f"Layer '{layer_id}' is a {layer_kind} layer; "
        "only versioned and volatile layers are supported."
    )


def _as_hrn(catalog_hrn: HRN | str) -> HRN:
    """Parse a catalog HRN given as a string."""
    if isinstance(catalog_hrn, HRN):
        return catalog_hrn
    return HRN.from_string(catalog_hrn)
