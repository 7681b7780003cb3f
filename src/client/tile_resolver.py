"""Tile and partition resolution against the catalog metadata.

A tile request fetches the quad-tree index of the subtree rooted
``depth`` levels above the tile, caches every tile that index lists, and
answers the request by exact match or by the closest ancestor holding
data. Tiles of an already fetched subtree are answered from the cache.
Explicit partition ids skip the tree and go through the partitions
query in batches.
"""

from __future__ import annotations

from typing import Callable, Iterable

from client.endpoint_resolver import EndpointResolver
from client.service_api import fetch_partitions_by_id, fetch_quadtree_index
from client.settings import ClientSettings
from core.constants import SUPPORTED_DATA_LAYER_KINDS
from core.errors import CatalogNotFoundError, UnsupportedLayerError
from core.hrn import HRN
from core.logging_config import get_logger
from core.types import (
    DEFAULT_FETCH_OPTION,
    FetchOption,
    LayerKind,
    PartitionRecord,
    QuadTreeIndex,
    ResolvedTile,
)
from core.validation import batch_partition_ids, validate_partition_ids, validate_quad_key
from partitioning.quadkey import QuadKey
from store.metadata_cache import MetadataCacheRepository

_LOGGER = get_logger(__name__)

RecordLookup = Callable[[str], PartitionRecord | None]


class TileResolver:
    """Resolve tiles and partition ids of one layer to partition records."""

    def __init__(
        self,
        settings: ClientSettings,
        endpoints: EndpointResolver,
        catalog_hrn: HRN,
        layer_id: str,
        layer_kind: LayerKind,
        depth: int | None = None,
    ) -> None:
        if layer_kind not in SUPPORTED_DATA_LAYER_KINDS:
            raise UnsupportedLayerError(
                f"Layer '{layer_id}' is a {layer_kind} layer; tile and partition "
                "resolution supports only versioned and volatile layers."
            )
        self._settings = settings
        self._endpoints = endpoints
        self._catalog_hrn = catalog_hrn
        self._hrn_key = str(catalog_hrn)
        self._layer_id = layer_id
        self._depth = settings.quadtree_depth if depth is None else depth
        self._repository = MetadataCacheRepository(settings.cache)

    @property
    def depth(self) -> int:
        """Return the quad-tree query depth."""
        return self._depth

    async def resolve_tile(
        self,
        quad_key: QuadKey,
        version: int | None,
        *,
        billing_tag: str | None = None,
        fetch_option: FetchOption = DEFAULT_FETCH_OPTION,
    ) -> ResolvedTile:
        """Resolve a tile to the record holding its data.

        Args:
            quad_key: Requested tile.
            version: Catalog version, or None for volatile layers.
            billing_tag: Optional billing tag.
            fetch_option: Cache usage policy.

        Returns:
            The resolved tile, exact or the closest ancestor with data.

        Raises:
            CatalogNotFoundError: If neither the tile nor any ancestor has data.
        """
        validate_quad_key(quad_key)
        root = quad_key.ancestor(self._depth)
        use_cache = fetch_option != "online-only"

        if use_cache:
            cached = self._resolve_from_cache(quad_key, root, version)
            if cached is not None:
                return cached
        if fetch_option == "cache-only":
            raise self._tile_not_found(quad_key)

        index = await self._fetch_index(root, version, billing_tag)
        entries = _index_records(root, index)
        if use_cache:
            self._store_index(root, version, index, entries.values())
        resolved = _walk_to_data(quad_key, entries.get)
        if resolved is None:
            raise self._tile_not_found(quad_key)
        return resolved

    async def resolve_partitions(
        self,
        partition_ids: Iterable[str],
        version: int | None,
        *,
        billing_tag: str | None = None,
        fetch_option: FetchOption = DEFAULT_FETCH_OPTION,
    ) -> list[PartitionRecord]:
        """Return records for explicit partition ids.

        Ids unknown to the service are absent from the result. With the
        default fetch option the network is skipped only when every id
        is already cached.

        Args:
            partition_ids: Explicit partition ids.
            version: Catalog version, or None for volatile layers.
            billing_tag: Optional billing tag.
            fetch_option: Cache usage policy.

        Returns:
            Found partition records.
        """
        ids = validate_partition_ids(partition_ids)
        use_cache = fetch_option != "online-only"
        if use_cache:
            cached = [
                self._repository.get_partition(self._hrn_key, self._layer_id, version, partition_id)
                for partition_id in ids
            ]
            found = [record for record in cached if record is not None]
            if len(found) == len(ids) or fetch_option == "cache-only":
                return found

        query_url = await self._endpoints.resolve("query", "v1", self._catalog_hrn)
        records: list[PartitionRecord] = []
        for batch in batch_partition_ids(ids):
            batch_records = await fetch_partitions_by_id(
                self._settings.transport,
                query_url,
                self._layer_id,
                batch,
                version,
                billing_tag,
            )
            if use_cache:
                for record in batch_records:
                    self._repository.put_partition(self._hrn_key, self._layer_id, version, record)
            records.extend(batch_records)
        return records

    def _resolve_from_cache(
        self,
        quad_key: QuadKey,
        root: QuadKey,
        version: int | None,
    ) -> ResolvedTile | None:
        """Answer from the cache, or return None when a fetch is needed.

        Raises:
            CatalogNotFoundError: If the subtree index is cached and holds no data.
        """
        exact = self._cached_record(quad_key.to_here_tile(), version)
        if exact is not None:
            return ResolvedTile(requested=quad_key, quad_key=quad_key, record=exact)
        index = self._repository.get_quadtree_index(
            self._hrn_key, self._layer_id, root, self._depth, version
        )
        if index is None:
            return None
        entries = _index_records(root, index)

        def lookup(partition_id: str) -> PartitionRecord | None:
            return entries.get(partition_id) or self._cached_record(partition_id, version)

        resolved = _walk_to_data(quad_key, lookup)
        if resolved is None:
            raise self._tile_not_found(quad_key)
        return resolved

    def _cached_record(self, partition_id: str, version: int | None) -> PartitionRecord | None:
        return self._repository.get_partition(self._hrn_key, self._layer_id, version, partition_id)

    async def _fetch_index(
        self,
        root: QuadKey,
        version: int | None,
        billing_tag: str | None,
    ) -> QuadTreeIndex:
        query_url = await self._endpoints.resolve("query", "v1", self._catalog_hrn)
        index = await fetch_quadtree_index(
            self._settings.transport,
            query_url,
            self._layer_id,
            root,
            self._depth,
            version,
            billing_tag,
        )
        _LOGGER.info(
            "quadtree_index_fetched",
            layer_id=self._layer_id,
            root=root.to_here_tile(),
            depth=self._depth,
            version=version,
            sub_quads=len(index.sub_quads),
            parent_quads=len(index.parent_quads),
        )
        return index

    def _store_index(
        self,
        root: QuadKey,
        version: int | None,
        index: QuadTreeIndex,
        records: Iterable[PartitionRecord],
    ) -> None:
        for record in records:
            self._repository.put_partition(self._hrn_key, self._layer_id, version, record)
        self._repository.put_quadtree_index(
            self._hrn_key, self._layer_id, root, self._depth, version, index
        )

    def _tile_not_found(self, quad_key: QuadKey) -> CatalogNotFoundError:
        tile_id = quad_key.to_here_tile()
        return CatalogNotFoundError(
            f"No data for tile {tile_id} or any of its ancestors in layer "
            f"'{self._layer_id}' of {self._hrn_key}.",
            requested_key=tile_id,
        )


def _index_records(root: QuadKey, index: QuadTreeIndex) -> dict[str, PartitionRecord]:
    """Map absolute tile ids to records for every tile in an index."""
    records: dict[str, PartitionRecord] = {}
    for parent in index.parent_quads:
        records[parent.partition] = PartitionRecord(
            partition=parent.partition,
            data_handle=parent.data_handle,
            version=parent.version,
        )
    for sub in index.sub_quads:
        tile_id = root.added_sub_key(sub.sub_quad_key).to_here_tile()
        records[tile_id] = PartitionRecord(
            partition=tile_id,
            data_handle=sub.data_handle,
            version=sub.version,
        )
    return records


def _walk_to_data(quad_key: QuadKey, lookup: RecordLookup) -> ResolvedTile | None:
    """Return the exact tile or its closest ancestor known to ``lookup``."""
    exact = lookup(quad_key.to_here_tile())
    if exact is not None:
        return ResolvedTile(requested=quad_key, quad_key=quad_key, record=exact)
    for ancestor in quad_key.ancestors():
        record = lookup(ancestor.to_here_tile())
        if record is not None:
            _LOGGER.debug(
                "tile_resolved_from_ancestor",
                requested=quad_key.to_here_tile(),
                ancestor=ancestor.to_here_tile(),
            )
            return ResolvedTile(requested=quad_key, quad_key=ancestor, record=record)
    return None
