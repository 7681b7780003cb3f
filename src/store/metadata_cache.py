"""Cache repositories for endpoints and catalog metadata.

Repositories translate typed records to cache keys and JSON values.
They hold no state of their own beyond the injected cache.
"""

from __future__ import annotations

from core.types import PartitionRecord, QuadTreeIndex
from partitioning.quadkey import QuadKey
from store.cache_keys import endpoint_cache_key, partition_cache_key, quadtree_cache_key
from store.key_value_cache import KeyValueCache
from store.record_payload import (
    dumps_payload,
    loads_payload,
    partition_record_from_payload,
    quadtree_index_from_payload,
    quadtree_index_to_payload,
)


class EndpointCacheRepository:
    """Stores discovered service base URLs per lookup scope."""

    def __init__(self, cache: KeyValueCache) -> None:
        self._cache = cache

    def put(self, scope: str, api: str, api_version: str, base_url: str) -> bool:
        """Store a base URL for (scope, api, api version)."""
        return self._cache.put(endpoint_cache_key(scope, api, api_version), base_url)

    def get(self, scope: str, api: str, api_version: str) -> str | None:
        """Return a cached base URL or None."""
        return self._cache.get(endpoint_cache_key(scope, api, api_version))


class MetadataCacheRepository:
    """Stores partition records and fetched quad-tree indexes."""

    def __init__(self, cache: KeyValueCache) -> None:
        self._cache = cache

    def put_partition(
        self,
        catalog_hrn: str,
        layer_id: str,
        version: int | None,
        record: PartitionRecord,
    ) -> bool:
        """Store one partition record under its own partition id.

        Returns:
            True if the cache accepted the entry.
        """
        key = partition_cache_key(catalog_hrn, layer_id, version, record.partition)
        return self._cache.put(key, dumps_payload(record.to_payload()))

    def get_partition(
        self,
        catalog_hrn: str,
        layer_id: str,
        version: int | None,
        partition_id: str,
    ) -> PartitionRecord | None:
        """Return a cached partition record or None."""
        raw_value = self._cache.get(partition_cache_key(catalog_hrn, layer_id, version, partition_id))
        if raw_value is None:
            return None
        return partition_record_from_payload(loads_payload(raw_value))

    def put_quadtree_index(
        self,
        catalog_hrn: str,
        layer_id: str,
        root: QuadKey,
        depth: int,
        version: int | None,
        index: QuadTreeIndex,
    ) -> bool:
        """Store a fetched quad-tree index keyed by its query root."""
        key = quadtree_cache_key(catalog_hrn, layer_id, root.to_here_tile(), depth, version)
        return self._cache.put(key, dumps_payload(quadtree_index_to_payload(index)))

    def get_quadtree_index(
        self,
        catalog_hrn: str,
        layer_id: str,
        root: QuadKey,
        depth: int,
        version: int | None,
    ) -> QuadTreeIndex | None:
        """Return a previously fetched quad-tree index or None."""
        key = quadtree_cache_key(catalog_hrn, layer_id, root.to_here_tile(), depth, version)
        raw_value = self._cache.get(key)
        if raw_value is None:
            return None
        return quadtree_index_from_payload(loads_payload(raw_value))
