"""Unit tests for cache repositories."""

from __future__ import annotations

from core.types import ParentQuad, PartitionRecord, QuadTreeIndex, SubQuad
from partitioning.quadkey import QuadKey
from store.key_value_cache import InMemoryKeyValueCache
from store.metadata_cache import EndpointCacheRepository, MetadataCacheRepository

HRN = "hrn:here:data::olp-here:test-catalog"


def test_partition_record_roundtrips_through_cache() -> None:
    """Stored records should come back with every optional field."""
    repository = MetadataCacheRepository(InMemoryKeyValueCache())
    record = PartitionRecord(
        partition="73982",
        data_handle="675911FF",
        version=12,
        checksum="abc",
        data_size=10,
        compressed_data_size=8,
        crc="ff",
    )

    repository.put_partition(HRN, "roads", 12, record)

    assert repository.get_partition(HRN, "roads", 12, "73982") == record
    assert repository.get_partition(HRN, "roads", 13, "73982") is None


def test_partition_is_stored_under_shared_key_format() -> None:
    """Records should land under the interoperable partition key."""
    cache = InMemoryKeyValueCache()
    repository = MetadataCacheRepository(cache)

    repository.put_partition(HRN, "roads", 12, PartitionRecord(partition="92", data_handle="h"))

    assert cache.get(f"{HRN}::roads::12::92::partition") is not None


def test_quadtree_index_roundtrips_through_cache() -> None:
    """Cached quad-tree indexes should be reconstructed exactly."""
    repository = MetadataCacheRepository(InMemoryKeyValueCache())
    root = QuadKey.from_morton_code(4623)
    index = QuadTreeIndex(
        sub_quads=(SubQuad(sub_quad_key="5", version=12, data_handle="sub"),),
        parent_quads=(ParentQuad(partition="1155", version=11, data_handle="parent"),),
    )

    repository.put_quadtree_index(HRN, "roads", root, 4, 12, index)

    assert repository.get_quadtree_index(HRN, "roads", root, 4, 12) == index
    assert repository.get_quadtree_index(HRN, "roads", root, 3, 12) is None


def test_endpoint_repository_roundtrip() -> None:
    """Endpoint base URLs should be cached per scope."""
    repository = EndpointCacheRepository(InMemoryKeyValueCache())

    repository.put(HRN, "query", "v1", "https://query.example.test")

    assert repository.get(HRN, "query", "v1") == "https://query.example.test"
    assert repository.get("platform-api", "query", "v1") is None
