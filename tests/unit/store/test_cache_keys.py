"""Unit tests for cache key construction."""

from __future__ import annotations

from store.cache_keys import endpoint_cache_key, partition_cache_key, quadtree_cache_key

HRN = "hrn:here:data::olp-here:test-catalog"


def test_partition_cache_key_format() -> None:
    """Partition keys should follow hrn::layer::version::id::partition."""
    key = partition_cache_key(HRN, "roads", 12, "73982")

    assert key == "hrn:here:data::olp-here:test-catalog::roads::12::73982::partition"


def test_partition_cache_key_omits_missing_version() -> None:
    """Volatile keys should drop the version segment."""
    key = partition_cache_key(HRN, "traffic", None, "73982")

    assert key == f"{HRN}::traffic::73982::partition"


def test_endpoint_cache_key_format() -> None:
    """Endpoint keys should be scoped by HRN, api, and version."""
    assert endpoint_cache_key("platform-api", "lookup", "v1") == "platform-api::lookup::v1::api"


def test_quadtree_cache_key_distinguishes_versions() -> None:
    """Marker keys should differ per version and depth."""
    versioned = quadtree_cache_key(HRN, "roads", "4623", 4, 12)
    other_version = quadtree_cache_key(HRN, "roads", "4623", 4, 13)
    other_depth = quadtree_cache_key(HRN, "roads", "4623", 3, 12)

    assert versioned == f"{HRN}::roads::4623::12::4::quadtree"
    assert len({versioned, other_version, other_depth}) == 3
