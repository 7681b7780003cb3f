"""Cache key construction.

Keys are plain strings joined with ``::``. The partition key format
``<catalogHRN>::<layerId>::<version>::<partitionOrQuadKey>::partition`` is
shared with other catalog clients and must not change.
"""

from __future__ import annotations

from core.constants import (
    CACHE_KEY_DELIMITER,
    ENDPOINT_CACHE_SUFFIX,
    PARTITION_CACHE_SUFFIX,
    QUADTREE_CACHE_SUFFIX,
)


def partition_cache_key(
    catalog_hrn: str,
    layer_id: str,
    version: int | None,
    partition_id: str,
) -> str:
    """Build the cache key for one partition or tile.

    The version segment is omitted for unversioned (volatile) layers.

    Args:
        catalog_hrn: Catalog HRN string.
        layer_id: Layer id.
        version: Catalog version, or None for volatile layers.
        partition_id: Partition id or decimal tile Morton code.

    Returns:
        Cache key string.
    """
    segments = [catalog_hrn, layer_id]
    if version is not None:
        segments.append(str(version))
    segments.extend([partition_id, PARTITION_CACHE_SUFFIX])
    return CACHE_KEY_DELIMITER.join(segments)


def endpoint_cache_key(scope: str, api: str, api_version: str) -> str:
    """Build the cache key for a discovered service base URL."""
    return CACHE_KEY_DELIMITER.join([scope, api, api_version, ENDPOINT_CACHE_SUFFIX])


def quadtree_cache_key(
    catalog_hrn: str,
    layer_id: str,
    root_tile: str,
    depth: int,
    version: int | None,
) -> str:
    """Build the cache key marking a fetched quad-tree subtree."""
    root_segment = root_tile if version is None else f"{root_tile}{CACHE_KEY_DELIMITER}{version}"
    return CACHE_KEY_DELIMITER.join(
        [catalog_hrn, layer_id, root_segment, str(depth), QUADTREE_CACHE_SUFFIX]
    )
