"""REST operations of the metadata, query, blob, and statistics services.

Each function performs exactly one HTTP call and validates its response
into typed records. Callers pass the already-resolved service base URL.
"""

from __future__ import annotations

from typing import Any, Sequence

from client.transport import CatalogTransport
from core.constants import LATEST_VERSION_START
from core.errors import CatalogProtocolError
from core.types import PartitionRecord, QuadTreeIndex
from partitioning.quadkey import QuadKey
from store.record_payload import (
    latest_version_from_payload,
    partitions_from_payload,
    quadtree_index_from_payload,
)

_NOT_FOUND_STATUS = 404


async def fetch_latest_version(
    transport: CatalogTransport,
    metadata_url: str,
    billing_tag: str | None = None,
) -> int:
    """Return the latest catalog version."""
    payload = await transport.get_json(
        f"{metadata_url}/versions/latest",
        params={"startVersion": LATEST_VERSION_START, "billingTag": billing_tag},
    )
    return latest_version_from_payload(payload)


async def fetch_layer_partitions(
    transport: CatalogTransport,
    metadata_url: str,
    layer_id: str,
    version: int | None,
    billing_tag: str | None = None,
) -> list[PartitionRecord]:
    """Return every partition of a layer from the metadata service."""
    payload = await transport.get_json(
        f"{metadata_url}/layers/{layer_id}/partitions",
        params={"version": version, "billingTag": billing_tag},
    )
    return partitions_from_payload(payload)


async def fetch_partitions_by_id(
    transport: CatalogTransport,
    query_url: str,
    layer_id: str,
    partition_ids: Sequence[str],
    version: int | None,
    billing_tag: str | None = None,
) -> list[PartitionRecord]:
    """Return the partition records found for explicit ids.

    Ids the service does not know are simply absent from the result.
    """
    params: list[tuple[str, Any]] = [("partition", partition_id) for partition_id in partition_ids]
    params.append(("version", version))
    params.append(("billingTag", billing_tag))
    payload = await transport.get_json(f"{query_url}/layers/{layer_id}/partitions", params=params)
    return partitions_from_payload(payload)


async def fetch_quadtree_index(
    transport: CatalogTransport,
    query_url: str,
    layer_id: str,
    root: QuadKey,
    depth: int,
    version: int | None,
    billing_tag: str | None = None,
) -> QuadTreeIndex:
    """Return the quad-tree index of the subtree under ``root``.

    Volatile layers pass ``version=None``, which drops the version path
    segment.
    """
    version_segment = "" if version is None else f"/versions/{version}"
    url = (
        f"{query_url}/layers/{layer_id}{version_segment}"
        f"/quadkeys/{root.to_here_tile()}/depths/{depth}"
    )
    payload = await transport.get_json(url, params={"billingTag": billing_tag})
    return quadtree_index_from_payload(payload)


async def get_blob(
    transport: CatalogTransport,
    blob_url: str,
    layer_id: str,
    data_handle: str,
    billing_tag: str | None = None,
) -> bytes:
    """Download one blob."""
    response = await transport.send(
        "GET",
        _blob_data_url(blob_url, layer_id, data_handle),
        params={"billingTag": billing_tag},
    )
    return response.content


async def put_blob(
    transport: CatalogTransport,
    blob_url: str,
    layer_id: str,
    data_handle: str,
    data: bytes,
    content_type: str,
    content_encoding: str | None = None,
    billing_tag: str | None = None,
) -> None:
    """Upload one blob in a single request."""
    headers = {"Content-Type": content_type}
    if content_encoding:
        headers["Content-Encoding"] = content_encoding
    await transport.send(
        "PUT",
        _blob_data_url(blob_url, layer_id, data_handle),
        params={"billingTag": billing_tag},
        content=data,
        headers=headers,
    )


async def check_blob_exists(
    transport: CatalogTransport,
    blob_url: str,
    layer_id: str,
    data_handle: str,
    billing_tag: str | None = None,
) -> bool:
    """Return whether a blob exists; a 404 answer means it does not."""
    response = await transport.send(
        "HEAD",
        _blob_data_url(blob_url, layer_id, data_handle),
        params={"billingTag": billing_tag},
        allowed_statuses=(_NOT_FOUND_STATUS,),
    )
    return response.status_code != _NOT_FOUND_STATUS


async def delete_blob(
    transport: CatalogTransport,
    blob_url: str,
    layer_id: str,
    data_handle: str,
    billing_tag: str | None = None,
) -> None:
    """Delete one blob."""
    await transport.send(
        "DELETE",
        _blob_data_url(blob_url, layer_id, data_handle),
        params={"billingTag": billing_tag},
    )


async def fetch_layer_summary(
    transport: CatalogTransport,
    statistics_url: str,
    layer_id: str,
    billing_tag: str | None = None,
) -> dict[str, Any]:
    """Return the statistics summary of a layer."""
    payload = await transport.get_json(
        f"{statistics_url}/layers/{layer_id}/summary",
        params={"billingTag": billing_tag},
    )
    if not isinstance(payload, dict):
        raise CatalogProtocolError(None, "layer summary must be a JSON object.")
    return payload


async def fetch_coverage(
    transport: CatalogTransport,
    statistics_url: str,
    layer_id: str,
    coverage_type: str,
    data_level: int | None,
    billing_tag: str | None = None,
) -> bytes:
    """Return a coverage image (tile map or heat map) of a layer."""
    response = await transport.send(
        "GET",
        f"{statistics_url}/layers/{layer_id}/{coverage_type}",
        params={"datalevel": data_level, "billingTag": billing_tag},
    )
    return response.content


def _blob_data_url(blob_url: str, layer_id: str, data_handle: str) -> str:
    return f"{blob_url}/layers/{layer_id}/data/{data_handle}"
