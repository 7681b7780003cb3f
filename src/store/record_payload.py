"""Shared JSON serialization for catalog metadata payloads.

This module validates loosely-typed service responses into typed
records and serializes records back for the key/value cache.
"""

from __future__ import annotations

import json
from typing import Any

from core.errors import CatalogProtocolError
from core.types import EndpointDescriptor, ParentQuad, PartitionRecord, QuadTreeIndex, SubQuad


def partition_record_from_payload(payload: object) -> PartitionRecord:
    """Deserialize one partition payload.

    Args:
        payload: Parsed JSON object from a partitions response or the cache.

    Returns:
        Typed partition record.

    Raises:
        CatalogProtocolError: If required fields are missing.
    """
    mapping = _expect_mapping(payload, "partition")
    return PartitionRecord(
        partition=_required_str(mapping, "partition", "partition"),
        data_handle=_required_str(mapping, "dataHandle", "partition"),
        version=_optional_int(mapping, "version", "partition"),
        checksum=_optional_str(mapping, "checksum"),
        data_size=_optional_int(mapping, "dataSize", "partition"),
        compressed_data_size=_optional_int(mapping, "compressedDataSize", "partition"),
        crc=_optional_str(mapping, "crc"),
    )


def partitions_from_payload(payload: object) -> list[PartitionRecord]:
    """Deserialize a ``{"partitions": [...]}`` response body."""
    mapping = _expect_mapping(payload, "partitions response")
    items = mapping.get("partitions", [])
    if not isinstance(items, list):
        raise CatalogProtocolError(None, "'partitions' must be a list.")
    return [partition_record_from_payload(item) for item in items]


def quadtree_index_from_payload(payload: object) -> QuadTreeIndex:
    """Deserialize a quad-tree index response body.

    Args:
        payload: Parsed JSON object with ``subQuads`` and ``parentQuads``.

    Returns:
        Typed quad-tree index.

    Raises:
        CatalogProtocolError: If the payload shape is invalid.
    """
    mapping = _expect_mapping(payload, "quad-tree index")
    sub_quads = tuple(
        SubQuad(
            sub_quad_key=_required_key_str(item, "subQuadKey", "subQuad"),
            version=_optional_int(item, "version", "subQuad"),
            data_handle=_required_str(item, "dataHandle", "subQuad"),
        )
        for item in _list_of_mappings(mapping, "subQuads")
    )
    parent_quads = tuple(
        ParentQuad(
            partition=_required_key_str(item, "partition", "parentQuad"),
            version=_optional_int(item, "version", "parentQuad"),
            data_handle=_required_str(item, "dataHandle", "parentQuad"),
        )
        for item in _list_of_mappings(mapping, "parentQuads")
    )
    return QuadTreeIndex(sub_quads=sub_quads, parent_quads=parent_quads)


def quadtree_index_to_payload(index: QuadTreeIndex) -> dict[str, object]:
    """Serialize a quad-tree index into its service JSON shape."""
    return {
        "subQuads": [
            {"subQuadKey": sub.sub_quad_key, "version": sub.version, "dataHandle": sub.data_handle}
            for sub in index.sub_quads
        ],
        "parentQuads": [
            {"partition": parent.partition, "version": parent.version, "dataHandle": parent.data_handle}
            for parent in index.parent_quads
        ],
    }


def endpoints_from_payload(payload: object) -> list[EndpointDescriptor]:
    """Deserialize an API lookup response.

    Raises:
        CatalogProtocolError: If the response is not a list of descriptors.
    """
    if not isinstance(payload, list):
        mapping = payload if isinstance(payload, dict) else {}
        status = mapping.get("status", 204)
        title = mapping.get("title", "No content")
        raise CatalogProtocolError(
            int(status) if isinstance(status, int) else 204,
            str(title),
        )
    descriptors: list[EndpointDescriptor] = []
    for item in payload:
        mapping = _expect_mapping(item, "api descriptor")
        descriptors.append(
            EndpointDescriptor(
                api=_required_str(mapping, "api", "api descriptor"),
                version=_required_str(mapping, "version", "api descriptor"),
                base_url=_required_str(mapping, "baseURL", "api descriptor"),
            )
        )
    return descriptors


def latest_version_from_payload(payload: object) -> int:
    """Deserialize a ``{"version": n}`` latest-version response."""
    mapping = _expect_mapping(payload, "latest version")
    version = _optional_int(mapping, "version", "latest version")
    if version is None:
        raise CatalogProtocolError(None, "latest version response has no 'version' field.")
    return version


def dumps_payload(payload: object) -> str:
    """Encode a payload for cache storage."""
    return json.dumps(payload, sort_keys=True)


def loads_payload(raw_value: str) -> Any:
    """Decode a cached payload.

    Raises:
        CatalogProtocolError: If the cached value is not valid JSON.
    """
    try:
        return json.loads(raw_value)
    except json.JSONDecodeError as error:
        raise CatalogProtocolError(None, f"cached entry is not valid JSON: {error.msg}") from error


def _expect_mapping(payload: object, context: str) -> dict[str, Any]:
    """Return payload as a dict or raise a protocol error."""
    if not isinstance(payload, dict):
        raise CatalogProtocolError(None, f"expected JSON object for {context}.")
    return payload


def _list_of_mappings(mapping: dict[str, Any], field_name: str) -> list[dict[str, Any]]:
    """Return a list field whose items are all mappings."""
    items = mapping.get(field_name)
    if items is None:
        return []
    if not isinstance(items, list):
        raise CatalogProtocolError(None, f"'{field_name}' must be a list.")
    return [_expect_mapping(item, field_name) for item in items]


def _required_str(mapping: dict[str, Any], field_name: str, context: str) -> str:
    """Return a non-empty string field or raise a protocol error."""
    value = mapping.get(field_name)
    if not isinstance(value, str) or not value:
        raise CatalogProtocolError(None, f"{context} is missing '{field_name}'.")
    return value


def _required_key_str(mapping: dict[str, Any], field_name: str, context: str) -> str:
    value = mapping.get(field_name)
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return _required_str(mapping, field_name, context)


def _optional_str(mapping: dict[str, Any], field_name: str) -> str | None:
    value = mapping.get(field_name)
    return str(value) if value is not None else None


def _optional_int(mapping: dict[str, Any], field_name: str, context: str) -> int | None:
    """Return an optional integer field."""
    value = mapping.get(field_name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise CatalogProtocolError(None, f"{context} field '{field_name}' must be an integer.")
    try:
        return int(value)
    except ValueError as error:
        raise CatalogProtocolError(
            None, f"{context} field '{field_name}' must be an integer."
        ) from error
