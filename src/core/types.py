"""Shared typed models.

This module defines immutable data models used by the cache, client,
and upload layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from partitioning.quadkey import QuadKey

LayerKind = Literal["versioned", "volatile", "index", "stream"]
FetchOption = Literal["online-if-not-found", "online-only", "cache-only"]
DEFAULT_FETCH_OPTION: FetchOption = "online-if-not-found"


@dataclass(frozen=True)
class PartitionRecord:
    """Stored blob reference for one partition.

    Attributes:
        partition: Partition id, or decimal Morton code for tiles.
        data_handle: Opaque handle used by the blob service.
        version: Catalog version the partition belongs to.
        checksum: Optional payload checksum.
        data_size: Optional uncompressed payload size in bytes.
        compressed_data_size: Optional compressed payload size in bytes.
        crc: Optional CRC string.
    """

    partition: str
    data_handle: str
    version: int | None = None
    checksum: str | None = None
    data_size: int | None = None
    compressed_data_size: int | None = None
    crc: str | None = None

    def to_payload(self) -> dict[str, Any]:
        """Serialize into the service JSON shape, omitting unset fields."""
        payload: dict[str, Any] = {
            "partition": self.partition,
            "dataHandle": self.data_handle,
        }
        optional_fields = {
            "version": self.version,
            "checksum": self.checksum,
            "dataSize": self.data_size,
            "compressedDataSize": self.compressed_data_size,
            "crc": self.crc,
        }
        payload.update({key: value for key, value in optional_fields.items() if value is not None})
        return payload


@dataclass(frozen=True)
class SubQuad:
    """Tile inside a queried subtree, addressed relative to the query root."""

    sub_quad_key: str
    version: int | None
    data_handle: str


@dataclass(frozen=True)
class ParentQuad:
    """Ancestor tile standing in for uncovered descendants."""

    partition: str
    version: int | None
    data_handle: str


@dataclass(frozen=True)
class QuadTreeIndex:
    """Quad-tree query response.

    Attributes:
        sub_quads: Tiles strictly inside the subtree.
        parent_quads: Ancestor tiles with absolute partition ids.
    """

    sub_quads: tuple[SubQuad, ...]
    parent_quads: tuple[ParentQuad, ...]


@dataclass(frozen=True)
class EndpointDescriptor:
    """Discovered service endpoint."""

    api: str
    version: str
    base_url: str


@dataclass(frozen=True)
class ResolvedTile:
    """Outcome of resolving a tile against the quad-tree index.

    Attributes:
        requested: Tile key the caller asked for.
        quad_key: Tile key whose data answers the request.
        record: Partition metadata for ``quad_key``.
    """

    requested: QuadKey
    quad_key: QuadKey
    record: PartitionRecord

    @property
    def data_handle(self) -> str:
        """Return the data handle of the answering tile."""
        return self.record.data_handle

    @property
    def is_exact(self) -> bool:
        """Return whether the requested tile itself holds data."""
        return self.requested == self.quad_key


@dataclass(frozen=True)
class AggregatedTileData:
    """Tile payload fetched through exact match or ancestor fallback.

    Attributes:
        quad_key: Tile key whose data was downloaded.
        data_handle: Blob handle that was downloaded.
        content: Downloaded bytes.
    """

    quad_key: QuadKey
    data_handle: str
    content: bytes


@dataclass(frozen=True)
class TileRequest:
    """Tile fetch options.

    Attributes:
        quad_key: Requested tile.
        version: Optional explicit catalog version.
        billing_tag: Optional billing tag.
        fetch_option: Cache usage policy.
    """

    quad_key: QuadKey
    version: int | None = None
    billing_tag: str | None = None
    fetch_option: FetchOption = DEFAULT_FETCH_OPTION


@dataclass(frozen=True)
class DataRequest:
    """Data fetch options; exactly one selector must be set.

    Attributes:
        data_handle: Fetch a blob directly by handle.
        partition_id: Fetch a partition by explicit id.
        quad_key: Fetch a tile, falling back to the closest ancestor.
        version: Optional explicit catalog version.
        billing_tag: Optional billing tag.
        fetch_option: Cache usage policy for metadata lookups.
    """

    data_handle: str | None = None
    partition_id: str | None = None
    quad_key: QuadKey | None = None
    version: int | None = None
    billing_tag: str | None = None
    fetch_option: FetchOption = DEFAULT_FETCH_OPTION


@dataclass(frozen=True)
class PartitionsRequest:
    """Partition metadata query options.

    Attributes:
        partition_ids: Explicit ids to look up; all partitions when omitted.
        version: Optional explicit catalog version.
        billing_tag: Optional billing tag.
        fetch_option: Cache usage policy for explicit-id lookups.
    """

    partition_ids: tuple[str, ...] | None = None
    version: int | None = None
    billing_tag: str | None = None
    fetch_option: FetchOption = DEFAULT_FETCH_OPTION


@dataclass(frozen=True)
class UploadOptions:
    """Chunked upload options.

    Attributes:
        layer_id: Target layer id.
        handle: Target data handle (V1) or object key (V2).
        content_type: MIME type of the payload.
        content_encoding: Optional content encoding such as ``gzip``.
        chunk_size_mib: Requested chunk size; clamped to the default if out of range.
        parallel_requests: Maximum number of part uploads per batch.
        billing_tag: Optional billing tag.
    """

    layer_id: str
    handle: str
    content_type: str
    content_encoding: str | None = None
    chunk_size_mib: int | None = None
    parallel_requests: int | None = None
    billing_tag: str | None = None


@dataclass(frozen=True)
class UploadSession:
    """Multipart session identifiers returned by the start call.

    Variant 1 sessions carry the three link URLs; variant 2 sessions
    carry the multipart token.
    """

    upload_part_url: str | None = None
    complete_url: str | None = None
    status_url: str | None = None
    multipart_token: str | None = None

    def identifiers(self) -> dict[str, str]:
        """Return the non-empty session identifiers."""
        fields = {
            "upload_part_url": self.upload_part_url,
            "complete_url": self.complete_url,
            "status_url": self.status_url,
            "multipart_token": self.multipart_token,
        }
        return {key: value for key, value in fields.items() if value}


@dataclass(frozen=True)
class UploadPart:
    """Identity of one uploaded part."""

    number: int
    id: str


@dataclass(frozen=True)
class UploadStartedEvent:
    """Emitted once after the multipart session starts."""

    total_size: int
    total_chunks: int
    chunk_size: int
    session: UploadSession


@dataclass(frozen=True)
class ChunkUploadedEvent:
    """Emitted after each part upload completes.

    Attributes:
        chunk_number: Part number, assigned in reading order from 1.
        chunk_id: Identity returned by the service.
        chunk_size: Byte length of this part.
        uploaded_chunks: Parts completed so far, including this one.
        total_chunks: Total number of parts.
        uploaded_bytes: Bytes completed so far, including this part.
        total_size: Total payload size in bytes.
    """

    chunk_number: int
    chunk_id: str
    chunk_size: int
    uploaded_chunks: int
    total_chunks: int
    uploaded_bytes: int
    total_size: int
