"""Public SDK surface for geocatalog.

This module provides a stable import path for SDK users.
It re-exports the primary clients and typed request models.
"""

from __future__ import annotations

from client.layer_clients import VersionedLayerClient, VolatileLayerClient, create_layer_client
from client.settings import ClientSettings
from client.statistics_client import StatisticsClient
from core.config import GeoCatalogConfig
from core.errors import (
    CatalogNotFoundError,
    CatalogProtocolError,
    CatalogTransportError,
    GeoCatalogConfigError,
    GeoCatalogError,
    InvalidRequestError,
    UnsupportedLayerError,
    UploadIntegrityError,
)
from core.hrn import HRN
from core.types import (
    AggregatedTileData,
    ChunkUploadedEvent,
    DataRequest,
    PartitionRecord,
    PartitionsRequest,
    ResolvedTile,
    TileRequest,
    UploadOptions,
    UploadStartedEvent,
)
from partitioning.quadkey import QuadKey
from store.key_value_cache import InMemoryKeyValueCache, KeyValueCache, LruKeyValueCache
from upload.byte_source import BufferByteSource, ByteSource, FileByteSource
from upload.events import UploadEventSink
from upload.pipeline import MultipartUploader

__all__ = [
    "AggregatedTileData",
    "BufferByteSource",
    "ByteSource",
    "CatalogNotFoundError",
    "CatalogProtocolError",
    "CatalogTransportError",
    "ChunkUploadedEvent",
    "ClientSettings",
    "DataRequest",
    "FileByteSource",
    "GeoCatalogConfig",
    "GeoCatalogConfigError",
    "GeoCatalogError",
    "HRN",
    "InMemoryKeyValueCache",
    "InvalidRequestError",
    "KeyValueCache",
    "LruKeyValueCache",
    "MultipartUploader",
    "PartitionRecord",
    "PartitionsRequest",
    "QuadKey",
    "ResolvedTile",
    "StatisticsClient",
    "TileRequest",
    "UnsupportedLayerError",
    "UploadEventSink",
    "UploadIntegrityError",
    "UploadOptions",
    "UploadStartedEvent",
    "VersionedLayerClient",
    "VolatileLayerClient",
    "create_layer_client",
]
