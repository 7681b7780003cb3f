"""Core constants used across geocatalog modules.

This module centralizes service names, protocol limits, and defaults.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

DEFAULT_ENVIRONMENT = "here"
LOOKUP_URLS = {
    "here": "https://api-lookup.data.api.platform.here.com/lookup/v1",
    "here-dev": "https://api-lookup.data.api.platform.in.here.com/lookup/v1",
    "here-cn": "https://api-lookup.data.api.platform.hereolp.cn/lookup/v1",
    "here-cn-dev": "https://api-lookup.data.api.platform.in.hereolp.cn/lookup/v1",
    "local": "http://localhost:31005/lookup/v1",
}
PLATFORM_SCOPE = "platform-api"
DEFAULT_API_VERSION = "v1"
DEFAULT_HTTP_TIMEOUT_SECONDS = 30.0

CACHE_KEY_DELIMITER = "::"
PARTITION_CACHE_SUFFIX = "partition"
ENDPOINT_CACHE_SUFFIX = "api"
QUADTREE_CACHE_SUFFIX = "quadtree"

DEFAULT_QUADTREE_DEPTH = 4
MAX_QUADTREE_DEPTH = 4
LATEST_VERSION_START = -1
MAX_PARTITION_IDS_PER_REQUEST = 100
BILLING_TAG_PATTERN = r"^[A-Za-z0-9_-]{4,16}$"

BYTES_IN_MIB = 1048576
MIN_CHUNK_SIZE_MIB = 5
MAX_CHUNK_SIZE_MIB = 5120
DEFAULT_CHUNK_SIZE_MIB = 5
DEFAULT_PARALLEL_REQUESTS = 6
UPLOAD_SUCCESS_STATUS = 200
SUPPORTED_BLOB_VERSIONS = (1, 2)

LAYER_KIND_VERSIONED = "versioned"
LAYER_KIND_VOLATILE = "volatile"
LAYER_KIND_INDEX = "index"
LAYER_KIND_STREAM = "stream"
SUPPORTED_DATA_LAYER_KINDS = (LAYER_KIND_VERSIONED, LAYER_KIND_VOLATILE)
BLOB_API_BY_LAYER_KIND = {
    LAYER_KIND_VERSIONED: "blob",
    LAYER_KIND_VOLATILE: "volatile-blob",
}
COVERAGE_TYPES = ("tilemap", "heatmap/size", "heatmap/age")
