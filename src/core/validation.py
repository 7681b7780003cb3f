"""Request validation helpers.

This module validates caller-supplied request fields before any
network call is made.
"""

from __future__ import annotations

import re
from typing import Iterable

from core.constants import BILLING_TAG_PATTERN, MAX_PARTITION_IDS_PER_REQUEST
from core.errors import InvalidRequestError
from partitioning.quadkey import QuadKey

_BILLING_TAG_RE = re.compile(BILLING_TAG_PATTERN)


def validate_billing_tag(tag: str | None) -> str | None:
    """Validate an optional billing tag.

    Args:
        tag: Billing tag or None.

    Returns:
        The unchanged tag.

    Raises:
        InvalidRequestError: If the tag is not 4-16 characters of [A-Za-z0-9_-].
    """
    if tag is None:
        return None
    if not _BILLING_TAG_RE.match(tag):
        raise InvalidRequestError(
            f"Invalid billing tag '{tag}': it must be between 4 - 16 characters "
            "and contain only alpha/numeric ASCII characters, '_' or '-'."
        )
    return tag


def validate_quad_key(quad_key: QuadKey) -> QuadKey:
    """Reject tile keys whose row or column do not fit their level."""
    if not quad_key.is_valid():
        raise InvalidRequestError(
            f"Invalid quadkey {quad_key}: row and column must be within 2^level."
        )
    return quad_key


def validate_partition_ids(partition_ids: Iterable[str]) -> tuple[str, ...]:
    """Validate and normalize an explicit partition id list.

    Raises:
        InvalidRequestError: If the list is empty or holds empty ids.
    """
    ids = tuple(partition_ids)
    if not ids:
        raise InvalidRequestError("Provide at least one partition id.")
    if any(not partition_id for partition_id in ids):
        raise InvalidRequestError("Partition ids must be non-empty strings.")
    return ids


def batch_partition_ids(partition_ids: tuple[str, ...]) -> list[tuple[str, ...]]:
    """Split ids into consecutive batches accepted by one query call."""
    size = MAX_PARTITION_IDS_PER_REQUEST
    return [partition_ids[start : start + size] for start in range(0, len(partition_ids), size)]
