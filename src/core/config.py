"""Runtime configuration model for geocatalog.

This module owns all environment variable and config file parsing.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path
import re
from typing import Any, Mapping, cast

import yaml

from core.constants import (
    DEFAULT_ENVIRONMENT,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    DEFAULT_QUADTREE_DEPTH,
    LOOKUP_URLS,
    MAX_QUADTREE_DEPTH,
)
from core.errors import GeoCatalogConfigError

_URL_PATTERN = re.compile(r"^https?://[^\s/]+", re.IGNORECASE)
_CONFIG_FILE_KEYS = frozenset(
    {"environment", "lookup_url", "access_token", "http_timeout_seconds", "quadtree_depth"}
)


@dataclass(frozen=True)
class GeoCatalogConfig:
    """Validated runtime configuration.

    Attributes:
        environment: Platform environment name or custom lookup URL.
        lookup_url: Resolved API lookup service URL.
        access_token: Optional static bearer token.
        http_timeout_seconds: Timeout applied to every HTTP request.
        quadtree_depth: Depth of quad-tree index queries.
    """

    environment: str
    lookup_url: str
    access_token: str | None
    http_timeout_seconds: float
    quadtree_depth: int

    @classmethod
    def from_env(cls) -> "GeoCatalogConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            GeoCatalogConfigError: If environment values are invalid.
        """
        environment = os.getenv("GEOCATALOG_ENVIRONMENT", DEFAULT_ENVIRONMENT)
        lookup_override = os.getenv("GEOCATALOG_LOOKUP_URL")
        timeout_value = os.getenv("GEOCATALOG_HTTP_TIMEOUT", str(DEFAULT_HTTP_TIMEOUT_SECONDS))
        depth_value = os.getenv("GEOCATALOG_QUADTREE_DEPTH", str(DEFAULT_QUADTREE_DEPTH))
        return cls(
            environment=environment,
            lookup_url=lookup_override or resolve_lookup_url(environment),
            access_token=os.getenv("GEOCATALOG_ACCESS_TOKEN") or None,
            http_timeout_seconds=_parse_timeout(timeout_value, "GEOCATALOG_HTTP_TIMEOUT"),
            quadtree_depth=_parse_depth(depth_value, "GEOCATALOG_QUADTREE_DEPTH"),
        )

    @classmethod
    def from_yaml(cls, config_path: str | Path) -> "GeoCatalogConfig":
        """Build config from a YAML settings file.

        Args:
            config_path: Path to YAML config file.

        Returns:
            A validated config object.

        Raises:
            GeoCatalogConfigError: If the file is missing or invalid.
        """
        path = Path(config_path).expanduser()
        if not path.is_file():
            raise GeoCatalogConfigError(
                f"Config file not found at {path}. Provide an existing YAML config path."
            )
        try:
            payload = cast(object, yaml.safe_load(path.read_text(encoding="utf-8")))
        except yaml.YAMLError as error:
            raise GeoCatalogConfigError(
                f"Failed to parse config file {path}: {error}. Fix YAML syntax and retry."
            ) from error
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise GeoCatalogConfigError(
                f"Config file {path} must contain a mapping at top level."
            )
        return _config_from_mapping(cast(Mapping[str, Any], payload), str(path))


def resolve_lookup_url(environment: str) -> str:
    """Map an environment name to its API lookup service URL.

    Args:
        environment: Environment name, or a custom http(s) URL.

    Returns:
        Lookup service URL. Unknown names map to the production lookup.
    """
    if _URL_PATTERN.match(environment.strip()):
        return environment.strip()
    return LOOKUP_URLS.get(environment, LOOKUP_URLS[DEFAULT_ENVIRONMENT])


def _config_from_mapping(payload: Mapping[str, Any], source: str) -> GeoCatalogConfig:
    """Build config from a parsed YAML mapping, rejecting unknown keys."""
    unknown_keys = sorted(set(payload) - _CONFIG_FILE_KEYS)
    if unknown_keys:
        raise GeoCatalogConfigError(
            f"Unknown config keys in {source}: {', '.join(unknown_keys)}. "
            f"Supported keys: {', '.join(sorted(_CONFIG_FILE_KEYS))}."
        )
    environment = str(payload.get("environment", DEFAULT_ENVIRONMENT))
    lookup_url = payload.get("lookup_url")
    access_token = payload.get("access_token")
    return GeoCatalogConfig(
        environment=environment,
        lookup_url=str(lookup_url) if lookup_url else resolve_lookup_url(environment),
        access_token=str(access_token) if access_token else None,
        http_timeout_seconds=_parse_timeout(
            str(payload.get("http_timeout_seconds", DEFAULT_HTTP_TIMEOUT_SECONDS)),
            "http_timeout_seconds",
        ),
        quadtree_depth=_parse_depth(
            str(payload.get("quadtree_depth", DEFAULT_QUADTREE_DEPTH)),
            "quadtree_depth",
        ),
    )


def _parse_timeout(raw_value: str, field_name: str) -> float:
    """Parse a positive timeout value.

    Args:
        raw_value: Raw string value.
        field_name: Source field name for error messages.

    Returns:
        Parsed timeout in seconds.

    Raises:
        GeoCatalogConfigError: If value is not a positive number.
    """
    try:
        timeout = float(raw_value)
    except ValueError as error:
        raise GeoCatalogConfigError(
            f"Invalid {field_name} value: expected number of seconds, got '{raw_value}'."
        ) from error
    if timeout <= 0:
        raise GeoCatalogConfigError(
            f"Invalid {field_name} value: timeout must be positive, got '{raw_value}'."
        )
    return timeout


def _parse_depth(raw_value: str, field_name: str) -> int:
    """Parse the quad-tree query depth.

    Args:
        raw_value: Raw string value.
        field_name: Source field name for error messages.

    Returns:
        Depth in [0, MAX_QUADTREE_DEPTH].

    Raises:
        GeoCatalogConfigError: If value is not an integer in range.
    """
    try:
        depth = int(raw_value)
    except ValueError as error:
        raise GeoCatalogConfigError(
            f"Invalid {field_name} value: expected integer, got '{raw_value}'."
        ) from error
    if depth < 0 or depth > MAX_QUADTREE_DEPTH:
        raise GeoCatalogConfigError(
            f"Invalid {field_name} value: depth must be between 0 and "
            f"{MAX_QUADTREE_DEPTH}, got {depth}."
        )
    return depth
