"""Layer statistics and coverage maps.

Statistics exist only for versioned layers; other layer kinds are
rejected before any network call.
"""

from __future__ import annotations

from typing import Any

from client.endpoint_resolver import EndpointResolver
from client.service_api import fetch_coverage, fetch_layer_summary
from client.settings import ClientSettings
from core.constants import COVERAGE_TYPES, LAYER_KIND_VERSIONED
from core.errors import InvalidRequestError, UnsupportedLayerError
from core.hrn import HRN
from core.types import LayerKind
from core.validation import validate_billing_tag


class StatisticsClient:
    """Fetch summaries and coverage maps of versioned layers."""

    def __init__(self, settings: ClientSettings) -> None:
        self._settings = settings
        self._endpoints = EndpointResolver(settings)

    async def get_summary(
        self,
        catalog_hrn: HRN,
        layer_id: str,
        layer_kind: LayerKind = LAYER_KIND_VERSIONED,
        billing_tag: str | None = None,
    ) -> dict[str, Any]:
        """Return the statistics summary of a layer.

        Raises:
            UnsupportedLayerError: If the layer is not versioned.
        """
        _require_versioned(layer_id, layer_kind)
        validate_billing_tag(billing_tag)
        statistics_url = await self._endpoints.resolve("statistics", "v1", catalog_hrn)
        return await fetch_layer_summary(
            self._settings.transport, statistics_url, layer_id, billing_tag
        )

    async def get_statistics(
        self,
        catalog_hrn: HRN,
        layer_id: str,
        coverage_type: str,
        data_level: int | None = None,
        layer_kind: LayerKind = LAYER_KIND_VERSIONED,
        billing_tag: str | None = None,
    ) -> bytes:
        """Return a coverage map of a layer.

        Args:
            catalog_hrn: Catalog HRN.
            layer_id: Layer id.
            coverage_type: ``tilemap``, ``heatmap/size``, or ``heatmap/age``.
            data_level: Optional tile level of the map.
            layer_kind: Kind of the layer.
            billing_tag: Optional billing tag.

        Returns:
            Raw map image bytes.

        Raises:
            UnsupportedLayerError: If the layer is not versioned.
            InvalidRequestError: If the coverage type is unknown.
        """
        _require_versioned(layer_id, layer_kind)
        if coverage_type not in COVERAGE_TYPES:
            raise InvalidRequestError(
                f"Unknown coverage type '{coverage_type}'. Use one of: {', '.join(COVERAGE_TYPES)}."
            )
        validate_billing_tag(billing_tag)
        statistics_url = await self._endpoints.resolve("statistics", "v1", catalog_hrn)
        return await fetch_coverage(
            self._settings.transport,
            statistics_url,
            layer_id,
            coverage_type,
            data_level,
            billing_tag,
        )


def _require_versioned(layer_id: str, layer_kind: LayerKind) -> None:
    """Reject non-versioned layers before any network call."""
    if layer_kind != LAYER_KIND_VERSIONED:
        raise UnsupportedLayerError(
            f"Statistics are available only for versioned layers; '{layer_id}' is {layer_kind}."
        )
