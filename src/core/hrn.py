"""HERE resource name parsing helpers.

This module centralizes HRN parsing for catalog-scoped clients.
It keeps HRN validation behavior consistent across the codebase.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote

from core.errors import InvalidRequestError

_HRN_PREFIX = "hrn"
_RESOURCE_POSITION = 5


@dataclass(frozen=True)
class HRN:
    """Parsed hierarchical resource name.

    Attributes:
        partition: Platform partition, such as ``here`` or ``here-dev``.
        service: Service name, such as ``data``.
        region: Optional region segment.
        account: Optional account segment.
        resource: Resource name, for example the catalog id.
    """

    partition: str
    service: str
    region: str
    account: str
    resource: str

    @classmethod
    def from_string(cls, value: str) -> "HRN":
        """Parse ``hrn:partition:service:region:account:resource``.

        Plain ``http`` and ``https`` URLs are accepted as local
        ``catalog-url`` resources.

        Args:
            value: HRN string.

        Returns:
            Parsed HRN.

        Raises:
            InvalidRequestError: If the string is not a valid HRN.
        """
        if value.startswith(("http:", "https:")):
            return cls(
                partition="catalog-url",
                service="datastore",
                region="",
                account="",
                resource=quote(value, safe=""),
            )
        entries = value.split(":")
        if len(entries) <= _RESOURCE_POSITION or entries[0] != _HRN_PREFIX:
            raise InvalidRequestError(
                f"Invalid HRN '{value}': expected hrn:partition:service:region:account:resource."
            )
        resource = ":".join(entries[_RESOURCE_POSITION:])
        if not resource:
            raise InvalidRequestError(f"Invalid HRN '{value}': resource segment is empty.")
        return cls(
            partition=entries[1],
            service=entries[2],
            region=entries[3],
            account=entries[4],
            resource=resource,
        )

    def __str__(self) -> str:
        return (
            f"hrn:{self.partition}:{self.service}:{self.region}:{self.account}:{self.resource}"
        )
