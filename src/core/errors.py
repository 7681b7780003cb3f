"""geocatalog exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class GeoCatalogError(Exception):
    """Base exception for all geocatalog failures."""


class GeoCatalogConfigError(GeoCatalogError):
    """Raised for invalid runtime configuration."""


class InvalidRequestError(GeoCatalogError):
    """Raised when a caller request is malformed or incomplete."""


class CatalogNotFoundError(GeoCatalogError):
    """Raised when a tile, partition, or endpoint cannot be found.

    Attributes:
        requested_key: Originally requested tile, partition, or api key.
    """

    def __init__(self, message: str, requested_key: str | None = None) -> None:
        super().__init__(message)
        self.requested_key = requested_key


class UnsupportedLayerError(GeoCatalogError):
    """Raised when an operation targets an incompatible layer kind."""


class CatalogProtocolError(GeoCatalogError):
    """Raised for non-success or malformed collaborator responses.

    Attributes:
        status_code: HTTP status code, or None for a malformed 2xx payload.
        server_message: Message reported by the service, if any.
    """

    def __init__(self, status_code: int | None, server_message: str) -> None:
        if status_code is None:
            super().__init__(f"Malformed service response: {server_message}")
        else:
            super().__init__(f"HTTP {status_code}: {server_message}")
        self.status_code = status_code
        self.server_message = server_message


class CatalogTransportError(GeoCatalogError):
    """Raised when an HTTP request cannot be completed."""


class UploadIntegrityError(GeoCatalogError):
    """Raised when a multipart response lacks a required field."""
