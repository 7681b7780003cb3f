"""HTTP transport shared by all catalog clients.

This module wraps one ``httpx.AsyncClient`` and maps transport and
status failures onto the geocatalog error hierarchy. It never retries.
"""

from __future__ import annotations

import json
from typing import Any, Awaitable, Callable, Mapping, Sequence

import httpx

from core.errors import CatalogProtocolError, CatalogTransportError
from core.logging_config import get_logger

TokenProvider = Callable[[], Awaitable[str]]
QueryParams = Mapping[str, Any] | Sequence[tuple[str, Any]]

_LOGGER = get_logger(__name__)
_MESSAGE_FIELDS = ("title", "detail", "message", "error_description", "error")


class CatalogTransport:
    """Send authorized requests and surface failures as typed errors."""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        access_token: str | None = None,
        token_provider: TokenProvider | None = None,
    ) -> None:
        self._http_client = http_client
        self._access_token = access_token
        self._token_provider = token_provider

    async def send(
        self,
        method: str,
        url: str,
        *,
        params: QueryParams | None = None,
        content: bytes | None = None,
        json_body: object | None = None,
        headers: Mapping[str, str] | None = None,
        allowed_statuses: tuple[int, ...] = (),
    ) -> httpx.Response:
        """Send one request and return the successful response.

        Args:
            method: HTTP method.
            url: Absolute request URL.
            params: Optional query parameters; repeated keys as tuples.
            content: Optional raw request body.
            json_body: Optional JSON request body.
            headers: Optional extra headers.
            allowed_statuses: Non-2xx statuses returned instead of raised.

        Returns:
            The HTTP response.

        Raises:
            CatalogProtocolError: If the service answers with a non-success status.
            CatalogTransportError: If the request cannot be completed.
        """
        request_headers = dict(headers or {})
        token = await self._current_token()
        if token:
            request_headers["Authorization"] = f"Bearer {token}"
        try:
            response = await self._http_client.request(
                method,
                url,
                params=_clean_params(params),
                content=content,
                json=json_body,
                headers=request_headers,
            )
        except httpx.HTTPError as error:
            _LOGGER.warning("http_request_failed", method=method, url=url, error=str(error))
            raise CatalogTransportError(
                f"{method} {url} failed: {error}. Check network connectivity and retry."
            ) from error
        if response.is_success or response.status_code in allowed_statuses:
            return response
        message = _server_message(response)
        _LOGGER.warning(
            "http_request_rejected",
            method=method,
            url=url,
            status_code=response.status_code,
            message=message,
        )
        raise CatalogProtocolError(response.status_code, message)

    async def get_json(self, url: str, params: QueryParams | None = None) -> Any:
        """Send a GET request and decode its JSON body.

        Raises:
            CatalogProtocolError: If the status or the body is invalid.
        """
        response = await self.send("GET", url, params=params)
        return decode_json(response)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._http_client.aclose()

    async def _current_token(self) -> str | None:
        if self._token_provider is not None:
            return await self._token_provider()
        return self._access_token


def decode_json(response: httpx.Response) -> Any:
    """Decode a JSON response body.

    Raises:
        CatalogProtocolError: If the body is not JSON.
    """
    try:
        return response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as error:
        raise CatalogProtocolError(
            None, f"{response.request.method} {response.request.url} returned non-JSON body."
        ) from error


def _clean_params(params: QueryParams | None) -> list[tuple[str, Any]] | None:
    """Drop None-valued query parameters, keeping repeated keys in order."""
    if params is None:
        return None
    items = params.items() if isinstance(params, Mapping) else params
    cleaned = [(key, value) for key, value in items if value is not None]
    return cleaned or None


def _server_message(response: httpx.Response) -> str:
    """Extract the most useful error message from a failed response."""
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        payload = None
    if isinstance(payload, dict):
        for field_name in _MESSAGE_FIELDS:
            value = payload.get(field_name)
            if isinstance(value, str) and value:
                return value
    text = response.text.strip()
    if text:
        return text[:200]
    return response.reason_phrase or "Request failed"
