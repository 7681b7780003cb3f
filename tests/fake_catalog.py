"""In-process fake of the catalog services for client tests.

Routes are matched on method and URL without query string. Every request
is recorded so tests can assert exact network call counts.
"""

from __future__ import annotations

from dataclasses import dataclass
import inspect
import json
from typing import Any, Awaitable, Callable

import httpx

from client.settings import ClientSettings
from core.config import GeoCatalogConfig
from store.key_value_cache import KeyValueCache

LOOKUP_URL = "https://lookup.example.test/lookup/v1"
CATALOG_HRN = "hrn:here:data::olp-here:test-catalog"
LAYER_ID = "roads"
QUERY_URL = "https://query.example.test/query/v1"
METADATA_URL = "https://metadata.example.test/metadata/v1"
BLOB_URL = "https://blob.example.test/blob/v1"
BLOB_V2_URL = "https://blob.example.test/blob/v2"
VOLATILE_BLOB_URL = "https://volatile.example.test/volatile-blob/v1"
STATISTICS_URL = "https://statistics.example.test/statistics/v1"
CATALOG_APIS = [
    {"api": "query", "version": "v1", "baseURL": QUERY_URL},
    {"api": "metadata", "version": "v1", "baseURL": METADATA_URL},
    {"api": "blob", "version": "v1", "baseURL": BLOB_URL},
    {"api": "blob", "version": "v2", "baseURL": BLOB_V2_URL},
    {"api": "volatile-blob", "version": "v1", "baseURL": VOLATILE_BLOB_URL},
    {"api": "statistics", "version": "v1", "baseURL": STATISTICS_URL},
]
CATALOG_LOOKUP_URL = f"{LOOKUP_URL}/resources/{CATALOG_HRN}/apis"
_BODY_RECORD_LIMIT = 64 * 1024

RouteHandler = Callable[[httpx.Request], "httpx.Response | Awaitable[httpx.Response]"]


@dataclass(frozen=True)
class RecordedRequest:
    """One request seen by the fake service."""

    method: str
    url: str
    params: tuple[tuple[str, str], ...]
    headers: dict[str, str]
    body: bytes | None
    body_size: int

    def param(self, name: str) -> str | None:
        values = self.params_named(name)
        return values[0] if values else None

    def params_named(self, name: str) -> list[str]:
        return [value for key, value in self.params if key == name]

    def json(self) -> Any:
        return json.loads(self.body or b"null")


class FakeCatalogService:
    """Route table plus request log behind an ``httpx.MockTransport``."""

    def __init__(self, register_lookup: bool = True) -> None:
        self.requests: list[RecordedRequest] = []
        self._routes: dict[tuple[str, str], RouteHandler] = {}
        if register_lookup:
            self.add_json("GET", CATALOG_LOOKUP_URL, CATALOG_APIS)

    def route(self, method: str, url: str, handler: RouteHandler) -> None:
        self._routes[(method, url)] = handler

    def add_json(
        self,
        method: str,
        url: str,
        payload: Any,
        status_code: int = 200,
        headers: dict[str, str] | None = None,
    ) -> None:
        self.route(
            method,
            url,
            lambda request: httpx.Response(status_code, json=payload, headers=headers),
        )

    def add_bytes(self, method: str, url: str, content: bytes, status_code: int = 200) -> None:
        self.route(method, url, lambda request: httpx.Response(status_code, content=content))

    async def handle(self, request: httpx.Request) -> httpx.Response:
        body = await request.aread()
        url = str(request.url).split("?", 1)[0]
        self.requests.append(
            RecordedRequest(
                method=request.method,
                url=url,
                params=tuple(request.url.params.multi_items()),
                headers=dict(request.headers),
                body=body if len(body) <= _BODY_RECORD_LIMIT else None,
                body_size=len(body),
            )
        )
        handler = self._routes.get((request.method, url))
        if handler is None:
            return httpx.Response(404, json={"title": f"No route for {request.method} {url}"})
        response = handler(request)
        if inspect.isawaitable(response):
            response = await response
        return response

    def count(self, method: str | None = None, url: str | None = None) -> int:
        return len(self.matching(method, url))

    def matching(self, method: str | None = None, url: str | None = None) -> list[RecordedRequest]:
        return [
            recorded
            for recorded in self.requests
            if (method is None or recorded.method == method) and (url is None or recorded.url == url)
        ]

    def settings(
        self,
        quadtree_depth: int = 4,
        cache: KeyValueCache | None = None,
        access_token: str | None = "test-token",
    ) -> ClientSettings:
        return ClientSettings(
            make_config(quadtree_depth=quadtree_depth, access_token=access_token),
            cache=cache,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(self.handle)),
        )


def make_config(quadtree_depth: int = 4, access_token: str | None = "test-token") -> GeoCatalogConfig:
    return GeoCatalogConfig(
        environment=LOOKUP_URL,
        lookup_url=LOOKUP_URL,
        access_token=access_token,
        http_timeout_seconds=5.0,
        quadtree_depth=quadtree_depth,
    )


def quadtree_url(root_tile: str, depth: int = 4, version: int | None = 12, layer_id: str = LAYER_ID) -> str:
    version_segment = "" if version is None else f"/versions/{version}"
    return f"{QUERY_URL}/layers/{layer_id}{version_segment}/quadkeys/{root_tile}/depths/{depth}"


def blob_url(data_handle: str, base_url: str = BLOB_URL, layer_id: str = LAYER_ID) -> str:
    return f"{base_url}/layers/{layer_id}/data/{data_handle}"
