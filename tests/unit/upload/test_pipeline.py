"""Unit tests for the chunked upload pipeline."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from core.constants import BYTES_IN_MIB
from core.errors import CatalogProtocolError, InvalidRequestError, UploadIntegrityError
from core.types import UploadOptions
from tests.fake_catalog import (
    BLOB_URL,
    BLOB_V2_URL,
    CATALOG_HRN,
    CATALOG_LOOKUP_URL,
    LAYER_ID,
    FakeCatalogService,
)
from upload.byte_source import BufferByteSource
from upload.events import RecordingEventSink
from upload.pipeline import MultipartUploader, effective_chunk_size

START_URL = f"{BLOB_URL}/layers/{LAYER_ID}/data/h-1/multiparts"
SESSION_URL = f"{START_URL}/token-1"
PARTS_URL = f"{SESSION_URL}/parts"
CHUNK = 5 * BYTES_IN_MIB


class _SizedSource:
    """Zero-filled source that records reads and finalize calls."""

    def __init__(self, total_size: int, on_read=None) -> None:
        self.total_size = total_size
        self.reads: list[tuple[int, int]] = []
        self.finalize_calls = 0
        self._on_read = on_read

    def size(self) -> int:
        return self.total_size

    async def read_bytes(self, offset: int, count: int) -> bytes:
        if self._on_read is not None:
            self._on_read()
        self.reads.append((offset, count))
        return bytes(max(0, min(count, self.total_size - offset)))

    async def finalize(self) -> None:
        self.finalize_calls += 1


def _v1_service(part_handler=None) -> FakeCatalogService:
    service = FakeCatalogService()
    service.add_json(
        "POST",
        START_URL,
        {
            "links": {
                "uploadPart": {"href": PARTS_URL},
                "complete": {"href": SESSION_URL},
                "status": {"href": SESSION_URL},
            }
        },
    )

    def default_part(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, headers={"ETag": f"etag-{request.url.params['partNumber']}"})

    service.route("POST", PARTS_URL, part_handler or default_part)
    service.add_bytes("PUT", SESSION_URL, b"", status_code=204)
    return service


def _options(**overrides: object) -> UploadOptions:
    values: dict[str, object] = {
        "layer_id": LAYER_ID,
        "handle": "h-1",
        "content_type": "application/octet-stream",
    }
    values.update(overrides)
    return UploadOptions(**values)  # type: ignore[arg-type]


def test_74_mib_upload_makes_seventeen_service_calls() -> None:
    """A 74 MiB payload should take one start, 15 parts, and one complete."""
    service = _v1_service()
    total_size = 74 * BYTES_IN_MIB
    source = _SizedSource(total_size)
    uploader = MultipartUploader(service.settings(), CATALOG_HRN)

    status = asyncio.run(uploader.upload(source, _options(parallel_requests=6)))

    assert status == 200
    blob_calls = [recorded for recorded in service.requests if recorded.url != CATALOG_LOOKUP_URL]
    assert len(blob_calls) == 17
    assert service.count("GET", CATALOG_LOOKUP_URL) == 1
    parts = service.matching("POST", PARTS_URL)
    assert sorted(int(str(part.param("partNumber"))) for part in parts) == list(range(1, 16))
    assert sum(part.body_size for part in parts) == total_size
    completed = service.matching("PUT", SESSION_URL)[0].json()["parts"]
    assert sorted(part["number"] for part in completed) == list(range(1, 16))
    assert all(part["etag"] == f"etag-{part['number']}" for part in completed)
    assert source.finalize_calls == 1


@pytest.mark.parametrize(
    ("chunk_size_mib", "expected_bytes"),
    [(None, CHUNK), (2, CHUNK), (6000, CHUNK), (5, CHUNK), (8, 8 * BYTES_IN_MIB), (5120, 5120 * BYTES_IN_MIB)],
)
def test_effective_chunk_size_clamps_to_default(chunk_size_mib: int | None, expected_bytes: int) -> None:
    """Chunk sizes outside 5..5120 MiB should fall back to 5 MiB."""
    assert effective_chunk_size(chunk_size_mib) == expected_bytes


def test_out_of_range_chunk_size_uses_default_chunks() -> None:
    """A 2 MiB request should still upload in 5 MiB parts."""
    service = _v1_service()
    source = _SizedSource(11 * BYTES_IN_MIB)

    asyncio.run(MultipartUploader(service.settings(), CATALOG_HRN).upload(source, _options(chunk_size_mib=2)))

    sizes = sorted(part.body_size for part in service.matching("POST", PARTS_URL))
    assert sizes == [BYTES_IN_MIB, CHUNK, CHUNK]


def test_batches_finish_before_next_read() -> None:
    """No part of the next batch should be read while a batch is in flight."""
    in_flight = 0
    peak_in_flight = 0
    completed = 0
    completed_at_read: list[int] = []

    async def slow_part(request: httpx.Request) -> httpx.Response:
        nonlocal in_flight, peak_in_flight, completed
        in_flight += 1
        peak_in_flight = max(peak_in_flight, in_flight)
        await asyncio.sleep(0.01)
        in_flight -= 1
        completed += 1
        return httpx.Response(200, headers={"ETag": "etag"})

    service = _v1_service(slow_part)
    source = _SizedSource(5 * CHUNK, on_read=lambda: completed_at_read.append(completed))

    asyncio.run(
        MultipartUploader(service.settings(), CATALOG_HRN).upload(source, _options(parallel_requests=2))
    )

    assert peak_in_flight == 2
    assert completed_at_read == [0, 0, 2, 2, 4]


def test_first_part_failure_fails_upload_and_finalizes_once() -> None:
    """A rejected part should fail the upload without completing it."""

    def failing_part(request: httpx.Request) -> httpx.Response:
        if request.url.params["partNumber"] == "2":
            return httpx.Response(500, json={"title": "part store unavailable"})
        return httpx.Response(200, headers={"ETag": "etag"})

    service = _v1_service(failing_part)
    source = _SizedSource(4 * CHUNK)

    with pytest.raises(CatalogProtocolError) as error_info:
        asyncio.run(MultipartUploader(service.settings(), CATALOG_HRN).upload(source, _options()))

    assert error_info.value.status_code == 500
    assert service.count("PUT", SESSION_URL) == 0
    assert source.finalize_calls == 1


def test_short_source_is_integrity_error() -> None:
    """A source ending before its declared size should fail the upload."""

    class _ShortSource(_SizedSource):
        async def read_bytes(self, offset: int, count: int) -> bytes:
            return b"" if offset >= CHUNK else bytes(count)

    service = _v1_service()
    source = _ShortSource(2 * CHUNK)

    with pytest.raises(UploadIntegrityError):
        asyncio.run(MultipartUploader(service.settings(), CATALOG_HRN).upload(source, _options()))

    assert source.finalize_calls == 1


def test_events_report_start_and_every_part() -> None:
    """Sinks should get one start event and one event per part."""
    service = _v1_service()
    sink = RecordingEventSink()
    total_size = 3 * CHUNK + 10

    asyncio.run(
        MultipartUploader(service.settings(), CATALOG_HRN).upload(
            BufferByteSource(bytes(total_size)), _options(), events=sink
        )
    )

    assert len(sink.started) == 1
    assert sink.started[0].total_chunks == 4
    assert sink.started[0].session.complete_url == SESSION_URL
    assert sorted(event.chunk_number for event in sink.chunks) == [1, 2, 3, 4]
    assert [event.uploaded_chunks for event in sink.chunks] == [1, 2, 3, 4]
    assert sink.chunks[-1].uploaded_bytes == total_size


def test_async_event_sink_is_awaited() -> None:
    """Coroutine sink methods should be awaited."""
    service = _v1_service()
    seen: list[str] = []

    class _AsyncSink:
        async def on_upload_started(self, event) -> None:
            seen.append("started")

        async def on_chunk_uploaded(self, event) -> None:
            seen.append(f"part-{event.chunk_number}")

    asyncio.run(
        MultipartUploader(service.settings(), CATALOG_HRN).upload(
            BufferByteSource(b"tiny"), _options(), events=_AsyncSink()
        )
    )

    assert seen == ["started", "part-1"]


def test_backend_is_reused_across_uploads() -> None:
    """Endpoint lookup for the blob api should happen once per uploader."""
    service = _v1_service()
    uploader = MultipartUploader(service.settings(), CATALOG_HRN)

    async def run() -> None:
        await uploader.upload(BufferByteSource(b"one"), _options())
        await uploader.upload(BufferByteSource(b"two"), _options())

    asyncio.run(run())

    assert service.count("GET", CATALOG_LOOKUP_URL) == 1
    assert service.count("PUT", SESSION_URL) == 2


def test_v2_upload_uses_blob_v2_endpoint() -> None:
    """Blob version 2 should run the token-addressed protocol."""
    service = FakeCatalogService()
    session_url = f"{BLOB_V2_URL}/layers/{LAYER_ID}/keysMultipart/mp-1"
    service.add_json("POST", f"{BLOB_V2_URL}/layers/{LAYER_ID}/keys/h-1", {"multipartToken": "mp-1"})
    service.add_json("POST", f"{session_url}/parts", {"id": "p"})
    service.add_bytes("PUT", session_url, b"", status_code=204)

    status = asyncio.run(
        MultipartUploader(service.settings(), CATALOG_HRN).upload(
            BufferByteSource(b"payload"), _options(), blob_version=2
        )
    )

    assert status == 200
    assert service.matching("PUT", session_url)[0].json() == {"parts": [{"id": "p", "number": 1}]}


@pytest.mark.parametrize(
    ("options", "blob_version"),
    [
        (_options(parallel_requests=-1), 1),
        (_options(billing_tag="no"), 1),
        (_options(), 3),
    ],
)
def test_invalid_options_fail_before_network(options: UploadOptions, blob_version: int) -> None:
    """Invalid options should be rejected without any call."""
    service = _v1_service()
    source = _SizedSource(CHUNK)

    with pytest.raises(InvalidRequestError):
        asyncio.run(MultipartUploader(service.settings(), CATALOG_HRN).upload(source, options, blob_version))

    assert service.requests == []
    assert source.finalize_calls == 1
