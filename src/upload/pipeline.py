"""Bounded-concurrency chunked upload pipeline.

A payload is read sequentially in fixed-size chunks. Chunks are uploaded
in batches of at most ``parallel_requests`` concurrent part uploads, and
each batch finishes before the next one is read. Part numbers follow
reading order starting at 1. The first failing part fails the upload;
the rest of its batch is left to finish on its own.
"""

from __future__ import annotations

import asyncio
import math

from client.endpoint_resolver import EndpointResolver
from client.settings import ClientSettings
from core.constants import (
    BYTES_IN_MIB,
    DEFAULT_CHUNK_SIZE_MIB,
    DEFAULT_PARALLEL_REQUESTS,
    MAX_CHUNK_SIZE_MIB,
    MIN_CHUNK_SIZE_MIB,
    SUPPORTED_BLOB_VERSIONS,
    UPLOAD_SUCCESS_STATUS,
)
from core.errors import GeoCatalogError, InvalidRequestError, UploadIntegrityError
from core.hrn import HRN
from core.logging_config import get_logger
from core.types import (
    ChunkUploadedEvent,
    UploadOptions,
    UploadPart,
    UploadSession,
    UploadStartedEvent,
)
from core.validation import validate_billing_tag
from upload.backends import MultipartUploadBackend, create_upload_backend
from upload.byte_source import ByteSource
from upload.events import UploadEventSink, emit_chunk_uploaded, emit_started

_LOGGER = get_logger(__name__)


def effective_chunk_size(chunk_size_mib: int | None) -> int:
    """Return the chunk size in bytes.

    Sizes outside ``[5, 5120]`` MiB fall back to the 5 MiB default.
    """
    if chunk_size_mib is None or not MIN_CHUNK_SIZE_MIB <= chunk_size_mib <= MAX_CHUNK_SIZE_MIB:
        chunk_size_mib = DEFAULT_CHUNK_SIZE_MIB
    return chunk_size_mib * BYTES_IN_MIB


class _UploadProgress:
    """Running totals of one upload."""

    def __init__(self, total_chunks: int, total_size: int) -> None:
        self.total_chunks = total_chunks
        self.total_size = total_size
        self.uploaded_chunks = 0
        self.uploaded_bytes = 0
        self.parts: list[UploadPart] = []

    def record(self, part: UploadPart, chunk_size: int) -> ChunkUploadedEvent:
        self.parts.append(part)
        self.uploaded_chunks += 1
        self.uploaded_bytes += chunk_size
        return ChunkUploadedEvent(
            chunk_number=part.number,
            chunk_id=part.id,
            chunk_size=chunk_size,
            uploaded_chunks=self.uploaded_chunks,
            total_chunks=self.total_chunks,
            uploaded_bytes=self.uploaded_bytes,
            total_size=self.total_size,
        )


class MultipartUploader:
    """Upload byte sources to one catalog as multipart sessions.

    Backends are created once per blob api version and reused.
    """

    def __init__(self, settings: ClientSettings, catalog_hrn: HRN | str) -> None:
        self._settings = settings
        self._catalog_hrn = catalog_hrn if isinstance(catalog_hrn, HRN) else HRN.from_string(catalog_hrn)
        self._endpoints = EndpointResolver(settings)
        self._backends: dict[str, MultipartUploadBackend] = {}

    async def upload(
        self,
        source: ByteSource,
        options: UploadOptions,
        blob_version: int = 1,
        events: UploadEventSink | None = None,
    ) -> int:
        """Upload a byte source as one multipart session.

        Args:
            source: Payload to upload.
            options: Target layer, handle, content type, and chunking.
            blob_version: Blob api version, 1 or 2.
            events: Optional receiver of progress events.

        Returns:
            Success status code.

        Raises:
            InvalidRequestError: If the options or blob version are invalid.
            UploadIntegrityError: If a response lacks a required identifier.
            CatalogProtocolError: If a service call fails.
        """
        try:
            validate_billing_tag(options.billing_tag)
            parallel_requests = options.parallel_requests or DEFAULT_PARALLEL_REQUESTS
            if parallel_requests < 1:
                raise InvalidRequestError(
                    f"parallel_requests must be at least 1, got {parallel_requests}."
                )
            chunk_size = effective_chunk_size(options.chunk_size_mib)
            backend = await self._backend(blob_version)

            session = await backend.start_multipart_upload(options)
            total_size = source.size()
            total_chunks = math.ceil(total_size / chunk_size)
            _LOGGER.info(
                "multipart_upload_started",
                layer_id=options.layer_id,
                handle=options.handle,
                blob_version=blob_version,
                total_size=total_size,
                total_chunks=total_chunks,
                chunk_size=chunk_size,
            )
            await emit_started(
                events,
                UploadStartedEvent(
                    total_size=total_size,
                    total_chunks=total_chunks,
                    chunk_size=chunk_size,
                    session=session,
                ),
            )
            progress = _UploadProgress(total_chunks, total_size)
            await self._upload_batches(
                backend, session, source, options, chunk_size, parallel_requests, progress, events
            )
            await backend.complete_multipart_upload(session, progress.parts, options)
            _LOGGER.info(
                "multipart_upload_completed",
                layer_id=options.layer_id,
                handle=options.handle,
                parts=len(progress.parts),
            )
            return UPLOAD_SUCCESS_STATUS
        except GeoCatalogError as error:
            _LOGGER.error(
                "multipart_upload_failed",
                layer_id=options.layer_id,
                handle=options.handle,
                error=str(error),
            )
            raise
        finally:
            await _finalize(source)

    async def _backend(self, blob_version: int) -> MultipartUploadBackend:
        if blob_version not in SUPPORTED_BLOB_VERSIONS:
            raise InvalidRequestError(f"Unsupported blob api version v{blob_version}; use v1 or v2.")
        cache_key = f"request::blob::v{blob_version}::catalog::{self._catalog_hrn}"
        backend = self._backends.get(cache_key)
        if backend is None:
            blob_url = await self._endpoints.resolve("blob", f"v{blob_version}", self._catalog_hrn)
            backend = create_upload_backend(blob_version, self._settings.transport, blob_url)
            self._backends[cache_key] = backend
        return backend

    async def _upload_batches(
        self,
        backend: MultipartUploadBackend,
        session: UploadSession,
        source: ByteSource,
        options: UploadOptions,
        chunk_size: int,
        parallel_requests: int,
        progress: _UploadProgress,
        events: UploadEventSink | None,
    ) -> None:
        offset = 0
        part_number = 0
        while offset < progress.total_size:
            batch: list[asyncio.Future[None]] = []
            while len(batch) < parallel_requests and offset < progress.total_size:
                data = await source.read_bytes(offset, chunk_size)
                if not data:
                    raise UploadIntegrityError(
                        f"Upload source ended at byte {offset} of {progress.total_size}."
                    )
                part_number += 1
                offset += len(data)
                batch.append(
                    asyncio.ensure_future(
                        self._upload_chunk(backend, session, options, part_number, data, progress, events)
                    )
                )
            await asyncio.gather(*batch)

    async def _upload_chunk(
        self,
        backend: MultipartUploadBackend,
        session: UploadSession,
        options: UploadOptions,
        part_number: int,
        data: bytes,
        progress: _UploadProgress,
        events: UploadEventSink | None,
    ) -> None:
        part_id = await backend.upload_part(session, part_number, data, options)
        event = progress.record(UploadPart(number=part_number, id=part_id), len(data))
        _LOGGER.debug(
            "multipart_part_uploaded",
            handle=options.handle,
            part_number=part_number,
            uploaded_chunks=event.uploaded_chunks,
            total_chunks=event.total_chunks,
        )
        await emit_chunk_uploaded(events, event)


async def _finalize(source: ByteSource) -> None:
    """Run the source's finalize hook, if it has one."""
    finalize = getattr(source, "finalize", None)
    if finalize is not None:
        await finalize()
