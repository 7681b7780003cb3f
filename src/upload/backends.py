"""Multipart upload protocol variants.

Variant 1 (blob api ``v1``) drives a session through link URLs returned
by the start call and identifies parts by their ``ETag`` header.
Variant 2 (blob api ``v2``) addresses a session by multipart token and
identifies parts by the ``id`` field of the part response.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Sequence

from client.transport import CatalogTransport, decode_json
from core.errors import InvalidRequestError, UploadIntegrityError
from core.types import UploadOptions, UploadPart, UploadSession

_V1_LINKS = ("uploadPart", "complete", "status")


class MultipartUploadBackend(ABC):
    """Start, fill, and complete one multipart upload session."""

    def __init__(self, transport: CatalogTransport, blob_url: str) -> None:
        self._transport = transport
        self._blob_url = blob_url.rstrip("/")

    @abstractmethod
    async def start_multipart_upload(self, options: UploadOptions) -> UploadSession:
        """Open a session.

        Raises:
            UploadIntegrityError: If the response lacks session identifiers.
        """

    @abstractmethod
    async def upload_part(
        self,
        session: UploadSession,
        part_number: int,
        data: bytes,
        options: UploadOptions,
    ) -> str:
        """Upload one part and return its identity.

        Raises:
            UploadIntegrityError: If the response lacks the part identity.
        """

    @abstractmethod
    async def complete_multipart_upload(
        self,
        session: UploadSession,
        parts: Sequence[UploadPart],
        options: UploadOptions,
    ) -> None:
        """Close the session with the full list of uploaded parts."""


class BlobV1UploadBackend(MultipartUploadBackend):
    """Multipart uploads addressed by data handle."""

    async def start_multipart_upload(self, options: UploadOptions) -> UploadSession:
        body: dict[str, Any] = {"contentType": options.content_type}
        if options.content_encoding:
            body["contentEncoding"] = options.content_encoding
        response = await self._transport.send(
            "POST",
            f"{self._blob_url}/layers/{options.layer_id}/data/{options.handle}/multiparts",
            params={"billingTag": options.billing_tag},
            json_body=body,
        )
        payload = decode_json(response)
        links = payload.get("links") if isinstance(payload, dict) else None
        hrefs = {name: _link_href(links, name) for name in _V1_LINKS}
        missing = [name for name, href in hrefs.items() if href is None]
        if missing:
            raise UploadIntegrityError(
                f"Multipart start for '{options.handle}' returned no {', '.join(missing)} link."
            )
        return UploadSession(
            upload_part_url=hrefs["uploadPart"],
            complete_url=hrefs["complete"],
            status_url=hrefs["status"],
        )

    async def upload_part(
        self,
        session: UploadSession,
        part_number: int,
        data: bytes,
        options: UploadOptions,
    ) -> str:
        response = await self._transport.send(
            "POST",
            str(session.upload_part_url),
            params={"partNumber": part_number, "billingTag": options.billing_tag},
            content=data,
            headers=_part_headers(options),
        )
        etag = response.headers.get("ETag")
        if not etag:
            raise UploadIntegrityError(
                f"Error uploading chunk {part_number}: the response carries no ETag header."
            )
        return etag

    async def complete_multipart_upload(
        self,
        session: UploadSession,
        parts: Sequence[UploadPart],
        options: UploadOptions,
    ) -> None:
        await self._transport.send(
            "PUT",
            str(session.complete_url),
            params={"billingTag": options.billing_tag},
            json_body={"parts": [{"etag": part.id, "number": part.number} for part in parts]},
        )


class BlobV2UploadBackend(MultipartUploadBackend):
    """Multipart uploads addressed by object key."""

    async def start_multipart_upload(self, options: UploadOptions) -> UploadSession:
        body: dict[str, Any] = {"contentType": options.content_type}
        if options.content_encoding:
            body["contentEncoding"] = options.content_encoding
        response = await self._transport.send(
            "POST",
            f"{self._blob_url}/layers/{options.layer_id}/keys/{options.handle}",
            params={"billingTag": options.billing_tag},
            json_body=body,
        )
        payload = decode_json(response)
        token = payload.get("multipartToken") if isinstance(payload, dict) else None
        if not isinstance(token, str) or not token:
            raise UploadIntegrityError(
                f"Multipart start for key '{options.handle}' returned no multipartToken."
            )
        return UploadSession(multipart_token=token)

    async def upload_part(
        self,
        session: UploadSession,
        part_number: int,
        data: bytes,
        options: UploadOptions,
    ) -> str:
        response = await self._transport.send(
            "POST",
            f"{self._session_url(session, options)}/parts",
            params={"partNumber": part_number, "billingTag": options.billing_tag},
            content=data,
            headers=_part_headers(options),
        )
        payload = decode_json(response)
        part_id = payload.get("id") if isinstance(payload, dict) else None
        if not isinstance(part_id, str) or not part_id:
            raise UploadIntegrityError(
                f"Error uploading chunk {part_number}: the response carries no part id."
            )
        return part_id

    async def complete_multipart_upload(
        self,
        session: UploadSession,
        parts: Sequence[UploadPart],
        options: UploadOptions,
    ) -> None:
        await self._transport.send(
            "PUT",
            self._session_url(session, options),
            params={"billingTag": options.billing_tag},
            json_body={"parts": [{"id": part.id, "number": part.number} for part in parts]},
        )

    def _session_url(self, session: UploadSession, options: UploadOptions) -> str:
        return f"{self._blob_url}/layers/{options.layer_id}/keysMultipart/{session.multipart_token}"


def create_upload_backend(
    blob_version: int,
    transport: CatalogTransport,
    blob_url: str,
) -> MultipartUploadBackend:
    """Return the backend speaking the given blob api version.

    Raises:
        InvalidRequestError: If the blob api version is not 1 or 2.
    """
    if blob_version == 1:
        return BlobV1UploadBackend(transport, blob_url)
    if blob_version == 2:
        return BlobV2UploadBackend(transport, blob_url)
    raise InvalidRequestError(f"Unsupported blob api version v{blob_version}; use v1 or v2.")


def _link_href(links: object, name: str) -> str | None:
    """Return the href of a named session link, or None when absent."""
    if not isinstance(links, dict):
        return None
    link = links.get(name)
    href = link.get("href") if isinstance(link, dict) else None
    return href if isinstance(href, str) and href else None


def _part_headers(options: UploadOptions) -> dict[str, str]:
    """Build content headers sent with every part."""
    headers = {"Content-Type": options.content_type}
    if options.content_encoding:
        headers["Content-Encoding"] = options.content_encoding
    return headers
