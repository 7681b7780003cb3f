"""Upload progress events.

A sink receives one start event and then one event per uploaded part,
in completion order. Sink methods may be plain or async functions.
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Protocol, cast

from core.types import ChunkUploadedEvent, UploadStartedEvent


class UploadEventSink(Protocol):
    """Receiver of upload progress events."""

    def on_upload_started(self, event: UploadStartedEvent) -> Any:
        """Handle the session start."""

    def on_chunk_uploaded(self, event: ChunkUploadedEvent) -> Any:
        """Handle one completed part upload."""


class RecordingEventSink:
    """Sink that keeps every event in memory, in arrival order."""

    def __init__(self) -> None:
        self.started: list[UploadStartedEvent] = []
        self.chunks: list[ChunkUploadedEvent] = []

    def on_upload_started(self, event: UploadStartedEvent) -> None:
        self.started.append(event)

    def on_chunk_uploaded(self, event: ChunkUploadedEvent) -> None:
        self.chunks.append(event)


async def emit_started(sink: UploadEventSink | None, event: UploadStartedEvent) -> None:
    if sink is not None:
        await _await_if_necessary(sink.on_upload_started(event))


async def emit_chunk_uploaded(sink: UploadEventSink | None, event: ChunkUploadedEvent) -> None:
    if sink is not None:
        await _await_if_necessary(sink.on_chunk_uploaded(event))


async def _await_if_necessary(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await cast(Awaitable[Any], value)
    return value
