"""geocatalog CLI entry points.

This module exposes tile, partition, and upload commands.
It maps argparse commands onto SDK calls.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
import sys
from typing import Any, Sequence

from client.layer_clients import create_layer_client
from client.settings import ClientSettings
from core.config import GeoCatalogConfig
from core.constants import DEFAULT_CHUNK_SIZE_MIB, DEFAULT_PARALLEL_REQUESTS, SUPPORTED_DATA_LAYER_KINDS
from core.errors import GeoCatalogError
from core.types import ChunkUploadedEvent, PartitionsRequest, TileRequest, UploadOptions, UploadStartedEvent
from partitioning.quadkey import QuadKey
from upload.byte_source import FileByteSource
from upload.pipeline import MultipartUploader


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(prog="geocatalog", description="Geospatial catalog client")
    parser.add_argument("--config", help="YAML config file used instead of GEOCATALOG_* variables")
    subparsers = parser.add_subparsers(dest="command", required=True)
    _add_tile_command(subparsers)
    _add_partitions_command(subparsers)
    _add_upload_command(subparsers)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the geocatalog CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = _load_config(args.config)
        if args.command == "tile":
            return asyncio.run(_run_tile_command(config, args))
        if args.command == "partitions":
            return asyncio.run(_run_partitions_command(config, args))
        if args.command == "upload":
            return asyncio.run(_run_upload_command(config, args))
    except GeoCatalogError as error:
        print(f"error: {error}", file=sys.stderr)
        return 1
    parser.error(f"Unsupported command: {args.command}")
    return 2


def _load_config(config_path: str | None) -> GeoCatalogConfig:
    if config_path:
        return GeoCatalogConfig.from_yaml(config_path)
    return GeoCatalogConfig.from_env()


def _build_settings(config: GeoCatalogConfig) -> ClientSettings:
    """Build client settings for one command run."""
    return ClientSettings(config)


async def _run_tile_command(config: GeoCatalogConfig, args: argparse.Namespace) -> int:
    """Handle tile command.

    Args:
        config: Runtime config.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    async with _build_settings(config) as settings:
        client = create_layer_client(settings, args.catalog, args.layer, args.layer_kind)
        tile = await client.get_aggregated_data(
            TileRequest(
                quad_key=QuadKey.from_morton_code(args.tile),
                version=args.version,
                billing_tag=args.billing_tag,
            )
        )
    if args.output:
        Path(args.output).expanduser().write_bytes(tile.content)
    print(f"{tile.quad_key.to_here_tile()}\t{tile.data_handle}\t{len(tile.content)}")
    return 0


async def _run_partitions_command(config: GeoCatalogConfig, args: argparse.Namespace) -> int:
    """Handle partitions command.

    Args:
        config: Runtime config.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    async with _build_settings(config) as settings:
        client = create_layer_client(settings, args.catalog, args.layer, args.layer_kind)
        records = await client.get_partitions(
            PartitionsRequest(
                partition_ids=tuple(args.ids) if args.ids else None,
                version=args.version,
                billing_tag=args.billing_tag,
            )
        )
    for record in records:
        print(json.dumps(record.to_payload(), sort_keys=True))
    return 0


async def _run_upload_command(config: GeoCatalogConfig, args: argparse.Namespace) -> int:
    """Handle upload command.

    Args:
        config: Runtime config.
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    options = UploadOptions(
        layer_id=args.layer,
        handle=args.handle,
        content_type=args.content_type,
        content_encoding=args.content_encoding,
        chunk_size_mib=args.chunk_size_mib,
        parallel_requests=args.parallel_requests,
        billing_tag=args.billing_tag,
    )
    async with _build_settings(config) as settings:
        uploader = MultipartUploader(settings, args.catalog)
        status = await uploader.upload(
            FileByteSource(args.file),
            options,
            blob_version=args.blob_version,
            events=_PrintingEventSink(),
        )
    print(f"status={status}")
    return 0


class _PrintingEventSink:
    """Print upload progress lines to stdout."""

    def on_upload_started(self, event: UploadStartedEvent) -> None:
        print(f"started\t{event.total_size}\t{event.total_chunks}")

    def on_chunk_uploaded(self, event: ChunkUploadedEvent) -> None:
        print(f"part\t{event.chunk_number}\t{event.uploaded_chunks}/{event.total_chunks}")


def _add_layer_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--catalog", required=True, help="Catalog HRN")
    parser.add_argument("--layer", required=True, help="Layer id")
    parser.add_argument("--billing-tag", help="Optional billing tag")


def _add_tile_command(subparsers: Any) -> None:
    """Register tile subcommand."""
    parser = subparsers.add_parser("tile", help="Fetch tile data, falling back to ancestors")
    _add_layer_arguments(parser)
    parser.add_argument(
        "--layer-kind",
        default="versioned",
        choices=SUPPORTED_DATA_LAYER_KINDS,
        help="Layer kind",
    )
    parser.add_argument("--tile", required=True, help="Decimal Morton code of the tile")
    parser.add_argument("--version", type=int, help="Catalog version; latest when omitted")
    parser.add_argument("--output", help="Optional file receiving the tile bytes")


def _add_partitions_command(subparsers: Any) -> None:
    """Register partitions subcommand."""
    parser = subparsers.add_parser("partitions", help="Print partition metadata as JSON lines")
    _add_layer_arguments(parser)
    parser.add_argument(
        "--layer-kind",
        default="versioned",
        choices=SUPPORTED_DATA_LAYER_KINDS,
        help="Layer kind",
    )
    parser.add_argument("--ids", nargs="+", help="Explicit partition ids; all when omitted")
    parser.add_argument("--version", type=int, help="Catalog version; latest when omitted")


def _add_upload_command(subparsers: Any) -> None:
    """Register upload subcommand."""
    parser = subparsers.add_parser("upload", help="Upload a file as a multipart blob")
    _add_layer_arguments(parser)
    parser.add_argument("--handle", required=True, help="Data handle (v1) or object key (v2)")
    parser.add_argument("--file", required=True, help="Local file to upload")
    parser.add_argument("--content-type", required=True, help="Payload MIME type")
    parser.add_argument("--content-encoding", help="Optional content encoding, e.g. gzip")
    parser.add_argument("--blob-version", type=int, default=1, choices=(1, 2), help="Blob api version")
    parser.add_argument(
        "--chunk-size-mib",
        type=int,
        default=DEFAULT_CHUNK_SIZE_MIB,
        help="Chunk size in MiB, 5 to 5120",
    )
    parser.add_argument(
        "--parallel-requests",
        type=int,
        default=DEFAULT_PARALLEL_REQUESTS,
        help="Concurrent part uploads per batch",
    )
