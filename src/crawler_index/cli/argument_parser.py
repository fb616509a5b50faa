"""Argument parser construction for all CLI subcommands."""

from __future__ import annotations

import argparse

from crawler_index.cli.command_handlers import (
    handle_create_index,
    handle_pipeline_exists,
    handle_put_pipeline,
    handle_refresh,
    handle_search,
    handle_stored_fields,
    handle_version,
    handle_wait_health,
)
from crawler_index.config import EngineSettings
from crawler_index.domain import BackendName

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def add_connection_flags(subparser: argparse.ArgumentParser, defaults: EngineSettings) -> None:
    """Add engine connection flags shared by subcommands."""
    subparser.add_argument(
        "--backend",
        default=defaults.backend.value,
        choices=[backend.value for backend in BackendName],
        help="Client library used to reach the engine.",
    )
    subparser.add_argument(
        "--backend-url",
        default=defaults.url,
        help="Engine base URL.",
    )
    subparser.add_argument(
        "--timeout-s",
        default=defaults.timeout_s,
        type=float,
        help="Request timeout in seconds.",
    )
    subparser.add_argument(
        "--verify-certs",
        default=defaults.verify_certs,
        action=argparse.BooleanOptionalAction,
        help="Verify TLS certificates.",
    )
    subparser.add_argument(
        "--health-timeout-s",
        default=defaults.health_timeout_s,
        type=float,
        help="Default deadline for index health waits.",
    )
    subparser.add_argument(
        "--log-level",
        default="WARNING",
        choices=_LOG_LEVELS,
        help="Logging level.",
    )
    subparser.add_argument(
        "--output",
        default="-",
        help="Output destination: '-' for stdout or path to file.",
    )


def add_index_flag(subparser: argparse.ArgumentParser) -> None:
    """Add the target index flag."""
    subparser.add_argument("--index", required=True, help="Target index name.")


def add_query_flag(subparser: argparse.ArgumentParser) -> None:
    """Add the engine-native query flag."""
    subparser.add_argument(
        "--query",
        default=None,
        help="Engine-native query as JSON or @file.json (default: match_all).",
    )


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level parser.

    Returns:
        argparse.ArgumentParser: Parser with one subparser per command.

    """
    defaults = EngineSettings.from_env()
    parser = argparse.ArgumentParser(
        prog="crawler-index",
        description="Manage crawler indices on Elasticsearch-compatible engines.",
    )
    subparsers = parser.add_subparsers(dest="command")

    version = subparsers.add_parser("version", help="Detect the engine version and capabilities.")
    add_connection_flags(version, defaults)
    version.set_defaults(handler=handle_version)

    create_index = subparsers.add_parser("create-index", help="Create an index.")
    add_connection_flags(create_index, defaults)
    add_index_flag(create_index)
    create_index.add_argument(
        "--settings",
        default=None,
        help="Index settings and mappings as JSON or @file.json.",
    )
    create_index.add_argument(
        "--override-if-exists",
        default=False,
        action=argparse.BooleanOptionalAction,
        help="Succeed without changes when the index already exists.",
    )
    create_index.add_argument(
        "--wait",
        default=False,
        action=argparse.BooleanOptionalAction,
        help="Wait for the index to become healthy after creation.",
    )
    create_index.set_defaults(handler=handle_create_index)

    wait_health = subparsers.add_parser("wait-health", help="Wait until an index is at least yellow.")
    add_connection_flags(wait_health, defaults)
    add_index_flag(wait_health)
    wait_health.add_argument(
        "--wait-timeout-s",
        default=None,
        type=float,
        help="Deadline in seconds (default: --health-timeout-s).",
    )
    wait_health.set_defaults(handler=handle_wait_health)

    refresh = subparsers.add_parser("refresh", help="Make prior writes visible to search.")
    add_connection_flags(refresh, defaults)
    add_index_flag(refresh)
    refresh.set_defaults(handler=handle_refresh)

    search = subparsers.add_parser("search", help="Search an index.")
    add_connection_flags(search, defaults)
    add_index_flag(search)
    add_query_flag(search)
    search.add_argument("--fields", default="", help="Comma-separated fields to extract.")
    search.add_argument("--size", default=10, type=int, help="Maximum number of returned hits.")
    search.set_defaults(handler=handle_search)

    stored_fields = subparsers.add_parser("stored-fields", help="Read values of one field.")
    add_connection_flags(stored_fields, defaults)
    add_index_flag(stored_fields)
    add_query_flag(stored_fields)
    stored_fields.add_argument("--field", required=True, help="Dotted field name.")
    stored_fields.add_argument("--size", default=10, type=int, help="Maximum number of values.")
    stored_fields.add_argument("--path-hint", default=None, help="Crawled path, for diagnostics.")
    stored_fields.set_defaults(handler=handle_stored_fields)

    put_pipeline = subparsers.add_parser("put-pipeline", help="Create or replace an ingest pipeline.")
    add_connection_flags(put_pipeline, defaults)
    put_pipeline.add_argument("--pipeline-id", required=True, help="Pipeline identifier.")
    put_pipeline.add_argument(
        "--definition",
        required=True,
        help="Pipeline definition (description, processors) as JSON or @file.json.",
    )
    put_pipeline.set_defaults(handler=handle_put_pipeline)

    pipeline_exists = subparsers.add_parser("pipeline-exists", help="Tell whether a pipeline exists.")
    add_connection_flags(pipeline_exists, defaults)
    pipeline_exists.add_argument("--pipeline-id", required=True, help="Pipeline identifier.")
    pipeline_exists.set_defaults(handler=handle_pipeline_exists)

    return parser
