"""CLI command handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from crawler_index.cli.common_runtime import parse_json_argument
from crawler_index.config import EngineSettings
from crawler_index.domain import Pipeline, SearchQuery
from crawler_index.session import open_session

if TYPE_CHECKING:
    import argparse

_MISSING_PIPELINE_DEFINITION_ERROR = "A pipeline definition is required."


def build_settings(args: argparse.Namespace) -> EngineSettings:
    """Build session settings from environment defaults overridden by CLI args.

    Args:
        args (argparse.Namespace): Parsed command-line arguments.

    Returns:
        EngineSettings: Session settings.

    """
    values = EngineSettings.from_env().model_dump()
    values.update(
        backend=args.backend,
        url=args.backend_url,
        timeout_s=args.timeout_s,
        verify_certs=args.verify_certs,
        health_timeout_s=args.health_timeout_s,
    )
    return EngineSettings.model_validate(values)


def parse_fields(value: str) -> list[str]:
    """Parse comma-separated field names."""
    return [field.strip() for field in value.split(",") if field.strip()]


def handle_version(args: argparse.Namespace) -> dict[str, Any]:
    """Detect the engine version and its capabilities."""
    with open_session(build_settings(args)) as session:
        version = session.detect_version()
        return {
            "version": str(version),
            "distribution": version.distribution,
            "capabilities": session.capabilities().model_dump(mode="json"),
        }


def handle_create_index(args: argparse.Namespace) -> dict[str, Any]:
    """Create an index, optionally waiting for it to become healthy."""
    with open_session(build_settings(args)) as session:
        ack = session.create_index(
            args.index,
            override_if_exists=args.override_if_exists,
            settings_and_mappings=parse_json_argument(args.settings),
        )
        payload = ack.model_dump(mode="json")
        if args.wait:
            payload["health"] = session.wait_for_healthy_index(args.index).health_state.value
        return payload


def handle_wait_health(args: argparse.Namespace) -> dict[str, Any]:
    """Wait for an index to become at least yellow."""
    with open_session(build_settings(args)) as session:
        return session.wait_for_healthy_index(args.index, timeout_s=args.wait_timeout_s).model_dump(mode="json")


def handle_refresh(args: argparse.Namespace) -> dict[str, Any]:
    """Refresh an index."""
    with open_session(build_settings(args)) as session:
        return session.refresh(args.index).model_dump(mode="json")


def handle_search(args: argparse.Namespace) -> dict[str, Any]:
    """Search an index and print the total and the hits."""
    query = SearchQuery(
        target_index=args.index,
        filter=parse_json_argument(args.query),
        requested_fields=parse_fields(args.fields),
        max_results=args.size,
    )
    with open_session(build_settings(args)) as session:
        return session.search(query).model_dump(mode="json")


def handle_stored_fields(args: argparse.Namespace) -> dict[str, Any]:
    """Print stored values of one field from matching documents."""
    with open_session(build_settings(args)) as session:
        values = session.get_from_stored_fields_v2(
            args.index,
            args.size,
            args.field,
            args.path_hint,
            parse_json_argument(args.query),
        )
    return {"index": args.index, "field": args.field, "values": values}


def handle_put_pipeline(args: argparse.Namespace) -> dict[str, Any]:
    """Create or replace an ingest pipeline from a JSON definition.

    Raises:
        ValueError: If no definition is supplied.

    """
    definition = parse_json_argument(args.definition)
    if definition is None:
        raise ValueError(_MISSING_PIPELINE_DEFINITION_ERROR)
    pipeline = Pipeline(
        id=args.pipeline_id,
        processors=definition.get("processors", []),
        description=definition.get("description"),
    )
    with open_session(build_settings(args)) as session:
        return session.put_pipeline(pipeline).model_dump(mode="json")


def handle_pipeline_exists(args: argparse.Namespace) -> dict[str, Any]:
    """Tell whether an ingest pipeline exists."""
    with open_session(build_settings(args)) as session:
        return {"pipeline_id": args.pipeline_id, "exists": session.is_existing_pipeline(args.pipeline_id)}
