"""Shared CLI runtime primitives (logging, JSON arguments, payload emission)."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel

_LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_INVALID_JSON_ARGUMENT_ERROR = "Expected a JSON object, got: {value!r}"


def configure_logging(level: str) -> None:
    """Configure root logging for CLI runs.

    Args:
        level (str): Logging level name.

    """
    logging.basicConfig(level=level.upper(), format=_LOG_FORMAT)


def parse_json_argument(value: str | None) -> dict[str, Any] | None:
    """Parse a JSON object given inline or as `@path/to/file.json`.

    Args:
        value (str | None): Raw argument value.

    Raises:
        ValueError: If the value is not a JSON object.

    Returns:
        dict[str, Any] | None: Parsed object, or None when no value is given.

    """
    if value is None or not value.strip():
        return None
    raw = Path(value[1:]).read_text(encoding="utf-8") if value.startswith("@") else value
    parsed = json.loads(raw)
    if not isinstance(parsed, dict):
        raise ValueError(_INVALID_JSON_ARGUMENT_ERROR.format(value=value))
    return parsed


def emit_payload(payload: dict[str, Any] | BaseModel | str, output: str) -> None:
    """Emit payload to stdout or to a file.

    Args:
        payload (dict[str, Any] | BaseModel | str): Data payload to serialize.
        output (str): Output path or "-" for stdout.

    """
    if isinstance(payload, str):
        serialized = payload
    else:
        payload_dict = payload.model_dump(mode="json") if isinstance(payload, BaseModel) else payload
        serialized = json.dumps(payload_dict, ensure_ascii=False, indent=2)

    if output == "-":
        print(serialized)
        return

    output_path = Path(output)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    if serialized.endswith("\n"):
        output_path.write_text(serialized, encoding="utf-8")
    else:
        output_path.write_text(serialized + "\n", encoding="utf-8")
