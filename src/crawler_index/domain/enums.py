"""Typed enumerations for backend and engine state choices."""

from __future__ import annotations

from enum import StrEnum


class BackendName(StrEnum):
    """Represent supported engine backends."""

    ELASTICSEARCH = "elasticsearch"
    OPENSEARCH = "opensearch"
    HTTP = "http"


class MappingStyle(StrEnum):
    """Represent the mapping convention spoken by the engine."""

    LEGACY = "legacy"
    TYPELESS = "typeless"


class HealthState(StrEnum):
    """Represent engine-reported index health."""

    RED = "red"
    YELLOW = "yellow"
    GREEN = "green"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: object) -> HealthState:
        """Parse a raw health status, mapping anything unexpected to `unknown`.

        Args:
            value (object): Raw `status` value from a cluster health payload.

        Returns:
            HealthState: Parsed health state.

        """
        if not isinstance(value, str):
            return cls.UNKNOWN
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_healthy(self) -> bool:
        """Tell whether the state is at least `yellow`."""
        return self in {HealthState.YELLOW, HealthState.GREEN}


def parse_backend_name(value: BackendName | str) -> str:
    """Normalize a backend identifier to its raw lowercase value.

    Args:
        value (BackendName | str): Backend enum or raw string.

    Returns:
        str: Normalized backend identifier.

    """
    return value.value if isinstance(value, BackendName) else value.strip().lower()
