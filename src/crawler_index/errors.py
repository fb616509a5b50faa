"""Project-specific exceptions for crawler-index."""

from __future__ import annotations

from typing import Any

_INDEX_ALREADY_EXISTS_MSG = "index already exists"


class CrawlerIndexError(Exception):
    """Base exception for the project."""


class MissingOptionalDependencyError(ImportError, CrawlerIndexError):
    """Raised when an optional dependency is not installed."""


class UnsupportedBackendError(ValueError, CrawlerIndexError):
    """Raised when the user asks for an unsupported backend."""

    def __init__(self, backend: str, supported: str) -> None:
        """Build exception payload for unsupported backend values."""
        super().__init__(f"Unsupported backend '{backend}'. Supported values: {supported}.")


class MissingBackendUrlError(ValueError, CrawlerIndexError):
    """Raised when no backend URL is supplied and no client is injected."""

    def __init__(self) -> None:
        """Build exception payload for missing backend URLs."""
        super().__init__("Backend URL is required when no client instance is provided.")


class EngineConnectionError(ConnectionError, CrawlerIndexError):
    """Raised when the engine is unreachable or answers with a malformed payload."""


class IndexAlreadyExistsError(RuntimeError, CrawlerIndexError):
    """Raised when creating an index that is already present."""

    def __init__(self, index: str) -> None:
        """Build exception payload for an index creation conflict."""
        super().__init__(_INDEX_ALREADY_EXISTS_MSG)
        self.index = index


class HealthTimeoutError(TimeoutError, CrawlerIndexError):
    """Raised when an index does not become healthy before the deadline."""

    def __init__(self, index: str, timeout_s: float, last_state: str) -> None:
        """Build exception payload for an elapsed health wait."""
        super().__init__(
            f"Index '{index}' did not reach yellow health within {timeout_s}s (last state: {last_state}).",
        )
        self.index = index
        self.last_state = last_state


class EngineReportedError(RuntimeError, CrawlerIndexError):
    """Carry a structured error answered by the engine, unmodified."""

    def __init__(self, status: int, payload: Any) -> None:
        """Build exception payload from an engine error response."""
        super().__init__(f"Engine returned HTTP {status}: {payload}")
        self.status = status
        self.payload = payload

    @property
    def error_type(self) -> str | None:
        """Return the engine error type (e.g. `resource_already_exists_exception`).

        Returns:
            str | None: Root error type when the payload carries one.

        """
        if not isinstance(self.payload, dict):
            return None
        error = self.payload.get("error")
        if isinstance(error, dict):
            error_type = error.get("type")
            return str(error_type) if error_type is not None else None
        # Pre-5.0 engines answer a plain string such as "IndexAlreadyExistsException[...]".
        if isinstance(error, str):
            return error.split("[", 1)[0]
        return None


class IngestNotSupportedError(RuntimeError, CrawlerIndexError):
    """Raised when an ingest pipeline is required by an engine without ingest support."""

    def __init__(self, version: str) -> None:
        """Build exception payload for engines lacking ingest pipelines."""
        super().__init__(f"Ingest pipelines are not supported by engine version {version}.")
