"""Protocols for engine backends wrapped by the session facade."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

_SUCCESS_STATUS_RANGE = range(200, 300)


@dataclass(frozen=True, slots=True)
class RawResponse:
    """Represent the outcome of a raw protocol request."""

    status: int
    payload: Any

    @property
    def ok(self) -> bool:
        """Tell whether the status is a 2xx."""
        return self.status in _SUCCESS_STATUS_RANGE


class EngineBackend(Protocol):
    """Define the typed operations the facade needs from a client library.

    A backend may additionally expose `pipeline_exists(*, pipeline_id)` when its
    binding offers a typed probe; callers fall back to `perform_request` otherwise.
    """

    backend_name: str

    def info(self) -> dict[str, Any]:
        """Return the engine info payload (`GET /`)."""

    def create_index(self, *, index: str, body: dict[str, Any] | None) -> dict[str, Any]:
        """Create an index with optional settings and mappings.

        Args:
            index (str): Target index name.
            body (dict[str, Any] | None): Settings/mappings payload.

        Returns:
            dict[str, Any]: Raw backend response.

        """

    def index_exists(self, *, index: str) -> bool:
        """Probe an index without mutating it."""

    def delete_index(self, *, index: str) -> dict[str, Any]:
        """Delete an index (or an index pattern)."""

    def cluster_health(self, *, index: str, timeout: str | None = None) -> dict[str, Any]:
        """Return the cluster health payload scoped to one index.

        `timeout` bounds how long the engine may hold the request, e.g. `1500ms`.
        """

    def refresh(self, *, index: str) -> dict[str, Any]:
        """Make prior writes to the index visible to search."""

    def index_document(
        self,
        *,
        index: str,
        doc_id: str,
        document: dict[str, Any],
        pipeline: str | None,
    ) -> dict[str, Any]:
        """Write or overwrite a document by id using typeless addressing.

        Args:
            index (str): Target index name.
            doc_id (str): Document identifier.
            document (dict[str, Any]): Document source.
            pipeline (str | None): Optional ingest pipeline id.

        Returns:
            dict[str, Any]: Raw backend response.

        """

    def search(self, *, index: str, body: dict[str, Any]) -> dict[str, Any]:
        """Execute a search request."""

    def put_pipeline(self, *, pipeline_id: str, body: dict[str, Any]) -> dict[str, Any]:
        """Create or replace an ingest pipeline."""

    def perform_request(
        self,
        *,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> RawResponse:
        """Issue a raw protocol request, reporting HTTP errors as a status.

        Args:
            method (str): HTTP method.
            path (str): Absolute resource path, e.g. `/_ingest/pipeline/id`.
            body (dict[str, Any] | None): Optional JSON body.
            params (dict[str, str] | None): Optional query string parameters.

        Returns:
            RawResponse: Status and decoded payload.

        """

    def close(self) -> None:
        """Release the underlying client."""
