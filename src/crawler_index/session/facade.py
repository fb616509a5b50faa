"""Engine session: the single entry point used by the crawler."""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from types import TracebackType
from typing import TYPE_CHECKING, Any

from crawler_index.config import EngineSettings
from crawler_index.engine.factory import build_engine_backend
from crawler_index.session.lifecycle import IndexLifecycleManager
from crawler_index.session.negotiator import VersionNegotiator
from crawler_index.session.pipelines import PipelineManager
from crawler_index.session.queries import QueryExecutor
from crawler_index.session.writer import DocumentWriter

if TYPE_CHECKING:
    import httpx

    from crawler_index.domain import (
        Acknowledgement,
        CapabilitySet,
        Document,
        EngineVersion,
        IndexDescriptor,
        Pipeline,
        SearchQuery,
        SearchResult,
    )
    from crawler_index.engine.protocols import EngineBackend


class EngineSession:
    """Present one stable contract over any supported engine generation.

    Version detection runs lazily on the first capability-dependent call and is
    shared by every component of the session.
    """

    def __init__(
        self,
        backend: EngineBackend,
        *,
        settings: EngineSettings | None = None,
        owns_backend: bool = False,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        resolved = settings or EngineSettings()
        self.backend = backend
        self.settings = resolved
        self._owns_backend = owns_backend
        self.negotiator = VersionNegotiator(backend)
        self.indices = IndexLifecycleManager(
            backend,
            health_timeout_s=resolved.health_timeout_s,
            poll_initial_s=resolved.health_poll_initial_s,
            poll_max_s=resolved.health_poll_max_s,
            clock=clock,
            sleep=sleep,
        )
        self.documents = DocumentWriter(
            backend,
            self.negotiator,
            legacy_document_type=resolved.legacy_document_type,
        )
        self.queries = QueryExecutor(backend, self.negotiator)
        self.pipelines = PipelineManager(backend, self.negotiator)

    def __enter__(self) -> EngineSession:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying client when the session created it."""
        if self._owns_backend:
            self.backend.close()

    def detect_version(self) -> EngineVersion:
        return self.negotiator.detect()

    def capabilities(self) -> CapabilitySet:
        return self.negotiator.capabilities()

    def create_index(
        self,
        name: str,
        override_if_exists: bool = False,  # noqa: FBT001, FBT002
        settings_and_mappings: Mapping[str, Any] | str | None = None,
    ) -> Acknowledgement:
        return self.indices.create_index(
            name,
            override_if_exists=override_if_exists,
            settings_and_mappings=settings_and_mappings,
        )

    def is_existing_index(self, name: str) -> bool:
        return self.indices.is_existing_index(name)

    def delete_index(self, name: str) -> Acknowledgement:
        return self.indices.delete_index(name)

    def wait_for_healthy_index(self, name: str, timeout_s: float | None = None) -> IndexDescriptor:
        return self.indices.wait_for_healthy_index(name, timeout_s=timeout_s)

    def refresh(self, name: str) -> Acknowledgement:
        return self.indices.refresh(name)

    def index(self, document: Document) -> Acknowledgement:
        return self.documents.index(document)

    def search(self, query: SearchQuery) -> SearchResult:
        return self.queries.search(query)

    def get_from_stored_fields_v2(
        self,
        index: str,
        max_results: int,
        field_name: str,
        path_hint: str | None = None,
        query_filter: dict[str, Any] | None = None,
    ) -> list[Any]:
        return self.queries.get_from_stored_fields_v2(index, max_results, field_name, path_hint, query_filter)

    def is_ingest_supported(self) -> bool:
        return self.pipelines.is_ingest_supported()

    def put_pipeline(self, pipeline: Pipeline) -> Acknowledgement:
        return self.pipelines.put_pipeline(pipeline)

    def is_existing_pipeline(self, pipeline_id: str) -> bool:
        return self.pipelines.is_existing_pipeline(pipeline_id)


def open_session(
    settings: EngineSettings | None = None,
    *,
    client: object | None = None,
    transport: httpx.BaseTransport | None = None,
) -> EngineSession:
    """Open a session from settings.

    Args:
        settings (EngineSettings | None): Connection settings; defaults when None.
        client (object | None): Optional pre-configured client, left open on close.
        transport (httpx.BaseTransport | None): Optional httpx transport for the `http` backend.

    Returns:
        EngineSession: Ready-to-use session; detection happens on first use.

    """
    resolved = settings or EngineSettings()
    backend = build_engine_backend(
        backend=resolved.backend,
        client=client,
        url=resolved.url,
        timeout_s=resolved.timeout_s,
        verify_certs=resolved.verify_certs,
        transport=transport,
    )
    return EngineSession(backend, settings=resolved, owns_backend=client is None)
