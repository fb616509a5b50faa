"""Ingest pipeline management, gated by engine capability."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING
from urllib.parse import quote

from crawler_index.domain import Acknowledgement, Pipeline
from crawler_index.errors import EngineReportedError, IngestNotSupportedError

if TYPE_CHECKING:
    from crawler_index.engine.protocols import EngineBackend
    from crawler_index.session.negotiator import VersionNegotiator

_HTTP_NOT_FOUND = 404
_logger = logging.getLogger(__name__)


class PipelineManager:
    """Create and probe ingest pipelines."""

    def __init__(self, backend: EngineBackend, negotiator: VersionNegotiator) -> None:
        self._backend = backend
        self._negotiator = negotiator

    def is_ingest_supported(self) -> bool:
        """Tell whether the engine supports ingest pipelines (cached)."""
        return self._negotiator.capabilities().ingest_supported

    def put_pipeline(self, pipeline: Pipeline) -> Acknowledgement:
        """Create or replace an ingest pipeline.

        Args:
            pipeline (Pipeline): Pipeline definition.

        Raises:
            IngestNotSupportedError: If the engine has no ingest support.

        Returns:
            Acknowledgement: Engine acknowledgement.

        """
        if not self.is_ingest_supported():
            raise IngestNotSupportedError(version=str(self._negotiator.detect()))
        response = self._backend.put_pipeline(pipeline_id=pipeline.id, body=pipeline.body())
        _logger.info("Stored ingest pipeline [%s]", pipeline.id)
        return Acknowledgement(resource=pipeline.id, acknowledged=bool(response.get("acknowledged", True)))

    def is_existing_pipeline(self, pipeline_id: str) -> bool:
        """Tell whether a pipeline with exactly this id exists.

        Uses the backend typed probe when it offers one, otherwise a raw
        `GET /_ingest/pipeline/{id}`: 404 means absent, a 2xx naming the id
        means present.

        Args:
            pipeline_id (str): Pipeline identifier.

        Raises:
            EngineReportedError: If the raw probe answers anything but 2xx or 404.

        Returns:
            bool: Whether the pipeline exists.

        """
        if not self.is_ingest_supported():
            _logger.debug("Engine has no ingest support, pipeline [%s] cannot exist", pipeline_id)
            return False

        typed_probe = getattr(self._backend, "pipeline_exists", None)
        if callable(typed_probe):
            return bool(typed_probe(pipeline_id=pipeline_id))

        _logger.debug("No typed pipeline probe on %s backend, using a raw request", self._backend.backend_name)
        response = self._backend.perform_request(
            method="GET",
            path=f"/_ingest/pipeline/{quote(pipeline_id, safe='')}",
        )
        if response.status == _HTTP_NOT_FOUND:
            return False
        if not response.ok:
            raise EngineReportedError(status=response.status, payload=response.payload)
        if isinstance(response.payload, dict) and response.payload:
            return pipeline_id in response.payload
        return True
