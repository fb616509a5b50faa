"""Document writes, overwriting by id."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from crawler_index.domain import Acknowledgement, Document
from crawler_index.errors import EngineReportedError, IngestNotSupportedError

if TYPE_CHECKING:
    from crawler_index.engine.protocols import EngineBackend
    from crawler_index.session.negotiator import VersionNegotiator

_logger = logging.getLogger(__name__)


class DocumentWriter:
    """Write documents, addressing them the way the detected engine expects."""

    def __init__(
        self,
        backend: EngineBackend,
        negotiator: VersionNegotiator,
        *,
        legacy_document_type: str = "doc",
    ) -> None:
        self._backend = backend
        self._negotiator = negotiator
        self._legacy_document_type = legacy_document_type

    def index(self, document: Document) -> Acknowledgement:
        """Write or overwrite a document by id.

        Returns once the engine accepted the write; search visibility still
        depends on refresh.

        Args:
            document (Document): Document to write.

        Raises:
            IngestNotSupportedError: If a pipeline is requested on an engine without ingest.
            EngineReportedError: If the engine rejects the write.

        Returns:
            Acknowledgement: Write acknowledgement with the engine result (`created`/`updated`).

        """
        capabilities = self._negotiator.capabilities()
        if document.pipeline_id and not capabilities.ingest_supported:
            raise IngestNotSupportedError(version=str(self._negotiator.detect()))

        if capabilities.document_type_required:
            response = self._index_with_type(document)
        else:
            response = self._backend.index_document(
                index=document.index,
                doc_id=document.id,
                document=document.source,
                pipeline=document.pipeline_id,
            )

        _logger.debug("Indexed document [%s] in [%s]", document.id, document.index)
        result = response.get("result")
        created = response.get("created")
        return Acknowledgement(
            resource=f"{document.index}/{document.id}",
            created=created if isinstance(created, bool) else result == "created",
            result=str(result) if result is not None else None,
        )

    def _index_with_type(self, document: Document) -> dict[str, Any]:
        # Typed client bindings address documents without a mapping type.
        path = "/{index}/{doc_type}/{doc_id}".format(
            index=quote(document.index, safe=""),
            doc_type=quote(self._legacy_document_type, safe=""),
            doc_id=quote(document.id, safe=""),
        )
        params = {"pipeline": document.pipeline_id} if document.pipeline_id else None
        response = self._backend.perform_request(method="PUT", path=path, body=document.source, params=params)
        if not response.ok:
            raise EngineReportedError(status=response.status, payload=response.payload)
        return response.payload if isinstance(response.payload, dict) else {}
