"""Adapters implementing the EngineBackend interface."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from importlib import import_module
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from crawler_index.engine.protocols import RawResponse
from crawler_index.errors import EngineConnectionError, EngineReportedError, MissingOptionalDependencyError

if TYPE_CHECKING:
    from collections.abc import Iterator

_ELASTIC_MISSING_DEP_MSG = "Install the optional dependency group 'elasticsearch' to use this backend."
_OPENSEARCH_MISSING_DEP_MSG = "Install the optional dependency group 'opensearch' to use this backend."
_ELASTIC_ERROR_NAMES = ("ApiError", "TransportError")
_OPENSEARCH_ERROR_NAMES = ("TransportError",)
_JSON_HEADERS = {"accept": "application/json", "content-type": "application/json"}
_HTTP_NOT_FOUND = 404
_HTTP_OK = 200


def transport_error_types(module_name: str) -> tuple[type[Exception], ...]:
    """Resolve the transport exception classes exported by a client library.

    Args:
        module_name (str): Importable client module (`elasticsearch` or `opensearchpy`).

    Raises:
        MissingOptionalDependencyError: If the client library is not installed.

    Returns:
        tuple[type[Exception], ...]: Exception classes raised by the library transport.

    """
    names, missing_msg = (
        (_ELASTIC_ERROR_NAMES, _ELASTIC_MISSING_DEP_MSG)
        if module_name == "elasticsearch"
        else (_OPENSEARCH_ERROR_NAMES, _OPENSEARCH_MISSING_DEP_MSG)
    )
    try:
        module = import_module(module_name)
    except ImportError as exc:
        raise MissingOptionalDependencyError(missing_msg) from exc
    return tuple(getattr(module, name) for name in names if hasattr(module, name))


def error_status(exc: Exception) -> int | None:
    """Extract the HTTP status carried by a client library exception.

    Args:
        exc (Exception): Exception raised by the client library.

    Returns:
        int | None: HTTP status, or None for connection-level failures.

    """
    status = getattr(getattr(exc, "meta", None), "status", None)
    if not isinstance(status, int):
        # opensearch-py reports "N/A" on connection failures.
        status = getattr(exc, "status_code", None)
    if isinstance(status, bool) or not isinstance(status, int):
        return None
    return status


def error_payload(exc: Exception) -> Any:
    """Extract the engine error body carried by a client library exception.

    Args:
        exc (Exception): Exception raised by the client library.

    Returns:
        Any: Decoded error payload, or the exception text.

    """
    for attribute in ("body", "info"):
        payload = getattr(exc, attribute, None)
        if payload is not None:
            return payload
    return str(exc)


def translate_transport_error(exc: Exception) -> Exception:
    """Map a client library exception to the project taxonomy.

    Args:
        exc (Exception): Exception raised by the client library.

    Returns:
        Exception: `EngineReportedError` when an HTTP status exists, else `EngineConnectionError`.

    """
    status = error_status(exc)
    if status is None:
        return EngineConnectionError(f"Engine unreachable: {exc.__class__.__name__}: {exc}")
    return EngineReportedError(status=status, payload=error_payload(exc))


@contextmanager
def translated_errors(error_types: tuple[type[Exception], ...]) -> Iterator[None]:
    """Translate client library transport errors raised inside the block.

    Args:
        error_types (tuple[type[Exception], ...]): Exceptions to translate.

    Raises:
        EngineConnectionError: On connection-level failures.
        EngineReportedError: On engine error responses.

    Yields:
        None: Control to the wrapped block.

    """
    try:
        yield
    except error_types as exc:
        raise translate_transport_error(exc) from exc


def _response_body(response: Any) -> Any:
    body = getattr(response, "body", response)
    return dict(body) if hasattr(body, "keys") else body


def _raw_error_response(exc: Exception) -> RawResponse:
    status = error_status(exc)
    if status is None:
        raise translate_transport_error(exc) from exc
    return RawResponse(status=status, payload=error_payload(exc))


@dataclass(frozen=True, slots=True)
class ElasticClientAdapter:
    """Thin adapter around the Elasticsearch Python client.

    The binding offers no typed pipeline existence probe, so pipeline checks
    go through `perform_request`.
    """

    client: Any
    error_types: tuple[type[Exception], ...] = ()
    backend_name: str = "elasticsearch"

    @classmethod
    def from_connection(
        cls,
        *,
        url: str,
        timeout_s: float,
        verify_certs: bool,
    ) -> ElasticClientAdapter:
        """Build an adapter from connection settings.

        Args:
            url (str): Backend URL.
            timeout_s (float): Request timeout in seconds.
            verify_certs (bool): Whether TLS certificates are verified.

        Raises:
            MissingOptionalDependencyError: If `elasticsearch` is not installed.

        Returns:
            ElasticClientAdapter: Configured adapter.

        """
        try:
            module = import_module("elasticsearch")
        except ImportError as exc:
            raise MissingOptionalDependencyError(_ELASTIC_MISSING_DEP_MSG) from exc

        elasticsearch_class = module.Elasticsearch
        client = elasticsearch_class(
            hosts=[url],
            request_timeout=timeout_s,
            verify_certs=verify_certs,
        )
        error_types = tuple(getattr(module, name) for name in _ELASTIC_ERROR_NAMES if hasattr(module, name))
        return cls(client=client, error_types=error_types)

    def info(self) -> dict[str, Any]:
        with translated_errors(self.error_types):
            return _response_body(self.client.info())

    def create_index(self, *, index: str, body: dict[str, Any] | None) -> dict[str, Any]:
        with translated_errors(self.error_types):
            return _response_body(self.client.indices.create(index=index, **(body or {})))

    def index_exists(self, *, index: str) -> bool:
        with translated_errors(self.error_types):
            return bool(self.client.indices.exists(index=index))

    def delete_index(self, *, index: str) -> dict[str, Any]:
        with translated_errors(self.error_types):
            return _response_body(self.client.indices.delete(index=index))

    def cluster_health(self, *, index: str, timeout: str | None = None) -> dict[str, Any]:
        kwargs = {"timeout": timeout} if timeout is not None else {}
        with translated_errors(self.error_types):
            return _response_body(self.client.cluster.health(index=index, **kwargs))

    def refresh(self, *, index: str) -> dict[str, Any]:
        with translated_errors(self.error_types):
            return _response_body(self.client.indices.refresh(index=index))

    def index_document(
        self,
        *,
        index: str,
        doc_id: str,
        document: dict[str, Any],
        pipeline: str | None,
    ) -> dict[str, Any]:
        with translated_errors(self.error_types):
            response = self.client.index(index=index, id=doc_id, document=document, pipeline=pipeline)
        return _response_body(response)

    def search(self, *, index: str, body: dict[str, Any]) -> dict[str, Any]:
        with translated_errors(self.error_types):
            return _response_body(self.client.search(index=index, body=body))

    def put_pipeline(self, *, pipeline_id: str, body: dict[str, Any]) -> dict[str, Any]:
        with translated_errors(self.error_types):
            return _response_body(self.client.ingest.put_pipeline(id=pipeline_id, **body))

    def perform_request(
        self,
        *,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> RawResponse:
        try:
            response = self.client.perform_request(
                method,
                path,
                params=params,
                headers=_JSON_HEADERS,
                body=body,
            )
        except self.error_types as exc:
            return _raw_error_response(exc)
        return RawResponse(status=response.meta.status, payload=_response_body(response))

    def close(self) -> None:
        self.client.close()


@dataclass(frozen=True, slots=True)
class OpenSearchClientAdapter:
    """Thin adapter around the OpenSearch Python client."""

    client: Any
    error_types: tuple[type[Exception], ...] = ()
    backend_name: str = "opensearch"

    @classmethod
    def from_connection(
        cls,
        *,
        url: str,
        timeout_s: float,
        verify_certs: bool,
    ) -> OpenSearchClientAdapter:
        """Build an adapter from connection settings.

        Args:
            url (str): Backend URL.
            timeout_s (float): Request timeout in seconds.
            verify_certs (bool): Whether TLS certificates are verified.

        Raises:
            MissingOptionalDependencyError: If `opensearch-py` is not installed.

        Returns:
            OpenSearchClientAdapter: Configured adapter.

        """
        try:
            module = import_module("opensearchpy")
        except ImportError as exc:
            raise MissingOptionalDependencyError(_OPENSEARCH_MISSING_DEP_MSG) from exc

        opensearch_class = module.OpenSearch
        client = opensearch_class(
            hosts=[url],
            timeout=timeout_s,
            use_ssl=url.startswith("https://"),
            verify_certs=verify_certs,
        )
        error_types = tuple(getattr(module, name) for name in _OPENSEARCH_ERROR_NAMES if hasattr(module, name))
        return cls(client=client, error_types=error_types)

    def info(self) -> dict[str, Any]:
        with translated_errors(self.error_types):
            return dict(self.client.info())

    def create_index(self, *, index: str, body: dict[str, Any] | None) -> dict[str, Any]:
        with translated_errors(self.error_types):
            return dict(self.client.indices.create(index=index, body=body))

    def index_exists(self, *, index: str) -> bool:
        with translated_errors(self.error_types):
            return bool(self.client.indices.exists(index=index))

    def delete_index(self, *, index: str) -> dict[str, Any]:
        with translated_errors(self.error_types):
            return dict(self.client.indices.delete(index=index))

    def cluster_health(self, *, index: str, timeout: str | None = None) -> dict[str, Any]:
        kwargs = {"timeout": timeout} if timeout is not None else {}
        with translated_errors(self.error_types):
            return dict(self.client.cluster.health(index=index, **kwargs))

    def refresh(self, *, index: str) -> dict[str, Any]:
        with translated_errors(self.error_types):
            return dict(self.client.indices.refresh(index=index))

    def index_document(
        self,
        *,
        index: str,
        doc_id: str,
        document: dict[str, Any],
        pipeline: str | None,
    ) -> dict[str, Any]:
        with translated_errors(self.error_types):
            return dict(self.client.index(index=index, body=document, id=doc_id, pipeline=pipeline))

    def search(self, *, index: str, body: dict[str, Any]) -> dict[str, Any]:
        with translated_errors(self.error_types):
            return dict(self.client.search(index=index, body=body))

    def put_pipeline(self, *, pipeline_id: str, body: dict[str, Any]) -> dict[str, Any]:
        with translated_errors(self.error_types):
            return dict(self.client.ingest.put_pipeline(id=pipeline_id, body=body))

    def pipeline_exists(self, *, pipeline_id: str) -> bool:
        """Probe an ingest pipeline through the typed binding.

        Args:
            pipeline_id (str): Exact pipeline identifier.

        Returns:
            bool: Whether the engine knows a pipeline with exactly this id.

        """
        try:
            response = self.client.ingest.get_pipeline(id=pipeline_id)
        except self.error_types as exc:
            if error_status(exc) == _HTTP_NOT_FOUND:
                return False
            raise translate_transport_error(exc) from exc
        return pipeline_id in response

    def perform_request(
        self,
        *,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> RawResponse:
        try:
            payload = self.client.transport.perform_request(method, path, params=params, body=body)
        except self.error_types as exc:
            return _raw_error_response(exc)
        # The transport answers HEAD requests with a bare boolean.
        if isinstance(payload, bool):
            return RawResponse(status=_HTTP_OK if payload else _HTTP_NOT_FOUND, payload={})
        return RawResponse(status=_HTTP_OK, payload=payload)

    def close(self) -> None:
        self.client.close()


def _segment(value: str) -> str:
    return quote(value, safe="*,")


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return {}
    try:
        return response.json()
    except ValueError:
        return response.text


@dataclass(frozen=True, slots=True)
class HttpRestAdapter:
    """Adapter speaking the engine REST surface directly over httpx.

    Usable against any engine generation, including those the typed clients
    refuse to talk to.
    """

    client: httpx.Client
    backend_name: str = "http"

    @classmethod
    def from_connection(
        cls,
        *,
        url: str,
        timeout_s: float,
        verify_certs: bool,
        transport: httpx.BaseTransport | None = None,
    ) -> HttpRestAdapter:
        """Build an adapter from connection settings.

        Args:
            url (str): Backend URL.
            timeout_s (float): Request timeout in seconds.
            verify_certs (bool): Whether TLS certificates are verified.
            transport (httpx.BaseTransport | None): Optional custom transport.

        Returns:
            HttpRestAdapter: Configured adapter.

        """
        client = httpx.Client(
            base_url=url.rstrip("/"),
            timeout=timeout_s,
            verify=verify_certs,
            transport=transport,
        )
        return cls(client=client)

    def perform_request(
        self,
        *,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> RawResponse:
        try:
            response = self.client.request(method, path, json=body, params=params)
        except httpx.TransportError as exc:
            raise EngineConnectionError(f"Engine unreachable: {exc.__class__.__name__}: {exc}") from exc
        return RawResponse(status=response.status_code, payload=_decode(response))

    def _expect_ok(
        self,
        method: str,
        path: str,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        response = self.perform_request(method=method, path=path, body=body, params=params)
        if not response.ok:
            raise EngineReportedError(status=response.status, payload=response.payload)
        if not isinstance(response.payload, dict):
            raise EngineConnectionError(f"Malformed engine response for {method} {path}: {response.payload!r}")
        return response.payload

    def info(self) -> dict[str, Any]:
        return self._expect_ok("GET", "/")

    def create_index(self, *, index: str, body: dict[str, Any] | None) -> dict[str, Any]:
        return self._expect_ok("PUT", f"/{_segment(index)}", body=body)

    def index_exists(self, *, index: str) -> bool:
        response = self.perform_request(method="HEAD", path=f"/{_segment(index)}")
        if response.status == _HTTP_NOT_FOUND:
            return False
        if not response.ok:
            raise EngineReportedError(status=response.status, payload=response.payload)
        return True

    def delete_index(self, *, index: str) -> dict[str, Any]:
        return self._expect_ok("DELETE", f"/{_segment(index)}")

    def cluster_health(self, *, index: str, timeout: str | None = None) -> dict[str, Any]:
        params = {"timeout": timeout} if timeout is not None else None
        return self._expect_ok("GET", f"/_cluster/health/{_segment(index)}", params=params)

    def refresh(self, *, index: str) -> dict[str, Any]:
        return self._expect_ok("POST", f"/{_segment(index)}/_refresh")

    def index_document(
        self,
        *,
        index: str,
        doc_id: str,
        document: dict[str, Any],
        pipeline: str | None,
    ) -> dict[str, Any]:
        params = {"pipeline": pipeline} if pipeline else None
        return self._expect_ok(
            "PUT",
            f"/{_segment(index)}/_doc/{quote(doc_id, safe='')}",
            body=document,
            params=params,
        )

    def search(self, *, index: str, body: dict[str, Any]) -> dict[str, Any]:
        return self._expect_ok("POST", f"/{_segment(index)}/_search", body=body)

    def put_pipeline(self, *, pipeline_id: str, body: dict[str, Any]) -> dict[str, Any]:
        return self._expect_ok("PUT", f"/_ingest/pipeline/{quote(pipeline_id, safe='')}", body=body)

    def close(self) -> None:
        self.client.close()
