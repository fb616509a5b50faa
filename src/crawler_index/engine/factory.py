"""Factory helpers to instantiate the configured engine backend."""

from __future__ import annotations

from typing import TYPE_CHECKING

from crawler_index.domain import BackendName, parse_backend_name
from crawler_index.engine.adapters import (
    ElasticClientAdapter,
    HttpRestAdapter,
    OpenSearchClientAdapter,
    transport_error_types,
)
from crawler_index.errors import MissingBackendUrlError, UnsupportedBackendError

if TYPE_CHECKING:
    import httpx

    from crawler_index.engine.protocols import EngineBackend


def supported_backends() -> tuple[BackendName, ...]:
    """Return backend names supported by the project.

    Returns:
        tuple[BackendName, ...]: Supported backend identifiers.

    """
    return (BackendName.ELASTICSEARCH, BackendName.OPENSEARCH, BackendName.HTTP)


def build_engine_backend(  # noqa: PLR0913
    *,
    backend: BackendName | str,
    client: object | None = None,
    url: str | None = None,
    timeout_s: float = 30.0,
    verify_certs: bool = True,
    transport: httpx.BaseTransport | None = None,
) -> EngineBackend:
    """Build a concrete backend adapter from user options.

    Args:
        backend (BackendName | str): Backend identifier.
        client (object | None): Optional pre-configured client instance.
        url (str | None): Optional backend URL when no client is injected.
        timeout_s (float): Request timeout in seconds.
        verify_certs (bool): Whether TLS certificates are verified.
        transport (httpx.BaseTransport | None): Optional httpx transport for the `http` backend.

    Raises:
        MissingBackendUrlError: If `url` is missing when `client` is absent.
        UnsupportedBackendError: If the backend identifier is unsupported.

    Returns:
        EngineBackend: Engine backend adapter.

    """
    backend_name = parse_backend_name(backend)

    if backend_name == BackendName.ELASTICSEARCH.value:
        if client is not None:
            return ElasticClientAdapter(client=client, error_types=transport_error_types("elasticsearch"))
        if url is None:
            raise MissingBackendUrlError
        return ElasticClientAdapter.from_connection(url=url, timeout_s=timeout_s, verify_certs=verify_certs)

    if backend_name == BackendName.OPENSEARCH.value:
        if client is not None:
            return OpenSearchClientAdapter(client=client, error_types=transport_error_types("opensearchpy"))
        if url is None:
            raise MissingBackendUrlError
        return OpenSearchClientAdapter.from_connection(url=url, timeout_s=timeout_s, verify_certs=verify_certs)

    if backend_name == BackendName.HTTP.value:
        if client is not None:
            return HttpRestAdapter(client=client)
        if url is None:
            raise MissingBackendUrlError
        return HttpRestAdapter.from_connection(
            url=url,
            timeout_s=timeout_s,
            verify_certs=verify_certs,
            transport=transport,
        )

    supported = ", ".join(item.value for item in supported_backends())
    raw_backend = backend.value if isinstance(backend, BackendName) else backend
    raise UnsupportedBackendError(backend=raw_backend, supported=supported)
