"""Engine backend interfaces and adapters."""

from crawler_index.engine.adapters import ElasticClientAdapter, HttpRestAdapter, OpenSearchClientAdapter
from crawler_index.engine.factory import build_engine_backend, supported_backends
from crawler_index.engine.protocols import EngineBackend, RawResponse

__all__ = [
    "ElasticClientAdapter",
    "EngineBackend",
    "HttpRestAdapter",
    "OpenSearchClientAdapter",
    "RawResponse",
    "build_engine_backend",
    "supported_backends",
]
