"""Domain contracts for crawler-index."""

from crawler_index.domain.capabilities import derive_capabilities
from crawler_index.domain.contracts import (
    Acknowledgement,
    CapabilitySet,
    Document,
    EngineVersion,
    IndexDescriptor,
    Pipeline,
    SearchHit,
    SearchQuery,
    SearchResult,
)
from crawler_index.domain.enums import BackendName, HealthState, MappingStyle, parse_backend_name

__all__ = [
    "Acknowledgement",
    "BackendName",
    "CapabilitySet",
    "Document",
    "EngineVersion",
    "HealthState",
    "IndexDescriptor",
    "MappingStyle",
    "Pipeline",
    "SearchHit",
    "SearchQuery",
    "SearchResult",
    "derive_capabilities",
    "parse_backend_name",
]
