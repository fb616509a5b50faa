"""Engine client facade for document crawlers."""

from crawler_index.config import EngineSettings
from crawler_index.domain import (
    Acknowledgement,
    CapabilitySet,
    Document,
    EngineVersion,
    HealthState,
    IndexDescriptor,
    MappingStyle,
    Pipeline,
    SearchHit,
    SearchQuery,
    SearchResult,
)
from crawler_index.errors import (
    CrawlerIndexError,
    EngineConnectionError,
    EngineReportedError,
    HealthTimeoutError,
    IndexAlreadyExistsError,
    IngestNotSupportedError,
)
from crawler_index.session import EngineSession, open_session

__all__ = [
    "Acknowledgement",
    "CapabilitySet",
    "CrawlerIndexError",
    "Document",
    "EngineConnectionError",
    "EngineReportedError",
    "EngineSession",
    "EngineSettings",
    "EngineVersion",
    "HealthState",
    "HealthTimeoutError",
    "IndexAlreadyExistsError",
    "IndexDescriptor",
    "IngestNotSupportedError",
    "MappingStyle",
    "Pipeline",
    "SearchHit",
    "SearchQuery",
    "SearchResult",
    "open_session",
]
