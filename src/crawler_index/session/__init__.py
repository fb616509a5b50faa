"""Session facade components."""

from crawler_index.session.facade import EngineSession, open_session
from crawler_index.session.lifecycle import IndexLifecycleManager
from crawler_index.session.negotiator import VersionNegotiator
from crawler_index.session.pipelines import PipelineManager
from crawler_index.session.queries import QueryExecutor
from crawler_index.session.writer import DocumentWriter

__all__ = [
    "DocumentWriter",
    "EngineSession",
    "IndexLifecycleManager",
    "PipelineManager",
    "QueryExecutor",
    "VersionNegotiator",
    "open_session",
]
