from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote

import pytest

from crawler_index.domain import Pipeline
from crawler_index.engine.protocols import RawResponse
from crawler_index.errors import EngineReportedError, IngestNotSupportedError
from crawler_index.session.negotiator import VersionNegotiator
from crawler_index.session.pipelines import PipelineManager


@dataclass
class _RawPipelineBackendStub:
    version: str = "7.17.9"
    pipelines: dict[str, dict[str, Any]] = field(default_factory=dict)
    raw_status: int | None = None
    calls: list[str] = field(default_factory=list)
    backend_name: str = "stub"

    def info(self) -> dict[str, Any]:
        self.calls.append("info")
        return {"version": {"number": self.version}}

    def put_pipeline(self, *, pipeline_id: str, body: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(f"put:{pipeline_id}")
        self.pipelines[pipeline_id] = body
        return {"acknowledged": True}

    def perform_request(self, *, method: str, path: str, **_kwargs: Any) -> RawResponse:
        self.calls.append(f"{method} {path}")
        if self.raw_status is not None:
            return RawResponse(status=self.raw_status, payload={"error": "boom"})
        pipeline_id = unquote(path.rsplit("/", 1)[-1])
        if pipeline_id.endswith("*"):
            prefix = pipeline_id[:-1]
            matches = {key: value for key, value in self.pipelines.items() if key.startswith(prefix)}
        else:
            matches = {key: value for key, value in self.pipelines.items() if key == pipeline_id}
        return RawResponse(status=200 if matches else 404, payload=matches)


@dataclass
class _TypedPipelineBackendStub(_RawPipelineBackendStub):
    def pipeline_exists(self, *, pipeline_id: str) -> bool:
        self.calls.append(f"typed:{pipeline_id}")
        return pipeline_id in self.pipelines


def _manager(backend: _RawPipelineBackendStub) -> PipelineManager:
    return PipelineManager(backend, VersionNegotiator(backend))


def test_is_ingest_supported_uses_the_cached_capabilities() -> None:
    backend = _RawPipelineBackendStub(version="5.0.0-alpha1")
    manager = _manager(backend)

    assert manager.is_ingest_supported() is True
    assert manager.is_ingest_supported() is True
    assert backend.calls == ["info"]


def test_is_ingest_supported_is_false_before_five() -> None:
    assert _manager(_RawPipelineBackendStub(version="2.4.6")).is_ingest_supported() is False


def test_raw_fallback_checks_existence_by_exact_id() -> None:
    backend = _RawPipelineBackendStub()
    manager = _manager(backend)
    manager.put_pipeline(Pipeline(id="crawler", processors=[{"gsub": {"field": "content"}}]))

    assert manager.is_existing_pipeline("crawler") is True
    assert manager.is_existing_pipeline("crawler_foo") is False
    assert manager.is_existing_pipeline("craw*") is False
    assert "GET /_ingest/pipeline/crawler" in backend.calls


def test_typed_probe_is_preferred_when_available() -> None:
    backend = _TypedPipelineBackendStub(pipelines={"crawler": {}})

    assert _manager(backend).is_existing_pipeline("crawler") is True
    assert not any(call.startswith("GET") for call in backend.calls)
    assert "typed:crawler" in backend.calls


def test_raw_fallback_passes_unexpected_statuses_through() -> None:
    backend = _RawPipelineBackendStub(raw_status=500)

    with pytest.raises(EngineReportedError) as exc_info:
        _manager(backend).is_existing_pipeline("crawler")

    assert exc_info.value.status == 500  # noqa: PLR2004


def test_raw_fallback_accepts_empty_success_bodies() -> None:
    class _EmptyBodyBackend(_RawPipelineBackendStub):
        def perform_request(self, *, method: str, path: str, **_kwargs: Any) -> RawResponse:
            self.calls.append(f"{method} {path}")
            return RawResponse(status=200, payload={})

    assert _manager(_EmptyBodyBackend()).is_existing_pipeline("crawler") is True


def test_engines_without_ingest_have_no_pipelines() -> None:
    backend = _RawPipelineBackendStub(version="2.4.6")
    manager = _manager(backend)

    assert manager.is_existing_pipeline("crawler") is False
    assert backend.calls == ["info"]
    with pytest.raises(IngestNotSupportedError):
        manager.put_pipeline(Pipeline(id="crawler"))
