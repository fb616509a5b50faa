from __future__ import annotations

import fnmatch
import json
from pathlib import Path
from typing import Any
from urllib.parse import unquote

import httpx
import pytest

from crawler_index.engine.adapters import HttpRestAdapter
from crawler_index.session import EngineSession

_ENGINE_URL = "http://engine.test:9200"
_MISSING = object()


def _mark_tests_by_directory(
    config: pytest.Config,
    items: list[pytest.Item],
    marker: str,
) -> None:
    target_dir = Path(config.rootpath) / "tests" / marker
    target_dir = target_dir.resolve()

    for item in items:
        try:
            p = Path(str(item.fspath)).resolve()
        except Exception:  # noqa: S112
            continue

        if p == target_dir or target_dir in p.parents:
            item.add_marker(getattr(pytest.mark, marker))


def pytest_collection_modifyitems(
    config: pytest.Config,
    items: list[pytest.Item],
) -> None:
    _mark_tests_by_directory(config, items, "unit")
    _mark_tests_by_directory(config, items, "integration")
    _mark_tests_by_directory(config, items, "end2end")


def _lookup(source: Any, field: str) -> Any:
    node = source
    for part in field.split("."):
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node


def _pick(source: dict[str, Any], fields: list[str]) -> dict[str, Any]:
    picked: dict[str, Any] = {}
    for field in fields:
        value = _lookup(source, field)
        if value is _MISSING:
            continue
        target = picked
        *parents, leaf = field.split(".")
        for part in parents:
            target = target.setdefault(part, {})
        target[leaf] = value
    return picked


def _seconds(duration: str) -> float:
    if duration.endswith("ms"):
        return int(duration[:-2]) / 1000
    return float(duration.rstrip("s"))


def _error(status: int, error_type: str, reason: str) -> httpx.Response:
    return httpx.Response(status, json={"error": {"type": error_type, "reason": reason}, "status": status})


class FakeEngine:
    """In-memory engine speaking enough of the REST surface for session tests."""

    def __init__(self, version: str = "7.17.9", *, distribution: str | None = None) -> None:
        self.version = version
        self.distribution = distribution
        self.indices: dict[str, dict[str, Any]] = {}
        self.pipelines: dict[str, dict[str, Any]] = {}
        self.health_sequence: list[str] = ["green"]
        self.requests: list[tuple[str, str]] = []
        self.search_bodies: list[dict[str, Any]] = []
        self.health_timeouts: list[str | None] = []
        self.clock: Any = None

    @property
    def major(self) -> int:
        return int(self.version.split(".")[0]) if self.distribution is None else 7

    @property
    def release(self) -> tuple[int, int]:
        major, minor = self.version.split(".")[:2]
        return int(major), int(minor)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append((request.method, request.url.path))
        parts = [unquote(part) for part in request.url.path.strip("/").split("/") if part]
        body = json.loads(request.content) if request.content else None
        method = request.method

        if not parts:
            return self._info()
        if parts[0] == "_cluster" and len(parts) == 3:  # noqa: PLR2004
            return self._health(parts[2], request.url.params.get("timeout"))
        if parts[0] == "_ingest" and len(parts) == 3:  # noqa: PLR2004
            return self._pipeline(method, parts[2], body)

        index = parts[0]
        if len(parts) == 1:
            return self._index_operation(method, index, body)
        if parts[1] == "_refresh":
            return self._refresh(index)
        if parts[1] == "_search":
            return self._search(index, body or {})
        if len(parts) == 3 and method in {"PUT", "POST"}:  # noqa: PLR2004
            return self._write(index, parts[1], parts[2], body or {}, request.url.params.get("pipeline"))
        return _error(400, "illegal_argument_exception", f"no handler for {method} {request.url.path}")

    def _info(self) -> httpx.Response:
        version: dict[str, Any] = {"number": self.version}
        if self.distribution is not None:
            version["distribution"] = self.distribution
        return httpx.Response(200, json={"name": "node-1", "cluster_name": "test", "version": version})

    def _index_operation(self, method: str, index: str, body: dict[str, Any] | None) -> httpx.Response:
        if method == "HEAD":
            return httpx.Response(200 if index in self.indices else 404)
        if method == "PUT":
            if index in self.indices:
                error_type = (
                    "resource_already_exists_exception" if self.major >= 6 else "index_already_exists_exception"  # noqa: PLR2004
                )
                return _error(400, error_type, f"index [{index}] already exists")
            self._create(index, body)
            return httpx.Response(200, json={"acknowledged": True, "index": index})
        if method == "DELETE":
            matches = [name for name in self.indices if fnmatch.fnmatch(name, index)]
            if not matches and "*" not in index:
                return _error(404, "index_not_found_exception", f"no such index [{index}]")
            for name in matches:
                del self.indices[name]
            return httpx.Response(200, json={"acknowledged": True})
        return _error(405, "method_not_allowed", method)

    def _create(self, index: str, body: dict[str, Any] | None) -> None:
        self.indices[index] = {"settings": body, "pending": {}, "visible": {}}

    def _health(self, index: str, timeout: str | None) -> httpx.Response:
        self.health_timeouts.append(timeout)
        if index not in self.indices:
            if self.clock is not None:
                self.clock.now += _seconds(timeout or "30s")
            return httpx.Response(408, json={"status": "red", "timed_out": True})
        state = self.health_sequence.pop(0) if len(self.health_sequence) > 1 else self.health_sequence[0]
        return httpx.Response(200, json={"cluster_name": "test", "status": state, "timed_out": False})

    def _refresh(self, index: str) -> httpx.Response:
        if index not in self.indices:
            return _error(404, "index_not_found_exception", f"no such index [{index}]")
        state = self.indices[index]
        state["visible"].update(state["pending"])
        state["pending"].clear()
        return httpx.Response(200, json={"_shards": {"total": 1, "successful": 1, "failed": 0}})

    def _write(
        self,
        index: str,
        doc_type: str,
        doc_id: str,
        source: dict[str, Any],
        pipeline: str | None,
    ) -> httpx.Response:
        if self.major >= 7 and doc_type != "_doc":  # noqa: PLR2004
            return _error(400, "illegal_argument_exception", "mapping types are not supported")
        if doc_type.startswith("_") and self.distribution is None and self.release < (6, 2):
            return _error(400, "invalid_type_name_exception", f"mapping type name [{doc_type}] can't start with '_'")
        if pipeline is not None and pipeline not in self.pipelines:
            return _error(400, "illegal_argument_exception", f"pipeline with id [{pipeline}] does not exist")
        if index not in self.indices:
            self._create(index, None)
        state = self.indices[index]
        existed = doc_id in state["pending"] or doc_id in state["visible"]
        state["pending"][doc_id] = source
        if self.major < 5:  # noqa: PLR2004
            return httpx.Response(201, json={"_index": index, "_type": doc_type, "_id": doc_id, "created": not existed})
        result = "updated" if existed else "created"
        return httpx.Response(201, json={"_index": index, "_id": doc_id, "result": result})

    def _matches(self, source: dict[str, Any], query: dict[str, Any]) -> bool:
        if "match_all" in query:
            return True
        if "term" in query:
            (field, expected), = query["term"].items()
            if isinstance(expected, dict):
                expected = expected["value"]
            value = _lookup(source, field)
            return value == expected or (isinstance(value, list) and expected in value)
        if "bool" in query:
            clauses = query["bool"].get("must", []) + query["bool"].get("filter", [])
            clauses = clauses if isinstance(clauses, list) else [clauses]
            return all(self._matches(source, clause) for clause in clauses)
        raise ValueError(query)

    def _search(self, index: str, body: dict[str, Any]) -> httpx.Response:
        self.search_bodies.append(body)
        if index not in self.indices:
            return _error(404, "index_not_found_exception", f"no such index [{index}]")
        if "track_total_hits" in body and self.major < 7:  # noqa: PLR2004
            return _error(400, "parsing_exception", "unknown key [track_total_hits]")
        if "fields" in body and self.major >= 5:  # noqa: PLR2004
            return _error(400, "illegal_argument_exception", "[fields] is no longer supported")
        query = body.get("query", {"match_all": {}})
        try:
            matched = [
                (doc_id, source)
                for doc_id, source in sorted(self.indices[index]["visible"].items())
                if self._matches(source, query)
            ]
        except ValueError:
            return _error(400, "parsing_exception", f"unknown query {query}")

        hits = []
        for doc_id, source in matched[: body.get("size", 10)]:
            hit: dict[str, Any] = {"_index": index, "_id": doc_id, "_score": 1.0}
            source_filter = body.get("_source", True)
            if source_filter is True:
                hit["_source"] = source
            elif isinstance(source_filter, list):
                hit["_source"] = _pick(source, source_filter)
            if "fields" in body:
                hit["fields"] = {
                    field: value if isinstance(value, list) else [value]
                    for field in body["fields"]
                    if (value := _lookup(source, field)) is not _MISSING
                }
            hits.append(hit)

        total: Any = {"value": len(matched), "relation": "eq"} if self.major >= 7 else len(matched)  # noqa: PLR2004
        return httpx.Response(200, json={"took": 1, "timed_out": False, "hits": {"total": total, "hits": hits}})

    def _pipeline(self, method: str, pipeline_id: str, body: dict[str, Any] | None) -> httpx.Response:
        if self.major < 5:  # noqa: PLR2004
            return _error(400, "illegal_argument_exception", "no handler found for uri [/_ingest/pipeline]")
        if method == "PUT":
            self.pipelines[pipeline_id] = body or {}
            return httpx.Response(200, json={"acknowledged": True})
        if method == "GET":
            matches = {name: value for name, value in self.pipelines.items() if fnmatch.fnmatch(name, pipeline_id)}
            return httpx.Response(200 if matches else 404, json=matches)
        return _error(405, "method_not_allowed", method)


@pytest.fixture
def engine_factory() -> type[FakeEngine]:
    return FakeEngine


@pytest.fixture
def make_session():
    sessions: list[EngineSession] = []

    def _make(engine: FakeEngine, **kwargs: Any) -> EngineSession:
        backend = HttpRestAdapter.from_connection(
            url=_ENGINE_URL,
            timeout_s=5,
            verify_certs=True,
            transport=httpx.MockTransport(engine.handler),
        )
        session = EngineSession(backend, owns_backend=True, **kwargs)
        sessions.append(session)
        return session

    yield _make

    for session in sessions:
        session.close()
