"""Searches and field extraction adapted to the engine mapping style."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from crawler_index.domain import CapabilitySet, MappingStyle, SearchHit, SearchQuery, SearchResult
from crawler_index.errors import EngineConnectionError

if TYPE_CHECKING:
    from crawler_index.engine.protocols import EngineBackend
    from crawler_index.session.negotiator import VersionNegotiator

_MATCH_ALL: dict[str, Any] = {"match_all": {}}
_NEGATIVE_MAX_RESULTS_ERROR = "max_results must be >= 0, got {value}."
_MALFORMED_SEARCH_ERROR = "Malformed search response: {detail}"
_logger = logging.getLogger(__name__)


def _flatten(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return [item for element in value for item in _flatten(element)]
    return [value]


def _source_values(node: Any, parts: list[str]) -> list[Any]:
    if not parts:
        return _flatten(node)
    if isinstance(node, list):
        return [value for element in node for value in _source_values(element, parts)]
    if not isinstance(node, dict):
        return []
    joined = ".".join(parts)
    if joined in node:
        return _flatten(node[joined])
    head, *rest = parts
    if head not in node:
        return []
    return _source_values(node[head], rest)


def field_values(hit: dict[str, Any], field_name: str, mapping_style: MappingStyle) -> list[Any]:
    """Read the values of one field from a search hit.

    Stored fields (`hit.fields`) win; typeless engines fall back to the
    filtered `_source` addressed by dotted path.

    Args:
        hit (dict[str, Any]): One element of `hits.hits`.
        field_name (str): Dotted field name, e.g. `foo.bar`.
        mapping_style (MappingStyle): Mapping style of the engine.

    Returns:
        list[Any]: Flattened field values, empty when the field is absent.

    """
    stored = hit.get("fields")
    if isinstance(stored, dict) and field_name in stored:
        return _flatten(stored[field_name])
    if mapping_style is MappingStyle.TYPELESS:
        return _source_values(hit.get("_source"), field_name.split("."))
    return []


def total_hits(hits_block: dict[str, Any]) -> int:
    """Read the total hit count in either of its wire formats.

    Args:
        hits_block (dict[str, Any]): The `hits` object of a search response.

    Raises:
        EngineConnectionError: If the count is missing.

    Returns:
        int: Total number of matching documents.

    """
    total = hits_block.get("total")
    if isinstance(total, dict):
        if total.get("relation", "eq") != "eq":
            _logger.warning("Engine reported a lower bound for total hits: %s", total)
        total = total.get("value")
    if isinstance(total, bool) or not isinstance(total, int):
        raise EngineConnectionError(_MALFORMED_SEARCH_ERROR.format(detail=f"no total in {hits_block!r}"))
    return total


def build_search_body(
    *,
    query_filter: dict[str, Any] | None,
    size: int,
    fields: list[str],
    capabilities: CapabilitySet,
) -> dict[str, Any]:
    """Build a search body for the engine generation.

    Args:
        query_filter (dict[str, Any] | None): Engine-native query; match_all when None.
        size (int): Page size.
        fields (list[str]): Fields to retrieve.
        capabilities (CapabilitySet): Detected capabilities.

    Returns:
        dict[str, Any]: Search request body.

    """
    body: dict[str, Any] = {"query": query_filter or _MATCH_ALL, "size": size}
    if capabilities.tracks_total_hits:
        body["track_total_hits"] = True
    if capabilities.mapping_style is MappingStyle.LEGACY:
        body["fields"] = list(fields)
    else:
        body["_source"] = list(fields) if fields else False
    return body


class QueryExecutor:
    """Run searches and extract field values from matching documents."""

    def __init__(self, backend: EngineBackend, negotiator: VersionNegotiator) -> None:
        self._backend = backend
        self._negotiator = negotiator

    def _hits_block(self, *, index: str, body: dict[str, Any]) -> dict[str, Any]:
        response = self._backend.search(index=index, body=body)
        hits_block = response.get("hits")
        if not isinstance(hits_block, dict):
            raise EngineConnectionError(_MALFORMED_SEARCH_ERROR.format(detail=f"no hits in {response!r}"))
        return hits_block

    def search(self, query: SearchQuery) -> SearchResult:
        """Execute a search.

        Args:
            query (SearchQuery): Target index, filter, requested fields and page size.

        Returns:
            SearchResult: Authoritative total hit count and one page of hits. A
            field with a single value is returned unwrapped, several values as a list.

        """
        capabilities = self._negotiator.capabilities()
        body = build_search_body(
            query_filter=query.filter,
            size=query.max_results,
            fields=query.requested_fields,
            capabilities=capabilities,
        )
        hits_block = self._hits_block(index=query.target_index, body=body)

        hits: list[SearchHit] = []
        for raw_hit in hits_block.get("hits") or []:
            doc_id = raw_hit.get("_id") if isinstance(raw_hit, dict) else None
            if doc_id is None:
                raise EngineConnectionError(_MALFORMED_SEARCH_ERROR.format(detail=f"hit without _id {raw_hit!r}"))
            extracted: dict[str, Any] = {}
            for field_name in query.requested_fields:
                values = field_values(raw_hit, field_name, capabilities.mapping_style)
                if values:
                    extracted[field_name] = values[0] if len(values) == 1 else values
            hits.append(SearchHit(id=str(doc_id), extracted_fields=extracted))

        return SearchResult(total_hits=total_hits(hits_block), hits=hits)

    def get_from_stored_fields_v2(
        self,
        index: str,
        max_results: int,
        field_name: str,
        path_hint: str | None = None,
        query_filter: dict[str, Any] | None = None,
    ) -> list[Any]:
        """Collect values of one field from matching documents.

        Args:
            index (str): Target index name.
            max_results (int): Maximum number of values returned.
            field_name (str): Dotted field name.
            path_hint (str | None): Crawled path, logged for diagnostics only.
            query_filter (dict[str, Any] | None): Engine-native query; match_all when None.

        Raises:
            ValueError: If `max_results` is negative.

        Returns:
            list[Any]: At most `max_results` field values in hit order.

        """
        if max_results < 0:
            raise ValueError(_NEGATIVE_MAX_RESULTS_ERROR.format(value=max_results))
        _logger.debug("Reading field [%s] from [%s] for path [%s]", field_name, index, path_hint)
        if max_results == 0:
            return []

        capabilities = self._negotiator.capabilities()
        body = build_search_body(
            query_filter=query_filter,
            size=max_results,
            fields=[field_name],
            capabilities=capabilities,
        )
        hits_block = self._hits_block(index=index, body=body)

        values: list[Any] = []
        for raw_hit in hits_block.get("hits") or []:
            values.extend(field_values(raw_hit, field_name, capabilities.mapping_style))
        return values[:max_results]
