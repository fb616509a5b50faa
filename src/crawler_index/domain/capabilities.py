"""Pure derivation of engine capabilities from a detected version."""

from __future__ import annotations

from crawler_index.domain.contracts import CapabilitySet, EngineVersion
from crawler_index.domain.enums import MappingStyle

INGEST_MIN_VERSION = EngineVersion.parse("5.0.0-alpha1")
TYPELESS_MIN_VERSION = EngineVersion.parse("5.0.0")
TOTAL_HITS_TRACKING_MIN_VERSION = EngineVersion.parse("7.0.0")
DOC_ENDPOINT_MIN_VERSION = EngineVersion.parse("6.2.0")
OPENSEARCH_DISTRIBUTION = "opensearch"


def derive_capabilities(version: EngineVersion) -> CapabilitySet:
    """Derive the capability set for one engine version.

    OpenSearch forked from Elasticsearch 7.10 and restarted its numbering at 1.0,
    so its version numbers are not comparable with the Elasticsearch thresholds.
    Elasticsearch only accepts the `_doc` endpoint from 6.2; older engines need
    a mapping type in document paths even when their mappings are typeless.

    Args:
        version (EngineVersion): Detected engine version.

    Returns:
        CapabilitySet: Capabilities available on that engine.

    """
    if version.distribution == OPENSEARCH_DISTRIBUTION:
        return CapabilitySet(
            ingest_supported=True,
            mapping_style=MappingStyle.TYPELESS,
            tracks_total_hits=True,
        )

    return CapabilitySet(
        ingest_supported=version >= INGEST_MIN_VERSION,
        mapping_style=MappingStyle.LEGACY if version < TYPELESS_MIN_VERSION else MappingStyle.TYPELESS,
        tracks_total_hits=version >= TOTAL_HITS_TRACKING_MIN_VERSION,
        document_type_required=version < DOC_ENDPOINT_MIN_VERSION,
    )
